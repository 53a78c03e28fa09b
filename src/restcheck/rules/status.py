from restcheck.core._types import Archetype, Severity
from restcheck.core.rule import Rule
from restcheck.rules._checks import EmptyBody, HeaderPresence, StatusCategory

_LAYER = "status"

STS_001 = Rule(
    "STS-001",
    Severity.WARNING,
    "201 Created should carry a Location header",
    check=HeaderPresence("Location", statuses=frozenset({201})),
    hint="Point Location at the newly created resource",
    layer=_LAYER,
)
STS_002 = Rule(
    "STS-002",
    Severity.WARNING,
    "Successful DELETE should return 200, 202 or 204",
    check=StatusCategory(frozenset({200, 202, 204})),
    layer=_LAYER,
    methods=frozenset({"DELETE"}),
)
STS_003 = Rule(
    "STS-003",
    Severity.WARNING,
    "201 Created should only answer POST or PUT",
    check=StatusCategory(frozenset(), when=(201, 201)),
    layer=_LAYER,
    methods=frozenset({"GET", "HEAD", "PATCH", "DELETE", "OPTIONS"}),
)
STS_004 = Rule(
    "STS-004",
    Severity.ERROR,
    "204 No Content and 304 Not Modified must not carry a body",
    check=EmptyBody(frozenset({204, 304})),
    layer=_LAYER,
)
STS_005 = Rule(
    "STS-005",
    Severity.WARNING,
    "Successful controller POST should return 200, 201, 202 or 204",
    check=StatusCategory(frozenset({200, 201, 202, 204})),
    layer=_LAYER,
    methods=frozenset({"POST"}),
    archetypes=frozenset({Archetype.CONTROLLER}),
)
