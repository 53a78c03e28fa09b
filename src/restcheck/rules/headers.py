from restcheck.core._types import Severity
from restcheck.core.rule import Rule
from restcheck.rules._checks import HeaderPresence

_LAYER = "headers"

HDR_001 = Rule(
    "HDR-001",
    Severity.WARNING,
    "Response with a body should declare Content-Type",
    check=HeaderPresence("Content-Type", with_body=True),
    layer=_LAYER,
)
HDR_002 = Rule(
    "HDR-002",
    Severity.WARNING,
    "405 Method Not Allowed should carry an Allow header",
    check=HeaderPresence("Allow", statuses=frozenset({405})),
    hint="List the methods the resource supports",
    layer=_LAYER,
)
HDR_003 = Rule(
    "HDR-003",
    Severity.WARNING,
    "401 Unauthorized should carry a WWW-Authenticate header",
    check=HeaderPresence("WWW-Authenticate", statuses=frozenset({401})),
    layer=_LAYER,
)
HDR_004 = Rule(
    "HDR-004",
    Severity.WARNING,
    "429 and 503 responses should carry a Retry-After header",
    check=HeaderPresence("Retry-After", statuses=frozenset({429, 503})),
    hint="Tell clients when to retry instead of letting them poll",
    layer=_LAYER,
)
HDR_005 = Rule(
    "HDR-005",
    Severity.WARNING,
    "Request with a body should declare Content-Type",
    check=HeaderPresence("Content-Type", response=False, with_body=True),
    layer=_LAYER,
    methods=frozenset({"POST", "PUT", "PATCH"}),
)
