from restcheck.core._types import Archetype, Severity
from restcheck.core.rule import Rule
from restcheck.rules._checks import LinkRelations
from restcheck.rules._matrix import LINK_RELATIONS

PAG_001 = Rule(
    "PAG-001",
    Severity.WARNING,
    "Pagination Link header uses an unknown relation",
    check=LinkRelations(LINK_RELATIONS),
    hint="Use rel values first, prev, next, last and self",
    layer="pagination",
    methods=frozenset({"GET", "HEAD"}),
    archetypes=frozenset({Archetype.COLLECTION, Archetype.STORE}),
)
