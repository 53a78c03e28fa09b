from restcheck.core._types import Severity
from restcheck.core.rule import Rule
from restcheck.rules._checks import EmptyBody, IdempotentTarget, MethodCompatibility
from restcheck.rules._matrix import ALLOWED_METHODS, IDEMPOTENT_METHODS

_LAYER = "method"

MTH_001 = Rule(
    "MTH-001",
    Severity.ERROR,
    "Method not permitted on resource archetype",
    check=MethodCompatibility(tuple(ALLOWED_METHODS.items())),
    hint="Create with POST on a collection, name store entries with PUT, "
    "execute controllers with POST",
    layer=_LAYER,
)
MTH_002 = Rule(
    "MTH-002",
    Severity.WARNING,
    "Idempotent request created a resource at a different URI",
    check=IdempotentTarget(),
    hint="GET, PUT, HEAD and DELETE must only affect the resource named in the request URI",
    layer=_LAYER,
    methods=IDEMPOTENT_METHODS - {"OPTIONS"},
)
MTH_003 = Rule(
    "MTH-003",
    Severity.ERROR,
    "HEAD response must not carry a body",
    check=EmptyBody(),
    layer=_LAYER,
    methods=frozenset({"HEAD"}),
)
