from restcheck.core._types import Severity
from restcheck.core.rule import Rule
from restcheck.rules._checks import (
    CLIENT_OR_SERVER_ERROR,
    ErrorDetails,
    ErrorEnvelope,
    ErrorStatusName,
    MediaType,
)
from restcheck.rules._matrix import STATUS_NAMES

_LAYER = "envelope"

ENV_001 = Rule(
    "ENV-001",
    Severity.ERROR,
    "Error response must use the standard error envelope",
    check=ErrorEnvelope(),
    hint='Respond with {"error": {"code": <status>, "message": "...", "status": "..."}}',
    layer=_LAYER,
)
ENV_002 = Rule(
    "ENV-002",
    Severity.WARNING,
    "error.status should be the canonical name for the HTTP status",
    check=ErrorStatusName(tuple(STATUS_NAMES.items())),
    hint="e.g. 404 → NOT_FOUND, 400 → INVALID_ARGUMENT",
    layer=_LAYER,
)
ENV_003 = Rule(
    "ENV-003",
    Severity.WARNING,
    "error.details should be a list of {code, target, message} objects",
    check=ErrorDetails(),
    layer=_LAYER,
)
ENV_004 = Rule(
    "ENV-004",
    Severity.WARNING,
    "Error response should be served as application/json",
    check=MediaType(when=CLIENT_OR_SERVER_ERROR),
    layer=_LAYER,
)
