from restcheck.core._types import Severity
from restcheck.core.rule import Rule
from restcheck.rules._checks import QueryParameterAbsent
from restcheck.rules._matrix import CREDENTIAL_PARAMS

SEC_001 = Rule(
    "SEC-001",
    Severity.WARNING,
    "Credentials passed in the query string",
    check=QueryParameterAbsent(CREDENTIAL_PARAMS),
    hint="Send credentials in the Authorization header; URLs end up in logs",
    layer="security",
)
