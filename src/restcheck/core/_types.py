from collections.abc import Mapping
from enum import StrEnum
from typing import Any

type Record = Mapping[str, Any]


class Severity(StrEnum):
    """Rule severity levels (ordered lowest → highest)."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


SEVERITY_LEVEL: dict[Severity, int] = {
    Severity.INFO: 0,
    Severity.WARNING: 1,
    Severity.ERROR: 2,
}


class Archetype(StrEnum):
    """Resource archetypes a URI can address."""

    DOCUMENT = "document"
    COLLECTION = "collection"
    STORE = "store"
    CONTROLLER = "controller"
    ANY = "any"


class Outcome(StrEnum):
    """Result of applying one rule to one sample."""

    PASS = "pass"
    FAIL = "fail"
    NOT_APPLICABLE = "not-applicable"


HTTP_METHODS = frozenset(
    {"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE", "CONNECT"}
)
