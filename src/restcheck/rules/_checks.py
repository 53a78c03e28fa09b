from dataclasses import dataclass

from restcheck.core._types import Archetype

type StatusRange = tuple[int, int]

SUCCESS: StatusRange = (200, 299)
CLIENT_OR_SERVER_ERROR: StatusRange = (400, 599)
ALL_STATUSES: StatusRange = (100, 599)


@dataclass(frozen=True, slots=True)
class MethodCompatibility:
    """Method must be permitted on the sample's archetype."""

    matrix: tuple[tuple[Archetype, frozenset[str]], ...]


@dataclass(frozen=True, slots=True)
class IdempotentTarget:
    """A ``Location`` on a successful idempotent call must name the request URI."""

    when: StatusRange = SUCCESS


@dataclass(frozen=True, slots=True)
class ErrorEnvelope:
    """Body must be ``{"error": {"code", "message", "status"}}`` with a matching code."""

    when: StatusRange = CLIENT_OR_SERVER_ERROR


@dataclass(frozen=True, slots=True)
class ErrorStatusName:
    """``error.status`` must be a canonical name for the HTTP status."""

    names: tuple[tuple[int, frozenset[str]], ...]
    when: StatusRange = CLIENT_OR_SERVER_ERROR


@dataclass(frozen=True, slots=True)
class ErrorDetails:
    """``error.details`` must be a list of objects with the given string keys."""

    fields: tuple[str, ...] = ("code", "target", "message")
    when: StatusRange = CLIENT_OR_SERVER_ERROR


@dataclass(frozen=True, slots=True)
class HeaderPresence:
    """Header must be present.

    ``response=False`` checks the request headers.  ``statuses`` limits the
    check to exact status codes; ``when`` to a status range.  With
    ``with_body=True`` the check only applies when the inspected message
    carries a body.
    """

    header: str
    response: bool = True
    statuses: frozenset[int] = frozenset()
    when: StatusRange = ALL_STATUSES
    with_body: bool = False


@dataclass(frozen=True, slots=True)
class MediaType:
    """``Content-Type`` media type must be in ``allowed`` or end with ``suffix``.

    Not applicable when the header is absent.
    """

    allowed: frozenset[str] = frozenset({"application/json"})
    suffix: str = "+json"
    response: bool = True
    when: StatusRange = ALL_STATUSES


@dataclass(frozen=True, slots=True)
class StatusCategory:
    """Status must be in ``allowed`` whenever it falls inside ``when``."""

    allowed: frozenset[int]
    when: StatusRange = SUCCESS


@dataclass(frozen=True, slots=True)
class EmptyBody:
    """Response must carry no body (all methods when ``statuses`` is empty)."""

    statuses: frozenset[int] = frozenset()


@dataclass(frozen=True, slots=True)
class LinkRelations:
    """Every ``rel`` in the ``Link`` header must be one of ``allowed``."""

    allowed: frozenset[str]


@dataclass(frozen=True, slots=True)
class QueryParameterAbsent:
    """None of ``names`` may appear in the request query string."""

    names: frozenset[str]


type CheckSpec = (
    MethodCompatibility
    | IdempotentTarget
    | ErrorEnvelope
    | ErrorStatusName
    | ErrorDetails
    | HeaderPresence
    | MediaType
    | StatusCategory
    | EmptyBody
    | LinkRelations
    | QueryParameterAbsent
)
