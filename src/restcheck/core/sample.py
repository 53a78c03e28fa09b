import json
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qsl, urlsplit

from restcheck.core._types import HTTP_METHODS, Archetype
from restcheck.core.archetype import infer_archetype
from restcheck.core.headers import HeaderInput, Headers, is_json_media_type


class IngestionError(ValueError):
    """Raised when a captured exchange fails structural validation."""


@dataclass(frozen=True)
class Sample:
    """One observed request/response exchange.

    Headers are normalised into case-insensitive :class:`Headers`.  When the
    response declares a JSON media type and the body parses, ``body`` holds
    the decoded value; otherwise it keeps the raw bytes so that checks can
    report the parse error themselves.  ``archetype`` is inferred from the
    path when not given, and ``archetype_inferred`` records that so a config
    with archetype patterns can re-resolve it.

    Raises:
        :class:`IngestionError`: On an unknown method, empty path, or a
            status outside ``[100, 599]``.

    """

    id: str
    method: str
    path: str
    status: int
    request_headers: Headers = field(default_factory=Headers)
    response_headers: Headers = field(default_factory=Headers)
    body: Any = None
    request_body: bytes = b""
    archetype: Archetype | None = None
    archetype_inferred: bool = field(default=False, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.method, str) or not self.method:
            raise IngestionError("Sample is missing a request method")
        method = self.method.upper()
        if method not in HTTP_METHODS:
            raise IngestionError(f"Unknown HTTP method {self.method!r}")

        if not isinstance(self.path, str) or not self.path:
            raise IngestionError("Sample is missing a request path")

        status = self.status
        if isinstance(status, bool) or not isinstance(status, int):
            raise IngestionError(
                f"Status code must be an int, got {type(status).__name__}"
            )
        if not 100 <= status <= 599:
            raise IngestionError(f"Status code {status} outside 100-599")

        try:
            request_headers = _as_headers(self.request_headers)
            response_headers = _as_headers(self.response_headers)
        except ValueError as exc:
            raise IngestionError(str(exc)) from exc

        object.__setattr__(self, "method", method)
        object.__setattr__(self, "request_headers", request_headers)
        object.__setattr__(self, "response_headers", response_headers)
        object.__setattr__(self, "body", _normalise_body(self.body, response_headers))
        object.__setattr__(self, "request_body", _as_bytes(self.request_body))
        if self.archetype is None:
            object.__setattr__(self, "archetype", infer_archetype(self.path))
            object.__setattr__(self, "archetype_inferred", True)
        else:
            try:
                object.__setattr__(self, "archetype", Archetype(self.archetype))
            except ValueError as exc:
                raise IngestionError(f"Unknown archetype {self.archetype!r}") from exc

    @property
    def resource_path(self) -> str:
        """Path without query string or fragment."""
        return urlsplit(self.path).path or "/"

    @property
    def query(self) -> list[tuple[str, str]]:
        return parse_qsl(urlsplit(self.path).query, keep_blank_values=True)

    @property
    def has_body(self) -> bool:
        if self.body is None:
            return False
        if isinstance(self.body, bytes | str):
            return len(self.body) > 0
        return True

    def json(self) -> Any:
        """Return the body as decoded JSON.

        Raises:
            ValueError: If the body is absent or does not parse.

        """
        if self.body is None:
            raise ValueError("response has no body")
        if not isinstance(self.body, bytes):
            return self.body
        return json.loads(self.body)

    @property
    def label(self) -> str:
        return f"{self.method} {self.path}"


def _as_headers(raw: Headers | HeaderInput) -> Headers:
    if isinstance(raw, Headers):
        return raw
    return Headers(raw)


def _as_bytes(value: Any) -> bytes:
    if value is None:
        return b""
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode()
    return json.dumps(value).encode()


def _normalise_body(body: Any, headers: Headers) -> Any:
    if body is None:
        return None
    if not isinstance(body, bytes | str):
        # Already structured (dict/list/scalar from a JSON capture).
        return body
    raw = body.encode() if isinstance(body, str) else body
    if not raw:
        return b""
    if not is_json_media_type(headers.media_type()):
        return raw
    try:
        return json.loads(raw)
    except ValueError:
        return raw
