from restcheck.core._types import Archetype

# Methods each archetype accepts. PATCH follows PUT; HEAD and OPTIONS follow GET.
#
# | Archetype  | POST    | GET | PUT | DELETE |
# |------------|---------|-----|-----|--------|
# | document   | -       | ok  | ok  | ok     |
# | collection | create  | ok  | ok  | ok     |
# | store      | -       | ok  | ok  | ok     |
# | controller | execute | ok  | -   | -      |
_READ = frozenset({"GET", "HEAD", "OPTIONS"})
_WRITE = frozenset({"PUT", "PATCH"})

ALLOWED_METHODS: dict[Archetype, frozenset[str]] = {
    Archetype.DOCUMENT: _READ | _WRITE | {"DELETE"},
    Archetype.COLLECTION: _READ | _WRITE | {"POST", "DELETE"},
    Archetype.STORE: _READ | _WRITE | {"DELETE"},
    Archetype.CONTROLLER: _READ | {"POST"},
}

IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "PUT", "DELETE", "OPTIONS"})

# Canonical error status names per HTTP code.
STATUS_NAMES: dict[int, frozenset[str]] = {
    400: frozenset({"INVALID_ARGUMENT", "FAILED_PRECONDITION", "OUT_OF_RANGE"}),
    401: frozenset({"UNAUTHENTICATED"}),
    403: frozenset({"PERMISSION_DENIED"}),
    404: frozenset({"NOT_FOUND"}),
    409: frozenset({"ABORTED", "ALREADY_EXISTS"}),
    429: frozenset({"RESOURCE_EXHAUSTED"}),
    499: frozenset({"CANCELLED"}),
    500: frozenset({"INTERNAL", "UNKNOWN", "DATA_LOSS"}),
    501: frozenset({"UNIMPLEMENTED"}),
    503: frozenset({"UNAVAILABLE"}),
    504: frozenset({"DEADLINE_EXCEEDED"}),
}

LINK_RELATIONS = frozenset({"first", "prev", "next", "last", "self"})

CREDENTIAL_PARAMS = frozenset({"api_key", "apikey", "access_token", "token", "password"})
