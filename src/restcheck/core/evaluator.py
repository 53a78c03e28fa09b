"""Apply rules to samples and produce findings."""

from __future__ import annotations

import itertools
import logging
import re
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

from restcheck.core._types import Archetype, Outcome
from restcheck.core.finding import Finding
from restcheck.core.registry import create_default_registry
from restcheck.rules._checks import (
    EmptyBody,
    ErrorDetails,
    ErrorEnvelope,
    ErrorStatusName,
    HeaderPresence,
    IdempotentTarget,
    LinkRelations,
    MediaType,
    MethodCompatibility,
    QueryParameterAbsent,
    StatusCategory,
    StatusRange,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from restcheck.core.config import RestcheckConfig
    from restcheck.core.headers import Headers
    from restcheck.core.registry import RuleRegistry
    from restcheck.core.rule import Rule
    from restcheck.core.sample import Sample
    from restcheck.rules._checks import CheckSpec

logger = logging.getLogger("restcheck")

type Result = tuple[Outcome, str]

_PASS: Result = (Outcome.PASS, "")
_REL = re.compile(r';\s*rel\s*=\s*(?:"([^"]*)"|([^\s;,]+))', re.I)


def evaluate(rule: Rule, sample: Sample) -> Finding:
    """Apply *rule* to *sample*.

    Never raises: a check that blows up is logged and reported as a ``fail``
    finding carrying the exception as evidence.
    """
    try:
        outcome, evidence = _run_check(rule.check, sample)
    except Exception as exc:
        logger.exception("Rule %s raised on sample %s", rule.id, sample.id)
        outcome, evidence = Outcome.FAIL, f"check raised {type(exc).__name__}: {exc}"

    return Finding(
        rule_id=rule.id,
        severity=rule.severity,
        sample_id=sample.id,
        outcome=outcome,
        evidence=evidence,
        method=sample.method,
        path=sample.path,
        hint=rule.hint if outcome == Outcome.FAIL else "",
    )


class Evaluator:
    """Runs a registry's rules over samples.

    Evaluation reads only the frozen registry and the immutable samples, so
    :meth:`run` can fan samples out over a thread pool.
    """

    def __init__(
        self,
        registry: RuleRegistry | None = None,
        *,
        config: RestcheckConfig | None = None,
    ) -> None:
        self._registry = registry or create_default_registry(config=config)
        self._max_workers = config.max_workers if config is not None else 1

    @property
    def registry(self) -> RuleRegistry:
        return self._registry

    def evaluate_sample(self, sample: Sample) -> list[Finding]:
        findings = [evaluate(rule, sample) for rule in self._registry.rules_for(sample)]
        for finding in findings:
            if finding.failed:
                logger.debug(
                    "[%s] %s %s: %s",
                    finding.rule_id,
                    finding.severity,
                    sample.label,
                    finding.evidence,
                )
        return findings

    def run(self, samples: Iterable[Sample], *, max_workers: int | None = None) -> list[Finding]:
        """Evaluate every sample, preserving input order in the result."""
        workers = max_workers or self._max_workers
        if workers <= 1:
            per_sample = map(self.evaluate_sample, samples)
            return list(itertools.chain.from_iterable(per_sample))

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="restcheck") as pool:
            per_sample = pool.map(self.evaluate_sample, samples)
            return list(itertools.chain.from_iterable(per_sample))


def _run_check(check: CheckSpec | None, sample: Sample) -> Result:
    match check:
        case MethodCompatibility(matrix=matrix):
            return _check_method(dict(matrix), sample)
        case IdempotentTarget(when=when):
            return _check_idempotent_target(when, sample)
        case ErrorEnvelope(when=when):
            return _check_error_envelope(when, sample)
        case ErrorStatusName(names=names, when=when):
            return _check_status_name(dict(names), when, sample)
        case ErrorDetails(fields=fields, when=when):
            return _check_error_details(fields, when, sample)
        case HeaderPresence():
            return _check_header_presence(check, sample)
        case MediaType():
            return _check_media_type(check, sample)
        case StatusCategory(allowed=allowed, when=when):
            return _check_status_category(allowed, when, sample)
        case EmptyBody(statuses=statuses):
            return _check_empty_body(statuses, sample)
        case LinkRelations(allowed=allowed):
            return _check_link_relations(allowed, sample)
        case QueryParameterAbsent(names=names):
            return _check_query(names, sample)
        case _:
            raise TypeError(f"Unknown check variant: {type(check).__name__}")


def _not_applicable(evidence: str = "") -> Result:
    return Outcome.NOT_APPLICABLE, evidence


def _in_range(status: int, when: StatusRange) -> bool:
    low, high = when
    return low <= status <= high


# --- Method rules ---


def _check_method(matrix: dict[Archetype, frozenset[str]], sample: Sample) -> Result:
    archetype = sample.archetype
    allowed = matrix.get(archetype) if archetype is not None else None
    if allowed is None:
        return _not_applicable(f"no method table for archetype {archetype}")
    if sample.method in allowed:
        return _PASS
    return Outcome.FAIL, f"{sample.method} not permitted on {archetype} resource"


def _check_idempotent_target(when: StatusRange, sample: Sample) -> Result:
    if not _in_range(sample.status, when):
        return _not_applicable()
    location = sample.response_headers.get("location")
    if location is None:
        return _PASS
    if _normalise_path(urlsplit(location).path) == _normalise_path(sample.resource_path):
        return _PASS
    return (
        Outcome.FAIL,
        f"{sample.method} {sample.resource_path} returned Location {location}; "
        "idempotent methods must address the resource named in the request URI",
    )


def _normalise_path(path: str) -> str:
    return path.rstrip("/") or "/"


# --- Error envelope rules ---


def _error_object(sample: Sample) -> dict[str, Any] | None:
    """Return the ``error`` member of the body, or ``None`` if unavailable."""
    try:
        body = sample.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    return error if isinstance(error, dict) else None


def _check_error_envelope(when: StatusRange, sample: Sample) -> Result:
    if not _in_range(sample.status, when):
        return _not_applicable()
    if not sample.has_body:
        return Outcome.FAIL, "error response has no body"
    try:
        body = sample.json()
    except ValueError as exc:
        return Outcome.FAIL, f"response body is not valid JSON: {exc}"

    if not isinstance(body, dict) or "error" not in body:
        return Outcome.FAIL, "response body has no top-level 'error' member"
    error = body["error"]
    if not isinstance(error, dict):
        return Outcome.FAIL, f"'error' must be an object, got {_json_type(error)}"

    missing = [f"error.{name}" for name in ("code", "message", "status") if name not in error]
    if missing:
        return Outcome.FAIL, f"error envelope missing {', '.join(missing)}"

    code = error["code"]
    if isinstance(code, bool) or not isinstance(code, int):
        return Outcome.FAIL, f"error.code must be an integer, got {_json_type(code)}"
    if not isinstance(error["message"], str):
        return Outcome.FAIL, f"error.message must be a string, got {_json_type(error['message'])}"
    if not isinstance(error["status"], str):
        return Outcome.FAIL, f"error.status must be a string, got {_json_type(error['status'])}"
    if code != sample.status:
        return Outcome.FAIL, f"error.code {code} does not match status line {sample.status}"
    return _PASS


def _check_status_name(
    names: dict[int, frozenset[str]], when: StatusRange, sample: Sample
) -> Result:
    if not _in_range(sample.status, when):
        return _not_applicable()
    error = _error_object(sample)
    if error is None or not isinstance(error.get("status"), str):
        return _not_applicable("no error.status to inspect")
    expected = names.get(sample.status)
    if expected is None:
        return _not_applicable(f"no canonical name registered for {sample.status}")
    value = error["status"]
    if value in expected:
        return _PASS
    return (
        Outcome.FAIL,
        f"error.status {value!r} is not canonical for {sample.status} "
        f"(expected {' or '.join(sorted(expected))})",
    )


def _check_error_details(fields: tuple[str, ...], when: StatusRange, sample: Sample) -> Result:
    if not _in_range(sample.status, when):
        return _not_applicable()
    error = _error_object(sample)
    if error is None or "details" not in error:
        return _not_applicable()
    details = error["details"]
    if not isinstance(details, list):
        return Outcome.FAIL, f"error.details must be a list, got {_json_type(details)}"
    for i, item in enumerate(details):
        if not isinstance(item, dict):
            return Outcome.FAIL, f"error.details[{i}] must be an object, got {_json_type(item)}"
        missing = [name for name in fields if name not in item]
        if missing:
            return Outcome.FAIL, f"error.details[{i}] missing {', '.join(missing)}"
    return _PASS


def _json_type(value: Any) -> str:
    match value:
        case None:
            return "null"
        case bool():
            return "boolean"
        case int() | float():
            return "number"
        case str():
            return "string"
        case list():
            return "array"
        case dict():
            return "object"
        case _:
            return type(value).__name__


# --- Header rules ---


def _headers_for(sample: Sample, *, response: bool) -> Headers:
    return sample.response_headers if response else sample.request_headers


def _has_body(sample: Sample, *, response: bool) -> bool:
    return sample.has_body if response else bool(sample.request_body)


def _header_applies(
    sample: Sample,
    *,
    response: bool,
    when: StatusRange,
    with_body: bool,
    statuses: frozenset[int] = frozenset(),
) -> bool:
    if statuses and sample.status not in statuses:
        return False
    if not _in_range(sample.status, when):
        return False
    return not (with_body and not _has_body(sample, response=response))


def _check_header_presence(check: HeaderPresence, sample: Sample) -> Result:
    if not _header_applies(
        sample,
        response=check.response,
        when=check.when,
        with_body=check.with_body,
        statuses=check.statuses,
    ):
        return _not_applicable()
    if check.header in _headers_for(sample, response=check.response):
        return _PASS
    return Outcome.FAIL, f"expected {check.header} header, found none"


def _check_media_type(check: MediaType, sample: Sample) -> Result:
    if not _in_range(sample.status, check.when):
        return _not_applicable()
    headers = _headers_for(sample, response=check.response)
    if "content-type" not in headers:
        return _not_applicable("no Content-Type header")
    media_type = headers.media_type()
    if media_type in check.allowed:
        return _PASS
    if check.suffix and media_type.endswith(check.suffix):
        return _PASS
    expected = " or ".join(sorted(check.allowed))
    return Outcome.FAIL, f"Content-Type is {media_type!r}, expected {expected}"


# --- Status rules ---


def _check_status_category(allowed: frozenset[int], when: StatusRange, sample: Sample) -> Result:
    if not _in_range(sample.status, when):
        return _not_applicable()
    if sample.status in allowed:
        return _PASS
    evidence = f"{sample.method} returned {sample.status}"
    if allowed:
        evidence += f", expected one of {', '.join(str(s) for s in sorted(allowed))}"
    return Outcome.FAIL, evidence


def _check_empty_body(statuses: frozenset[int], sample: Sample) -> Result:
    if statuses and sample.status not in statuses:
        return _not_applicable()
    if not sample.has_body:
        return _PASS
    if isinstance(sample.body, bytes):
        return Outcome.FAIL, f"{sample.status} response carries a {len(sample.body)}-byte body"
    return Outcome.FAIL, f"{sample.status} response carries a body"


# --- Pagination and security rules ---


def _check_link_relations(allowed: frozenset[str], sample: Sample) -> Result:
    link = sample.response_headers.get("link")
    if link is None:
        return _not_applicable()
    rels: set[str] = set()
    for quoted, bare in _REL.findall(link):
        rels.update((quoted or bare).lower().split())
    if not rels:
        return Outcome.FAIL, "Link header has no rel parameter"
    unknown = sorted(rels - allowed)
    if unknown:
        return Outcome.FAIL, f"unknown Link relation(s): {', '.join(unknown)}"
    return _PASS


def _check_query(names: frozenset[str], sample: Sample) -> Result:
    found = sorted({name for name, _ in sample.query if name.lower() in names})
    if found:
        return Outcome.FAIL, f"credential parameter(s) in query string: {', '.join(found)}"
    return _PASS
