"""Load captured HTTP exchanges and turn them into samples."""

from __future__ import annotations

import base64
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

from restcheck.core._types import Outcome
from restcheck.core.archetype import resolve_archetype
from restcheck.core.finding import Finding
from restcheck.core.sample import IngestionError, Sample
from restcheck.rules.ingest import ING_001

if TYPE_CHECKING:
    from collections.abc import Iterable

    from restcheck.core._types import Record
    from restcheck.core.config import RestcheckConfig

logger = logging.getLogger("restcheck")

_JSON_LINES_SUFFIXES = frozenset({".jsonl", ".ndjson"})


class CaptureError(Exception):
    """Raised when a capture file cannot be read or has the wrong shape."""


def load_capture(path: Path | str) -> list[Record]:
    """Read raw exchange records from a capture file.

    Supported layouts:

    - JSON array of records, or an object with a ``samples`` array
    - JSON Lines (``.jsonl`` / ``.ndjson``), one record per line
    - HAR 1.2 (``{"log": {"entries": [...]}}``)

    Raises:
        :class:`CaptureError`: If the file is unreadable, is not JSON, or
            matches none of the layouts above.

    """
    resolved = Path(path)
    try:
        text = resolved.read_text(encoding="utf-8")
    except OSError as exc:
        raise CaptureError(f"Could not read {resolved}: {exc}") from exc

    if resolved.suffix.lower() in _JSON_LINES_SUFFIXES:
        return _parse_json_lines(text, resolved)

    try:
        data = json.loads(text)
    except ValueError as exc:
        raise CaptureError(f"Invalid JSON in {resolved}: {exc}") from exc
    return parse_capture(data, source=str(resolved))


def parse_capture(data: Any, *, source: str = "<capture>") -> list[Record]:
    """Extract records from already-decoded capture data."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        if isinstance(data.get("samples"), list):
            return data["samples"]
        log = data.get("log")
        if isinstance(log, dict) and isinstance(log.get("entries"), list):
            return [_from_har_entry(entry) for entry in log["entries"]]
    msg = f"{source}: expected a list of records, a 'samples' list, or a HAR log"
    raise CaptureError(msg)


def _parse_json_lines(text: str, path: Path) -> list[Record]:
    records: list[Record] = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            records.append(json.loads(line))
        except ValueError as exc:
            raise CaptureError(f"{path}:{lineno}: invalid JSON: {exc}") from exc
    return records


def _from_har_entry(entry: Any) -> Record:
    if not isinstance(entry, dict):
        return {}
    request = entry.get("request") or {}
    response = entry.get("response") or {}
    content = response.get("content") or {}
    post_data = request.get("postData") or {}
    record: dict[str, Any] = {
        "method": request.get("method"),
        "url": request.get("url"),
        "request_headers": request.get("headers") or [],
        "request_body": post_data.get("text"),
        "status": response.get("status"),
        "response_headers": response.get("headers") or [],
        "body": content.get("text"),
    }
    if content.get("encoding"):
        record["body_encoding"] = content["encoding"]
    if post_data.get("encoding"):
        record["request_body_encoding"] = post_data["encoding"]
    if content.get("mimeType") and not any(
        isinstance(h, dict) and str(h.get("name", "")).lower() == "content-type"
        for h in record["response_headers"]
    ):
        record["response_headers"] = [
            *record["response_headers"],
            {"name": "Content-Type", "value": content["mimeType"]},
        ]
    return record


def sample_from_record(
    record: Record,
    *,
    index: int,
    config: RestcheckConfig | None = None,
    sample_id: str | None = None,
) -> Sample:
    """Build a :class:`Sample` from one raw record.

    ``body_encoding`` / ``request_body_encoding`` set to ``"base64"`` mark a
    body that must be decoded first, as HAR ``content.encoding`` does.

    Raises:
        :class:`IngestionError`: If the record is structurally invalid.

    """
    if not isinstance(record, dict):
        raise IngestionError(f"Record must be an object, got {type(record).__name__}")

    path = record.get("path")
    if path is None and isinstance(record.get("url"), str):
        parts = urlsplit(record["url"])
        path = parts.path or "/"
        if parts.query:
            path = f"{path}?{parts.query}"
    if not isinstance(path, str) or not path:
        raise IngestionError("Record is missing 'path' or 'url'")

    method = record.get("method")
    if sample_id is None:
        sample_id = _record_id(record, index)
    archetype = record.get("archetype")
    if archetype is None:
        archetype = resolve_archetype(path, config)

    return Sample(
        id=sample_id,
        method=method,  # type: ignore[arg-type]
        path=path,
        status=record.get("status"),  # type: ignore[arg-type]
        request_headers=record.get("request_headers"),  # type: ignore[arg-type]
        response_headers=record.get("response_headers"),  # type: ignore[arg-type]
        body=_decode(record.get("body"), record.get("body_encoding"), "body"),
        request_body=_decode(  # type: ignore[arg-type]
            record.get("request_body"), record.get("request_body_encoding"), "request_body"
        ),
        archetype=archetype,
    )


def _decode(value: Any, encoding: Any, name: str) -> Any:
    if encoding is None or value is None:
        return value
    if encoding != "base64":
        raise IngestionError(f"Unsupported {name} encoding {encoding!r}")
    if not isinstance(value, str | bytes):
        raise IngestionError(f"base64 {name} must be a string, got {type(value).__name__}")
    try:
        return base64.b64decode(value)
    except ValueError as exc:
        raise IngestionError(f"Invalid base64 in {name}: {exc}") from exc


def claim_id(sample_id: str, seen: set[str], *, index: int) -> str:
    """Return *sample_id*, or a ``#index``-suffixed variant if already in *seen*.

    The returned ID is added to *seen*, so every sample in one run has a
    distinct ID.
    """
    candidate = sample_id
    suffix = index
    while candidate in seen:
        candidate = f"{sample_id}#{suffix}"
        suffix += 1
    seen.add(candidate)
    return candidate


def ingest(
    records: Iterable[Record],
    *,
    config: RestcheckConfig | None = None,
    seen: set[str] | None = None,
) -> tuple[list[Sample], list[Finding]]:
    """Validate *records* into samples.

    Rejected records are not dropped: each becomes an ``ING-001`` ``fail``
    finding carrying the validation error as evidence.  Sample IDs are made
    unique across the batch and against *seen*, which is updated in place.
    """
    if seen is None:
        seen = set()
    samples: list[Sample] = []
    rejected: list[Finding] = []
    for index, record in enumerate(records, start=1):
        sample_id = claim_id(_record_id(record, index), seen, index=index)
        try:
            samples.append(
                sample_from_record(record, index=index, config=config, sample_id=sample_id)
            )
        except IngestionError as exc:
            logger.debug("Rejected sample %s: %s", sample_id, exc)
            rejected.append(
                Finding(
                    rule_id=ING_001.id,
                    severity=ING_001.severity,
                    sample_id=sample_id,
                    outcome=Outcome.FAIL,
                    evidence=str(exc),
                    method=_record_field(record, "method"),
                    path=_record_field(record, "path") or _record_field(record, "url"),
                    hint=ING_001.hint,
                )
            )
    return samples, rejected


def _record_id(record: Any, index: int) -> str:
    if isinstance(record, dict) and record.get("id"):
        return str(record["id"])
    return f"#{index}"


def _record_field(record: Any, name: str) -> str:
    if isinstance(record, dict) and isinstance(record.get(name), str):
        return record[name]
    return ""
