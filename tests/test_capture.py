from __future__ import annotations

import base64
import json
from typing import TYPE_CHECKING

import pytest

from restcheck.core._types import Archetype, Outcome
from restcheck.core.capture import (
    CaptureError,
    claim_id,
    ingest,
    load_capture,
    parse_capture,
    sample_from_record,
)
from restcheck.core.config import RestcheckConfig

if TYPE_CHECKING:
    from pathlib import Path

_RECORD = {
    "id": "create-widget",
    "method": "POST",
    "path": "/widgets",
    "status": 201,
    "request_headers": {"Content-Type": "application/json"},
    "request_body": '{"name": "w"}',
    "response_headers": [["Location", "/widgets/42"], ["Content-Type", "application/json"]],
    "body": '{"id": 42}',
}

_HAR = {
    "log": {
        "version": "1.2",
        "entries": [
            {
                "request": {
                    "method": "GET",
                    "url": "https://api.test/widgets?page=2",
                    "headers": [{"name": "Accept", "value": "application/json"}],
                },
                "response": {
                    "status": 404,
                    "headers": [],
                    "content": {
                        "mimeType": "application/json",
                        "text": '{"error": {"code": 404, "message": "gone", '
                        '"status": "NOT_FOUND"}}',
                    },
                },
            }
        ],
    }
}


class TestLoadCapture:
    def test_json_list(self, tmp_path: Path) -> None:
        path = tmp_path / "capture.json"
        path.write_text(json.dumps([_RECORD]))
        assert load_capture(path) == [_RECORD]

    def test_samples_object(self, tmp_path: Path) -> None:
        path = tmp_path / "capture.json"
        path.write_text(json.dumps({"samples": [_RECORD]}))
        assert load_capture(str(path)) == [_RECORD]

    def test_json_lines(self, tmp_path: Path) -> None:
        path = tmp_path / "capture.jsonl"
        path.write_text(json.dumps(_RECORD) + "\n\n" + json.dumps(_RECORD) + "\n")
        assert len(load_capture(path)) == 2

    def test_json_lines_bad_line(self, tmp_path: Path) -> None:
        path = tmp_path / "capture.ndjson"
        path.write_text(json.dumps(_RECORD) + "\n{oops\n")
        with pytest.raises(CaptureError, match=":2: invalid JSON"):
            load_capture(path)

    def test_har(self, tmp_path: Path) -> None:
        path = tmp_path / "traffic.har"
        path.write_text(json.dumps(_HAR))
        (record,) = load_capture(path)
        assert record["method"] == "GET"
        assert record["url"] == "https://api.test/widgets?page=2"
        assert record["status"] == 404
        assert {"name": "Content-Type", "value": "application/json"} in record[
            "response_headers"
        ]

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(CaptureError, match="Could not read"):
            load_capture(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "capture.json"
        path.write_text("{not json")
        with pytest.raises(CaptureError, match="Invalid JSON"):
            load_capture(path)

    @pytest.mark.parametrize(
        "data",
        [
            pytest.param({"foo": []}, id="unknown-object"),
            pytest.param("string", id="scalar"),
            pytest.param({"log": {"entries": {}}}, id="har-entries-not-list"),
        ],
    )
    def test_wrong_shape(self, data: object) -> None:
        with pytest.raises(CaptureError, match="expected a list"):
            parse_capture(data)


class TestSampleFromRecord:
    def test_full_record(self) -> None:
        sample = sample_from_record(_RECORD, index=1)
        assert sample.id == "create-widget"
        assert sample.method == "POST"
        assert sample.status == 201
        assert sample.response_headers["location"] == "/widgets/42"
        assert sample.body == {"id": 42}
        assert sample.request_body == b'{"name": "w"}'
        assert sample.archetype == Archetype.COLLECTION

    def test_url_is_split(self) -> None:
        sample = sample_from_record(
            {"method": "GET", "url": "https://api.test/widgets/7?x=1", "status": 200}, index=3
        )
        assert sample.id == "#3"
        assert sample.path == "/widgets/7?x=1"
        assert sample.archetype == Archetype.DOCUMENT

    def test_explicit_archetype(self) -> None:
        record = {"method": "PUT", "path": "/settings/theme", "status": 200, "archetype": "store"}
        assert sample_from_record(record, index=1).archetype == Archetype.STORE

    def test_config_archetype(self) -> None:
        config = RestcheckConfig(archetypes=(("/settings/*", Archetype.STORE),))
        record = {"method": "PUT", "path": "/settings/theme", "status": 200}
        assert sample_from_record(record, index=1, config=config).archetype == Archetype.STORE


class TestIngest:
    def test_rejected_records_become_findings(self) -> None:
        records = [
            _RECORD,
            {"method": "GET", "status": 200},
            {"path": "/x", "status": 200},
            {"id": "bad-status", "method": "GET", "path": "/x", "status": 700},
            "not a record",
        ]
        samples, rejected = ingest(records)  # type: ignore[arg-type]
        assert [s.id for s in samples] == ["create-widget"]
        assert [f.sample_id for f in rejected] == ["#2", "#3", "bad-status", "#5"]
        assert all(f.rule_id == "ING-001" for f in rejected)
        assert all(f.outcome == Outcome.FAIL for f in rejected)
        assert "missing 'path'" in rejected[0].evidence
        assert "missing a request method" in rejected[1].evidence
        assert "700" in rejected[2].evidence
        assert rejected[2].method == "GET"
        assert rejected[2].path == "/x"

    def test_har_round_trip_to_sample(self) -> None:
        samples, rejected = ingest(parse_capture(_HAR))
        assert rejected == []
        (sample,) = samples
        assert sample.path == "/widgets?page=2"
        assert sample.body["error"]["status"] == "NOT_FOUND"

    def test_duplicate_ids_are_suffixed(self) -> None:
        records = [
            {"id": "x", "method": "GET", "path": "/widgets", "status": 200},
            {"id": "x", "method": "GET", "path": "/widgets/42", "status": 200},
            {"id": "x", "method": "GET", "path": "/x", "status": 999},
        ]
        samples, rejected = ingest(records)
        assert [s.id for s in samples] == ["x", "x#2"]
        assert [f.sample_id for f in rejected] == ["x#3"]

    def test_seen_ids_are_respected(self) -> None:
        seen = {"#1"}
        samples, _ = ingest([{"method": "GET", "path": "/widgets", "status": 200}], seen=seen)
        assert samples[0].id == "#1#1"
        assert seen == {"#1", "#1#1"}


class TestClaimId:
    def test_unused_id_is_kept(self) -> None:
        seen: set[str] = set()
        assert claim_id("a", seen, index=1) == "a"
        assert seen == {"a"}

    def test_suffix_skips_taken_candidates(self) -> None:
        seen = {"a", "a#2"}
        assert claim_id("a", seen, index=2) == "a#3"


def _har_entry(status: int, body: bytes, *, encoding: str | None = "base64") -> dict:
    content: dict = {"mimeType": "application/json", "text": body.decode()}
    if encoding is not None:
        content["text"] = base64.b64encode(body).decode()
        content["encoding"] = encoding
    return {
        "request": {"method": "GET", "url": "https://api.test/widgets/7", "headers": []},
        "response": {"status": status, "headers": [], "content": content},
    }


class TestHarEncoding:
    _ENVELOPE = json.dumps(
        {"error": {"code": 404, "message": "gone", "status": "NOT_FOUND"}}
    ).encode()

    def test_base64_body_is_decoded(self) -> None:
        data = {"log": {"entries": [_har_entry(404, self._ENVELOPE)]}}
        samples, rejected = ingest(parse_capture(data))
        assert rejected == []
        assert samples[0].body["error"]["code"] == 404

    def test_base64_envelope_passes_env001(self) -> None:
        from restcheck.core.checker import check

        data = {"log": {"entries": [_har_entry(404, self._ENVELOPE)]}}
        report = check(parse_capture(data))
        assert not report.has_errors
        assert report.rules["ENV-001"].passed == 1

    def test_base64_post_data_is_decoded(self) -> None:
        entry = _har_entry(201, b"{}", encoding=None)
        entry["request"]["method"] = "POST"
        entry["request"]["postData"] = {
            "mimeType": "application/json",
            "text": base64.b64encode(b'{"name": "w"}').decode(),
            "encoding": "base64",
        }
        (record,) = parse_capture({"log": {"entries": [entry]}})
        assert record["request_body_encoding"] == "base64"
        sample = sample_from_record(record, index=1)
        assert sample.request_body == b'{"name": "w"}'

    @pytest.mark.parametrize(
        ("body", "encoding", "message"),
        [
            pytest.param("not base64!", "base64", "Invalid base64 in body", id="bad-base64"),
            pytest.param("e30=", "gzip", "Unsupported body encoding 'gzip'", id="unknown"),
        ],
    )
    def test_bad_encoding_rejected(self, body: str, encoding: str, message: str) -> None:
        record = {
            "method": "GET",
            "path": "/x",
            "status": 200,
            "body": body,
            "body_encoding": encoding,
        }
        _, rejected = ingest([record])
        assert message in rejected[0].evidence
