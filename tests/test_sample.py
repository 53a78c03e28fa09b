import pytest

from restcheck.core._types import Archetype
from restcheck.core.headers import Headers
from restcheck.core.sample import IngestionError, Sample
from tests.conftest import JSON, make_sample


class TestValidation:
    @pytest.mark.parametrize(
        "status",
        [
            pytest.param(99, id="below-range"),
            pytest.param(600, id="above-range"),
            pytest.param(0, id="zero"),
            pytest.param(-1, id="negative"),
        ],
    )
    def test_status_out_of_range(self, status: int) -> None:
        with pytest.raises(IngestionError, match="outside 100-599"):
            make_sample(status=status)

    @pytest.mark.parametrize(
        "status",
        [
            pytest.param("200", id="str"),
            pytest.param(200.0, id="float"),
            pytest.param(True, id="bool"),
            pytest.param(None, id="none"),
        ],
    )
    def test_status_not_int_is_not_coerced(self, status: object) -> None:
        with pytest.raises(IngestionError, match="must be an int"):
            make_sample(status=status)  # type: ignore[arg-type]

    @pytest.mark.parametrize("status", [100, 200, 404, 599])
    def test_status_boundaries_accepted(self, status: int) -> None:
        assert make_sample(status=status).status == status

    def test_missing_method(self) -> None:
        with pytest.raises(IngestionError, match="missing a request method"):
            make_sample(method="")

    def test_unknown_method(self) -> None:
        with pytest.raises(IngestionError, match="Unknown HTTP method"):
            make_sample(method="FETCH")

    def test_method_uppercased(self) -> None:
        assert make_sample(method="post").method == "POST"

    def test_missing_path(self) -> None:
        with pytest.raises(IngestionError, match="missing a request path"):
            make_sample(path="")

    def test_bad_header_pair(self) -> None:
        with pytest.raises(IngestionError, match="pairs"):
            Sample(id="x", method="GET", path="/", status=200, response_headers=[("a",)])  # type: ignore[arg-type]

    def test_unknown_archetype(self) -> None:
        with pytest.raises(IngestionError, match="Unknown archetype"):
            make_sample(archetype="thing")  # type: ignore[arg-type]

    def test_frozen(self) -> None:
        sample = make_sample()
        with pytest.raises(AttributeError):
            sample.status = 500  # type: ignore[misc]


class TestHeaders:
    def test_case_insensitive_lookup(self) -> None:
        sample = make_sample(headers={"Content-Type": "application/json"})
        assert sample.response_headers["content-type"] == "application/json"
        assert "CONTENT-TYPE" in sample.response_headers

    def test_pairs_and_har_entries(self) -> None:
        headers = Headers([("Link", "<a>; rel=next"), {"name": "X-Id", "value": "1"}])
        assert headers["link"] == "<a>; rel=next"
        assert headers["x-id"] == "1"

    def test_repeated_headers_are_folded(self) -> None:
        headers = Headers([("Link", "<a>; rel=next"), ("link", "<b>; rel=last")])
        assert headers["Link"] == "<a>; rel=next, <b>; rel=last"
        assert len(headers) == 1

    def test_bytes_values_decoded(self) -> None:
        assert Headers([("x", b"v")])["x"] == "v"

    def test_media_type_strips_parameters(self) -> None:
        headers = Headers({"Content-Type": "Application/JSON; charset=utf-8"})
        assert headers.media_type() == "application/json"

    def test_equality_with_mapping(self) -> None:
        assert Headers({"A": "1"}) == {"a": "1"}


class TestBody:
    def test_json_body_parsed(self) -> None:
        sample = make_sample(headers=JSON, body=b'{"id": 1}')
        assert sample.body == {"id": 1}
        assert sample.json() == {"id": 1}

    def test_json_suffix_media_type_parsed(self) -> None:
        sample = make_sample(
            headers={"Content-Type": "application/problem+json"}, body='{"a": 1}'
        )
        assert sample.body == {"a": 1}

    def test_malformed_json_kept_raw(self) -> None:
        sample = make_sample(headers=JSON, body=b"{not json")
        assert sample.body == b"{not json"
        with pytest.raises(ValueError):
            sample.json()

    def test_non_json_body_kept_raw(self) -> None:
        sample = make_sample(headers={"Content-Type": "text/plain"}, body="hello")
        assert sample.body == b"hello"
        assert sample.has_body

    def test_structured_body_kept(self) -> None:
        assert make_sample(body={"a": 1}).json() == {"a": 1}

    def test_empty_body(self) -> None:
        sample = make_sample(headers=JSON, body=b"")
        assert not sample.has_body

    def test_no_body(self) -> None:
        sample = make_sample()
        assert not sample.has_body
        with pytest.raises(ValueError, match="no body"):
            sample.json()

    def test_request_body_normalised(self) -> None:
        assert make_sample(request_body="x=1").request_body == b"x=1"


class TestDerived:
    def test_archetype_inferred(self) -> None:
        assert make_sample(path="/widgets/42").archetype == Archetype.DOCUMENT
        assert make_sample(path="/widgets").archetype == Archetype.COLLECTION

    def test_explicit_archetype_kept(self) -> None:
        assert make_sample(path="/settings/theme", archetype=Archetype.STORE).archetype == (
            Archetype.STORE
        )

    def test_query_and_resource_path(self) -> None:
        sample = make_sample(path="/widgets?page=2&api_key=x")
        assert sample.resource_path == "/widgets"
        assert sample.query == [("page", "2"), ("api_key", "x")]

    def test_label(self) -> None:
        assert make_sample(method="DELETE", path="/widgets/1").label == "DELETE /widgets/1"
