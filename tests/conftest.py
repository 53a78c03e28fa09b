import json
from typing import Any

from restcheck.core._types import Archetype, Outcome
from restcheck.core.evaluator import evaluate
from restcheck.core.finding import Finding
from restcheck.core.rule import Rule
from restcheck.core.sample import Sample

JSON = {"Content-Type": "application/json"}


def make_sample(
    method: str = "GET",
    path: str = "/widgets",
    status: int = 200,
    *,
    headers: dict[str, str] | None = None,
    body: Any = None,
    request_headers: dict[str, str] | None = None,
    request_body: bytes | str | None = None,
    archetype: Archetype | None = None,
    sample_id: str = "s1",
) -> Sample:
    return Sample(
        id=sample_id,
        method=method,
        path=path,
        status=status,
        request_headers=request_headers,  # type: ignore[arg-type]
        response_headers=headers,  # type: ignore[arg-type]
        body=body,
        request_body=request_body,  # type: ignore[arg-type]
        archetype=archetype,
    )


def error_body(code: int, message: str = "bad", status: str = "INVALID_ARGUMENT") -> bytes:
    return json.dumps({"error": {"code": code, "message": message, "status": status}}).encode()


def make_error_sample(status: int, body: Any, *, method: str = "GET") -> Sample:
    return make_sample(method, "/widgets/42", status, headers=JSON, body=body)


def assert_fail(finding: Finding, evidence: str = "") -> Finding:
    assert finding.outcome == Outcome.FAIL, (
        f"Expected {finding.rule_id} to fail, got {finding.outcome} ({finding.evidence!r})"
    )
    if evidence:
        assert evidence in finding.evidence, (
            f"Expected evidence containing {evidence!r}, got {finding.evidence!r}"
        )
    return finding


def assert_pass(finding: Finding) -> Finding:
    assert finding.outcome == Outcome.PASS, (
        f"Expected {finding.rule_id} to pass, got {finding.outcome}: {finding.evidence!r}"
    )
    return finding


def assert_not_applicable(finding: Finding) -> Finding:
    assert finding.outcome == Outcome.NOT_APPLICABLE, (
        f"Expected {finding.rule_id} to be not-applicable, got {finding.outcome}: "
        f"{finding.evidence!r}"
    )
    return finding


def run(rule: Rule, sample: Sample) -> Finding:
    return evaluate(rule, sample)
