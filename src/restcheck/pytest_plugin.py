"""pytest plugin for restcheck — REST guideline checks in API tests.

Provides the ``rest_conformance`` fixture, ``@pytest.mark.rest_conformance``
marker, and ``--rest-strict`` CLI flag.

Usage::

    def test_create_widget(client, rest_conformance):
        response = client.post("/widgets", json={"name": "w"})
        rest_conformance.record(response)
        assert rest_conformance.report().failed == 0

    @pytest.mark.rest_conformance(exclude_rules={"HDR-001"}, min_severity="warning")
    def test_strict(client, rest_conformance):
        rest_conformance.record(client.get("/widgets"))
        # Findings auto-checked after the test; it fails if any are found.

CLI flag (applies the marker to all tests using ``rest_conformance``)::

    pytest --rest-strict
    pytest --rest-strict --rest-min-severity warning

"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

import pytest

if TYPE_CHECKING:
    from restcheck.core.config import RestcheckConfig
    from restcheck.core.finding import Finding
    from restcheck.core.report import Report
    from restcheck.core.sample import Sample

_SEVERITY_ORDER: dict[str, int] = {
    "info": 0,
    "warning": 1,
    "error": 2,
}

_RECORDERS_KEY: pytest.StashKey[list[ConformanceRecorder]] = pytest.StashKey()


def sample_from_response(
    response: Any,
    *,
    sample_id: str = "",
    config: RestcheckConfig | None = None,
) -> Sample:
    """Build a :class:`Sample` from an httpx or requests response object.

    Only duck-typed attributes are used: ``response.request.method``,
    ``response.request.url``, ``response.request.headers``,
    ``response.status_code``, ``response.headers`` and ``response.content``.
    The archetype is resolved against *config* like a captured record.
    """
    from restcheck.core.archetype import resolve_archetype
    from restcheck.core.sample import Sample

    request = response.request
    parts = urlsplit(str(request.url))
    path = parts.path or "/"
    if parts.query:
        path = f"{path}?{parts.query}"

    request_body = getattr(request, "content", None)
    if request_body is None:
        request_body = getattr(request, "body", None)

    return Sample(
        id=sample_id or f"{request.method} {path}",
        method=request.method,
        path=path,
        status=response.status_code,
        request_headers=dict(request.headers),
        response_headers=dict(response.headers),
        body=response.content,
        request_body=request_body,  # type: ignore[arg-type]
        archetype=resolve_archetype(path, config) if config is not None else None,
    )


@dataclass
class ConformanceRecorder:
    """Collects samples during a test and evaluates them on demand."""

    config: RestcheckConfig | None = None
    samples: list[Sample] = field(default_factory=list)

    def add(self, sample: Sample) -> Sample:
        self.samples.append(sample)
        return sample

    def record(self, response: Any) -> Sample:
        """Record an httpx/requests response."""
        sample_id = f"#{len(self.samples) + 1}"
        return self.add(sample_from_response(response, sample_id=sample_id, config=self.config))

    def report(self) -> Report:
        from restcheck.core.checker import check

        return check(self.samples, config=self.config)

    @property
    def findings(self) -> list[Finding]:
        return list(self.report().findings)


def _format_finding(f: Any) -> str:
    location = f" ({f.method} {f.path})" if f.method else ""
    line = f"  [{f.rule_id}] {f.severity}{location}: {f.evidence}"
    if f.hint:
        line += f"\n    hint: {f.hint}"
    return line


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("restcheck", "REST guideline conformance")
    group.addoption(
        "--rest-strict",
        action="store_true",
        default=False,
        help="Auto-check recorded responses on all tests using the rest_conformance fixture.",
    )
    group.addoption(
        "--rest-min-severity",
        default="error",
        choices=list(_SEVERITY_ORDER),
        help="Minimum severity for --rest-strict (default: error).",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "rest_conformance: mark test to auto-check recorded responses after the call. "
        "Options: exclude_rules=set(), min_severity='error', config=RestcheckConfig(...)",
    )


@pytest.fixture
def rest_conformance(request: pytest.FixtureRequest) -> ConformanceRecorder:
    """Fixture returning a :class:`ConformanceRecorder`.

    The recorder uses the marker's ``config=`` if given, otherwise the
    project config found by :func:`~restcheck.core.config.load_config`.
    If the test is marked with ``@pytest.mark.rest_conformance`` or
    ``--rest-strict`` is passed, recorded samples are checked after the call.
    """
    from restcheck.core.config import load_config

    marker = request.node.get_closest_marker("rest_conformance")
    config = marker.kwargs.get("config") if marker is not None else None
    if config is None:
        config = load_config()

    recorders: list[ConformanceRecorder] = request.node.stash.setdefault(_RECORDERS_KEY, [])
    recorder = ConformanceRecorder(config=config)
    recorders.append(recorder)
    return recorder


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item: pytest.Item, call: pytest.CallInfo[None]) -> Any:
    outcome = yield
    if call.when != "call":
        return
    report = outcome.get_result()
    if not report.passed:
        return

    recorders = item.stash.get(_RECORDERS_KEY, None)
    if not recorders:
        return

    marker = item.get_closest_marker("rest_conformance")
    global_strict = item.config.getoption("--rest-strict", default=False)

    if marker is None and not global_strict:
        return

    marker_kwargs = (marker.kwargs if marker and marker.kwargs else {}) or {}
    marker_exclude: set[str] = set(marker_kwargs.get("exclude_rules", set()))

    if marker is not None:
        min_severity = marker_kwargs.get("min_severity", "error")
    else:
        min_severity = item.config.getoption("--rest-min-severity", default="error")

    min_level = _SEVERITY_ORDER.get(min_severity, 2)

    failing = [
        f
        for recorder in recorders
        for f in recorder.report().failures
        if _SEVERITY_ORDER.get(f.severity, 0) >= min_level and f.rule_id not in marker_exclude
    ]

    if failing:
        lines = [f"REST guideline violations detected ({len(failing)}):"]
        lines.extend(_format_finding(f) for f in failing)
        report.outcome = "failed"
        report.longrepr = "\n".join(lines)
