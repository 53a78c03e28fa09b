from __future__ import annotations

import json
import os
from typing import TYPE_CHECKING

from restcheck import __version__
from restcheck.core._types import SEVERITY_LEVEL, Severity

if TYPE_CHECKING:
    from restcheck.core.finding import Finding
    from restcheck.core.report import Report
    from restcheck.core.rule import Rule

_SEVERITY_COLORS: dict[Severity, str] = {
    Severity.ERROR: "\033[31m",  # red
    Severity.WARNING: "\033[33m",  # yellow
    Severity.INFO: "\033[36m",  # cyan
}
_GREEN = "\033[32m"
_RED = "\033[31m"
_BOLD = "\033[1m"
_RESET = "\033[0m"

_LINE_WIDTH = 66


def _use_color(no_color_flag: bool) -> bool:
    if no_color_flag:
        return False
    return not os.environ.get("NO_COLOR", "")


def _c(text: str, code: str, *, color: bool) -> str:
    if not color:
        return text
    return f"{code}{text}{_RESET}"


def _section(title: str, *, color: bool) -> str:
    header = f"── {title} "
    fill = "─" * max(0, _LINE_WIDTH - len(header))
    return _c(header + fill, _BOLD, color=color)


def _shown(findings: list[Finding], min_severity: Severity) -> list[Finding]:
    min_level = SEVERITY_LEVEL[min_severity]
    return [f for f in findings if f.failed and SEVERITY_LEVEL[f.severity] >= min_level]


def format_text(
    report: Report,
    *,
    capture: str,
    min_severity: Severity = Severity.INFO,
    no_color: bool = False,
) -> str:
    color = _use_color(no_color)
    lines: list[str] = []
    w = lines.append

    w(f"restcheck {__version__}")
    w("")
    noun = "sample" if report.total == 1 else "samples"
    w(f"Checking {capture} ({report.total} {noun}) ...")

    any_shown = False
    for sample_id, findings in report.by_sample().items():
        shown = _shown(findings, min_severity)
        if not shown:
            continue
        any_shown = True
        first = findings[0]
        label = f"{sample_id} {first.method} {first.path}".rstrip()
        w("")
        w(_section(label, color=color))
        for f in shown:
            sev_color = _SEVERITY_COLORS.get(f.severity, "")
            tag = _c(f"[{f.rule_id}]", _BOLD, color=color)
            sev = _c(f.severity, sev_color, color=color)
            w(f"  {tag} {sev}: {f.evidence}")
            if f.hint:
                w(f"    hint: {f.hint}")

    if not any_shown:
        w("")
        w(_c("No violations found.", _GREEN, color=color))

    if report.rules:
        w("")
        w(_section(f"Rules ({len(report.rules)})", color=color))
        w("")
        id_w = max(len(rid) for rid in report.rules)
        sev_w = max(len(str(c.severity)) for c in report.rules.values())
        for rule_id, counts in sorted(report.rules.items()):
            sev_color = _SEVERITY_COLORS.get(counts.severity, "")
            rid = _c(rule_id.ljust(id_w), _BOLD, color=color)
            severity = _c(str(counts.severity).ljust(sev_w), sev_color, color=color)
            failed = f"{counts.failed} fail"
            if counts.failed:
                failed = _c(failed, _RED, color=color)
            w(
                f"  {rid}  {severity}  {counts.passed} pass  {failed}  "
                f"{counts.not_applicable} n/a"
            )

    w("")
    w(_summary_line(report, color=color))
    return "\n".join(lines)


def _summary_line(report: Report, *, color: bool) -> str:
    noun = "sample" if report.total == 1 else "samples"
    rate = f"{report.pass_rate:.1%} pass rate"
    passed = _c(f"{report.passed} passed", _GREEN, color=color)
    failed = f"{report.failed} failed"
    if report.failed:
        failed = _c(failed, _RED, color=color)
    line = f"{report.total} {noun}: {passed}, {failed} ({rate})"
    if report.warnings:
        warn = "warning" if report.warnings == 1 else "warnings"
        line += ", " + _c(
            f"{report.warnings} {warn}", _SEVERITY_COLORS[Severity.WARNING], color=color
        )
    return line


def format_json(
    report: Report,
    *,
    capture: str,
    min_severity: Severity = Severity.INFO,
    all_findings: bool = False,
) -> str:
    data = report.to_dict(all_findings=all_findings)
    min_level = SEVERITY_LEVEL[min_severity]
    data["findings"] = [
        f for f in data["findings"] if SEVERITY_LEVEL[Severity(f["severity"])] >= min_level
    ]
    return json.dumps({"version": __version__, "capture": capture, **data}, indent=2)


_LAYER_TITLES: dict[str, str] = {
    "method": "Methods",
    "envelope": "Error Envelope",
    "status": "Status Codes",
    "headers": "Headers",
    "pagination": "Pagination",
    "security": "Security",
    "ingest": "Ingestion",
}

_LAYER_ORDER: list[str] = list(_LAYER_TITLES)


def format_rules_text(
    rules: list[Rule],
    *,
    no_color: bool = False,
    total: int | None = None,
) -> str:
    color = _use_color(no_color)
    lines: list[str] = []
    w = lines.append

    id_w = max((len(r.id) for r in rules), default=0)
    sev_w = max((len(str(r.severity)) for r in rules), default=0)

    groups: dict[str, list[Rule]] = {}
    for r in rules:
        groups.setdefault(r.layer, []).append(r)

    count = len(rules)
    header = f"restcheck {__version__} - {count} rules"
    if total is not None and total != count:
        header += f" (filtered from {total})"
    w(header)

    for layer in _LAYER_ORDER:
        group = groups.get(layer)
        if not group:
            continue

        title = _LAYER_TITLES.get(layer, layer)
        w("")
        w(_section(f"{title} ({len(group)})", color=color))
        w("")
        for r in group:
            sev_color = _SEVERITY_COLORS.get(r.severity, "")
            rule_id = _c(r.id.ljust(id_w), _BOLD, color=color)
            severity = _c(str(r.severity).ljust(sev_w), sev_color, color=color)
            w(f"  {rule_id}  {severity}  {r.summary}")

    return "\n".join(lines)


def format_rules_json(rules: list[Rule]) -> str:
    data = {
        "version": __version__,
        "rules": [
            {
                "id": r.id,
                "severity": str(r.severity),
                "summary": r.summary,
                "hint": r.hint,
                "layer": r.layer,
                "methods": sorted(r.methods),
                "archetypes": sorted(str(a) for a in r.archetypes),
            }
            for r in rules
        ],
        "total": len(rules),
    }
    return json.dumps(data, indent=2)
