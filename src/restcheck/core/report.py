from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from restcheck.core._types import Outcome, Severity

if TYPE_CHECKING:
    from collections.abc import Iterable

    from restcheck.core.finding import Finding


@dataclass(frozen=True, slots=True)
class RuleCounts:
    """Outcome tallies for one rule."""

    rule_id: str
    severity: Severity
    passed: int = 0
    failed: int = 0
    not_applicable: int = 0

    @property
    def evaluated(self) -> int:
        return self.passed + self.failed

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": str(self.severity),
            "pass": self.passed,
            "fail": self.failed,
            "not-applicable": self.not_applicable,
        }


@dataclass(frozen=True)
class Report:
    """Findings of one evaluation run plus derived summary counts.

    A sample *fails* when at least one error-severity rule failed on it and
    *passes* otherwise, so ``passed + failed == total``.  ``warnings`` counts
    failing findings of any lower severity.
    """

    findings: tuple[Finding, ...] = ()
    total: int = 0
    passed: int = 0
    failed: int = 0
    warnings: int = 0
    rules: dict[str, RuleCounts] = field(default_factory=dict)

    @property
    def pass_rate(self) -> float:
        """Fraction of passing samples; vacuously ``1.0`` for an empty run."""
        if self.total == 0:
            return 1.0
        return self.passed / self.total

    @property
    def has_errors(self) -> bool:
        return self.failed > 0

    @property
    def failures(self) -> list[Finding]:
        return [f for f in self.findings if f.outcome == Outcome.FAIL]

    def by_sample(self) -> dict[str, list[Finding]]:
        """Group findings by sample ID, in first-seen order."""
        groups: dict[str, list[Finding]] = {}
        for f in self.findings:
            groups.setdefault(f.sample_id, []).append(f)
        return groups

    def merge(self, other: Report) -> Report:
        """Combine two reports as if their findings had been aggregated together."""
        return aggregate((*self.findings, *other.findings))

    def to_dict(self, *, all_findings: bool = True) -> dict[str, Any]:
        findings = self.findings if all_findings else tuple(self.failures)
        return {
            "summary": {
                "total": self.total,
                "passed": self.passed,
                "failed": self.failed,
                "warnings": self.warnings,
                "pass_rate": round(self.pass_rate, 4),
            },
            "rules": {rid: counts.to_dict() for rid, counts in sorted(self.rules.items())},
            "findings": [
                {
                    "rule": f.rule_id,
                    "sample": f.sample_id,
                    "outcome": str(f.outcome),
                    "severity": str(f.severity),
                    "evidence": f.evidence,
                }
                for f in findings
            ],
        }


def aggregate(findings: Iterable[Finding]) -> Report:
    """Fold *findings* into a :class:`Report`.

    Summary counts depend only on the multiset of findings, not their order;
    the findings themselves are kept in input order for display.
    """
    ordered = tuple(findings)

    samples: set[str] = set()
    failing_samples: set[str] = set()
    warnings = 0
    outcomes: Counter[tuple[str, Outcome]] = Counter()
    severities: dict[str, Severity] = {}

    for f in ordered:
        samples.add(f.sample_id)
        outcomes[(f.rule_id, f.outcome)] += 1
        severities[f.rule_id] = f.severity
        if f.is_error:
            failing_samples.add(f.sample_id)
        elif f.failed:
            warnings += 1

    rules = {
        rule_id: RuleCounts(
            rule_id=rule_id,
            severity=severity,
            passed=outcomes[(rule_id, Outcome.PASS)],
            failed=outcomes[(rule_id, Outcome.FAIL)],
            not_applicable=outcomes[(rule_id, Outcome.NOT_APPLICABLE)],
        )
        for rule_id, severity in severities.items()
    }

    return Report(
        findings=ordered,
        total=len(samples),
        passed=len(samples - failing_samples),
        failed=len(failing_samples),
        warnings=warnings,
        rules=rules,
    )
