from dataclasses import dataclass

from restcheck.core._types import Outcome, Severity


@dataclass(frozen=True, slots=True)
class Finding:
    """Result of evaluating one rule against one sample."""

    rule_id: str
    severity: Severity
    sample_id: str
    outcome: Outcome
    evidence: str = ""
    method: str = ""
    path: str = ""
    hint: str = ""

    @property
    def failed(self) -> bool:
        return self.outcome == Outcome.FAIL

    @property
    def is_error(self) -> bool:
        """Whether this finding counts against the sample's pass/fail verdict."""
        return self.failed and self.severity == Severity.ERROR
