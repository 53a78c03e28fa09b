from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from restcheck.core._types import Archetype, Severity

if TYPE_CHECKING:
    from restcheck.rules._checks import CheckSpec


@dataclass(frozen=True, slots=True)
class Rule:
    """A single checkable guideline.

    Rules are pure data: ``check`` is one of the tagged variants in
    :mod:`restcheck.rules._checks` and the evaluator decides *how* to run it.

    Example::

        STS_001 = Rule(
            "STS-001",
            Severity.WARNING,
            "201 Created should carry a Location header",
            check=HeaderPresence("Location", statuses=frozenset({201})),
            layer="status",
        )
    """

    id: str
    severity: Severity
    summary: str
    check: CheckSpec | None = None
    hint: str = ""
    layer: str = ""
    methods: frozenset[str] = frozenset()
    archetypes: frozenset[Archetype] = frozenset()

    def applies_to(self, method: str, archetype: Archetype) -> bool:
        """Return ``True`` if the rule's method/archetype filters accept the pair."""
        if self.methods and method not in self.methods:
            return False
        if not self.archetypes or Archetype.ANY in self.archetypes:
            return True
        return archetype in self.archetypes

    def __str__(self) -> str:
        return f"[{self.id}] {self.summary}"
