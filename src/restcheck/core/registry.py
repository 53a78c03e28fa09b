"""Rule registry: the catalog of rules the evaluator runs."""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from restcheck.core.config import RestcheckConfig
    from restcheck.core.rule import Rule
    from restcheck.core.sample import Sample

_RULE_ID = re.compile(r"^[A-Z]{2,5}-\d{3}$")


class ConfigurationError(Exception):
    """Raised when the rule catalog is broken. Fatal at startup."""


class DuplicateRuleError(ConfigurationError):
    """Raised when a rule ID is registered twice."""

    def __init__(self, rule_id: str) -> None:
        self.rule_id = rule_id
        super().__init__(f"Duplicate rule ID: {rule_id}")


class RuleDefinitionError(ConfigurationError):
    """Raised when a rule is malformed (bad ID, no check)."""


class RegistryFrozenError(ConfigurationError):
    """Raised when registering into a frozen registry."""


class RuleRegistry:
    """Registry of rules, keyed by ID in registration order.

    Built once at startup, then frozen; after :meth:`freeze` the registry is
    read-only and may be shared between evaluator threads.
    """

    def __init__(
        self,
        rules: Iterable[Rule] = (),
        *,
        config: RestcheckConfig | None = None,
    ) -> None:
        self._rules: dict[str, Rule] = {}
        self._config = config
        self._frozen = False
        for rule in rules:
            self.register(rule)

    def register(self, rule: Rule) -> None:
        """Add *rule*.

        Raises:
            :class:`DuplicateRuleError`: If the ID is already registered.
            :class:`RuleDefinitionError`: If the ID is malformed or the rule
                has no check.
            :class:`RegistryFrozenError`: After :meth:`freeze`.

        """
        if self._frozen:
            raise RegistryFrozenError(f"Cannot register {rule.id}: registry is frozen")
        if not _RULE_ID.match(rule.id):
            raise RuleDefinitionError(f"Malformed rule ID {rule.id!r}, expected e.g. 'ENV-001'")
        if rule.check is None:
            raise RuleDefinitionError(f"Rule {rule.id} has no check")
        if rule.id in self._rules:
            raise DuplicateRuleError(rule.id)
        self._rules[rule.id] = rule

    def freeze(self) -> RuleRegistry:
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def rules_for(self, sample: Sample) -> Iterator[Rule]:
        """Yield the rules that apply to *sample*.

        A rule applies when its method/archetype filters accept the sample and
        the active config allows it.
        """
        archetype = sample.archetype
        assert archetype is not None
        for rule in self._rules.values():
            if not rule.applies_to(sample.method, archetype):
                continue
            if self._config is not None and not self._config.allows(rule):
                continue
            yield rule

    def get(self, rule_id: str) -> Rule | None:
        return self._rules.get(rule_id)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules.values())

    def __len__(self) -> int:
        return len(self._rules)


def create_default_registry(config: RestcheckConfig | None = None) -> RuleRegistry:
    """Create a frozen registry with all built-in rules."""
    from restcheck.rules import EVALUATED_RULES

    return RuleRegistry(EVALUATED_RULES, config=config).freeze()
