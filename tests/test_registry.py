import pytest

from restcheck.core._types import Archetype, Severity
from restcheck.core.config import RestcheckConfig
from restcheck.core.registry import (
    ConfigurationError,
    DuplicateRuleError,
    RegistryFrozenError,
    RuleDefinitionError,
    RuleRegistry,
    create_default_registry,
)
from restcheck.core.rule import Rule
from restcheck.rules import ALL_RULES, EVALUATED_RULES, RULES
from restcheck.rules._checks import EmptyBody, QueryParameterAbsent
from tests.conftest import make_sample

_ANY = Rule("TST-001", Severity.WARNING, "any", check=QueryParameterAbsent(frozenset({"x"})))
_POST = Rule(
    "TST-002",
    Severity.ERROR,
    "post only",
    check=EmptyBody(),
    methods=frozenset({"POST"}),
    layer="test",
)
_DOC = Rule(
    "TST-003",
    Severity.ERROR,
    "documents only",
    check=EmptyBody(),
    archetypes=frozenset({Archetype.DOCUMENT}),
    layer="test",
)


class TestRegister:
    def test_duplicate_id(self) -> None:
        registry = RuleRegistry([_ANY])
        with pytest.raises(DuplicateRuleError, match="TST-001") as exc_info:
            registry.register(_ANY)
        assert exc_info.value.rule_id == "TST-001"

    def test_duplicate_is_configuration_error(self) -> None:
        assert issubclass(DuplicateRuleError, ConfigurationError)

    @pytest.mark.parametrize("rule_id", ["", "tst-001", "TST001", "TST-1", "T-001"])
    def test_malformed_id(self, rule_id: str) -> None:
        rule = Rule(rule_id, Severity.ERROR, "bad", check=EmptyBody())
        with pytest.raises(RuleDefinitionError, match="Malformed rule ID"):
            RuleRegistry([rule])

    def test_rule_without_check(self) -> None:
        with pytest.raises(RuleDefinitionError, match="has no check"):
            RuleRegistry([Rule("TST-009", Severity.ERROR, "no check")])

    def test_frozen_registry_rejects(self) -> None:
        registry = RuleRegistry([_ANY]).freeze()
        assert registry.frozen
        with pytest.raises(RegistryFrozenError):
            registry.register(_POST)

    def test_container_protocol(self) -> None:
        registry = RuleRegistry([_ANY, _POST])
        assert len(registry) == 2
        assert "TST-002" in registry
        assert registry.get("TST-001") is _ANY
        assert registry.get("NOPE-001") is None
        assert [r.id for r in registry] == ["TST-001", "TST-002"]


class TestRulesFor:
    def test_method_filter(self) -> None:
        registry = RuleRegistry([_ANY, _POST])
        assert [r.id for r in registry.rules_for(make_sample("GET"))] == ["TST-001"]
        assert [r.id for r in registry.rules_for(make_sample("POST"))] == ["TST-001", "TST-002"]

    def test_archetype_filter(self) -> None:
        registry = RuleRegistry([_DOC])
        assert list(registry.rules_for(make_sample(path="/widgets/42"))) == [_DOC]
        assert list(registry.rules_for(make_sample(path="/widgets"))) == []

    def test_is_lazy(self) -> None:
        rules = RuleRegistry([_ANY]).rules_for(make_sample())
        assert next(rules) is _ANY
        with pytest.raises(StopIteration):
            next(rules)

    def test_config_filters(self) -> None:
        config = RestcheckConfig(min_severity=Severity.ERROR)
        registry = RuleRegistry([_ANY, _POST], config=config)
        assert [r.id for r in registry.rules_for(make_sample("POST"))] == ["TST-002"]


class TestDefaultRegistry:
    def test_contains_evaluated_catalog(self) -> None:
        registry = create_default_registry()
        assert registry.frozen
        assert len(registry) == len(EVALUATED_RULES)
        assert "ING-001" not in registry

    def test_catalog_ids_unique_and_sorted(self) -> None:
        ids = [r.id for r in ALL_RULES]
        assert ids == sorted(set(ids))
        assert set(RULES) == set(ids)

    def test_severity_policy(self) -> None:
        assert RULES["MTH-001"].severity == Severity.ERROR
        assert RULES["ENV-001"].severity == Severity.ERROR
        header_rules = [r for r in ALL_RULES if r.layer == "headers"]
        assert header_rules
        assert all(r.severity == Severity.WARNING for r in header_rules)

    def test_excluded_rule_not_yielded(self) -> None:
        registry = create_default_registry(RestcheckConfig(exclude_rules=frozenset({"SEC-*"})))
        ids = {r.id for r in registry.rules_for(make_sample(path="/widgets?api_key=x"))}
        assert "SEC-001" not in ids
        assert "MTH-001" in ids
