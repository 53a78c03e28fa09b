from restcheck.core.rule import Rule
from restcheck.rules import (
    envelope,
    headers,
    ingest,
    method,
    pagination,
    security,
    status,
)


def _collect_rules(*modules: object) -> dict[str, Rule]:
    """Collect all Rule instances from the given modules."""
    rules: dict[str, Rule] = {}
    for module in modules:
        for name in dir(module):
            obj = getattr(module, name)
            if isinstance(obj, Rule):
                if obj.id in rules:
                    msg = f"Duplicate rule ID: {obj.id}"
                    raise ValueError(msg)
                rules[obj.id] = obj
    return rules


RULES: dict[str, Rule] = _collect_rules(
    method,
    envelope,
    status,
    headers,
    pagination,
    security,
    ingest,
)
ALL_RULES: list[Rule] = sorted(RULES.values(), key=lambda r: r.id)

# Rules the evaluator runs; ingestion rules are emitted by the loader instead.
EVALUATED_RULES: list[Rule] = [r for r in ALL_RULES if r.check is not None]

__all__ = ["ALL_RULES", "EVALUATED_RULES", "RULES"]
