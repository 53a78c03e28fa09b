from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING, Any

from restcheck.core.archetype import resolve_archetype
from restcheck.core.capture import claim_id, ingest
from restcheck.core.evaluator import Evaluator
from restcheck.core.report import Report, aggregate
from restcheck.core.sample import Sample

if TYPE_CHECKING:
    from collections.abc import Iterable

    from restcheck.core._types import Record
    from restcheck.core.config import RestcheckConfig
    from restcheck.core.registry import RuleRegistry


def check(
    exchanges: Iterable[Sample | Record],
    *,
    config: RestcheckConfig | None = None,
    registry: RuleRegistry | None = None,
    max_workers: int | None = None,
) -> Report:
    """Check captured exchanges against the REST guidelines.

    Args:
        exchanges: :class:`Sample` objects or raw capture records (dicts).
            Records are validated first; invalid ones become ``ING-001``
            findings instead of aborting the run.  Duplicate IDs get a
            ``#index`` suffix, and samples whose archetype was inferred are
            re-resolved against *config* the same way records are.
        config: Rule filters and archetype settings. Defaults to
            ``RestcheckConfig()``.
        registry: Custom rule registry. Uses the built-in catalog if None.
        max_workers: Override ``config.max_workers`` for this run.

    Returns:
        The aggregated :class:`Report`.

    Example::

        from restcheck import check

        report = check([
            {"method": "POST", "path": "/widgets", "status": 201,
             "response_headers": {"Location": "/widgets/42"}},
        ])
        assert not report.has_errors

    """
    seen: set[str] = set()
    samples: list[Sample] = []
    records: list[Record] = []
    for index, item in enumerate(exchanges, start=1):
        if isinstance(item, Sample):
            samples.append(_prepare(item, config, seen, index=index))
        else:
            records.append(item)

    ingested, rejected = ingest(records, config=config, seen=seen)
    samples.extend(ingested)

    evaluator = Evaluator(registry, config=config)
    findings = evaluator.run(samples, max_workers=max_workers)
    return aggregate([*rejected, *findings])


def _prepare(
    sample: Sample,
    config: RestcheckConfig | None,
    seen: set[str],
    *,
    index: int,
) -> Sample:
    changes: dict[str, Any] = {}
    sample_id = claim_id(sample.id, seen, index=index)
    if sample_id != sample.id:
        changes["id"] = sample_id
    if config is not None and sample.archetype_inferred:
        archetype = resolve_archetype(sample.path, config)
        if archetype != sample.archetype:
            changes["archetype"] = archetype
    if not changes:
        return sample
    return dataclasses.replace(sample, **changes)
