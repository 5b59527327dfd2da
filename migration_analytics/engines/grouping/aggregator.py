"""
Group Aggregator

One fold over the filtered records: each record's key picks an accumulator,
which keeps the running count, migrated count, peak SOL sum and the member
list. Groups come out in first-seen order and members keep input order.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from migration_analytics.engines.grouping.keys import GroupingSpec, compose_key, describe_key
from migration_analytics.engines.grouping.models import GroupStats
from migration_analytics.engines.grouping.percentile import (
    coefficient_of_variation, common_rise, risk_from_cv
)
from migration_analytics.engines.grouping.profit import BaselineMode, derive_rise
from migration_analytics.ingestion.models import TokenRecord

logger = logging.getLogger("engines.grouping.aggregator")


@dataclass
class GroupAccumulator:
    key: Tuple[Any, ...]
    total_tokens: int = 0
    migrated_tokens: int = 0
    total_max_sol: float = 0.0
    tokens: List[TokenRecord] = field(default_factory=list)

    def add(self, record: TokenRecord):
        self.total_tokens += 1
        if record.migrated:
            self.migrated_tokens += 1
        self.total_max_sol += record.max_sol
        self.tokens.append(record)


def aggregate(records: Iterable[TokenRecord], spec: GroupingSpec) -> Dict[Tuple[Any, ...], GroupAccumulator]:
    groups: Dict[Tuple[Any, ...], GroupAccumulator] = {}
    for record in records:
        key = compose_key(record, spec)
        acc = groups.get(key)
        if acc is None:
            acc = groups[key] = GroupAccumulator(key=key)
        acc.add(record)
    return groups


def finalize(
    acc: GroupAccumulator,
    spec: GroupingSpec,
    win_percent: Optional[float] = None,
    baseline_mode: BaselineMode = BaselineMode.MINT_SLOT,
) -> GroupStats:
    """Derive per-member rises and the percentile/volatility stats for one group."""
    label, identifier = describe_key(spec, acc.key)
    rises = [derive_rise(t, baseline_mode) for t in acc.tokens]
    finite = [r.rise for r in rises if r.is_finite]

    stats = GroupStats(
        key=acc.key,
        group_key=label,
        group_identifier=identifier,
        total_tokens=acc.total_tokens,
        migrated_tokens=acc.migrated_tokens,
        total_max_sol=acc.total_max_sol,
        tokens=list(acc.tokens),
        rises=rises,
        win_percent=win_percent,
        tokens_with_drop=sum(1 for r in finite if r < 0),
    )
    if win_percent is not None:
        stats.common_rise_sol = common_rise(finite, win_percent)
    stats.coefficient_of_variation = coefficient_of_variation(finite)
    stats.risk_level = risk_from_cv(stats.coefficient_of_variation)

    skipped = len(rises) - len(finite)
    if skipped:
        logger.debug(f"{label}: {skipped} member(s) without a finite rise")
    return stats


def build_groups(
    records: Iterable[TokenRecord],
    spec: GroupingSpec,
    win_percent: Optional[float] = None,
    baseline_mode: BaselineMode = BaselineMode.MINT_SLOT,
) -> List[GroupStats]:
    return [
        finalize(acc, spec, win_percent, baseline_mode)
        for acc in aggregate(records, spec).values()
    ]
