"""
Analysis Playbook

Ready-made analyses on top of the grouping service. Each one is a fixed
choice of grouping dimensions, filters and ranking.
"""

import time
from typing import Any, Dict, List, Optional

from migration_analytics.core.constants import (
    MIGRATION_RATE_BUCKETS, RATE_PRECISION, SECONDS_PER_DAY
)
from migration_analytics.engines.grouping import service
from migration_analytics.engines.grouping.filters import QueryFilters
from migration_analytics.engines.grouping.keys import Dimension, GroupingSpec
from migration_analytics.engines.grouping.models import GroupStats
from migration_analytics.engines.grouping.ranking import rank_groups, resolve_sort_field, validate_limits
from migration_analytics.ingestion.store import RecordStore

PATTERN = GroupingSpec.of(Dimension.PATTERN)
PATTERN_PRICE = GroupingSpec.of(Dimension.PATTERN, Dimension.PRICE)
PUBLISHER_CONFIG = GroupingSpec.of(Dimension.PATTERN, Dimension.PRICE, Dimension.LIMIT)
BUNDLE_PATTERN = GroupingSpec.of(Dimension.BUNDLE_SHAPE, Dimension.PATTERN)


def _now(now: Optional[float]) -> float:
    return time.time() if now is None else now


async def most_successful_patterns(store: RecordStore, min_sol: float = 1) -> List[GroupStats]:
    """Which mint patterns migrate most often."""
    return await service.top_groups(store, PATTERN, QueryFilters(min_max_sol=min_sol), limit=20)


async def pricing_strategies(store: RecordStore, min_sol: float = 2) -> List[GroupStats]:
    return await service.compute_groups(
        store, GroupingSpec.of(Dimension.PRICE), QueryFilters(min_max_sol=min_sol)
    )


async def publisher_configs(store: RecordStore, min_sol: float = 1) -> List[GroupStats]:
    """Pattern + price + limit: the full publisher configuration."""
    return await service.compute_groups(store, PUBLISHER_CONFIG, QueryFilters(min_max_sol=min_sol))


async def recent_high_performers(
    store: RecordStore, days: int = 7, min_sol: float = 1, now: Optional[float] = None
) -> List[GroupStats]:
    start_time = _now(now) - days * SECONDS_PER_DAY
    return await service.top_groups(
        store, PATTERN_PRICE, QueryFilters(min_max_sol=min_sol, start_time=start_time), limit=15
    )


async def bundle_strategies(store: RecordStore, min_sol: float = 1.5) -> List[GroupStats]:
    return await service.compute_groups(store, BUNDLE_PATTERN, QueryFilters(min_max_sol=min_sol))


async def high_value_groups(
    store: RecordStore, min_avg_sol: float = 5, min_tokens: int = 3
) -> List[GroupStats]:
    groups = await service.compute_groups(store, PATTERN_PRICE, QueryFilters(min_max_sol=2))
    groups = [g for g in groups if g.avg_max_sol >= min_avg_sol]
    return rank_groups(groups, min_tokens=min_tokens, sort_by="avg_max_sol")


async def consistent_performers(
    store: RecordStore, min_migration_rate: float = 70, min_tokens: int = 5
) -> List[GroupStats]:
    """High migration rate AND enough tokens to trust it."""
    groups = await service.compute_groups(store, PATTERN_PRICE, QueryFilters(min_max_sol=1))
    groups = [g for g in groups if g.migration_rate >= min_migration_rate]
    return rank_groups(groups, min_tokens=min_tokens, sort_by="migration_rate")


async def compare_time_periods(
    store: RecordStore,
    period1_days: int = 7,
    period2_days: int = 14,
    now: Optional[float] = None,
) -> Dict[str, Any]:
    """
    Pattern summary for the last period1_days vs. the window from
    period2_days ago up to period1_days ago.
    """
    current = _now(now)
    period1_start = current - period1_days * SECONDS_PER_DAY
    period2_start = current - period2_days * SECONDS_PER_DAY

    recent = await service.summary(
        store, PATTERN, QueryFilters(min_max_sol=1, start_time=period1_start)
    )
    older = await service.summary(
        store, PATTERN, QueryFilters(min_max_sol=1, start_time=period2_start, end_time=period1_start)
    )
    return {
        "recent": {"period": f"Last {period1_days} days", **recent.to_dict()},
        "older": {"period": f"{period2_days} to {period1_days} days ago", **older.to_dict()},
        "improvement": {
            "migration_rate": round(recent.overall_migration_rate - older.overall_migration_rate, RATE_PRECISION),
            "tokens_per_group": round(recent.avg_tokens_per_group - older.avg_tokens_per_group, RATE_PRECISION),
        },
    }


async def deep_dive_pattern(store: RecordStore, mint_pattern: str) -> Dict[str, Any]:
    """Every price/limit sub-group of a single mint pattern, plus its summary."""
    groups = await service.compute_groups(
        store, PUBLISHER_CONFIG, QueryFilters(min_max_sol=0, mint_pattern=mint_pattern)
    )
    pattern_summary = await service.summary(store, PATTERN, QueryFilters(mint_pattern=mint_pattern))
    return {
        "pattern": mint_pattern,
        "summary": pattern_summary,
        "sub_groups": groups,
    }


async def roi_leaders(store: RecordStore, min_sol: float = 1, limit: int = 20) -> List[GroupStats]:
    validate_limits(limit=limit)
    groups = await service.compute_groups(store, PATTERN_PRICE, QueryFilters(min_max_sol=min_sol))
    return rank_groups(groups, sort_by="total_max_sol", limit=limit)


def migration_rate_distribution(groups: List[GroupStats]) -> Dict[str, Any]:
    distribution = {label: 0 for label, _ in MIGRATION_RATE_BUCKETS}
    for group in groups:
        for label, lower in MIGRATION_RATE_BUCKETS:
            if group.migration_rate >= lower:
                distribution[label] += 1
                break

    total = len(groups)
    avg_rate = sum(g.migration_rate for g in groups) / total if total else 0.0
    return {
        "distribution": distribution,
        "total_groups": total,
        "avg_migration_rate": round(avg_rate, RATE_PRECISION),
    }


async def pattern_rate_distribution(store: RecordStore, min_sol: float = 1) -> Dict[str, Any]:
    groups = await service.compute_groups(store, PATTERN, QueryFilters(min_max_sol=min_sol))
    return migration_rate_distribution(groups)


async def custom_analysis(
    store: RecordStore,
    grouping: service.Grouping,
    filters: QueryFilters,
    sort_by: str = "migration_rate",
    limit: int = 10,
) -> List[GroupStats]:
    resolve_sort_field(sort_by)
    validate_limits(limit=limit)
    groups = await service.compute_groups(store, grouping, filters)
    return rank_groups(groups, sort_by=sort_by, limit=limit)
