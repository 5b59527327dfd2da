"""
Ranking & Summary
"""

from typing import Callable, Dict, List, Optional, Sequence

from migration_analytics.core.constants import RATE_PRECISION
from migration_analytics.engines.grouping.errors import InputError
from migration_analytics.engines.grouping.models import GroupStats, Summary, percent

SORT_FIELDS: Dict[str, Callable[[GroupStats], float]] = {
    "migration_rate": lambda g: g.migration_rate,
    "total_max_sol": lambda g: g.total_max_sol,
    "avg_max_sol": lambda g: g.avg_max_sol,
    "total_tokens": lambda g: g.total_tokens,
    "common_rise_sol": lambda g: g.common_rise_sol,
    "avg_rise_sol": lambda g: g.avg_rise_sol,
    "max_rise_sol": lambda g: g.max_rise_sol,
    "profitability_score": lambda g: g.profitability_score,
}

SORT_ALIASES = {
    "migrationRate": "migration_rate",
    "totalMaxSol": "total_max_sol",
    "avgMaxSol": "avg_max_sol",
    "totalTokens": "total_tokens",
    "commonRiseSol": "common_rise_sol",
    "avgRiseSol": "avg_rise_sol",
    "maxRiseSol": "max_rise_sol",
    "profitabilityScore": "profitability_score",
}


def resolve_sort_field(sort_by: str) -> str:
    name = SORT_ALIASES.get(sort_by, sort_by)
    if name not in SORT_FIELDS:
        raise InputError(
            f"Unknown sort field '{sort_by}'. Use one of: {', '.join(SORT_FIELDS)}"
        )
    return name


def validate_limits(min_tokens: Optional[int] = None, limit: Optional[int] = None):
    if min_tokens is not None and min_tokens < 0:
        raise InputError(f"min_tokens must be >= 0, got {min_tokens}")
    if limit is not None and limit < 0:
        raise InputError(f"limit must be >= 0, got {limit}")


def rank_groups(
    groups: Sequence[GroupStats],
    min_tokens: int = 0,
    sort_by: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[GroupStats]:
    """
    Keep groups with at least min_tokens members, sort descending by sort_by
    (stable, so equal groups keep first-seen order), truncate to limit.
    """
    validate_limits(min_tokens, limit)
    ranked = [g for g in groups if g.total_tokens >= min_tokens]
    if sort_by:
        key = SORT_FIELDS[resolve_sort_field(sort_by)]
        ranked.sort(key=key, reverse=True)
    if limit is not None:
        ranked = ranked[:limit]
    return ranked


def summarize(groups: Sequence[GroupStats]) -> Summary:
    if not groups:
        return Summary()

    total_groups = len(groups)
    total_tokens = sum(g.total_tokens for g in groups)
    total_migrated = sum(g.migrated_tokens for g in groups)
    return Summary(
        total_groups=total_groups,
        total_tokens=total_tokens,
        total_migrated=total_migrated,
        overall_migration_rate=percent(total_migrated, total_tokens),
        avg_tokens_per_group=round(total_tokens / total_groups, RATE_PRECISION),
        avg_migration_rate_per_group=round(
            sum(g.migration_rate for g in groups) / total_groups, RATE_PRECISION
        ),
    )
