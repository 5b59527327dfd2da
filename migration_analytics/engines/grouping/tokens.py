"""
Token-level queries: individual leaders and whole-population stats.
"""

from collections import Counter
from typing import Any, Dict, List, Optional

from migration_analytics.engines.grouping.errors import InputError
from migration_analytics.engines.grouping.filters import QueryFilters
from migration_analytics.engines.grouping.models import mean
from migration_analytics.engines.grouping.profit import BaselineMode, derive_rise
from migration_analytics.engines.grouping.service import load_records
from migration_analytics.ingestion.store import RecordStore


async def most_profitable_tokens(
    store: RecordStore,
    limit: int = 20,
    min_rise_sol: float = 0,
    filters: Optional[QueryFilters] = None,
    baseline_mode: BaselineMode = BaselineMode.LOWER_SLOT,
) -> List[Dict[str, Any]]:
    """Tokens with the largest rise, best first."""
    if limit < 0:
        raise InputError(f"limit must be >= 0, got {limit}")
    records = await load_records(store, (filters or QueryFilters()).validate())

    rows = []
    for record in records:
        rise = derive_rise(record, baseline_mode)
        if not rise.is_finite or rise.rise < min_rise_sol:
            continue
        rows.append({
            "mint": record.mint,
            "mint_pattern": record.mint_pattern,
            "max_sol": record.max_sol,
            "buy_price_sol": rise.baseline,
            "rise_sol": rise.rise,
            "unit_price": record.unit_price,
            "unit_limit": record.unit_limit,
            "extended": record.extended,
            "mint_time": record.mint_time,
        })
    rows.sort(key=lambda r: r["rise_sol"], reverse=True)
    return rows[:limit]


async def pattern_frequency(
    store: RecordStore, limit: int = 20, filters: Optional[QueryFilters] = None
) -> List[Dict[str, Any]]:
    """Most common non-empty mint patterns with their average peak SOL."""
    if limit < 0:
        raise InputError(f"limit must be >= 0, got {limit}")
    records = await load_records(store, (filters or QueryFilters()).validate())

    counts = Counter()
    max_sol: Dict[str, List[float]] = {}
    mints: Dict[str, List[str]] = {}
    for record in records:
        if not record.mint_pattern:
            continue
        counts[record.mint_pattern] += 1
        max_sol.setdefault(record.mint_pattern, []).append(record.max_sol)
        mints.setdefault(record.mint_pattern, []).append(record.mint)

    return [
        {
            "mint_pattern": pattern,
            "count": count,
            "avg_max_sol": mean(max_sol[pattern]),
            "tokens": mints[pattern],
        }
        for pattern, count in counts.most_common(limit)
    ]


async def token_overview(store: RecordStore, filters: Optional[QueryFilters] = None) -> Dict[str, Any]:
    """Population-wide averages plus MEV service and transaction flag usage."""
    records = await load_records(store, (filters or QueryFilters()).validate())

    return {
        "total_tokens": len(records),
        "avg_max_sol": mean([r.max_sol for r in records]),
        "avg_max_price": mean([r.max_price for r in records]),
        "avg_mint_buy_amt": mean([r.mint_buy_amt for r in records]),
        "migrated_count": sum(1 for r in records if r.migrate_time > 0 or r.migrated),
        "extended_count": sum(1 for r in records if r.extended),
        "lookup_table_count": sum(1 for r in records if r.lookup_table),
        "jito_count": sum(1 for r in records if r.jito > 0),
        "blox_route_count": sum(1 for r in records if r.blox_route > 0),
        "photon_count": sum(1 for r in records if r.photon > 0),
        "axiom_count": sum(1 for r in records if r.axiom > 0),
    }
