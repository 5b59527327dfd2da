"""
Grouping & Threshold Analytics - entry points

Every call runs the same pipeline:

    validate -> fetch (store) -> filter -> group -> derive rise
             -> common rise / threshold ladder -> rank / summarize

Validation happens before the fetch, so a bad request never costs a query.
The only await is the store fetch; everything after it is a synchronous pass
over an in-memory list, and nothing is shared between calls.
"""

import math
from dataclasses import dataclass
from typing import List, Mapping, Optional, Union

from migration_analytics.core.constants import TOP_GROUPS_MIN_TOKENS
from migration_analytics.core.logger import get_logger, log_event
from migration_analytics.engines.grouping.aggregator import build_groups
from migration_analytics.engines.grouping.errors import InputError
from migration_analytics.engines.grouping.filters import QueryFilters, filter_records
from migration_analytics.engines.grouping.keys import GroupingSpec
from migration_analytics.engines.grouping.models import GroupStats, Summary
from migration_analytics.engines.grouping.profit import BaselineMode, derive_rise
from migration_analytics.engines.grouping.ranking import (
    rank_groups, resolve_sort_field, summarize, validate_limits
)
from migration_analytics.engines.grouping.thresholds import attach_thresholds
from migration_analytics.ingestion.models import TokenRecord
from migration_analytics.ingestion.store import RecordStore

logger = get_logger("engines.grouping.service")

Grouping = Union[GroupingSpec, Mapping[str, bool]]


@dataclass(frozen=True)
class ThresholdOptions:
    min_rise_sol: Optional[float] = 0.0
    min_tokens_in_group: int = 2
    sort_by: str = "avg_rise_sol"
    limit: Optional[int] = 50
    baseline_mode: BaselineMode = BaselineMode.MINT_SLOT

    def validate(self) -> "ThresholdOptions":
        if self.min_rise_sol is not None and not math.isfinite(self.min_rise_sol):
            raise InputError(f"min_rise_sol must be a finite number, got {self.min_rise_sol}")
        validate_limits(self.min_tokens_in_group, self.limit)
        resolve_sort_field(self.sort_by)
        return self


def as_spec(grouping: Grouping) -> GroupingSpec:
    if isinstance(grouping, GroupingSpec):
        return grouping
    return GroupingSpec.from_flags(grouping)


async def load_records(store: RecordStore, filters: QueryFilters) -> List[TokenRecord]:
    """Fetch then re-apply the filter, so stores that cannot push a predicate down stay correct."""
    records = filter_records(await store.fetch_records(filters), filters)
    log_event(logger, "records_fetched", {"count": len(records)})
    return records


async def compute_groups(
    store: RecordStore,
    grouping: Grouping,
    filters: Optional[QueryFilters] = None,
    baseline_mode: BaselineMode = BaselineMode.MINT_SLOT,
) -> List[GroupStats]:
    """
    Group filtered records and compute migration rate, peak aggregates and
    the common rise at filters.win_percent. Groups come back in first-seen order.
    """
    spec = as_spec(grouping)
    filters = (filters or QueryFilters()).validate()

    records = await load_records(store, filters)
    groups = build_groups(records, spec, filters.win_percent, baseline_mode)

    log_event(logger, "groups_computed", {
        "dimensions": [d.value for d in spec.ordered],
        "records": len(records),
        "groups": len(groups),
    })
    return groups


async def top_groups(
    store: RecordStore,
    grouping: Grouping,
    filters: Optional[QueryFilters] = None,
    limit: int = 10,
) -> List[GroupStats]:
    """Groups with at least two members, highest migration rate first."""
    validate_limits(limit=limit)
    groups = await compute_groups(store, grouping, filters)
    return rank_groups(groups, min_tokens=TOP_GROUPS_MIN_TOKENS, sort_by="migration_rate", limit=limit)


async def summary(
    store: RecordStore,
    grouping: Grouping,
    filters: Optional[QueryFilters] = None,
) -> Summary:
    return summarize(await compute_groups(store, grouping, filters))


def _passes_min_rise(record: TokenRecord, options: ThresholdOptions) -> bool:
    if options.min_rise_sol is None:
        return True
    rise = derive_rise(record, options.baseline_mode)
    # Non-finite rises stay in the group totals; the simulator skips them
    return not rise.is_finite or rise.rise >= options.min_rise_sol


async def simulate_thresholds(
    store: RecordStore,
    grouping: Grouping,
    filters: Optional[QueryFilters] = None,
    options: Optional[ThresholdOptions] = None,
) -> List[GroupStats]:
    """
    Group records whose rise clears options.min_rise_sol, run the threshold
    ladder on every group, keep groups with enough members, sort and limit.
    """
    spec = as_spec(grouping)
    filters = (filters or QueryFilters()).validate()
    options = (options or ThresholdOptions()).validate()

    records = [r for r in await load_records(store, filters) if _passes_min_rise(r, options)]
    groups = build_groups(records, spec, filters.win_percent, options.baseline_mode)
    ranked = rank_groups(
        groups,
        min_tokens=options.min_tokens_in_group,
        sort_by=options.sort_by,
        limit=options.limit,
    )
    for group in ranked:
        attach_thresholds(group)

    log_event(logger, "thresholds_simulated", {
        "dimensions": [d.value for d in spec.ordered],
        "records": len(records),
        "groups": len(groups),
        "returned": len(ranked),
    })
    return ranked
