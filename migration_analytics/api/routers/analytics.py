"""
Analytics Router

Exposes the grouping & threshold engine over HTTP. Every endpoint reads
through the RecordStore on app.state; invalid grouping or parameter input
comes back as 400 before any query runs.
"""

import logging
import time
from typing import Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field

from migration_analytics.core.config import DEFAULT_WIN_PERCENT, MEMBER_SAMPLE_LIMIT
from migration_analytics.core.constants import RATE_PRECISION, SECONDS_PER_HOUR
from migration_analytics.engines.grouping import playbook, service, tokens
from migration_analytics.engines.grouping.errors import InputError
from migration_analytics.engines.grouping.filters import QueryFilters
from migration_analytics.engines.grouping.keys import Dimension, GroupingSpec
from migration_analytics.engines.grouping.profit import BaselineMode
from migration_analytics.ingestion.store import RecordStore

logger = logging.getLogger("api.analytics")
router = APIRouter(prefix="/analytics", tags=["analytics"])

PATTERN_ANALYSIS_SPEC = GroupingSpec.of(
    Dimension.PATTERN, Dimension.PRICE, Dimension.LIMIT, Dimension.BUY_AMOUNT
)

SortField = Literal[
    'migration_rate', 'total_max_sol', 'avg_max_sol', 'total_tokens',
    'common_rise_sol', 'avg_rise_sol', 'max_rise_sol', 'profitability_score'
]


class FilterParams(BaseModel):
    min_max_sol: Optional[float] = None
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    mint_pattern: Optional[str] = None
    unit_price: Optional[float] = None
    unit_limit: Optional[float] = None
    mint_buy_amt: Optional[float] = None
    win_percent: float = DEFAULT_WIN_PERCENT

    def to_filters(self) -> QueryFilters:
        return QueryFilters(
            min_max_sol=self.min_max_sol,
            start_time=self.start_time,
            end_time=self.end_time,
            mint_pattern=self.mint_pattern,
            unit_price=self.unit_price,
            unit_limit=self.unit_limit,
            mint_buy_amt=self.mint_buy_amt,
            win_percent=self.win_percent,
        )


class GroupQuery(BaseModel):
    grouping: Dict[str, bool] = {"mintPattern": True}
    filters: FilterParams = FilterParams()


class GroupRequest(GroupQuery):
    sample: int = Field(MEMBER_SAMPLE_LIMIT, ge=0, description="Member tokens per group, 0 = all")


class TopGroupsRequest(GroupRequest):
    limit: int = 10


class ThresholdRequest(GroupRequest):
    limit: int = 50
    min_rise_sol: Optional[float] = 0.0
    min_tokens_in_group: int = 2
    sort_by: SortField = 'avg_rise_sol'
    baseline_mode: Literal['mint_slot', 'lower_slot'] = 'mint_slot'


def get_store(request: Request) -> RecordStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise RuntimeError("Record store not initialized")
    return store


async def _guarded(awaitable):
    try:
        return await awaitable
    except InputError as e:
        logger.warning(f"Rejected analytics request: {e}")
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/pattern-analysis")
async def pattern_analysis(
    min_tokens: int = Query(30, description="Minimum tokens per group"),
    hours: float = Query(24, description="Time window in hours"),
    min_max_sol: float = Query(1, description="Minimum peak SOL"),
    win_percent: float = Query(DEFAULT_WIN_PERCENT, description="Win % for the common rise"),
    store: RecordStore = Depends(get_store),
):
    """
    Publisher configurations (pattern + price + limit + buy amount) in the
    last `hours`, groups with at least `min_tokens`, best common rise first.
    """
    filters = QueryFilters(
        min_max_sol=min_max_sol,
        start_time=time.time() - hours * SECONDS_PER_HOUR,
        win_percent=win_percent,
    )
    groups = await _guarded(service.compute_groups(store, PATTERN_ANALYSIS_SPEC, filters))
    groups = [g for g in groups if g.total_tokens >= min_tokens]
    groups.sort(key=lambda g: g.common_rise_sol, reverse=True)

    pattern_data = []
    for g in groups:
        ident = g.group_identifier
        pattern_data.append({
            "mint_pattern": ident.get("mint_pattern", ""),
            "unit_price": ident.get("unit_price", 0),
            "unit_limit": ident.get("unit_limit", 0),
            "mint_buy_amt": ident.get("mint_buy_amt", 0),
            "common_rise": round(g.common_rise_sol, 4),
            "drop_rate": round(g.drop_rate, RATE_PRECISION),
            "tokens_with_drop": g.tokens_with_drop,
            "total_tokens": g.total_tokens,
        })

    return {"pattern_data": pattern_data}


@router.post("/groups")
async def groups(req: GroupRequest, store: RecordStore = Depends(get_store)):
    """All groups for the requested dimensions, in first-seen order."""
    result = await _guarded(service.compute_groups(store, req.grouping, req.filters.to_filters()))
    return [g.to_dict(req.sample) for g in result]


@router.post("/groups/top")
async def top_groups(req: TopGroupsRequest, store: RecordStore = Depends(get_store)):
    """Groups with 2+ tokens, highest migration rate first."""
    result = await _guarded(
        service.top_groups(store, req.grouping, req.filters.to_filters(), limit=req.limit)
    )
    return [g.to_dict(req.sample) for g in result]


@router.post("/groups/summary")
async def groups_summary(req: GroupQuery, store: RecordStore = Depends(get_store)):
    result = await _guarded(service.summary(store, req.grouping, req.filters.to_filters()))
    return result.to_dict()


@router.post("/thresholds")
async def thresholds(req: ThresholdRequest, store: RecordStore = Depends(get_store)):
    """
    Sell threshold simulation per group: recommended (best win rate x avg
    profit), conservative (best win rate) and aggressive (best avg profit).
    """
    options = service.ThresholdOptions(
        min_rise_sol=req.min_rise_sol,
        min_tokens_in_group=req.min_tokens_in_group,
        sort_by=req.sort_by,
        limit=req.limit,
        baseline_mode=BaselineMode(req.baseline_mode),
    )
    result = await _guarded(
        service.simulate_thresholds(store, req.grouping, req.filters.to_filters(), options)
    )
    return [g.to_dict(req.sample) for g in result]


@router.get("/distribution")
async def distribution(min_sol: float = 1, store: RecordStore = Depends(get_store)):
    """Mint pattern groups bucketed by migration rate."""
    return await _guarded(playbook.pattern_rate_distribution(store, min_sol=min_sol))


@router.get("/compare")
async def compare_periods(
    period1_days: int = 7,
    period2_days: int = 14,
    store: RecordStore = Depends(get_store),
):
    if period1_days >= period2_days:
        raise HTTPException(status_code=400, detail="period1_days must be shorter than period2_days")
    return await _guarded(playbook.compare_time_periods(store, period1_days, period2_days))


@router.get("/tokens/profitable")
async def profitable_tokens(
    limit: int = 20,
    min_rise_sol: float = 0,
    store: RecordStore = Depends(get_store),
) -> List[dict]:
    return await _guarded(tokens.most_profitable_tokens(store, limit=limit, min_rise_sol=min_rise_sol))


@router.get("/patterns/frequency")
async def patterns_frequency(limit: int = 20, store: RecordStore = Depends(get_store)):
    return await _guarded(tokens.pattern_frequency(store, limit=limit))


@router.get("/overview")
async def overview(store: RecordStore = Depends(get_store)):
    return await _guarded(tokens.token_overview(store))
