"""
Record Filter

Conjunctive scalar predicates over token records. Every supplied predicate
must hold; a predicate left as None imposes nothing. An empty result is a
valid answer, not an error.
"""

import math
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional

from migration_analytics.core.config import DEFAULT_WIN_PERCENT
from migration_analytics.engines.grouping.errors import InputError
from migration_analytics.ingestion.models import TokenRecord

NUMERIC_FIELDS = (
    "min_max_sol", "start_time", "end_time",
    "unit_price", "unit_limit", "mint_buy_amt", "win_percent",
)


@dataclass(frozen=True)
class QueryFilters:
    min_max_sol: Optional[float] = None
    start_time: Optional[float] = None     # inclusive, unix seconds on mint_time
    end_time: Optional[float] = None       # inclusive
    mint_pattern: Optional[str] = None
    unit_price: Optional[float] = None
    unit_limit: Optional[float] = None
    mint_buy_amt: Optional[float] = None
    win_percent: float = DEFAULT_WIN_PERCENT

    def validate(self) -> "QueryFilters":
        for name in NUMERIC_FIELDS:
            value = getattr(self, name)
            if value is not None and not math.isfinite(value):
                raise InputError(f"{name} must be a finite number, got {value}")
        if not 0 <= self.win_percent <= 100:
            raise InputError(f"win_percent must be within [0, 100], got {self.win_percent}")
        if (
            self.start_time is not None
            and self.end_time is not None
            and self.start_time > self.end_time
        ):
            raise InputError(
                f"start_time {self.start_time} is after end_time {self.end_time}"
            )
        return self

    def with_window(self, start_time: Optional[float], end_time: Optional[float] = None) -> "QueryFilters":
        return replace(self, start_time=start_time, end_time=end_time)


def matches(record: TokenRecord, filters: QueryFilters) -> bool:
    if filters.min_max_sol is not None and record.max_sol < filters.min_max_sol:
        return False
    if filters.start_time is not None and record.mint_time < filters.start_time:
        return False
    if filters.end_time is not None and record.mint_time > filters.end_time:
        return False
    if filters.mint_pattern is not None and record.mint_pattern != filters.mint_pattern:
        return False
    if filters.unit_price is not None and record.unit_price != filters.unit_price:
        return False
    if filters.unit_limit is not None and record.unit_limit != filters.unit_limit:
        return False
    if filters.mint_buy_amt is not None and record.mint_buy_amt != filters.mint_buy_amt:
        return False
    return True


def filter_records(records: Iterable[TokenRecord], filters: QueryFilters) -> List[TokenRecord]:
    return [r for r in records if matches(r, filters)]
