"""
Percentile Estimator

common_rise(rises, p) is the rise that roughly p% of the group reached.

This is a plain order statistic, not an interpolated percentile: sort
ascending and take index floor(n * (100 - p) / 100). Groups are often a
handful of tokens, and a value that actually occurred is easier to
reproduce and act on than one interpolated between two tokens.
"""

import math
import statistics
from typing import Optional, Sequence

from migration_analytics.core.constants import (
    CV_RISK_BANDS, RISK_HIGH, RISK_LOW, RISK_MEDIUM
)
from migration_analytics.engines.grouping.errors import InputError


def validate_win_percent(win_percent: float) -> float:
    if win_percent is None or not 0 <= win_percent <= 100:
        raise InputError(f"win_percent must be within [0, 100], got {win_percent}")
    return win_percent


def percentile_index(n: int, win_percent: float) -> int:
    # (100 - p) first keeps e.g. p=90, n=10 at exactly 1.0
    index = math.floor(n * (100 - win_percent) / 100)
    return min(index, n - 1)


def common_rise(rises: Sequence[float], win_percent: float) -> float:
    validate_win_percent(win_percent)
    values = sorted(r for r in rises if math.isfinite(r))
    if not values:
        return 0.0
    return values[percentile_index(len(values), win_percent)]


def coefficient_of_variation(rises: Sequence[float]) -> Optional[float]:
    """stdev / mean of rise. None when it is undefined (n < 2 or mean <= 0)."""
    values = [r for r in rises if math.isfinite(r)]
    if len(values) < 2:
        return None
    mean = statistics.mean(values)
    if mean <= 0:
        return None
    return statistics.stdev(values) / mean


def risk_from_cv(cv: Optional[float]) -> Optional[str]:
    if cv is None:
        return None
    if cv > CV_RISK_BANDS["high_above"]:
        return RISK_HIGH
    if cv >= CV_RISK_BANDS["medium_from"]:
        return RISK_MEDIUM
    return RISK_LOW
