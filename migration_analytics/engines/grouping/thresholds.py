"""
Threshold Simulator

For each candidate sell point t on a fixed ladder (fractions of the group's
average rise), replay every member:

  - rise >= t  -> win, we exit at exactly t
  - rise <  t  -> loss, we keep max(rise, 0)

Then pick:
  - optimal:       highest win_rate * avg_profit
  - conservative:  highest win_rate
  - aggressive:    highest avg_profit

Ties resolve to the earliest (smallest) candidate. The ladder is clamped at
0 so a group with a zero or negative average rise still gets well-formed
win/loss counts.
"""

import logging
from typing import List, Optional, Sequence

from migration_analytics.core.constants import (
    RISK_HIGH, RISK_LOW, RISK_MEDIUM, THRESHOLD_MULTIPLIERS, WIN_RATE_RISK_BANDS
)
from migration_analytics.engines.grouping.models import GroupStats, ThresholdAnalysis, ThresholdCandidate
from migration_analytics.engines.grouping.percentile import coefficient_of_variation, risk_from_cv

logger = logging.getLogger("engines.grouping.thresholds")


def candidate_ladder(avg_rise: float, multipliers: Sequence[float] = THRESHOLD_MULTIPLIERS) -> List[float]:
    return [max(avg_rise * m, 0.0) for m in multipliers]


def evaluate_candidate(rises: Sequence[float], threshold: float, multiplier: float) -> ThresholdCandidate:
    members = len(rises)
    win_count = 0
    total_profit = 0.0
    for rise in rises:
        if rise >= threshold:
            win_count += 1
            total_profit += threshold
        else:
            total_profit += max(rise, 0.0)

    win_rate = win_count / members if members else 0.0
    avg_profit = total_profit / members if members else 0.0
    return ThresholdCandidate(
        multiplier=multiplier,
        threshold=threshold,
        win_count=win_count,
        loss_count=members - win_count,
        win_rate=win_rate,
        total_profit=total_profit,
        avg_profit=avg_profit,
        profitability_score=win_rate * avg_profit,
    )


def risk_from_win_rate(win_rate: float) -> str:
    if win_rate < WIN_RATE_RISK_BANDS["high_below"]:
        return RISK_HIGH
    if win_rate < WIN_RATE_RISK_BANDS["medium_below"]:
        return RISK_MEDIUM
    return RISK_LOW


def _best(candidates: Sequence[ThresholdCandidate], attr: str) -> ThresholdCandidate:
    # max() keeps the first of equal values, i.e. the smallest threshold
    return max(candidates, key=lambda c: getattr(c, attr))


def simulate(
    rises: Sequence[float],
    avg_buy_price_sol: float,
    avg_rise: Optional[float] = None,
    multipliers: Sequence[float] = THRESHOLD_MULTIPLIERS,
) -> Optional[ThresholdAnalysis]:
    """
    Run the ladder over finite member rises. Returns None for an empty group.
    """
    if not rises:
        return None
    if avg_rise is None:
        avg_rise = sum(rises) / len(rises)

    candidates = tuple(
        evaluate_candidate(rises, threshold, multiplier)
        for multiplier, threshold in zip(multipliers, candidate_ladder(avg_rise, multipliers))
    )
    optimal = _best(candidates, "profitability_score")
    cv = coefficient_of_variation(rises)

    return ThresholdAnalysis(
        candidates=candidates,
        optimal=optimal,
        conservative=_best(candidates, "win_rate"),
        aggressive=_best(candidates, "avg_profit"),
        avg_buy_price_sol=avg_buy_price_sol,
        risk_level=risk_from_win_rate(optimal.win_rate),
        coefficient_of_variation=cv,
        cv_risk_level=risk_from_cv(cv),
    )


def attach_thresholds(group: GroupStats) -> GroupStats:
    group.thresholds = simulate(
        group.rise_values,
        avg_buy_price_sol=group.avg_buy_price_sol,
        avg_rise=group.avg_rise_sol,
    )
    if group.thresholds is None:
        logger.debug(f"{group.group_key}: no finite rises, threshold simulation skipped")
    return group
