from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from migration_analytics.core.constants import RATE_PRECISION
from migration_analytics.engines.grouping.profit import Rise
from migration_analytics.ingestion.models import TokenRecord


def percent(part: float, whole: float) -> float:
    """part / whole as a rounded percentage; 0 when whole is 0."""
    if not whole:
        return 0.0
    return round(part / whole * 100, RATE_PRECISION)


def mean(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


@dataclass(frozen=True)
class ThresholdCandidate:
    multiplier: float
    threshold: float
    win_count: int
    loss_count: int
    win_rate: float
    total_profit: float
    avg_profit: float
    profitability_score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "multiplier": self.multiplier,
            "threshold": self.threshold,
            "win_count": self.win_count,
            "loss_count": self.loss_count,
            "win_rate": round(self.win_rate * 100, RATE_PRECISION),
            "total_profit": self.total_profit,
            "avg_profit": self.avg_profit,
            "profitability_score": self.profitability_score,
        }


@dataclass(frozen=True)
class ThresholdAnalysis:
    candidates: Tuple[ThresholdCandidate, ...]
    optimal: ThresholdCandidate
    conservative: ThresholdCandidate
    aggressive: ThresholdCandidate
    avg_buy_price_sol: float
    risk_level: str                                  # from optimal win rate
    coefficient_of_variation: Optional[float] = None
    cv_risk_level: Optional[str] = None              # from CV, reported alongside

    @property
    def recommended_sell_sol(self) -> float:
        return self.avg_buy_price_sol + self.optimal.threshold

    @property
    def conservative_sell_sol(self) -> float:
        return self.avg_buy_price_sol + self.conservative.threshold

    @property
    def aggressive_sell_sol(self) -> float:
        return self.avg_buy_price_sol + self.aggressive.threshold

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recommended": self.optimal.to_dict(),
            "conservative": self.conservative.to_dict(),
            "aggressive": self.aggressive.to_dict(),
            "recommended_sell_sol": self.recommended_sell_sol,
            "conservative_sell_sol": self.conservative_sell_sol,
            "aggressive_sell_sol": self.aggressive_sell_sol,
            "risk_level": self.risk_level,
            "coefficient_of_variation": self.coefficient_of_variation,
            "cv_risk_level": self.cv_risk_level,
            "all_threshold_options": [c.to_dict() for c in self.candidates],
        }


@dataclass
class GroupStats:
    key: Tuple[Any, ...]
    group_key: str
    group_identifier: Dict[str, Any]
    total_tokens: int
    migrated_tokens: int
    total_max_sol: float
    tokens: List[TokenRecord] = field(default_factory=list)
    rises: List[Rise] = field(default_factory=list)   # aligned with tokens
    win_percent: Optional[float] = None
    common_rise_sol: float = 0.0
    tokens_with_drop: int = 0
    coefficient_of_variation: Optional[float] = None
    risk_level: Optional[str] = None                  # from CV
    thresholds: Optional[ThresholdAnalysis] = None

    @property
    def migration_rate(self) -> float:
        return percent(self.migrated_tokens, self.total_tokens)

    @property
    def avg_max_sol(self) -> float:
        return self.total_max_sol / self.total_tokens if self.total_tokens else 0.0

    @property
    def finite_rises(self) -> List[Rise]:
        return [r for r in self.rises if r.is_finite]

    @property
    def rise_values(self) -> List[float]:
        return [r.rise for r in self.finite_rises]

    @property
    def total_rise_sol(self) -> float:
        return sum(self.rise_values)

    @property
    def avg_rise_sol(self) -> float:
        return mean(self.rise_values)

    @property
    def max_rise_sol(self) -> float:
        return max(self.rise_values, default=0.0)

    @property
    def min_rise_sol(self) -> float:
        return min(self.rise_values, default=0.0)

    @property
    def avg_buy_price_sol(self) -> float:
        return mean([r.baseline for r in self.finite_rises])

    @property
    def profitable_tokens(self) -> int:
        # Mirrors total_tokens; see DESIGN.md
        return self.total_tokens

    @property
    def drop_rate(self) -> float:
        return percent(self.tokens_with_drop, self.total_tokens)

    @property
    def profitability_score(self) -> float:
        return self.avg_rise_sol * self.total_tokens

    def to_dict(self, sample_limit: int = 0) -> Dict[str, Any]:
        members = list(zip(self.tokens, self.rises))
        if sample_limit:
            members = members[:sample_limit]
        payload = {
            "group_key": self.group_key,
            "group_identifier": self.group_identifier,
            "total_tokens": self.total_tokens,
            "migrated_tokens": self.migrated_tokens,
            "migration_rate": self.migration_rate,
            "total_max_sol": self.total_max_sol,
            "avg_max_sol": self.avg_max_sol,
            "avg_rise_sol": self.avg_rise_sol,
            "max_rise_sol": self.max_rise_sol,
            "min_rise_sol": self.min_rise_sol,
            "total_rise_sol": self.total_rise_sol,
            "avg_buy_price_sol": self.avg_buy_price_sol,
            "profitability_score": self.profitability_score,
            "win_percent": self.win_percent,
            "common_rise_sol": self.common_rise_sol,
            "drop_rate": self.drop_rate,
            "tokens_with_drop": self.tokens_with_drop,
            "profitable_tokens": self.profitable_tokens,
            "coefficient_of_variation": self.coefficient_of_variation,
            "risk_level": self.risk_level,
            # non-finite rises are left out; JSON has no NaN
            "tokens": [
                t.to_summary(r.rise, r.baseline) if r.is_finite else t.to_summary()
                for t, r in members
            ],
        }
        if self.thresholds is not None:
            # one risk_level per group: the win-rate one under thresholds
            payload["cv_risk_level"] = payload.pop("risk_level")
            payload["thresholds"] = self.thresholds.to_dict()
        return payload


@dataclass(frozen=True)
class Summary:
    total_groups: int = 0
    total_tokens: int = 0
    total_migrated: int = 0
    overall_migration_rate: float = 0.0
    avg_tokens_per_group: float = 0.0
    avg_migration_rate_per_group: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_groups": self.total_groups,
            "total_tokens": self.total_tokens,
            "total_migrated": self.total_migrated,
            "overall_migration_rate": self.overall_migration_rate,
            "avg_tokens_per_group": self.avg_tokens_per_group,
            "avg_migration_rate_per_group": self.avg_migration_rate_per_group,
        }
