"""
Profit Derivation

rise = max_sol - baseline

The baseline is the SOL in the curve when we could have entered. Very small
or zero baselines are recording artifacts; they would inflate the rise, so
anything under MIN_ENTRY_SOL is replaced by the creator's buy amount.
"""

import math
from enum import Enum
from typing import NamedTuple

from migration_analytics.core.constants import MIN_ENTRY_SOL
from migration_analytics.ingestion.models import TokenRecord


class BaselineMode(str, Enum):
    MINT_SLOT = "mint_slot"      # entry at the mint slot
    LOWER_SLOT = "lower_slot"    # cheaper of mint slot and first trading slot


class Rise(NamedTuple):
    baseline: float
    rise: float

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.rise) and math.isfinite(self.baseline)


def entry_baseline(record: TokenRecord, mode: BaselineMode = BaselineMode.MINT_SLOT) -> float:
    candidate = record.mint_slot_sol
    if mode is BaselineMode.LOWER_SLOT:
        candidate = min(record.mint_slot_sol, record.first_slot_sol)
    if candidate < MIN_ENTRY_SOL:
        return record.mint_buy_amt
    return candidate


def derive_rise(record: TokenRecord, mode: BaselineMode = BaselineMode.MINT_SLOT) -> Rise:
    baseline = entry_baseline(record, mode)
    return Rise(baseline=baseline, rise=record.max_sol - baseline)
