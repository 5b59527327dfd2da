"""
Key Composer

A grouping specification is a fixed set of supported dimensions. Keys are
always composed in canonical dimension order, so two records with the same
enabled-dimension values land in the same group whatever order the caller
listed the flags in.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple

from migration_analytics.core.constants import (
    BUNDLE_SOL_PRECISION, BUY_AMOUNT_PRECISION, DEFAULT_GROUP_LABEL
)
from migration_analytics.engines.grouping.errors import InputError
from migration_analytics.ingestion.models import TokenRecord


class Dimension(Enum):
    PATTERN = "mint_pattern"
    PRICE = "unit_price"
    LIMIT = "unit_limit"
    BUNDLE_SHAPE = "post_mint_bundle"
    BUY_AMOUNT = "mint_buy_amt"


CANONICAL_ORDER = (
    Dimension.PATTERN,
    Dimension.PRICE,
    Dimension.LIMIT,
    Dimension.BUNDLE_SHAPE,
    Dimension.BUY_AMOUNT,
)

# Accepted flag names -> dimension (camelCase as sent by API clients, snake_case, short)
DIMENSION_ALIASES = {
    "mintPattern": Dimension.PATTERN,
    "mint_pattern": Dimension.PATTERN,
    "pattern": Dimension.PATTERN,
    "unitPrice": Dimension.PRICE,
    "unit_price": Dimension.PRICE,
    "price": Dimension.PRICE,
    "unitLimit": Dimension.LIMIT,
    "unit_limit": Dimension.LIMIT,
    "limit": Dimension.LIMIT,
    "postMintBundle": Dimension.BUNDLE_SHAPE,
    "post_mint_bundle": Dimension.BUNDLE_SHAPE,
    "bundle_shape": Dimension.BUNDLE_SHAPE,
    "bundle": Dimension.BUNDLE_SHAPE,
    "mintBuyAmt": Dimension.BUY_AMOUNT,
    "mint_buy_amt": Dimension.BUY_AMOUNT,
    "buy_amount": Dimension.BUY_AMOUNT,
}

LABELS = {
    Dimension.PATTERN: "pattern",
    Dimension.PRICE: "price",
    Dimension.LIMIT: "limit",
    Dimension.BUNDLE_SHAPE: "bundle",
    Dimension.BUY_AMOUNT: "buy",
}


@dataclass(frozen=True)
class GroupingSpec:
    dimensions: FrozenSet[Dimension] = frozenset()

    @classmethod
    def of(cls, *dimensions: Dimension) -> "GroupingSpec":
        return cls(frozenset(dimensions))

    @classmethod
    def from_flags(cls, flags: Mapping[str, bool]) -> "GroupingSpec":
        """
        Build from a {name: enabled} map such as {"mintPattern": True, "unitPrice": True}.
        Unknown names are rejected; disabled flags are ignored.
        """
        unknown = sorted(name for name in flags if name not in DIMENSION_ALIASES)
        if unknown:
            raise InputError(f"Unknown grouping dimension(s): {', '.join(unknown)}")
        return cls(frozenset(DIMENSION_ALIASES[name] for name, enabled in flags.items() if enabled))

    @property
    def ordered(self) -> Tuple[Dimension, ...]:
        return tuple(d for d in CANONICAL_ORDER if d in self.dimensions)

    @property
    def is_default(self) -> bool:
        return not self.dimensions


def _key_number(value: float, precision: Optional[int] = None) -> float:
    # NaN never equals itself, so each NaN would open its own group
    if math.isnan(value):
        return 0.0
    return value if precision is None else round(value, precision)


def dimension_value(record: TokenRecord, dimension: Dimension) -> Any:
    if dimension is Dimension.PATTERN:
        return record.mint_pattern
    if dimension is Dimension.PRICE:
        return _key_number(record.unit_price)
    if dimension is Dimension.LIMIT:
        return _key_number(record.unit_limit)
    if dimension is Dimension.BUNDLE_SHAPE:
        bundle = record.post_mint_bundle
        return (bundle.bundle_size, _key_number(bundle.total_buy_sol, BUNDLE_SOL_PRECISION))
    if dimension is Dimension.BUY_AMOUNT:
        return _key_number(record.mint_buy_amt, BUY_AMOUNT_PRECISION)
    raise InputError(f"Unsupported dimension: {dimension}")


def compose_key(record: TokenRecord, spec: GroupingSpec) -> Tuple[Any, ...]:
    return tuple(dimension_value(record, d) for d in spec.ordered)


def _fmt(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def describe_key(spec: GroupingSpec, key: Tuple[Any, ...]) -> Tuple[str, Dict[str, Any]]:
    """Returns (printable label, {dimension name: value}) for a composed key."""
    if spec.is_default:
        return DEFAULT_GROUP_LABEL, {}

    parts = []
    identifier: Dict[str, Any] = {}
    for dimension, value in zip(spec.ordered, key):
        if dimension is Dimension.BUNDLE_SHAPE:
            size, total = value
            parts.append(f"{LABELS[dimension]}={size}x{_fmt(total)}")
            identifier["bundle_size"] = size
            identifier["bundle_total_buy_sol"] = total
        else:
            parts.append(f"{LABELS[dimension]}={_fmt(value)}")
            identifier[dimension.value] = value
    return " | ".join(parts), identifier


def parse_dimensions(names: Iterable[str]) -> GroupingSpec:
    """Convenience for list-style input: ["mintPattern", "unitPrice"]."""
    return GroupingSpec.from_flags({name: True for name in names})
