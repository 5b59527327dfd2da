import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


def _num(value: Any) -> float:
    """NULL and NaN columns read as 0."""
    number = float(value or 0)
    return number if not math.isnan(number) else 0.0

@dataclass(frozen=True)
class BundleShape:
    bundle_size: int = 0
    total_buy_sol: float = 0.0

@dataclass(frozen=True)
class TokenRecord:
    """
    One minted token as stored by the recorder.
    Rows are written once and never mutated by the analytics engine.
    """
    mint: str
    mint_time: int = 0
    mint_slot: int = 0
    max_sol: float = 0.0          # Peak SOL in the curve; 0 when no peak recorded
    max_price: float = 0.0
    mint_slot_sol: float = 0.0    # SOL in the curve at the mint slot
    first_slot_sol: float = 0.0   # SOL in the curve at the first trading slot
    mint_buy_amt: float = 0.0     # Creator's buy amount, fallback entry
    post_mint_bundle: BundleShape = field(default_factory=BundleShape)
    mint_pattern: str = ""
    unit_price: float = 0.0
    unit_limit: float = 0.0
    migrated: bool = False
    migrate_time: int = 0
    extended: bool = False
    lookup_table: bool = False
    jito: float = 0.0
    blox_route: float = 0.0
    photon: float = 0.0
    axiom: float = 0.0

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "TokenRecord":
        """Build a record from a flat row (DB dict row or fixture)."""
        return cls(
            mint=row["mint"],
            mint_time=int(row.get("mint_time") or 0),
            mint_slot=int(row.get("mint_slot") or 0),
            max_sol=_num(row.get("max_sol")),
            max_price=_num(row.get("max_price")),
            mint_slot_sol=_num(row.get("mint_slot_sol")),
            first_slot_sol=_num(row.get("first_slot_sol")),
            mint_buy_amt=_num(row.get("mint_buy_amt")),
            post_mint_bundle=BundleShape(
                bundle_size=int(row.get("post_mint_bundle_size") or 0),
                total_buy_sol=_num(row.get("post_mint_bundle_buy_sol")),
            ),
            mint_pattern=row.get("mint_pattern") or "",
            unit_price=_num(row.get("unit_price")),
            unit_limit=_num(row.get("unit_limit")),
            migrated=bool(row.get("migrated")),
            migrate_time=int(row.get("migrate_time") or 0),
            extended=bool(row.get("extended")),
            lookup_table=bool(row.get("lookup_table")),
            jito=_num(row.get("jito")),
            blox_route=_num(row.get("blox_route")),
            photon=_num(row.get("photon")),
            axiom=_num(row.get("axiom")),
        )

    def to_summary(self, rise_sol: Optional[float] = None, buy_price_sol: Optional[float] = None) -> Dict[str, Any]:
        summary = {
            "mint": self.mint,
            "migrated": self.migrated,
            "max_sol": self.max_sol,
            "max_price": self.max_price,
        }
        if rise_sol is not None:
            summary["rise_sol"] = rise_sol
        if buy_price_sol is not None:
            summary["buy_price_sol"] = buy_price_sol
        return summary
