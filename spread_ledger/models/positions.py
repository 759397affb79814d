"""
Position value objects produced and consumed by the reconciliation pipeline.

SpreadOrder is what pairing/aggregation emits for one import batch;
PersistedPosition is one group read back from the position store.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional


class SpreadKind(Enum):
    VERTICAL = "vertical"
    NAKED = "naked"
    IRON_CONDOR = "iron-condor"
    LONG_STRADDLE = "long-straddle"
    SHORT_STRADDLE = "short-straddle"
    LONG_STRANGLE = "long-strangle"
    SHORT_STRANGLE = "short-strangle"
    STOCK = "stock"
    CASH = "cash"


MULTI_LEG_KINDS = frozenset({
    SpreadKind.IRON_CONDOR,
    SpreadKind.LONG_STRADDLE,
    SpreadKind.SHORT_STRADDLE,
    SpreadKind.LONG_STRANGLE,
    SpreadKind.SHORT_STRANGLE,
})


@dataclass
class SpreadLeg:
    """One leg of a multi-leg spread order."""
    strike: float
    option_type: str
    qty: int  # signed
    price: float


@dataclass
class SpreadOrder:
    """A logical strategy instance built from one import batch."""
    kind: SpreadKind
    ticker: str
    qty: int
    date: Optional[date] = None
    expiration: Optional[date] = None
    option_type: Optional[str] = None
    # Vertical / naked: the long leg is always "lower", the short leg "upper"
    lower_strike: Optional[float] = None
    upper_strike: Optional[float] = None
    lower_price: float = 0.0
    upper_price: float = 0.0
    # Multi-leg strategies
    legs: List[SpreadLeg] = field(default_factory=list)
    # Stock reference price / cash amount
    price: float = 0.0

    @property
    def is_multi_leg(self) -> bool:
        return self.kind in MULTI_LEG_KINDS

    @property
    def is_option(self) -> bool:
        return self.kind not in (SpreadKind.STOCK, SpreadKind.CASH)

    def option_legs(self) -> List[SpreadLeg]:
        """Expand into signed per-strike legs regardless of variant."""
        if self.is_multi_leg:
            return list(self.legs)
        if not self.is_option:
            return []

        legs = []
        if self.lower_strike is not None:
            legs.append(SpreadLeg(self.lower_strike, self.option_type, abs(self.qty), self.lower_price))
        if self.upper_strike is not None:
            legs.append(SpreadLeg(self.upper_strike, self.option_type, -abs(self.qty), self.upper_price))
        return legs


@dataclass
class PositionLeg:
    """A persisted leg row."""
    ticker: str
    option_type: str  # "Call", "Put", "Stock" or "Cash"
    qty: int
    price: float
    strike: Optional[float] = None
    expiration: Optional[date] = None
    closing_price: Optional[float] = None
    id: Optional[int] = None

    @property
    def is_stock(self) -> bool:
        return self.option_type == "Stock"

    @property
    def is_cash(self) -> bool:
        return self.option_type == "Cash"


@dataclass
class PersistedPosition:
    """One position group from the store snapshot."""
    key: str
    legs: List[PositionLeg] = field(default_factory=list)
    last_txn_date: Optional[date] = None
    strategy_code: Optional[str] = None
    group_id: Optional[str] = None
