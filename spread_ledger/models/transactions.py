"""
Normalized transaction records consumed by the reconciliation pipeline.

Records arrive fully populated from an upstream brokerage parser: dates are
calendar days, qty already carries its direction (positive = long,
negative = short), and exactly one of the open / close / exercise / assign /
expire groups applies to each option transaction.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional


class TxnType(Enum):
    BOUGHT_TO_OPEN = "Bought To Open"
    SOLD_TO_OPEN = "Sold Short"
    SOLD_TO_CLOSE = "Sold To Close"
    BOUGHT_TO_COVER = "Bought To Cover"
    OPTION_EXERCISED = "Option Exercised"
    OPTION_ASSIGNED = "Option Assigned"
    EXPIRED = "Expired"


_OPEN_TYPES = frozenset({TxnType.BOUGHT_TO_OPEN, TxnType.SOLD_TO_OPEN})
_CLOSE_TYPES = frozenset({TxnType.SOLD_TO_CLOSE, TxnType.BOUGHT_TO_COVER})

CALL = "Call"
PUT = "Put"


@dataclass(frozen=True)
class Transaction:
    """A single option fill."""
    ticker: str
    expiration: date
    strike: float
    option_type: str  # "Call" or "Put"
    qty: int          # signed: positive = long, negative = short
    price: float      # per contract
    date: date
    txn_type: TxnType
    amount: float = 0.0

    @property
    def is_open(self) -> bool:
        return self.txn_type in _OPEN_TYPES

    @property
    def is_closed(self) -> bool:
        return self.txn_type in _CLOSE_TYPES

    @property
    def is_exercised(self) -> bool:
        return self.txn_type == TxnType.OPTION_EXERCISED

    @property
    def is_assigned(self) -> bool:
        return self.txn_type == TxnType.OPTION_ASSIGNED

    @property
    def is_expired(self) -> bool:
        return self.txn_type == TxnType.EXPIRED

    @property
    def is_long(self) -> bool:
        return self.qty > 0

    @property
    def is_short(self) -> bool:
        return self.qty < 0


class StockAction(Enum):
    BOUGHT = "Bought"
    SOLD = "Sold"


@dataclass(frozen=True)
class StockTransaction:
    """A single equity fill. Never paired, only aggregated per ticker."""
    ticker: str
    date: date
    qty: int
    price: float
    amount: float = 0.0
    action: Optional[StockAction] = None

    @property
    def signed_qty(self) -> int:
        """Net share change. Without an action the qty sign is trusted as-is."""
        if self.action == StockAction.BOUGHT:
            return abs(self.qty)
        if self.action == StockAction.SOLD:
            return -abs(self.qty)
        return self.qty
