"""Pydantic request models for the SpreadLedger API and CLI."""

from datetime import date as date_type
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from spread_ledger.models.positions import SpreadKind, SpreadOrder
from spread_ledger.models.transactions import StockAction, StockTransaction, Transaction, TxnType


class TransactionIn(BaseModel):
    ticker: str = Field(min_length=1)
    expiration: date_type
    strike: float
    option_type: Literal["Call", "Put"]
    qty: int
    price: float
    date: date_type
    txn_type: TxnType
    amount: float = 0.0

    def to_transaction(self) -> Transaction:
        return Transaction(
            ticker=self.ticker.strip().upper(),
            expiration=self.expiration,
            strike=self.strike,
            option_type=self.option_type,
            qty=self.qty,
            price=self.price,
            date=self.date,
            txn_type=self.txn_type,
            amount=self.amount,
        )


class StockTransactionIn(BaseModel):
    ticker: str = Field(min_length=1)
    date: date_type
    qty: int
    price: float
    amount: float = 0.0
    action: Optional[StockAction] = None

    def to_stock_transaction(self) -> StockTransaction:
        return StockTransaction(
            ticker=self.ticker.strip().upper(),
            date=self.date,
            qty=self.qty,
            price=self.price,
            amount=self.amount,
            action=self.action,
        )


class StockPositionIn(BaseModel):
    """A broker-reported stock holding (rebuild mode)."""
    ticker: str = Field(min_length=1)
    qty: int
    price: float = 0.0
    date: Optional[date_type] = None

    def to_order(self) -> SpreadOrder:
        return SpreadOrder(
            kind=SpreadKind.STOCK,
            ticker=self.ticker.strip().upper(),
            qty=self.qty,
            price=self.price,
            date=self.date,
            option_type="Stock",
        )


class ImportRequest(BaseModel):
    mode: str = "add"
    transactions: List[TransactionIn] = []
    stock_transactions: List[StockTransactionIn] = []
    cash_balance: Optional[float] = None
    stock_positions: Optional[List[StockPositionIn]] = None
    # Leg key (TICKER|YYYY-MM-DD|strike|Call) -> signed qty / price paid
    broker_quantities: Optional[Dict[str, int]] = None
    broker_prices: Optional[Dict[str, float]] = None
    as_of: Optional[date_type] = None


class ClosingPricesRequest(BaseModel):
    transactions: List[TransactionIn]
    stock_transactions: List[StockTransactionIn] = []
    as_of: Optional[date_type] = None
