"""Stock Position Aggregator: net equity change per ticker from stock fills."""

import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Dict, List, Optional

from spread_ledger.models.positions import SpreadKind, SpreadOrder
from spread_ledger.models.transactions import StockTransaction

logger = logging.getLogger(__name__)

__all__ = ["aggregate_stock_transactions", "latest_stock_dates", "date_stock_positions"]


@dataclass
class _TickerTotals:
    qty: int = 0
    last_date: Optional[date] = None
    last_price: float = 0.0


def aggregate_stock_transactions(
    stock_transactions: List[StockTransaction],
    since_by_ticker: Optional[Dict[str, date]] = None,
) -> List[SpreadOrder]:
    """Aggregate stock fills into one STOCK order per ticker.

    Fills dated on or before a ticker's cutoff in ``since_by_ticker`` are
    excluded, so an incremental import only carries what happened since the
    last run.  The emitted qty is a net change, not a holding.
    """
    if not stock_transactions:
        return []

    since_by_ticker = since_by_ticker or {}
    by_ticker: Dict[str, _TickerTotals] = {}
    excluded = 0

    for txn in stock_transactions:
        if not txn.ticker:
            continue

        cutoff = since_by_ticker.get(txn.ticker)
        if cutoff and txn.date and txn.date <= cutoff:
            excluded += 1
            continue

        totals = by_ticker.setdefault(txn.ticker, _TickerTotals())
        totals.qty += txn.signed_qty

        if txn.date and (totals.last_date is None or txn.date > totals.last_date):
            totals.last_date = txn.date
            totals.last_price = txn.price

    if excluded:
        logger.info("Excluded %d stock fills at or before their ticker cutoff", excluded)

    stocks = []
    for ticker, totals in by_ticker.items():
        if totals.qty == 0 and totals.last_date is None:
            continue
        stocks.append(SpreadOrder(
            kind=SpreadKind.STOCK,
            ticker=ticker,
            qty=totals.qty,
            price=totals.last_price,
            date=totals.last_date,
            option_type="Stock",
        ))

    return stocks


def latest_stock_dates(stock_transactions: List[StockTransaction]) -> Dict[str, date]:
    """Most recent fill date per ticker."""
    latest: Dict[str, date] = {}
    for txn in stock_transactions:
        if not txn.ticker or not txn.date:
            continue
        if txn.ticker not in latest or txn.date > latest[txn.ticker]:
            latest[txn.ticker] = txn.date
    return latest


def date_stock_positions(
    stock_positions: List[SpreadOrder],
    stock_transactions: List[StockTransaction],
    as_of: date,
) -> List[SpreadOrder]:
    """Stamp undated broker holdings with the fill date they already include.

    A broker holding reflects every fill up to its ticker's latest stock
    transaction, or up to ``as_of`` when the upload has none.  That date
    becomes the stored group's cutoff, so later incremental imports do not
    add the same fills again.
    """
    latest = latest_stock_dates(stock_transactions)
    dated = []
    for position in stock_positions:
        if position.date is None:
            position = replace(position, date=latest.get(position.ticker, as_of))
        dated.append(position)
    return dated
