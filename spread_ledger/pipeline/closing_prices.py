"""
Closing Price Resolver: realized close price per option leg.

Three tiers, first resolution wins:

1. Explicit closes (Sold To Close / Bought To Cover): quantity-weighted
   average of the close prices.
2. Exercise / assignment: intrinsic value against the highest same-day
   stock fill for the ticker.
3. Expired worthless: an opened leg still unresolved whose expiration is
   before ``as_of`` closes at 0.

Keys are ``(ticker, expiration, strike, option_type)`` tuples; use
``leg_key`` from position_keys for the string form the writer stores.
"""

import logging
from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional, Tuple

from spread_ledger.models.transactions import CALL, StockTransaction, Transaction

logger = logging.getLogger(__name__)

__all__ = ["LegId", "build_closing_prices", "intrinsic_value"]

LegId = Tuple[str, date, float, str]


def _leg_id(tx: Transaction) -> LegId:
    return (tx.ticker, tx.expiration, tx.strike, tx.option_type)


def intrinsic_value(option_type: str, strike: float, market_price: float) -> float:
    if option_type == CALL:
        return max(0.0, market_price - strike)
    return max(0.0, strike - market_price)


def build_closing_prices(
    transactions: List[Transaction],
    stock_transactions: Optional[List[StockTransaction]] = None,
    as_of: Optional[date] = None,
) -> Dict[LegId, float]:
    """Resolve a closing price for every closed, exercised, assigned or expired leg."""
    as_of = as_of or date.today()
    result: Dict[LegId, float] = {}

    # 1. Explicit closes
    totals: Dict[LegId, List[float]] = defaultdict(lambda: [0.0, 0.0])
    for tx in transactions:
        if not tx.is_closed:
            continue
        qty = abs(tx.qty)
        entry = totals[_leg_id(tx)]
        entry[0] += qty
        entry[1] += qty * tx.price

    for leg, (total_qty, total_value) in totals.items():
        if total_qty > 0:
            result[leg] = round(total_value / total_qty, 2)
    explicit = len(result)

    # 2. Exercise / assignment against same-day stock fills
    stock_prices: Dict[Tuple[date, str], List[float]] = defaultdict(list)
    for stk in stock_transactions or []:
        stock_prices[(stk.date, stk.ticker)].append(stk.price)

    for tx in transactions:
        if not (tx.is_exercised or tx.is_assigned):
            continue
        leg = _leg_id(tx)
        if leg in result:
            continue

        prices = stock_prices.get((tx.date, tx.ticker))
        if not prices:
            logger.warning(
                "No same-day stock fill for %s %s %s %s exercise/assignment on %s",
                tx.ticker, tx.expiration, tx.strike, tx.option_type, tx.date,
            )
            continue

        result[leg] = round(intrinsic_value(tx.option_type, tx.strike, max(prices)), 2)
    settled = len(result) - explicit

    # 3. Expired worthless
    for tx in transactions:
        if tx.is_expired:
            result.setdefault(_leg_id(tx), 0.0)

    opened = {_leg_id(tx) for tx in transactions if tx.is_open}
    for leg in opened:
        if leg in result:
            continue
        expiration = leg[1]
        if expiration is not None and expiration < as_of:
            result[leg] = 0.0

    logger.info(
        "Closing prices: %d explicit, %d exercise/assignment, %d expired",
        explicit, settled, len(result) - explicit - settled,
    )
    return result
