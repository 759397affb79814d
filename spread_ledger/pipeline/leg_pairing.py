"""
Leg Pairing Engine: Stage 1 of reconciliation.

Groups same-day opening fills by (date, ticker, expiration) and classifies
each group into iron condors, straddles/strangles, vertical spreads, or
naked legs.  Quantity not consumed by an earlier tier falls through to
FIFO-by-strike vertical pairing.

Opens from different days are never combined: a strategy entered over
several sessions stays as separate verticals / naked legs.

Pure: transactions are copied into working legs before quantities are
consumed, so callers' records are never touched.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Tuple

from spread_ledger.models.positions import SpreadKind, SpreadLeg, SpreadOrder
from spread_ledger.models.transactions import CALL, PUT, Transaction

logger = logging.getLogger(__name__)

__all__ = ["pair_transactions", "group_opens"]


@dataclass
class _WorkingLeg:
    """Mutable copy of an opening fill; qty is consumed as legs are paired."""
    ticker: str
    expiration: date
    strike: float
    option_type: str
    qty: int
    price: float
    date: date

    @classmethod
    def from_transaction(cls, tx: Transaction) -> "_WorkingLeg":
        return cls(
            ticker=tx.ticker,
            expiration=tx.expiration,
            strike=tx.strike,
            option_type=tx.option_type,
            qty=tx.qty,
            price=tx.price,
            date=tx.date,
        )


def group_opens(transactions: List[Transaction]) -> Dict[Tuple, List[_WorkingLeg]]:
    """Group opening transactions by (date, ticker, expiration), preserving input order."""
    groups: Dict[Tuple, List[_WorkingLeg]] = defaultdict(list)
    for tx in transactions:
        if not tx.is_open:
            continue
        groups[(tx.date, tx.ticker, tx.expiration)].append(_WorkingLeg.from_transaction(tx))
    return groups


def pair_transactions(transactions: List[Transaction]) -> List[SpreadOrder]:
    """Pair opening transactions into spread orders.

    Returns an unordered list; the pre-merger collapses anything that lands
    on the same position key.
    """
    spreads: List[SpreadOrder] = []
    groups = group_opens(transactions)

    for (day, ticker, expiration), legs in groups.items():
        produced = _pair_group(legs)
        logger.debug(
            "Paired %s %s opened %s: %d legs -> %d orders",
            ticker, expiration, day, len(legs), len(produced),
        )
        spreads.extend(produced)

    logger.info("Paired %d open groups into %d spread orders", len(groups), len(spreads))
    return spreads


def _pair_group(legs: List[_WorkingLeg]) -> List[SpreadOrder]:
    spreads: List[SpreadOrder] = []

    long_calls = [l for l in legs if l.option_type == CALL and l.qty > 0]
    short_calls = [l for l in legs if l.option_type == CALL and l.qty < 0]
    long_puts = [l for l in legs if l.option_type == PUT and l.qty > 0]
    short_puts = [l for l in legs if l.option_type == PUT and l.qty < 0]

    condor = _match_iron_condor(long_calls, short_calls, long_puts, short_puts)
    if condor:
        return [condor]

    # Long straddle/strangle: long call + long put, no shorts
    if long_calls and long_puts and not short_calls and not short_puts:
        lc, lp = long_calls[0], long_puts[0]
        pair_qty = min(lc.qty, lp.qty)
        spreads.append(_straddle_order(lc, lp, pair_qty, is_short=False))

        lc.qty -= pair_qty
        lp.qty -= pair_qty

        if lc.qty == 0 and lp.qty == 0 and len(long_calls) == 1 and len(long_puts) == 1:
            return spreads

    # Short straddle/strangle: short call + short put, no longs
    if short_calls and short_puts and not long_calls and not long_puts:
        sc, sp = short_calls[0], short_puts[0]
        pair_qty = min(abs(sc.qty), abs(sp.qty))
        spreads.append(_straddle_order(sc, sp, pair_qty, is_short=True))

        sc.qty += pair_qty
        sp.qty += pair_qty

        if sc.qty == 0 and sp.qty == 0 and len(short_calls) == 1 and len(short_puts) == 1:
            return spreads

    for option_type in (CALL, PUT):
        of_type = [l for l in legs if l.option_type == option_type]
        if of_type:
            spreads.extend(_pair_verticals(of_type))

    return spreads


def _match_iron_condor(long_calls, short_calls, long_puts, short_puts):
    """One of each leg, all with the same absolute quantity."""
    if not (len(long_calls) == 1 and len(short_calls) == 1
            and len(long_puts) == 1 and len(short_puts) == 1):
        return None

    lc, sc, lp, sp = long_calls[0], short_calls[0], long_puts[0], short_puts[0]
    qty = lc.qty
    if not (abs(sc.qty) == qty and lp.qty == qty and abs(sp.qty) == qty):
        return None

    legs = sorted(
        [
            SpreadLeg(lp.strike, PUT, qty, lp.price),
            SpreadLeg(sp.strike, PUT, -qty, sp.price),
            SpreadLeg(sc.strike, CALL, -qty, sc.price),
            SpreadLeg(lc.strike, CALL, qty, lc.price),
        ],
        key=lambda leg: leg.strike,
    )
    return SpreadOrder(
        kind=SpreadKind.IRON_CONDOR,
        ticker=lc.ticker,
        expiration=lc.expiration,
        qty=qty,
        date=lc.date,
        legs=legs,
    )


def _straddle_order(call: _WorkingLeg, put: _WorkingLeg, pair_qty: int, *, is_short: bool) -> SpreadOrder:
    is_straddle = call.strike == put.strike
    if is_short:
        kind = SpreadKind.SHORT_STRADDLE if is_straddle else SpreadKind.SHORT_STRANGLE
    else:
        kind = SpreadKind.LONG_STRADDLE if is_straddle else SpreadKind.LONG_STRANGLE

    leg_qty = -pair_qty if is_short else pair_qty
    legs = sorted(
        [
            SpreadLeg(put.strike, PUT, leg_qty, put.price),
            SpreadLeg(call.strike, CALL, leg_qty, call.price),
        ],
        key=lambda leg: leg.strike,
    )
    return SpreadOrder(
        kind=kind,
        ticker=call.ticker,
        expiration=call.expiration,
        qty=pair_qty,
        date=call.date,
        legs=legs,
    )


def _pair_verticals(legs: List[_WorkingLeg]) -> List[SpreadOrder]:
    """FIFO-by-strike pairing of one option type; leftovers become naked legs."""
    spreads: List[SpreadOrder] = []

    longs = sorted((l for l in legs if l.qty > 0), key=lambda l: l.strike)
    shorts = sorted((l for l in legs if l.qty < 0), key=lambda l: l.strike)

    li = si = 0
    while li < len(longs) and si < len(shorts):
        long, short = longs[li], shorts[si]
        pair_qty = min(long.qty, abs(short.qty))

        spreads.append(SpreadOrder(
            kind=SpreadKind.VERTICAL,
            ticker=long.ticker,
            expiration=long.expiration,
            option_type=long.option_type,
            qty=pair_qty,
            date=long.date,
            lower_strike=long.strike,
            upper_strike=short.strike,
            lower_price=long.price,
            upper_price=short.price,
        ))

        long.qty -= pair_qty
        short.qty += pair_qty

        if long.qty == 0:
            li += 1
        if short.qty == 0:
            si += 1

    for long in longs[li:]:
        if long.qty > 0:
            spreads.append(SpreadOrder(
                kind=SpreadKind.NAKED,
                ticker=long.ticker,
                expiration=long.expiration,
                option_type=long.option_type,
                qty=long.qty,
                date=long.date,
                lower_strike=long.strike,
                lower_price=long.price,
            ))

    for short in shorts[si:]:
        if short.qty < 0:
            spreads.append(SpreadOrder(
                kind=SpreadKind.NAKED,
                ticker=short.ticker,
                expiration=short.expiration,
                option_type=short.option_type,
                qty=short.qty,
                date=short.date,
                upper_strike=short.strike,
                upper_price=short.price,
            ))

    return spreads
