"""
Incremental Merge Engine: reconciles a pre-merged batch against the store.

Each batch entry either creates a new position, or is folded into the
persisted position with the same key:

- stock   qty is a delta and is added; last_txn_date advances when later
- cash    the amount is overwritten with the broker balance.  An unchanged
          amount counts as skipped rather than updated, so replaying a
          batch with the same balance leaves the store untouched
- options skipped when the batch date is not strictly after the group's
          last_txn_date (already applied); otherwise legs are blended by
          quantity-weighted average price and last_txn_date advances

Replaying the same batch against the snapshot it produced yields no updates
and no new positions; every option entry is counted in skipped_count.

The snapshot is never modified: touched positions are deep-copied and the
copies are returned for the writer to persist.
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from spread_ledger.models.positions import PersistedPosition, PositionLeg, SpreadKind, SpreadOrder
from spread_ledger.pipeline.position_keys import spread_key, to_day
from spread_ledger.pipeline.pre_merger import weighted_average

logger = logging.getLogger(__name__)

__all__ = ["MergeResult", "merge_spreads"]


@dataclass
class MergeResult:
    """Output of merge_spreads()."""
    updated_positions: List[PersistedPosition] = field(default_factory=list)
    new_legs: List[SpreadOrder] = field(default_factory=list)
    skipped_count: int = 0

    @property
    def updated_legs(self) -> List[PositionLeg]:
        return [leg for pos in self.updated_positions for leg in pos.legs]

    @property
    def is_noop(self) -> bool:
        return not self.updated_positions and not self.new_legs


def merge_spreads(
    existing_positions: Dict[str, PersistedPosition],
    spreads: List[SpreadOrder],
) -> MergeResult:
    """Merge pre-merged spread orders into a snapshot of persisted positions."""
    result = MergeResult()
    touched: Dict[str, PersistedPosition] = {}

    for spread in spreads:
        key = spread_key(spread)

        if key not in existing_positions:
            result.new_legs.append(spread)
            continue

        position = touched.get(key)
        if position is None:
            position = copy.deepcopy(existing_positions[key])

        if spread.kind == SpreadKind.STOCK:
            applied = _merge_stock(position, spread)
        elif spread.kind == SpreadKind.CASH:
            applied = _merge_cash(position, spread)
        else:
            applied = _merge_option(position, spread)

        if not applied:
            result.skipped_count += 1
            logger.debug(
                "Skipped %s: batch date %s not after last txn %s",
                key, spread.date, position.last_txn_date,
            )
            continue

        if key not in touched:
            touched[key] = position
            result.updated_positions.append(position)

    logger.info(
        "Merge: %d new, %d updated, %d skipped",
        len(result.new_legs), len(result.updated_positions), result.skipped_count,
    )
    return result


def _advance(position: PersistedPosition, day) -> None:
    day = to_day(day)
    if day is None:
        return
    last = to_day(position.last_txn_date)
    if last is None or day > last:
        position.last_txn_date = day


def _merge_stock(position: PersistedPosition, spread: SpreadOrder) -> bool:
    if spread.qty == 0 and not spread.date:
        return False

    if position.legs:
        stock_leg = position.legs[0]
        stock_leg.qty += spread.qty
        if spread.price:
            stock_leg.price = spread.price

    _advance(position, spread.date)
    return True


def _merge_cash(position: PersistedPosition, spread: SpreadOrder) -> bool:
    if not position.legs or position.legs[0].price == spread.price:
        return False
    position.legs[0].price = spread.price
    return True


def _merge_option(position: PersistedPosition, spread: SpreadOrder) -> bool:
    spread_day = to_day(spread.date)
    last = to_day(position.last_txn_date)
    if spread_day and last and spread_day <= last:
        return False

    if spread.is_multi_leg:
        by_contract = {(leg.strike, leg.option_type): leg for leg in position.legs}
        for incoming in spread.legs:
            leg = by_contract.get((incoming.strike, incoming.option_type))
            if leg is None:
                continue
            _blend_leg(leg, abs(incoming.qty), incoming.price, short=incoming.qty < 0)
    else:
        long_leg = _first(position.legs, lambda l: l.qty > 0)
        short_leg = _first(position.legs, lambda l: l.qty < 0)

        if long_leg and spread.lower_strike is not None:
            _blend_leg(long_leg, abs(spread.qty), spread.lower_price, short=False)
        if short_leg and spread.upper_strike is not None:
            _blend_leg(short_leg, abs(spread.qty), spread.upper_price, short=True)

    _advance(position, spread_day)
    return True


def _blend_leg(leg: PositionLeg, new_qty: int, new_price: float, *, short: bool) -> None:
    old_qty = abs(leg.qty)
    leg.price = weighted_average(old_qty, leg.price, new_qty, new_price)
    total = old_qty + new_qty
    leg.qty = -total if short else total


def _first(legs: List[PositionLeg], predicate) -> Optional[PositionLeg]:
    for leg in legs:
        if predicate(leg):
            return leg
    return None
