"""
Batch Pre-Merger: collapses spread orders from one import that share a key.

One batch can yield several orders for the same logical position (e.g. the
same vertical opened in two groups, or FIFO pairing splitting a strategy).
After pre-merging, the merge engine sees at most one candidate per key.
"""

import copy
import logging
from typing import Dict, List

from spread_ledger.models.positions import SpreadKind, SpreadOrder
from spread_ledger.pipeline.position_keys import spread_key

logger = logging.getLogger(__name__)

__all__ = ["pre_merge", "weighted_average"]


def weighted_average(old_qty: float, old_price: float, new_qty: float, new_price: float) -> float:
    """Quantity-weighted average price; keeps the old price when the total is zero."""
    total = old_qty + new_qty
    if total == 0:
        return old_price
    return (old_qty * old_price + new_qty * new_price) / total


def pre_merge(spreads: List[SpreadOrder]) -> List[SpreadOrder]:
    """Merge orders with the same position key, preserving first-seen order.

    Collisions keep the later date, sum quantities, and blend prices by
    quantity.  Input orders are never modified.
    """
    merged: Dict[str, SpreadOrder] = {}
    collisions = 0

    for spread in spreads:
        key = spread_key(spread)
        existing = merged.get(key)

        if existing is None:
            merged[key] = copy.deepcopy(spread)
            continue

        collisions += 1
        _merge_into(existing, spread)

    if collisions:
        logger.info("Pre-merged %d colliding orders into %d positions", collisions, len(merged))

    return list(merged.values())


def _merge_into(existing: SpreadOrder, spread: SpreadOrder) -> None:
    if spread.date and (not existing.date or spread.date > existing.date):
        existing.date = spread.date

    old_qty = existing.qty or 0
    new_qty = spread.qty or 0
    total = old_qty + new_qty

    if spread.kind == SpreadKind.CASH:
        existing.price = spread.price
        return

    if spread.kind == SpreadKind.STOCK:
        existing.price = weighted_average(old_qty, existing.price, new_qty, spread.price)
        existing.qty = total
        return

    if existing.is_multi_leg:
        incoming = {(leg.strike, leg.option_type): leg for leg in spread.legs}
        for leg in existing.legs:
            other = incoming.get((leg.strike, leg.option_type))
            if other is not None:
                leg.price = weighted_average(abs(leg.qty), leg.price, abs(other.qty), other.price)
            leg.qty = total if leg.qty > 0 else -total
        existing.qty = total
        return

    existing.lower_price = weighted_average(old_qty, existing.lower_price, new_qty, spread.lower_price)
    existing.upper_price = weighted_average(old_qty, existing.upper_price, new_qty, spread.upper_price)
    existing.qty = total
