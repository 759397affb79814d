"""Adapters from spread orders to labeling legs."""

from typing import List

from spread_ledger.models.positions import SpreadKind, SpreadOrder
from spread_ledger.pipeline.position_keys import format_strike

from .recognizer import recognize
from .types import Leg


def spread_to_legs(spread: SpreadOrder) -> List[Leg]:
    if spread.kind == SpreadKind.STOCK:
        return [Leg("Stock", None, None, "long" if spread.qty >= 0 else "short", abs(spread.qty))]
    if spread.kind == SpreadKind.CASH:
        return [Leg("Cash", None, None, "long", 1)]

    return [
        Leg(
            asset="Option",
            option_type=leg.option_type,
            strike=leg.strike,
            direction="long" if leg.qty > 0 else "short",
            quantity=abs(leg.qty),
        )
        for leg in spread.option_legs()
    ]


def describe_spread(spread: SpreadOrder) -> str:
    """Short group description, e.g. ``100/110 Bull Call Spread``."""
    if spread.kind == SpreadKind.STOCK:
        return "Stock"
    if spread.kind == SpreadKind.CASH:
        return "Cash"

    name = recognize(spread_to_legs(spread)).name
    strikes = sorted({leg.strike for leg in spread.option_legs()})
    return f"{'/'.join(format_strike(s) for s in strikes)} {name}"
