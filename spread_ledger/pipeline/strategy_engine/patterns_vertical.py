"""Vertical spread patterns (2 legs, same option type, different strikes)."""

from typing import List, Optional

from .types import Leg

# (option_type, direction of the lower strike) -> name
_VERTICALS = {
    ("Put", "long"): "Bull Put Spread",    # short the higher put
    ("Put", "short"): "Bear Put Spread",   # long the higher put
    ("Call", "long"): "Bull Call Spread",  # long the lower call
    ("Call", "short"): "Bear Call Spread", # short the lower call
}


def match_vertical(legs: List[Leg]) -> Optional[str]:
    if len(legs) != 2:
        return None

    low, high = sorted(legs, key=lambda l: l.strike)
    if not (low.is_option and high.is_option):
        return None
    if low.option_type != high.option_type or low.strike == high.strike:
        return None
    if low.direction == high.direction:
        return None

    return _VERTICALS.get((low.option_type, low.direction))
