"""Single-leg patterns: naked options and holdings."""

from typing import Optional

from .types import Leg


def match_single(leg: Leg) -> Optional[str]:
    if leg.asset == "Stock":
        return "Shares"
    if leg.asset == "Cash":
        return "Cash"

    side = "Long" if leg.direction == "long" else "Short"
    if leg.option_type in ("Call", "Put"):
        return f"{side} {leg.option_type}"
    return None
