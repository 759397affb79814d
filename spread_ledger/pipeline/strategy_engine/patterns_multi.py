"""Multi-leg patterns: Iron Condor / Butterfly, Straddles, Strangles."""

from typing import List, Optional

from .types import Leg


def match_multi(legs: List[Leg]) -> Optional[str]:
    """All legs must be options; put + call mixes only."""
    if not legs or any(not leg.is_option for leg in legs):
        return None

    if len(legs) == 4:
        return _match_four_leg(legs)
    if len(legs) == 2:
        return _match_two_leg(legs)
    return None


def _match_four_leg(legs: List[Leg]) -> Optional[str]:
    puts = sorted((l for l in legs if l.option_type == "Put"), key=lambda l: l.strike)
    calls = sorted((l for l in legs if l.option_type == "Call"), key=lambda l: l.strike)
    if len(puts) != 2 or len(calls) != 2:
        return None

    long_put, short_put = puts
    short_call, long_call = calls

    # Long wings, short body
    if not (long_put.direction == "long" and short_put.direction == "short"
            and short_call.direction == "short" and long_call.direction == "long"):
        return None

    if not (long_put.strike < short_put.strike <= short_call.strike < long_call.strike):
        return None

    if short_put.strike == short_call.strike:
        return "Iron Butterfly"
    return "Iron Condor"


def _match_two_leg(legs: List[Leg]) -> Optional[str]:
    a, b = legs
    if a.option_type == b.option_type or a.direction != b.direction:
        return None

    side = "Short" if a.direction == "short" else "Long"
    shape = "Straddle" if a.strike == b.strike else "Strangle"
    return f"{side} {shape}"
