"""Strategy recognition dispatcher."""

from typing import List

from .constants import STRATEGIES
from .patterns_multi import match_multi
from .patterns_single import match_single
from .patterns_vertical import match_vertical
from .types import Leg, StrategyResult


def recognize(legs: List[Leg]) -> StrategyResult:
    """Name the strategy formed by a set of legs sharing one expiration.

    Order: single leg, multi-leg (put + call mixes), vertical, then
    ``Custom (N-leg)``.
    """
    if not legs:
        return _custom_result(0)

    if len(legs) == 1:
        name = match_single(legs[0])
        if name:
            return _result(name)

    name = match_multi(legs)
    if name:
        return _result(name)

    name = match_vertical(legs)
    if name:
        return _result(name)

    return _custom_result(len(legs))


def _result(name: str) -> StrategyResult:
    defn = STRATEGIES.get(name)
    if defn:
        return StrategyResult(
            name=defn.name,
            direction=defn.direction,
            credit_debit=defn.credit_debit,
            leg_count=defn.leg_count,
            confidence=1.0,
        )
    return StrategyResult(name=name, direction=None, credit_debit=None,
                          leg_count=0, confidence=0.5)


def _custom_result(leg_count: int) -> StrategyResult:
    return StrategyResult(
        name=f"Custom ({leg_count}-leg)",
        direction=None,
        credit_debit=None,
        leg_count=leg_count,
        confidence=0.0,
    )
