"""Strategy Engine: names the strategy a set of legs forms.

Public API:
    recognize(legs) -> StrategyResult
    spread_to_legs(spread) -> List[Leg]
    describe_spread(spread) -> str
"""

from .recognizer import recognize
from .adapters import spread_to_legs, describe_spread
from .types import Leg, StrategyResult, StrategyDef
from .constants import STRATEGIES

__all__ = [
    "recognize",
    "spread_to_legs",
    "describe_spread",
    "Leg",
    "StrategyResult",
    "StrategyDef",
    "STRATEGIES",
]
