"""Data types for strategy labeling."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Leg:
    """One leg of a position, reduced to what labeling needs."""
    asset: str                  # "Option", "Stock" or "Cash"
    option_type: Optional[str]  # "Call" or "Put" (None for stock/cash)
    strike: Optional[float]
    direction: str              # "long" or "short"
    quantity: int               # always positive

    @property
    def is_option(self) -> bool:
        return self.asset == "Option"


@dataclass(frozen=True)
class StrategyDef:
    """Registry entry for a strategy."""
    name: str
    direction: Optional[str]     # "bullish", "bearish", "neutral"
    credit_debit: Optional[str]  # "credit", "debit"
    leg_count: int
    category: str                # "single", "vertical", "multi", "holding"


@dataclass(frozen=True)
class StrategyResult:
    """Result of strategy recognition."""
    name: str
    direction: Optional[str]
    credit_debit: Optional[str]
    leg_count: int
    confidence: float           # 0.0-1.0
