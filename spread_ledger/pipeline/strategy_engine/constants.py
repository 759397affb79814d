"""Strategy registry for every shape the pairing engine can produce."""

from .types import StrategyDef

STRATEGIES: dict[str, StrategyDef] = {
    # -- Verticals --
    "Bull Put Spread":   StrategyDef("Bull Put Spread",   "bullish", "credit", 2, "vertical"),
    "Bear Call Spread":  StrategyDef("Bear Call Spread",  "bearish", "credit", 2, "vertical"),
    "Bull Call Spread":  StrategyDef("Bull Call Spread",  "bullish", "debit",  2, "vertical"),
    "Bear Put Spread":   StrategyDef("Bear Put Spread",   "bearish", "debit",  2, "vertical"),
    # -- Four-leg --
    "Iron Condor":       StrategyDef("Iron Condor",       "neutral", "credit", 4, "multi"),
    "Iron Butterfly":    StrategyDef("Iron Butterfly",    "neutral", "credit", 4, "multi"),
    # -- Straddles / strangles --
    "Long Straddle":     StrategyDef("Long Straddle",     "neutral", "debit",  2, "multi"),
    "Short Straddle":    StrategyDef("Short Straddle",    "neutral", "credit", 2, "multi"),
    "Long Strangle":     StrategyDef("Long Strangle",     "neutral", "debit",  2, "multi"),
    "Short Strangle":    StrategyDef("Short Strangle",    "neutral", "credit", 2, "multi"),
    # -- Naked legs --
    "Long Call":         StrategyDef("Long Call",         "bullish", "debit",  1, "single"),
    "Short Call":        StrategyDef("Short Call",        "bearish", "credit", 1, "single"),
    "Long Put":          StrategyDef("Long Put",          "bearish", "debit",  1, "single"),
    "Short Put":         StrategyDef("Short Put",         "bullish", "credit", 1, "single"),
    # -- Holdings --
    "Shares":            StrategyDef("Shares",            None,      None,     1, "holding"),
    "Cash":              StrategyDef("Cash",              None,      None,     1, "holding"),
}
