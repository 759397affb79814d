"""
Position Key Scheme: canonical identity for a spread or persisted position.

The same key is produced from a freshly paired SpreadOrder and from the legs
of a persisted group, which is what lets repeated imports find the position
they already created instead of duplicating it.

    stock          TICKER|STOCK
    cash           CASH|CASH
    multi-leg      TICKER|YYYY-MM-DD|s1/s2/...|CODE      (IC, LS, SS, LSg, SSg)
    vertical/naked TICKER|YYYY-MM-DD|s1/s2|Call|Put

Strikes are always sorted before they are joined, so leg order never changes
the key.
"""

import re
from datetime import date, datetime
from typing import Iterable, List, Optional

from spread_ledger.models.positions import PositionLeg, SpreadKind, SpreadOrder

__all__ = [
    "CASH_KEY",
    "STRATEGY_CODES",
    "to_day",
    "canonical_day",
    "format_strike",
    "leg_key",
    "spread_key",
    "position_key",
]

CASH_KEY = "CASH|CASH"

STRATEGY_CODES = {
    SpreadKind.IRON_CONDOR: "IC",
    SpreadKind.LONG_STRADDLE: "LS",
    SpreadKind.SHORT_STRADDLE: "SS",
    SpreadKind.LONG_STRANGLE: "LSg",
    SpreadKind.SHORT_STRANGLE: "SSg",
}

_ISO_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")
_US_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2}|\d{4})$")


def to_day(value) -> Optional[date]:
    """Resolve a date, datetime or day-string to a calendar date.

    Accepts ISO ``YYYY-MM-DD`` (a time suffix is ignored), ``M/D/YYYY`` and
    ``MM/DD/YY``. Returns None for blanks and unparseable strings.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    s = str(value).strip()
    if not s:
        return None

    m = _ISO_RE.match(s)
    if m:
        year, month, day = (int(g) for g in m.groups())
    else:
        m = _US_RE.match(s)
        if not m:
            return None
        month, day, year = (int(g) for g in m.groups())
        if year < 100:
            year += 2000

    try:
        return date(year, month, day)
    except ValueError:
        return None


def canonical_day(value) -> str:
    """Day-string used inside keys; unparseable input is passed through stripped."""
    day = to_day(value)
    if day is not None:
        return day.isoformat()
    return str(value or "").strip()


def format_strike(strike: float) -> str:
    """100.0 -> '100', 102.50 -> '102.5'."""
    text = f"{float(strike):.4f}".rstrip("0").rstrip(".")
    return text or "0"


def _join_strikes(strikes: Iterable[Optional[float]]) -> str:
    return "/".join(format_strike(s) for s in sorted(s for s in strikes if s is not None))


def leg_key(ticker: str, expiration, strike: float, option_type: str) -> str:
    """Per-contract key used by the closing price map and quantity validation."""
    return f"{ticker}|{canonical_day(expiration)}|{format_strike(strike)}|{option_type}"


def spread_key(order: SpreadOrder) -> str:
    """Key for a SpreadOrder produced by pairing or stock aggregation."""
    if order.kind == SpreadKind.STOCK:
        return f"{order.ticker}|STOCK"
    if order.kind == SpreadKind.CASH:
        return CASH_KEY

    exp = canonical_day(order.expiration)

    if order.is_multi_leg:
        strikes = _join_strikes(leg.strike for leg in order.legs)
        return f"{order.ticker}|{exp}|{strikes}|{STRATEGY_CODES[order.kind]}"

    strikes = _join_strikes([order.lower_strike, order.upper_strike])
    return f"{order.ticker}|{exp}|{strikes}|{order.option_type}"


def _infer_code(legs: List[PositionLeg]) -> Optional[str]:
    """Strategy code for an option leg set with no stored code."""
    types = {leg.option_type for leg in legs}
    if "Put" not in types or "Call" not in types:
        return None

    if len(legs) == 4:
        return "IC"

    if len(legs) == 2:
        a, b = legs
        same_strike = a.strike == b.strike
        if a.qty > 0 and b.qty > 0:
            return "LS" if same_strike else "LSg"
        if a.qty < 0 and b.qty < 0:
            return "SS" if same_strike else "SSg"

    return None


def position_key(legs: List[PositionLeg], strategy_code: Optional[str] = None) -> Optional[str]:
    """Key for the legs of a persisted group. Returns None for an empty group."""
    if not legs:
        return None

    first = legs[0]
    ticker = first.ticker

    if len(legs) == 1 and (first.is_cash or ticker == "CASH"):
        return CASH_KEY
    if len(legs) == 1 and (first.is_stock or first.strike is None):
        return f"{ticker}|STOCK"

    exp = canonical_day(first.expiration)
    strikes = _join_strikes(leg.strike for leg in legs)

    code = strategy_code or _infer_code(legs)
    if code and code in STRATEGY_CODES.values():
        return f"{ticker}|{exp}|{strikes}|{code}"

    return f"{ticker}|{exp}|{strikes}|{first.option_type or 'Call'}"
