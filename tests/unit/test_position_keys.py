"""Unit tests for the position key scheme."""

import pytest
from datetime import date, datetime

from spread_ledger.models.positions import SpreadKind, SpreadLeg, SpreadOrder
from spread_ledger.pipeline.position_keys import (
    CASH_KEY,
    canonical_day,
    format_strike,
    leg_key,
    position_key,
    spread_key,
    to_day,
)
from tests.conftest import EXPIRATION, make_position_leg


class TestDayParsing:
    @pytest.mark.parametrize("value, expected", [
        (date(2025, 3, 21), date(2025, 3, 21)),
        (datetime(2025, 3, 21, 15, 30), date(2025, 3, 21)),
        ("2025-03-21", date(2025, 3, 21)),
        ("2025-03-21T16:00:00+00:00", date(2025, 3, 21)),
        ("3/21/2025", date(2025, 3, 21)),
        ("03/21/25", date(2025, 3, 21)),
    ])
    def test_formats(self, value, expected):
        assert to_day(value) == expected

    @pytest.mark.parametrize("value", [None, "", "   ", "not a date", "2025-02-30"])
    def test_unparseable(self, value):
        assert to_day(value) is None

    def test_canonical_day_passes_through_unparseable(self):
        assert canonical_day("3/21/2025") == "2025-03-21"
        assert canonical_day(" weekly ") == "weekly"


class TestStrikeFormat:
    def test_trailing_zeros_dropped(self):
        assert format_strike(100.0) == "100"
        assert format_strike(102.50) == "102.5"
        assert format_strike(0.125) == "0.125"

    def test_leg_key(self):
        assert leg_key("SPY", "3/21/2025", 450.0, "Put") == "SPY|2025-03-21|450|Put"


class TestSpreadKey:
    def test_stock_and_cash(self):
        assert spread_key(SpreadOrder(kind=SpreadKind.STOCK, ticker="AAPL", qty=100)) == "AAPL|STOCK"
        assert spread_key(SpreadOrder(kind=SpreadKind.CASH, ticker="CASH", qty=1, price=500.0)) == CASH_KEY

    def test_vertical(self):
        order = SpreadOrder(
            kind=SpreadKind.VERTICAL, ticker="AAPL", qty=1, expiration=EXPIRATION,
            option_type="Put", lower_strike=110.0, upper_strike=100.0,
        )
        assert spread_key(order) == "AAPL|2025-03-21|100/110|Put"

    def test_naked_short(self):
        order = SpreadOrder(
            kind=SpreadKind.NAKED, ticker="AAPL", qty=-2, expiration=EXPIRATION,
            option_type="Call", upper_strike=120.0,
        )
        assert spread_key(order) == "AAPL|2025-03-21|120|Call"

    def test_iron_condor_key_is_leg_order_invariant(self):
        legs = [
            SpreadLeg(115.0, "Call", 5, 0.5),
            SpreadLeg(90.0, "Put", 5, 0.4),
            SpreadLeg(110.0, "Call", -5, 1.2),
            SpreadLeg(95.0, "Put", -5, 1.1),
        ]
        a = SpreadOrder(kind=SpreadKind.IRON_CONDOR, ticker="SPX", qty=5, expiration=EXPIRATION, legs=legs)
        b = SpreadOrder(kind=SpreadKind.IRON_CONDOR, ticker="SPX", qty=5, expiration=EXPIRATION,
                        legs=list(reversed(legs)))
        assert spread_key(a) == spread_key(b) == "SPX|2025-03-21|90/95/110/115|IC"

    @pytest.mark.parametrize("kind, code", [
        (SpreadKind.LONG_STRADDLE, "LS"),
        (SpreadKind.SHORT_STRADDLE, "SS"),
        (SpreadKind.LONG_STRANGLE, "LSg"),
        (SpreadKind.SHORT_STRANGLE, "SSg"),
    ])
    def test_straddle_codes(self, kind, code):
        order = SpreadOrder(kind=kind, ticker="AAPL", qty=1, expiration=EXPIRATION,
                            legs=[SpreadLeg(100.0, "Call", 1, 1.0), SpreadLeg(95.0, "Put", 1, 1.0)])
        assert spread_key(order).endswith(f"|95/100|{code}")


class TestPositionKey:
    def test_empty(self):
        assert position_key([]) is None

    def test_stock_and_cash(self):
        stock = make_position_leg(option_type="Stock", strike=None, expiration=None, qty=100)
        cash = make_position_leg(ticker="CASH", option_type="Cash", strike=None, expiration=None)
        assert position_key([stock]) == "AAPL|STOCK"
        assert position_key([cash]) == CASH_KEY

    def test_vertical_matches_spread_key(self):
        order = SpreadOrder(
            kind=SpreadKind.VERTICAL, ticker="AAPL", qty=2, expiration=EXPIRATION,
            option_type="Call", lower_strike=100.0, upper_strike=110.0,
        )
        legs = [
            make_position_leg(strike=110.0, qty=-2),
            make_position_leg(strike=100.0, qty=2),
        ]
        assert position_key(legs) == spread_key(order)

    def test_condor_inferred_from_legs(self):
        legs = [
            make_position_leg(strike=90.0, option_type="Put", qty=1),
            make_position_leg(strike=95.0, option_type="Put", qty=-1),
            make_position_leg(strike=110.0, option_type="Call", qty=-1),
            make_position_leg(strike=115.0, option_type="Call", qty=1),
        ]
        assert position_key(legs) == "AAPL|2025-03-21|90/95/110/115|IC"
        assert position_key(list(reversed(legs))) == position_key(legs)

    def test_straddle_inferred_and_stored_code_agree(self):
        legs = [
            make_position_leg(strike=100.0, option_type="Call", qty=-1),
            make_position_leg(strike=100.0, option_type="Put", qty=-1),
        ]
        assert position_key(legs) == "AAPL|2025-03-21|100/100|SS"
        assert position_key(legs, strategy_code="SS") == "AAPL|2025-03-21|100/100|SS"

    def test_unknown_stored_code_falls_back_to_option_type(self):
        legs = [make_position_leg(strike=100.0, qty=1)]
        assert position_key(legs, strategy_code="ZZ") == "AAPL|2025-03-21|100|Call"
