"""Unit tests for the closing price resolver."""

import pytest
from datetime import date

from spread_ledger.models.transactions import TxnType
from spread_ledger.pipeline.closing_prices import build_closing_prices, intrinsic_value
from tests.conftest import (
    EXPIRATION,
    make_close_transaction,
    make_option_transaction,
    make_stock_transaction,
)

LEG = ("AAPL", EXPIRATION, 100.0, "Call")


class TestIntrinsicValue:
    def test_call(self):
        assert intrinsic_value("Call", 100.0, 105.0) == 5.0
        assert intrinsic_value("Call", 100.0, 95.0) == 0.0

    def test_put(self):
        assert intrinsic_value("Put", 100.0, 92.5) == 7.5
        assert intrinsic_value("Put", 100.0, 101.0) == 0.0


class TestExplicitCloses:
    def test_quantity_weighted_average(self):
        prices = build_closing_prices([
            make_close_transaction(strike=100.0, qty=-3, price=2.50),
            make_close_transaction(strike=100.0, qty=-1, price=3.50),
        ], as_of=date(2025, 3, 10))
        assert prices[LEG] == pytest.approx(2.75)

    def test_rounded_to_cents(self):
        prices = build_closing_prices([
            make_close_transaction(strike=100.0, qty=-2, price=1.00),
            make_close_transaction(strike=100.0, qty=-1, price=1.01),
        ], as_of=date(2025, 3, 10))
        assert prices[LEG] == 1.0

    def test_buy_to_cover_counts(self):
        prices = build_closing_prices([
            make_close_transaction(strike=100.0, qty=2, price=0.40),
        ], as_of=date(2025, 3, 10))
        assert prices[LEG] == pytest.approx(0.40)


class TestExerciseAndAssignment:
    def test_assigned_call_uses_same_day_stock_fill(self):
        day = date(2025, 3, 21)
        prices = build_closing_prices(
            [make_option_transaction(strike=100.0, qty=-1, price=0.0, date=day,
                                     txn_type=TxnType.OPTION_ASSIGNED)],
            [make_stock_transaction(date=day, price=105.0)],
            as_of=date(2025, 3, 10),
        )
        assert prices[LEG] == pytest.approx(5.00)

    def test_highest_same_day_fill_wins(self):
        day = date(2025, 3, 21)
        prices = build_closing_prices(
            [make_option_transaction(strike=100.0, qty=1, price=0.0, date=day,
                                     txn_type=TxnType.OPTION_EXERCISED)],
            [make_stock_transaction(date=day, price=103.0),
             make_stock_transaction(date=day, price=104.0)],
            as_of=date(2025, 3, 10),
        )
        assert prices[LEG] == pytest.approx(4.00)

    def test_no_stock_fill_leaves_unresolved(self):
        prices = build_closing_prices(
            [make_option_transaction(strike=100.0, qty=-1, price=0.0, date=date(2025, 3, 21),
                                     txn_type=TxnType.OPTION_ASSIGNED)],
            [make_stock_transaction(date=date(2025, 3, 20), price=105.0)],
            as_of=date(2025, 3, 10),
        )
        assert LEG not in prices

    def test_explicit_close_takes_precedence(self):
        day = date(2025, 3, 21)
        prices = build_closing_prices(
            [make_close_transaction(strike=100.0, qty=-1, price=6.00),
             make_option_transaction(strike=100.0, qty=-1, price=0.0, date=day,
                                     txn_type=TxnType.OPTION_EXERCISED)],
            [make_stock_transaction(date=day, price=105.0)],
            as_of=date(2025, 3, 10),
        )
        assert prices[LEG] == pytest.approx(6.00)


class TestExpired:
    def test_open_leg_past_expiration_is_worthless(self):
        prices = build_closing_prices(
            [make_option_transaction(strike=100.0, qty=1)],
            as_of=date(2025, 4, 1),
        )
        assert prices[LEG] == 0.0

    def test_open_leg_not_yet_expired_unresolved(self):
        prices = build_closing_prices(
            [make_option_transaction(strike=100.0, qty=1)],
            as_of=date(2025, 3, 21),
        )
        assert prices == {}

    def test_expired_transaction_resolves_to_zero(self):
        prices = build_closing_prices(
            [make_option_transaction(strike=100.0, qty=-1, price=0.0, txn_type=TxnType.EXPIRED)],
            as_of=date(2025, 3, 1),
        )
        assert prices[LEG] == 0.0
