"""Unit tests for batch pre-merging."""

import pytest
from datetime import date

from spread_ledger.models.positions import SpreadKind, SpreadLeg, SpreadOrder
from spread_ledger.pipeline.pre_merger import pre_merge, weighted_average
from tests.conftest import EXPIRATION


def _vertical(qty, lower_price, upper_price, day=date(2025, 3, 1)):
    return SpreadOrder(
        kind=SpreadKind.VERTICAL, ticker="AAPL", qty=qty, date=day, expiration=EXPIRATION,
        option_type="Call", lower_strike=100.0, upper_strike=110.0,
        lower_price=lower_price, upper_price=upper_price,
    )


class TestWeightedAverage:
    def test_blend(self):
        assert weighted_average(10, 2.00, 5, 4.00) == pytest.approx(2.667, abs=1e-3)

    def test_zero_total_keeps_old_price(self):
        assert weighted_average(0, 1.25, 0, 9.99) == 1.25


class TestPreMerge:
    def test_distinct_keys_untouched(self):
        a = _vertical(1, 5.0, 2.0)
        b = SpreadOrder(kind=SpreadKind.STOCK, ticker="AAPL", qty=100, price=150.0)
        result = pre_merge([a, b])
        assert len(result) == 2

    def test_same_vertical_twice(self):
        result = pre_merge([
            _vertical(10, 2.00, 1.00, day=date(2025, 3, 1)),
            _vertical(5, 4.00, 1.00, day=date(2025, 3, 3)),
        ])
        assert len(result) == 1
        merged = result[0]
        assert merged.qty == 15
        assert merged.lower_price == pytest.approx(2.667, abs=1e-3)
        assert merged.upper_price == pytest.approx(1.00)
        assert merged.date == date(2025, 3, 3)

    def test_input_orders_not_modified(self):
        first = _vertical(10, 2.00, 1.00)
        pre_merge([first, _vertical(5, 4.00, 1.00)])
        assert first.qty == 10
        assert first.lower_price == 2.00

    def test_stock_sums_and_blends(self):
        result = pre_merge([
            SpreadOrder(kind=SpreadKind.STOCK, ticker="AAPL", qty=100, price=150.0),
            SpreadOrder(kind=SpreadKind.STOCK, ticker="AAPL", qty=100, price=160.0),
        ])
        assert len(result) == 1
        assert result[0].qty == 200
        assert result[0].price == pytest.approx(155.0)

    def test_cash_overwrites(self):
        result = pre_merge([
            SpreadOrder(kind=SpreadKind.CASH, ticker="CASH", qty=1, price=100.0),
            SpreadOrder(kind=SpreadKind.CASH, ticker="CASH", qty=1, price=250.0),
        ])
        assert len(result) == 1
        assert result[0].price == 250.0

    def test_condor_legs_blended(self):
        def condor(qty, short_put_price):
            return SpreadOrder(
                kind=SpreadKind.IRON_CONDOR, ticker="SPX", qty=qty, expiration=EXPIRATION,
                legs=[
                    SpreadLeg(90.0, "Put", qty, 0.50),
                    SpreadLeg(95.0, "Put", -qty, short_put_price),
                    SpreadLeg(110.0, "Call", -qty, 1.00),
                    SpreadLeg(115.0, "Call", qty, 0.40),
                ],
            )

        result = pre_merge([condor(2, 1.00), condor(2, 2.00)])
        assert len(result) == 1
        merged = result[0]
        assert merged.qty == 4
        assert [leg.qty for leg in merged.legs] == [4, -4, -4, 4]
        assert merged.legs[1].price == pytest.approx(1.50)
