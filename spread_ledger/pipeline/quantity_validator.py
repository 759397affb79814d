"""
Quantity Validator: compares paired positions against a broker statement.

Discrepancies are reported as data; nothing here raises.  Broker-reported
legs with no transaction history can be turned into naked orders so the
import still records them.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from spread_ledger.models.positions import SpreadKind, SpreadOrder
from spread_ledger.pipeline.position_keys import leg_key, to_day

logger = logging.getLogger(__name__)

__all__ = [
    "QuantityMismatch",
    "LegDiscrepancy",
    "ValidationReport",
    "normalize_leg_key",
    "expected_leg_quantities",
    "validate_option_quantities",
    "orphan_orders",
]


@dataclass
class LegDiscrepancy:
    key: str
    ticker: str
    expiration: str
    strike: float
    option_type: str
    qty: int


@dataclass
class QuantityMismatch:
    key: str
    ticker: str
    expiration: str
    strike: float
    option_type: str
    expected: int
    actual: int


@dataclass
class ValidationReport:
    """missing: on the statement but not in history; extra: the reverse."""
    missing: List[LegDiscrepancy] = field(default_factory=list)
    mismatches: List[QuantityMismatch] = field(default_factory=list)
    extra: List[LegDiscrepancy] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not (self.missing or self.mismatches or self.extra)


def _split_key(key: str):
    ticker, expiration, strike, option_type = key.split("|")
    return ticker, expiration, float(strike), option_type


def normalize_leg_key(key: str) -> str:
    """Re-render a broker leg key in canonical day and strike format."""
    ticker, expiration, strike, option_type = _split_key(key)
    return leg_key(ticker.strip().upper(), expiration, strike, option_type)


def expected_leg_quantities(orders: List[SpreadOrder]) -> Dict[str, int]:
    """Signed qty per leg key implied by the paired orders."""
    expected: Dict[str, int] = {}
    for order in orders:
        if not order.is_option:
            continue
        for leg in order.option_legs():
            key = leg_key(order.ticker, order.expiration, leg.strike, leg.option_type)
            expected[key] = expected.get(key, 0) + leg.qty
    return expected


def validate_option_quantities(
    orders: List[SpreadOrder],
    broker_quantities: Dict[str, int],
) -> ValidationReport:
    """Check expected leg quantities against ``broker_quantities``.

    ``broker_quantities`` is keyed like ``leg_key()``; keys are re-normalized
    so broker day formats (``3/21/2025``) still line up.
    """
    expected = expected_leg_quantities(orders)
    actual: Dict[str, int] = {}
    for key, qty in broker_quantities.items():
        norm = normalize_leg_key(key)
        actual[norm] = actual.get(norm, 0) + int(qty)

    report = ValidationReport()

    for key, expected_qty in expected.items():
        ticker, expiration, strike, option_type = _split_key(key)
        if key not in actual:
            if expected_qty != 0:
                report.extra.append(LegDiscrepancy(key, ticker, expiration, strike, option_type, expected_qty))
            continue
        if actual[key] != expected_qty:
            report.mismatches.append(QuantityMismatch(
                key, ticker, expiration, strike, option_type, expected_qty, actual[key],
            ))

    for key, actual_qty in actual.items():
        if key in expected:
            continue
        ticker, expiration, strike, option_type = _split_key(key)
        report.missing.append(LegDiscrepancy(key, ticker, expiration, strike, option_type, actual_qty))

    if not report.is_clean:
        logger.warning(
            "Quantity validation: %d missing, %d mismatched, %d extra",
            len(report.missing), len(report.mismatches), len(report.extra),
        )
    return report


def orphan_orders(
    report: ValidationReport,
    prices: Optional[Dict[str, float]] = None,
    as_of=None,
) -> List[SpreadOrder]:
    """Naked orders for broker-reported legs absent from transaction history."""
    prices = {normalize_leg_key(k): v for k, v in (prices or {}).items()}
    orders = []
    for m in report.missing:
        if m.qty == 0:
            continue
        price = prices.get(m.key, 0.0)
        is_long = m.qty > 0
        orders.append(SpreadOrder(
            kind=SpreadKind.NAKED,
            ticker=m.ticker,
            expiration=to_day(m.expiration),
            option_type=m.option_type,
            qty=m.qty,
            date=as_of,
            lower_strike=m.strike if is_long else None,
            upper_strike=None if is_long else m.strike,
            lower_price=price if is_long else 0.0,
            upper_price=0.0 if is_long else price,
        ))
    return orders
