"""
Shared pytest fixtures and transaction factory helpers for SpreadLedger tests.

Each test that touches storage gets a fresh temporary SQLite database
(auto-cleaned by pytest).
"""

import pytest
from datetime import date

from spread_ledger.database import engine as sa_engine
from spread_ledger.database.position_store import PositionStore
from spread_ledger.models.positions import PersistedPosition, PositionLeg
from spread_ledger.models.transactions import StockAction, StockTransaction, Transaction, TxnType


EXPIRATION = date(2025, 3, 21)
TRADE_DATE = date(2025, 3, 1)


# ---------------------------------------------------------------------------
# Core fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'test.db'}"


@pytest.fixture
def store(db_url):
    """PositionStore over a temporary SQLite database."""
    sa_engine.init_engine(db_url)
    yield PositionStore()
    sa_engine.dispose_engine()


# ---------------------------------------------------------------------------
# Transaction factory helpers
# ---------------------------------------------------------------------------

def make_option_transaction(
    *,
    ticker="AAPL",
    expiration=EXPIRATION,
    strike=170.0,
    option_type="Call",
    qty=1,
    price=2.50,
    date=TRADE_DATE,
    txn_type=None,
    amount=None,
):
    """Build a Transaction; txn_type defaults to an open matching the qty sign."""
    if txn_type is None:
        txn_type = TxnType.BOUGHT_TO_OPEN if qty > 0 else TxnType.SOLD_TO_OPEN
    return Transaction(
        ticker=ticker,
        expiration=expiration,
        strike=strike,
        option_type=option_type,
        qty=qty,
        price=price,
        date=date,
        txn_type=txn_type,
        amount=amount if amount is not None else -qty * price * 100,
    )


def make_close_transaction(*, qty=-1, price=1.00, txn_type=None, **kwargs):
    """Closing fill; a negative qty sells a long, a positive qty covers a short."""
    if txn_type is None:
        txn_type = TxnType.SOLD_TO_CLOSE if qty < 0 else TxnType.BOUGHT_TO_COVER
    return make_option_transaction(qty=qty, price=price, txn_type=txn_type, **kwargs)


def make_stock_transaction(
    *,
    ticker="AAPL",
    date=TRADE_DATE,
    qty=100,
    price=150.00,
    amount=None,
    action=StockAction.BOUGHT,
):
    """Build a StockTransaction."""
    return StockTransaction(
        ticker=ticker,
        date=date,
        qty=qty,
        price=price,
        amount=amount if amount is not None else -qty * price,
        action=action,
    )


def make_option_payload(**kwargs):
    """JSON-ready dict for the API / CLI, built from make_option_transaction."""
    tx = make_option_transaction(**kwargs)
    return {
        "ticker": tx.ticker,
        "expiration": tx.expiration.isoformat(),
        "strike": tx.strike,
        "option_type": tx.option_type,
        "qty": tx.qty,
        "price": tx.price,
        "date": tx.date.isoformat(),
        "txn_type": tx.txn_type.value,
        "amount": tx.amount,
    }


def make_position_leg(
    *,
    ticker="AAPL",
    option_type="Call",
    qty=1,
    price=2.50,
    strike=170.0,
    expiration=EXPIRATION,
    id=None,
):
    return PositionLeg(
        ticker=ticker,
        option_type=option_type,
        qty=qty,
        price=price,
        strike=strike,
        expiration=expiration,
        id=id,
    )


def make_persisted(key, legs, last_txn_date=TRADE_DATE, strategy_code=None):
    return PersistedPosition(
        key=key,
        legs=legs,
        last_txn_date=last_txn_date,
        strategy_code=strategy_code,
        group_id=f"grp-{key}",
    )
