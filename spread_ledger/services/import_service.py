"""Import service: dedupe uploaded records, reconcile against the store, persist."""

from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger

from spread_ledger.database.position_store import PositionStore
from spread_ledger.models.transactions import StockTransaction, Transaction
from spread_ledger.pipeline.closing_prices import build_closing_prices
from spread_ledger.pipeline.orchestrator import reconcile
from spread_ledger.pipeline.position_keys import leg_key
from spread_ledger.pipeline.quantity_validator import ValidationReport
from spread_ledger.pipeline.stock_aggregator import date_stock_positions
from spread_ledger.schemas import ImportRequest, StockTransactionIn, TransactionIn

IMPORT_MODES = ("add", "rebuild")


class ImportRequestError(ValueError):
    """The import request itself is unusable (bad mode, nothing to import)."""


@dataclass
class ImportSummary:
    message: str
    new_count: int
    updated_count: int
    skipped_count: int
    validation: Optional[ValidationReport] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _transaction_identity(tx: Transaction) -> tuple:
    return (tx.date, tx.txn_type, tx.ticker, tx.expiration, tx.strike,
            tx.option_type, tx.qty, tx.price, tx.amount)


def _stock_identity(tx: StockTransaction) -> tuple:
    return (tx.date, tx.ticker, tx.qty, tx.price, tx.amount)


def _dedupe(records: Iterable, identity) -> List:
    seen = set()
    unique = []
    for record in records:
        key = identity(record)
        if key in seen:
            continue
        seen.add(key)
        unique.append(record)
    return unique


def dedupe_transactions(transactions: Iterable[Transaction]) -> List[Transaction]:
    """Drop option fills repeated across overlapping uploads, keeping first-seen order."""
    return _dedupe(transactions, _transaction_identity)


def dedupe_stock_transactions(stock_transactions: Iterable[StockTransaction]) -> List[StockTransaction]:
    return _dedupe(stock_transactions, _stock_identity)


def _normalize_mode(mode: Optional[str]) -> str:
    normalized = (mode or "").strip().lower()
    if normalized not in IMPORT_MODES:
        raise ImportRequestError(f"Unknown import mode '{mode}', expected one of: {', '.join(IMPORT_MODES)}")
    return normalized


def run_import(store: PositionStore, request: ImportRequest) -> ImportSummary:
    """Reconcile an import request against the store and persist the result.

    ``add`` merges into what is already stored; ``rebuild`` discards the
    stored positions and rebuilds them from the request in the same
    transaction.
    """
    mode = _normalize_mode(request.mode)

    raw_transactions = [t.to_transaction() for t in request.transactions]
    raw_stock = [s.to_stock_transaction() for s in request.stock_transactions]
    transactions = dedupe_transactions(raw_transactions)
    stock_transactions = dedupe_stock_transactions(raw_stock)

    duplicates = (len(raw_transactions) - len(transactions)) + (len(raw_stock) - len(stock_transactions))
    if duplicates:
        logger.info(f"Removed {duplicates} duplicate records across uploads")

    if mode == "add" and not transactions:
        raise ImportRequestError("No option transactions to import")

    rebuild = mode == "rebuild"
    as_of = request.as_of or date.today()

    # Broker statements describe the whole account; an add batch only holds
    # new fills, so they are reconciled against it in rebuild mode only.
    stock_positions = None
    if request.stock_positions is not None:
        if rebuild:
            stock_positions = date_stock_positions(
                [p.to_order() for p in request.stock_positions], stock_transactions, as_of,
            )
        else:
            logger.warning("Ignoring broker stock positions in add mode; stock fills are merged as deltas")

    broker_quantities = request.broker_quantities if rebuild else None
    broker_prices = request.broker_prices if rebuild else None
    if request.broker_quantities is not None and not rebuild:
        logger.warning("Ignoring broker quantities in add mode; the batch is not a full history")

    snapshot = {} if rebuild else store.load_snapshot()
    logger.info(
        f"Import ({mode}): {len(transactions)} option transactions, "
        f"{len(stock_transactions)} stock transactions, {len(snapshot)} stored positions"
    )

    result = reconcile(
        transactions,
        stock_transactions,
        snapshot,
        cash_balance=request.cash_balance,
        stock_positions=stock_positions,
        broker_quantities=broker_quantities,
        broker_prices=broker_prices,
        as_of=as_of,
    )
    logger.info(f"Reconciled {result.orders_merged} orders against {len(snapshot)} stored positions")

    store.apply(result.merge, result.closing_prices, replace=rebuild)

    merge = result.merge
    new_count = len(merge.new_legs)
    updated_count = len(merge.updated_positions)

    if rebuild:
        message = f"Rebuilt portfolio with {new_count} positions."
    else:
        message = f"Added {new_count} new positions, updated {updated_count} existing."
        if merge.skipped_count:
            message += f" Skipped {merge.skipped_count} (already imported)."

    logger.info(message)
    return ImportSummary(
        message=message,
        new_count=new_count,
        updated_count=updated_count,
        skipped_count=merge.skipped_count,
        validation=result.validation,
    )


def closing_price_report(
    transactions: List[TransactionIn],
    stock_transactions: List[StockTransactionIn],
    as_of: Optional[date] = None,
) -> Dict[str, float]:
    """Closing price per contract, keyed by leg key."""
    prices = build_closing_prices(
        dedupe_transactions(t.to_transaction() for t in transactions),
        dedupe_stock_transactions(s.to_stock_transaction() for s in stock_transactions),
        as_of=as_of,
    )
    return {
        leg_key(ticker, expiration, strike, option_type): price
        for (ticker, expiration, strike, option_type), price in sorted(prices.items())
    }
