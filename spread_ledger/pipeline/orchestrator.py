"""
Reconciliation Orchestrator: composes the pipeline stages into one
``reconcile()`` call.

Pure with respect to its inputs: the transaction lists and the snapshot are
read, never modified.  Applying the result to storage is the caller's job
(see PositionStore.apply), which keeps a killed run from leaving partial
state behind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from spread_ledger.models.positions import PersistedPosition, SpreadKind, SpreadOrder
from spread_ledger.models.transactions import StockTransaction, Transaction
from spread_ledger.pipeline.closing_prices import LegId, build_closing_prices
from spread_ledger.pipeline.leg_pairing import pair_transactions
from spread_ledger.pipeline.merge_engine import MergeResult, merge_spreads
from spread_ledger.pipeline.position_keys import to_day
from spread_ledger.pipeline.pre_merger import pre_merge
from spread_ledger.pipeline.quantity_validator import (
    ValidationReport,
    orphan_orders,
    validate_option_quantities,
)
from spread_ledger.pipeline.stock_aggregator import aggregate_stock_transactions

logger = logging.getLogger(__name__)

__all__ = ["ReconcileResult", "reconcile", "stock_cutoff_dates"]


@dataclass
class ReconcileResult:
    """Result of a full reconciliation run."""
    orders_paired: int
    stock_positions: int
    orders_merged: int
    merge: MergeResult
    closing_prices: Dict[LegId, float] = field(default_factory=dict)
    validation: Optional[ValidationReport] = None
    orders: List[SpreadOrder] = field(default_factory=list)


def stock_cutoff_dates(snapshot: Dict[str, PersistedPosition]) -> Dict[str, date]:
    """Per-ticker last applied date from ``TICKER|STOCK`` groups."""
    cutoffs: Dict[str, date] = {}
    for key, position in snapshot.items():
        if not key.endswith("|STOCK"):
            continue
        cutoff = to_day(position.last_txn_date)
        if cutoff:
            cutoffs[key.split("|")[0]] = cutoff
    return cutoffs


def reconcile(
    transactions: List[Transaction],
    stock_transactions: List[StockTransaction],
    snapshot: Dict[str, PersistedPosition],
    *,
    cash_balance: Optional[float] = None,
    stock_positions: Optional[List[SpreadOrder]] = None,
    broker_quantities: Optional[Dict[str, int]] = None,
    broker_prices: Optional[Dict[str, float]] = None,
    as_of: Optional[date] = None,
) -> ReconcileResult:
    """Run pairing, aggregation, pre-merge, validation, pricing and merge.

    Parameters:
        transactions: Normalized option transactions (full history or a new batch)
        stock_transactions: Normalized stock fills
        snapshot: Persisted positions keyed by position key
        cash_balance: Broker cash; added as the CASH|CASH position when positive
        stock_positions: Broker-reported stock holdings; replaces aggregation
        broker_quantities: Leg key -> signed qty from a broker statement
        broker_prices: Leg key -> price paid, for orphaned broker legs
        as_of: "Today" for expired-worthless resolution

    Returns:
        ReconcileResult with the merge output and supporting data
    """
    as_of = as_of or date.today()

    # ── Stage 1: pair opens ──────────────────────────────────────────
    paired = pair_transactions(transactions)
    logger.info("Stage 1: paired %d orders from %d transactions", len(paired), len(transactions))

    # ── Stage 2: stock positions ─────────────────────────────────────
    if stock_positions is not None:
        stocks = list(stock_positions)
    else:
        stocks = aggregate_stock_transactions(stock_transactions, stock_cutoff_dates(snapshot))
    logger.info("Stage 2: %d stock positions", len(stocks))

    raw: List[SpreadOrder] = stocks + paired

    if cash_balance is not None and cash_balance > 0:
        raw.append(SpreadOrder(
            kind=SpreadKind.CASH,
            ticker="CASH",
            qty=1,
            price=cash_balance,
            date=as_of,
            option_type="Cash",
        ))

    # ── Stage 3: pre-merge by key ────────────────────────────────────
    orders = pre_merge(raw)
    logger.info("Stage 3: %d orders after pre-merge", len(orders))

    # ── Stage 4: broker quantity validation ──────────────────────────
    validation = None
    if broker_quantities is not None:
        validation = validate_option_quantities(orders, broker_quantities)
        orphans = orphan_orders(validation, broker_prices, as_of=as_of)
        if orphans:
            logger.info("Stage 4: adding %d orphaned broker legs", len(orphans))
            orders.extend(orphans)

    # ── Stage 5: closing prices ──────────────────────────────────────
    closing_prices = build_closing_prices(transactions, stock_transactions, as_of=as_of)

    # ── Stage 6: merge against the snapshot ──────────────────────────
    merge = merge_spreads(snapshot, orders)

    return ReconcileResult(
        orders_paired=len(paired),
        stock_positions=len(stocks),
        orders_merged=len(orders),
        merge=merge,
        closing_prices=closing_prices,
        validation=validation,
        orders=orders,
    )
