"""
Position store: reads the persisted snapshot and writes merge results.

All writes for one import happen inside a single get_session() block, so a
failure part-way through rolls the whole batch back and the next run sees
the snapshot it started from.
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import selectinload

from spread_ledger.database.engine import get_session
from spread_ledger.database.models import PositionGroup, PositionGroupLeg
from spread_ledger.models.positions import PersistedPosition, PositionLeg, SpreadKind, SpreadOrder
from spread_ledger.pipeline.closing_prices import LegId
from spread_ledger.pipeline.merge_engine import MergeResult
from spread_ledger.pipeline.position_keys import (
    STRATEGY_CODES,
    canonical_day,
    position_key,
    spread_key,
    to_day,
)
from spread_ledger.pipeline.strategy_engine import describe_spread, recognize, spread_to_legs

logger = logging.getLogger(__name__)


def _iso(value) -> Optional[str]:
    day = to_day(value)
    return day.isoformat() if day else None


def _contract(ticker: str, expiration, strike, option_type: str) -> Optional[LegId]:
    day = to_day(expiration)
    if day is None or strike is None:
        return None
    return (ticker, day, float(strike), option_type)


class PositionStore:
    """SQLAlchemy-backed persistence for position groups and legs.

    The module-level engine must be initialized (init_engine) first.
    """

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def load_snapshot(self) -> Dict[str, PersistedPosition]:
        """Every persisted group keyed by its position key."""
        snapshot: Dict[str, PersistedPosition] = {}

        with get_session() as session:
            groups = (
                session.query(PositionGroup)
                .options(selectinload(PositionGroup.legs))
                .all()
            )
            for group in groups:
                legs = [
                    PositionLeg(
                        ticker=row.ticker,
                        option_type=row.option_type,
                        qty=row.qty,
                        price=row.price,
                        strike=row.strike,
                        expiration=to_day(row.expiration),
                        closing_price=row.closing_price,
                        id=row.id,
                    )
                    for row in group.legs
                ]
                key = position_key(legs, group.strategy_code) or group.position_key
                if key in snapshot:
                    logger.warning("Duplicate position key %s (group %s)", key, group.group_id)
                    continue
                snapshot[key] = PersistedPosition(
                    key=key,
                    legs=legs,
                    last_txn_date=to_day(group.last_txn_date),
                    strategy_code=group.strategy_code,
                    group_id=group.group_id,
                )

        logger.info("Loaded %d persisted positions", len(snapshot))
        return snapshot

    def list_positions(self) -> List[Dict[str, Any]]:
        """Groups with their legs as plain dicts, ordered by ticker and expiration."""
        with get_session() as session:
            groups = (
                session.query(PositionGroup)
                .options(selectinload(PositionGroup.legs))
                .order_by(PositionGroup.ticker, PositionGroup.expiration, PositionGroup.position_key)
                .all()
            )
            result = []
            for group in groups:
                data = group.to_dict()
                data["legs"] = [leg.to_dict() for leg in group.legs]
                result.append(data)
            return result

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def clear(self) -> int:
        """Delete every group and leg. Returns the number of groups removed."""
        with get_session() as session:
            return self._clear(session)

    def apply(
        self,
        merge_result: MergeResult,
        closing_prices: Optional[Dict[LegId, float]] = None,
        replace: bool = False,
    ) -> None:
        """Persist a merge result in one transaction.

        Args:
            merge_result: Output of merge_spreads()
            closing_prices: Resolved close per contract; annotates every
                            stored leg it covers, not only touched ones
            replace: Empty the store first (rebuild mode)
        """
        closing_prices = closing_prices or {}
        now = datetime.now().isoformat()

        with get_session() as session:
            if replace:
                removed = self._clear(session)
                logger.info("Rebuild: removed %d existing groups", removed)

            for position in merge_result.updated_positions:
                self._write_update(session, position, now)

            created = set()
            for order in merge_result.new_legs:
                key = spread_key(order)
                if key in created:
                    logger.warning("Skipping second new position for key %s", key)
                    continue
                created.add(key)
                session.add(self._build_group(order, closing_prices, now))

            session.flush()
            annotated = self._annotate_closing_prices(session, closing_prices)

        logger.info(
            "Applied merge: %d new groups, %d updated, %d legs priced",
            len(created), len(merge_result.updated_positions), annotated,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _clear(session) -> int:
        session.query(PositionGroupLeg).delete(synchronize_session=False)
        return session.query(PositionGroup).delete(synchronize_session=False)

    @staticmethod
    def _write_update(session, position: PersistedPosition, now: str) -> None:
        group = session.get(PositionGroup, position.group_id) if position.group_id else None
        if group is None:
            group = session.query(PositionGroup).filter(
                PositionGroup.position_key == position.key,
            ).first()
        if group is None:
            logger.warning("Updated position %s no longer exists; skipping", position.key)
            return

        rows = {row.id: row for row in group.legs}
        for leg in position.legs:
            row = rows.get(leg.id)
            if row is None:
                continue
            row.qty = leg.qty
            row.price = leg.price

        group.last_txn_date = _iso(position.last_txn_date)
        group.updated_at = now

    @staticmethod
    def _build_group(order: SpreadOrder, closing_prices: Dict[LegId, float], now: str) -> PositionGroup:
        group = PositionGroup(
            group_id=str(uuid.uuid4()),
            position_key=spread_key(order),
            ticker=order.ticker,
            expiration=_iso(order.expiration) if order.is_option else None,
            strategy_code=STRATEGY_CODES.get(order.kind),
            strategy_label=recognize(spread_to_legs(order)).name,
            description=describe_spread(order),
            last_txn_date=_iso(order.date),
            created_at=now,
            updated_at=now,
        )

        if order.kind == SpreadKind.STOCK:
            group.legs.append(PositionGroupLeg(
                ticker=order.ticker, option_type="Stock", qty=order.qty, price=order.price,
            ))
        elif order.kind == SpreadKind.CASH:
            group.legs.append(PositionGroupLeg(
                ticker="CASH", option_type="Cash", qty=1, price=order.price,
            ))
        else:
            expiration = canonical_day(order.expiration)
            for leg in order.option_legs():
                contract = _contract(order.ticker, order.expiration, leg.strike, leg.option_type)
                group.legs.append(PositionGroupLeg(
                    ticker=order.ticker,
                    option_type=leg.option_type,
                    strike=leg.strike,
                    expiration=expiration,
                    qty=leg.qty,
                    price=leg.price,
                    closing_price=closing_prices.get(contract) if contract else None,
                ))

        return group

    @staticmethod
    def _annotate_closing_prices(session, closing_prices: Dict[LegId, float]) -> int:
        if not closing_prices:
            return 0

        count = 0
        rows = session.query(PositionGroupLeg).filter(PositionGroupLeg.strike.isnot(None)).all()
        for row in rows:
            contract = _contract(row.ticker, row.expiration, row.strike, row.option_type)
            if contract is None or contract not in closing_prices:
                continue
            price = closing_prices[contract]
            if row.closing_price != price:
                row.closing_price = price
                count += 1
        return count
