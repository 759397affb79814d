"""Singleton instances shared across routers."""

from spread_ledger.database.position_store import PositionStore

store = PositionStore()


def get_store() -> PositionStore:
    return store
