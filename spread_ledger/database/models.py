"""
SQLAlchemy 2.0 declarative models for the SpreadLedger position store.

A position group is one logical strategy (spread, condor, stock holding,
cash balance) and owns one row per leg.  Dates are stored as ISO day
strings, so the tables behave the same on SQLite and PostgreSQL.
"""

from datetime import datetime, date as date_type
from typing import Any, Dict

from sqlalchemy import (
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import DeclarativeBase, relationship


# ---------------------------------------------------------------------------
# Base class with to_dict() for JSON serialization
# ---------------------------------------------------------------------------

class Base(DeclarativeBase):
    """Shared declarative base with a generic to_dict() helper."""

    def to_dict(self) -> Dict[str, Any]:
        """Serialize all columns to a plain dict."""
        result = {}
        for col in self.__table__.columns:
            value = getattr(self, col.key)
            if isinstance(value, (datetime, date_type)):
                value = value.isoformat()
            result[col.key] = value
        return result


# ---------------------------------------------------------------------------
# Position groups and their legs
# ---------------------------------------------------------------------------

class PositionGroup(Base):
    __tablename__ = "position_groups"

    group_id = Column(String, primary_key=True)
    position_key = Column(String, nullable=False, unique=True)
    ticker = Column(String, nullable=False)
    expiration = Column(String)          # ISO day; NULL for stock and cash
    strategy_code = Column(String)       # IC, LS, SS, LSg, SSg
    strategy_label = Column(String)
    description = Column(String)
    last_txn_date = Column(String)
    created_at = Column(String, server_default=func.now())
    updated_at = Column(String, server_default=func.now())

    # relationships
    legs = relationship("PositionGroupLeg", back_populates="group",
                        cascade="all, delete-orphan", order_by="PositionGroupLeg.id")

    __table_args__ = (
        Index("idx_position_groups_ticker", "ticker"),
        Index("idx_position_groups_expiration", "expiration"),
    )


class PositionGroupLeg(Base):
    __tablename__ = "position_legs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    group_id = Column(String, ForeignKey("position_groups.group_id", ondelete="CASCADE"),
                      nullable=False)
    ticker = Column(String, nullable=False)
    option_type = Column(String, nullable=False)  # Call, Put, Stock, Cash
    strike = Column(Float)
    expiration = Column(String)
    qty = Column(Integer, nullable=False, default=0)
    price = Column(Float, nullable=False, default=0.0)
    closing_price = Column(Float)

    # relationships
    group = relationship("PositionGroup", back_populates="legs")

    __table_args__ = (
        Index("idx_position_legs_group", "group_id"),
        Index("idx_position_legs_contract", "ticker", "expiration", "strike", "option_type"),
    )
