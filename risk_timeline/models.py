"""
Risk Timeline - Persistence Models.

============================================================
MODELS
============================================================
1. RiskEventModel: persisted risk events, written upstream

The retention engine only reads this table.

============================================================
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from core.clock import ensure_utc
from database.engine import Base

from .types import RiskEvent


class RiskEventModel(Base):
    """One persisted risk event."""

    __tablename__ = "risk_events"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
    )

    customer_id: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    event_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    impact_score: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_risk_events_customer_occurred", "customer_id", "occurred_at"),
    )

    def to_event(self) -> RiskEvent:
        return RiskEvent(
            id=self.id,
            customer_id=self.customer_id,
            type=self.event_type,
            impact_score=self.impact_score or 0,
            description=self.description,
            occurred_at=ensure_utc(self.occurred_at),
            synthetic=False,
        )
