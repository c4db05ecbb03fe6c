"""
Retention Board - Snapshot Source Models.

============================================================
MODELS
============================================================
1. CustomerSnapshotModel: per-customer aggregate (upstream ETL)
2. SupportTicketModel: support calls, for live call counts
3. NpsResponseModel: survey answers, for the latest NPS reading

The retention engine only reads these tables.

============================================================
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Date, DateTime, Float, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from churn_scoring.types import ChurnStatus, CustomerSnapshot, NpsClassification
from core.clock import ensure_utc
from database.engine import Base


class CustomerSnapshotModel(Base):
    """Per-customer risk aggregate."""

    __tablename__ = "customer_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    customer_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    plan: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    monthly_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    days_overdue: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    last_payment_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Raw pillar sub-scores
    score_financial: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    score_support: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    score_nps: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    score_quality: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    score_behavioral: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    calls_30d: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    calls_90d: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    nps_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    nps_classification: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    lifetime_value: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    churn_status: Mapped[str] = mapped_column(String(20), nullable=False, default=ChurnStatus.ACTIVE.value)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    as_of: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def to_snapshot(self) -> CustomerSnapshot:
        try:
            status = ChurnStatus(self.churn_status)
        except ValueError:
            status = ChurnStatus.ACTIVE
        return CustomerSnapshot(
            customer_id=self.customer_id,
            name=self.name,
            as_of=ensure_utc(self.as_of),
            plan=self.plan,
            monthly_amount=self.monthly_amount,
            days_overdue=self.days_overdue,
            last_payment_date=self.last_payment_date,
            raw_financial=self.score_financial,
            raw_support=self.score_support,
            raw_nps=self.score_nps,
            raw_quality=self.score_quality,
            raw_behavioral=self.score_behavioral,
            calls_30d=self.calls_30d,
            calls_90d=self.calls_90d,
            nps_score=self.nps_score,
            nps_classification=NpsClassification.parse(self.nps_classification),
            lifetime_value=self.lifetime_value,
            churn_status=status,
            cancelled_at=ensure_utc(self.cancelled_at) if self.cancelled_at else None,
        )


class SupportTicketModel(Base):
    """One support call."""

    __tablename__ = "support_tickets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    customer_id: Mapped[int] = mapped_column(Integer, nullable=False)
    opened_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    subject: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    __table_args__ = (
        Index("ix_support_tickets_customer_opened", "customer_id", "opened_at"),
    )


class NpsResponseModel(Base):
    """One NPS survey answer."""

    __tablename__ = "nps_responses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    customer_id: Mapped[int] = mapped_column(Integer, nullable=False)
    score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    classification: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    answered_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_nps_responses_customer_answered", "customer_id", "answered_at"),
    )
