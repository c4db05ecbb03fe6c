"""
Retention Board - Snapshot Sources.

============================================================
PURPOSE
============================================================
Where the board gets its customers from.

- SnapshotSource protocol (read-only)
- SqlSnapshotSource over the upstream tables
- InMemorySnapshotSource for tests and dev
- load_snapshots(): applies live call counts and NPS readings

Live values override the snapshot's; None falls back to it.

============================================================
"""

import logging
from dataclasses import replace
from datetime import timedelta
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from churn_scoring.types import CustomerSnapshot, NpsClassification, NpsReading
from core.clock import ClockProtocol, SystemClock, ensure_utc

from .models import CustomerSnapshotModel, NpsResponseModel, SupportTicketModel


logger = logging.getLogger(__name__)


class SnapshotSource(Protocol):
    """Read access to customer snapshots and live signals."""

    async def list_customer_snapshots(self) -> List[CustomerSnapshot]:
        ...

    async def get_call_counts(self, customer_id: int, window_days: int) -> Optional[int]:
        ...

    async def get_nps_classification(self, customer_id: int) -> Optional[NpsReading]:
        ...


# ============================================================
# SQL SOURCE
# ============================================================


class SqlSnapshotSource:
    """
    Snapshots and live signals from the upstream tables.

    get_call_counts returns None when the customer has no call
    in the window, so the snapshot's own count is used.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Optional[ClockProtocol] = None,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()

    async def list_customer_snapshots(self) -> List[CustomerSnapshot]:
        stmt = select(CustomerSnapshotModel).order_by(CustomerSnapshotModel.customer_id)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [m.to_snapshot() for m in result.scalars().all()]

    async def get_call_counts(self, customer_id: int, window_days: int) -> Optional[int]:
        since = self._clock.now() - timedelta(days=window_days)
        stmt = (
            select(func.count(SupportTicketModel.id))
            .where(SupportTicketModel.customer_id == customer_id)
            .where(SupportTicketModel.opened_at >= since)
        )
        async with self._session_factory() as session:
            count = (await session.execute(stmt)).scalar_one()
        return count or None

    async def get_nps_classification(self, customer_id: int) -> Optional[NpsReading]:
        stmt = (
            select(NpsResponseModel)
            .where(NpsResponseModel.customer_id == customer_id)
            .order_by(NpsResponseModel.answered_at.desc())
            .limit(1)
        )
        async with self._session_factory() as session:
            model = (await session.execute(stmt)).scalar_one_or_none()
        if model is None:
            return None
        return NpsReading(
            score=model.score,
            classification=NpsClassification.parse(model.classification),
            answered_at=ensure_utc(model.answered_at),
        )


# ============================================================
# IN-MEMORY SOURCE
# ============================================================


class InMemorySnapshotSource:
    """Fixed snapshots with optional live overrides."""

    def __init__(
        self,
        snapshots: Optional[Iterable[CustomerSnapshot]] = None,
        call_counts: Optional[Dict[Tuple[int, int], int]] = None,
        nps_readings: Optional[Dict[int, NpsReading]] = None,
    ):
        self._snapshots: List[CustomerSnapshot] = list(snapshots or ())
        self._call_counts: Dict[Tuple[int, int], int] = dict(call_counts or {})
        self._nps: Dict[int, NpsReading] = dict(nps_readings or {})

    def put_snapshot(self, snapshot: CustomerSnapshot) -> None:
        self._snapshots = [s for s in self._snapshots if s.customer_id != snapshot.customer_id]
        self._snapshots.append(snapshot)

    def set_call_count(self, customer_id: int, window_days: int, count: int) -> None:
        self._call_counts[(customer_id, window_days)] = count

    def set_nps_reading(self, customer_id: int, reading: NpsReading) -> None:
        self._nps[customer_id] = reading

    async def list_customer_snapshots(self) -> List[CustomerSnapshot]:
        return list(self._snapshots)

    async def get_call_counts(self, customer_id: int, window_days: int) -> Optional[int]:
        return self._call_counts.get((customer_id, window_days))

    async def get_nps_classification(self, customer_id: int) -> Optional[NpsReading]:
        return self._nps.get(customer_id)


# ============================================================
# LOADING
# ============================================================


async def enrich_snapshot(source: SnapshotSource, snapshot: CustomerSnapshot) -> CustomerSnapshot:
    """Apply live call counts and NPS reading to one snapshot."""
    cid = snapshot.customer_id
    calls_30d = await source.get_call_counts(cid, 30)
    calls_90d = await source.get_call_counts(cid, 90)
    reading = await source.get_nps_classification(cid)

    changes = {}
    if calls_30d is not None:
        changes["calls_30d"] = calls_30d
    if calls_90d is not None:
        changes["calls_90d"] = calls_90d
    if reading is not None:
        if reading.classification is not None:
            changes["nps_classification"] = reading.classification
        if reading.score is not None:
            changes["nps_score"] = reading.score
    return replace(snapshot, **changes) if changes else snapshot


async def load_snapshots(source: SnapshotSource) -> List[CustomerSnapshot]:
    """All snapshots with live signals applied."""
    snapshots = await source.list_customer_snapshots()
    enriched = [await enrich_snapshot(source, s) for s in snapshots]
    logger.debug(f"Loaded {len(enriched)} customer snapshots")
    return enriched


async def load_customer_snapshots(source: SnapshotSource, customer_id: int) -> List[CustomerSnapshot]:
    """Enriched snapshots of one customer (usually one, possibly none)."""
    return [
        await enrich_snapshot(source, s)
        for s in await source.list_customer_snapshots()
        if s.customer_id == customer_id
    ]
