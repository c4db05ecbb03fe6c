"""
Risk Timeline - Repository.

RiskEventStore implementations. Events are returned in the
order the store recorded them (oldest first); that order
decides which duplicate survives deduplication.
"""

from typing import Dict, Iterable, List, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .models import RiskEventModel
from .types import RiskEvent


class RiskEventStore(Protocol):
    """Read access to persisted risk events."""

    async def list_events(self, customer_id: int) -> List[RiskEvent]:
        ...


class SqlRiskEventStore:
    """Events from the risk_events table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def list_events(self, customer_id: int) -> List[RiskEvent]:
        stmt = (
            select(RiskEventModel)
            .where(RiskEventModel.customer_id == customer_id)
            .order_by(RiskEventModel.occurred_at, RiskEventModel.id)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [m.to_event() for m in result.scalars().all()]


class InMemoryRiskEventStore:
    """List-backed event store for tests and dev."""

    def __init__(self, events: Optional[Iterable[RiskEvent]] = None):
        self._events: Dict[int, List[RiskEvent]] = {}
        for event in events or ():
            self.add(event)

    def add(self, event: RiskEvent) -> None:
        self._events.setdefault(event.customer_id, []).append(event)

    async def list_events(self, customer_id: int) -> List[RiskEvent]:
        return list(self._events.get(customer_id, []))
