"""
Dashboard - Read Services.

Per-customer queries that combine several stores: the scoring
assessment with its breakdown, and the risk timeline.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from churn_scoring.engine import format_assessment_summary
from churn_scoring.types import CustomerSnapshot, RiskAssessment
from risk_timeline.types import RiskEvent

from .container import RetentionContainer


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CustomerAssessment:
    snapshot: CustomerSnapshot
    assessment: RiskAssessment
    summary: str


class CustomerInsightsService:
    """Assessment and timeline for one customer."""

    def __init__(self, container: RetentionContainer):
        self._container = container

    async def get_assessment(self, customer_id: int) -> Optional[CustomerAssessment]:
        scored = await self._container.board.assess_customer(customer_id)
        if scored is None:
            return None
        snapshot, assessment = scored
        weights = self._container.config_store.current().weights
        return CustomerAssessment(
            snapshot=snapshot,
            assessment=assessment,
            summary=format_assessment_summary(assessment, weights),
        )

    async def get_timeline(self, customer_id: int) -> Optional[List[RiskEvent]]:
        """None when the customer is unknown."""
        scored = await self._container.board.assess_customer(customer_id)
        if scored is None:
            return None
        snapshot = scored[0]
        persisted = await self._container.event_store.list_events(customer_id)
        weights = self._container.config_store.current().weights
        events = self._container.timeline.timeline(customer_id, persisted, snapshot, weights)
        logger.debug(f"Timeline for customer {customer_id}: {len(events)} events")
        return events
