"""
Risk Timeline - Event Synthesizer.

============================================================
PURPOSE
============================================================
Build a customer's risk timeline from persisted events and
the live snapshot.

1. Persisted events, deduplicated by (type, UTC date);
   first occurrence wins
2. One synthetic event per active risk condition, with the
   same impact the scoring breakdown shows; suppressed when
   a persisted event has the same (type, date)
3. Newest first; on equal timestamps persisted events come
   before synthetic ones

Recomputed on every call. Nothing is cached or persisted.

============================================================
"""

import logging
from datetime import date, datetime
from typing import Iterable, List, Optional, Set, Tuple

from churn_scoring.config import ScoreWeightsConfig
from churn_scoring.engine import (
    behavioral_pillar,
    financial_pillar,
    quality_pillar,
    support_pillar,
    CALL_BURST_MIN_CALLS,
)
from churn_scoring.types import CustomerSnapshot
from core.clock import ClockProtocol, SystemClock, ensure_utc, utc_date

from .types import RiskEvent, RiskEventType


logger = logging.getLogger(__name__)


DedupKey = Tuple[str, date]


def dedup_key(event: RiskEvent) -> DedupKey:
    return (event.type, utc_date(event.occurred_at))


def synthetic_event_id(customer_id: int, event_type: RiskEventType) -> str:
    return f"synthetic:{customer_id}:{event_type.value}"


# ============================================================
# PERSISTED EVENTS
# ============================================================


def deduplicate_events(customer_id: int, events: Iterable[RiskEvent]) -> List[RiskEvent]:
    """Keep the customer's events, first occurrence per (type, date)."""
    seen: Set[DedupKey] = set()
    kept: List[RiskEvent] = []
    for event in events:
        if event.customer_id != customer_id:
            continue
        key = dedup_key(event)
        if key in seen:
            continue
        seen.add(key)
        kept.append(event)
    return kept


# ============================================================
# SYNTHETIC EVENTS
# ============================================================


def synthesize_events(
    snapshot: CustomerSnapshot,
    weights: ScoreWeightsConfig,
    as_of: datetime,
) -> List[RiskEvent]:
    """One event per active risk condition of the snapshot."""
    as_of = ensure_utc(as_of)
    cid = snapshot.customer_id
    events: List[RiskEvent] = []

    def add(event_type: RiskEventType, impact: int, description: str,
            occurred_at: Optional[datetime] = None) -> None:
        events.append(RiskEvent(
            id=synthetic_event_id(cid, event_type),
            customer_id=cid,
            type=event_type.value,
            impact_score=impact,
            description=description,
            occurred_at=ensure_utc(occurred_at) if occurred_at else as_of,
            synthetic=True,
        ))

    if (snapshot.raw_financial or 0) > 0:
        overdue = snapshot.days_overdue or 0
        add(
            RiskEventType.SCORE_FINANCEIRO,
            financial_pillar(snapshot.raw_financial, weights),
            f"Fatura em atraso há {overdue} dias",
        )

    calls_30d = snapshot.calls_30d or 0
    if calls_30d >= CALL_BURST_MIN_CALLS:
        add(
            RiskEventType.CHAMADO_REINCIDENTE,
            support_pillar(calls_30d, weights),
            f"{calls_30d} chamados nos últimos 30 dias",
        )

    if snapshot.is_detractor:
        score = snapshot.nps_score
        add(
            RiskEventType.NPS_DETRATOR,
            weights.nps_detractor_bonus,
            f"NPS detrator (nota {score})" if score is not None else "NPS detrator",
        )

    if (snapshot.raw_quality or 0) > 0:
        add(
            RiskEventType.SCORE_QUALIDADE,
            quality_pillar(snapshot.raw_quality, weights),
            "Problemas de qualidade do serviço",
        )

    if (snapshot.raw_behavioral or 0) > 0:
        add(
            RiskEventType.SCORE_COMPORTAMENTAL,
            behavioral_pillar(snapshot.raw_behavioral, weights),
            "Mudança de comportamento de uso",
        )

    if snapshot.is_cancelled:
        add(
            RiskEventType.CANCELAMENTO_REAL,
            0,
            "Cancelamento confirmado",
            occurred_at=snapshot.cancelled_at,
        )

    return events


# ============================================================
# TIMELINE
# ============================================================


def build_timeline(
    customer_id: int,
    persisted_events: Iterable[RiskEvent],
    snapshot: Optional[CustomerSnapshot],
    weights: ScoreWeightsConfig,
    as_of: datetime,
) -> List[RiskEvent]:
    """
    Merge persisted and synthetic events, newest first.

    Never yields two events with the same (type, date).
    """
    persisted = deduplicate_events(customer_id, persisted_events)
    taken = {dedup_key(e) for e in persisted}

    synthetic: List[RiskEvent] = []
    if snapshot is not None:
        for event in synthesize_events(snapshot, weights, as_of):
            key = dedup_key(event)
            if key in taken:
                logger.debug(f"Synthetic {event.type} suppressed for customer {customer_id}")
                continue
            taken.add(key)
            synthetic.append(event)

    # sorted() is stable with reverse=True, so persisted stays ahead on ties
    return sorted(persisted + synthetic, key=lambda e: ensure_utc(e.occurred_at), reverse=True)


class EventTimelineSynthesizer:
    """build_timeline bound to a clock."""

    def __init__(self, clock: Optional[ClockProtocol] = None):
        self._clock = clock or SystemClock()

    def timeline(
        self,
        customer_id: int,
        persisted_events: Iterable[RiskEvent],
        snapshot: Optional[CustomerSnapshot],
        weights: ScoreWeightsConfig,
        as_of: Optional[datetime] = None,
    ) -> List[RiskEvent]:
        return build_timeline(
            customer_id,
            persisted_events,
            snapshot,
            weights,
            as_of or self._clock.now(),
        )
