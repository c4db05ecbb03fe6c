"""
Risk Timeline Package.

Per-customer risk event timeline: persisted events merged with
events synthesized from the live snapshot.
"""

from .types import RiskEvent, RiskEventType, EVENT_LABELS
from .synthesizer import (
    dedup_key,
    deduplicate_events,
    synthesize_events,
    build_timeline,
    EventTimelineSynthesizer,
)
from .repository import RiskEventStore, SqlRiskEventStore, InMemoryRiskEventStore


__all__ = [
    "RiskEvent",
    "RiskEventType",
    "EVENT_LABELS",
    "dedup_key",
    "deduplicate_events",
    "synthesize_events",
    "build_timeline",
    "EventTimelineSynthesizer",
    "RiskEventStore",
    "SqlRiskEventStore",
    "InMemoryRiskEventStore",
]
