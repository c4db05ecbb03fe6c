"""
Shared fixtures for the retention engine tests.
"""

from datetime import datetime, timezone
from typing import Any

import pytest

from churn_scoring.config import ScoreWeightsConfig
from churn_scoring.config_store import InMemoryConfigBackend, ScoringConfigStore
from churn_scoring.types import CustomerSnapshot, NpsClassification
from core.clock import MockClock
from retention_board.controller import BoardController
from retention_board.notices import NoticeDispatcher, RecordingNoticeSender
from retention_board.sources import InMemorySnapshotSource
from retention_workflow.repository import InMemoryWorkflowStore
from retention_workflow.service import WorkflowService


NOW = datetime(2025, 3, 10, 14, 30, tzinfo=timezone.utc)


def make_snapshot(customer_id: int = 1, **overrides: Any) -> CustomerSnapshot:
    """Snapshot with every pillar at zero unless overridden."""
    values = {
        "customer_id": customer_id,
        "name": f"Cliente {customer_id}",
        "as_of": NOW,
        "plan": "Fibra 300MB",
    }
    values.update(overrides)
    return CustomerSnapshot(**values)


@pytest.fixture
def snapshot_factory():
    return make_snapshot


@pytest.fixture
def clock():
    return MockClock(NOW)


@pytest.fixture
def weights():
    return ScoreWeightsConfig()


@pytest.fixture
def config_store():
    return ScoringConfigStore(InMemoryConfigBackend())


@pytest.fixture
def workflow_store():
    return InMemoryWorkflowStore()


@pytest.fixture
def workflow_service(workflow_store, clock):
    return WorkflowService(workflow_store, clock=clock)


@pytest.fixture
def recorder():
    return RecordingNoticeSender()


@pytest.fixture
def notices(recorder, clock):
    return NoticeDispatcher([recorder], clock)


@pytest.fixture
def at_risk_snapshots():
    """
    Three customers:
    1 - CRÍTICO (financial 25 + support 35 + nps 30 = 90)
    2 - ALERTA  (support 25 + quality 20 = 45)
    3 - OK      (nothing)
    """
    return [
        make_snapshot(1, raw_financial=30, calls_30d=4, nps_classification=NpsClassification.DETRACTOR),
        make_snapshot(2, calls_30d=2, raw_quality=25),
        make_snapshot(3),
    ]


@pytest.fixture
def snapshot_source(at_risk_snapshots):
    return InMemorySnapshotSource(at_risk_snapshots)


@pytest.fixture
def board_controller(snapshot_source, workflow_service, config_store, notices):
    return BoardController(snapshot_source, workflow_service, config_store, notices)
