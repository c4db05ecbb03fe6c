"""
Tests for the Retention Workflow.

============================================================
PURPOSE
============================================================
1. State machine rules
2. WorkflowService operations and their errors
3. Store failures and timeouts
4. Per-customer serialization

============================================================
"""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from core.exceptions import (
    AlreadyInTreatmentError,
    NoWorkflowError,
    TransitionFailedError,
)
from retention_workflow.repository import InMemoryWorkflowStore
from retention_workflow.service import WorkflowService, sorted_records
from retention_workflow.state_machine import VALID_TRANSITIONS, TransitionGuard
from retention_workflow.types import WorkflowRecord, WorkflowStatus, normalize_tags
from tests.conftest import NOW


# ============================================================
# FIXTURES
# ============================================================

class SlowWorkflowStore(InMemoryWorkflowStore):
    """Store whose writes block until released."""

    def __init__(self):
        super().__init__()
        self.release = asyncio.Event()

    async def upsert(self, record):
        await self.release.wait()
        return await super().upsert(record)


@pytest.fixture
def failing_store():
    store = AsyncMock()
    store.get = AsyncMock(return_value=None)
    store.get_all = AsyncMock(return_value={})
    store.upsert = AsyncMock(side_effect=ConnectionError("database unavailable"))
    return store


# ============================================================
# STATE MACHINE
# ============================================================

class TestStateMachine:
    """Tests for transition rules."""

    def test_no_record_only_enters_treatment(self):
        assert VALID_TRANSITIONS[None] == {WorkflowStatus.EM_TRATAMENTO}

        allowed, reason = TransitionGuard.can_transition(None, WorkflowStatus.RESOLVIDO)

        assert not allowed
        assert "em_tratamento" in reason

    @pytest.mark.parametrize("source", list(WorkflowStatus))
    @pytest.mark.parametrize("target", list(WorkflowStatus))
    def test_statuses_are_mutually_reachable(self, source, target):
        allowed, _ = TransitionGuard.can_transition(source, target)

        assert allowed

    def test_same_state_reason(self):
        _, reason = TransitionGuard.can_transition(WorkflowStatus.PERDIDO, WorkflowStatus.PERDIDO)

        assert reason == "Same state"


# ============================================================
# RECORD
# ============================================================

class TestWorkflowRecord:

    def test_normalize_tags(self):
        assert normalize_tags([" vip ", "", "  ", "vip", "retencao"]) == frozenset({"vip", "retencao"})

    def test_to_dict_sorts_tags(self):
        record = WorkflowRecord(
            customer_id=5,
            status=WorkflowStatus.RESOLVIDO,
            created_at=NOW,
            updated_at=NOW,
            tags=frozenset({"b", "a"}),
            owner_id="ana",
        )

        data = record.to_dict()

        assert data["tags"] == ["a", "b"]
        assert data["status"] == "resolvido"
        assert data["owner_id"] == "ana"


# ============================================================
# SERVICE
# ============================================================

class TestStartTreatment:
    """Tests for start_treatment."""

    @pytest.mark.asyncio
    async def test_creates_record_in_treatment(self, workflow_service, workflow_store):
        record = await workflow_service.start_treatment(10, initial_tags=["vip", " "])

        assert record.status == WorkflowStatus.EM_TRATAMENTO
        assert record.tags == frozenset({"vip"})
        assert record.owner_id is None
        assert record.created_at == record.updated_at == NOW
        assert await workflow_store.get(10) == record

    @pytest.mark.asyncio
    async def test_second_start_carries_existing_record(self, workflow_service, workflow_store):
        first = await workflow_service.start_treatment(10)

        with pytest.raises(AlreadyInTreatmentError) as exc_info:
            await workflow_service.start_treatment(10)

        assert exc_info.value.record == first
        assert exc_info.value.customer_id == 10
        assert workflow_store.upsert_count == 1

    @pytest.mark.asyncio
    async def test_existing_resolved_record_is_not_overwritten(self, workflow_service):
        await workflow_service.start_treatment(10)
        resolved = await workflow_service.set_status(10, WorkflowStatus.RESOLVIDO)

        with pytest.raises(AlreadyInTreatmentError) as exc_info:
            await workflow_service.start_treatment(10)

        assert exc_info.value.record.status == WorkflowStatus.RESOLVIDO
        assert await workflow_service.get_record(10) == resolved


class TestMutations:
    """Tests for set_status, set_tags and set_owner."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation,args", [
        ("set_status", (WorkflowStatus.RESOLVIDO,)),
        ("set_tags", (["vip"],)),
        ("set_owner", ("ana",)),
    ])
    async def test_requires_existing_record(self, workflow_service, workflow_store, operation, args):
        with pytest.raises(NoWorkflowError) as exc_info:
            await getattr(workflow_service, operation)(42, *args)

        assert exc_info.value.operation == operation
        assert workflow_store.upsert_count == 0

    @pytest.mark.asyncio
    async def test_set_status_bumps_updated_at(self, workflow_service, clock):
        created = await workflow_service.start_treatment(1)
        clock.advance(hours=2)

        updated = await workflow_service.set_status(1, WorkflowStatus.PERDIDO)

        assert updated.status == WorkflowStatus.PERDIDO
        assert updated.created_at == created.created_at
        assert updated.updated_at == NOW + timedelta(hours=2)

    @pytest.mark.asyncio
    async def test_same_status_only_touches_timestamp(self, workflow_service, clock):
        await workflow_service.start_treatment(1)
        clock.advance(minutes=5)

        updated = await workflow_service.set_status(1, WorkflowStatus.EM_TRATAMENTO)

        assert updated.status == WorkflowStatus.EM_TRATAMENTO
        assert updated.updated_at == NOW + timedelta(minutes=5)

    @pytest.mark.asyncio
    async def test_lost_customer_can_be_won_back(self, workflow_service):
        await workflow_service.start_treatment(1)
        await workflow_service.set_status(1, WorkflowStatus.PERDIDO)

        record = await workflow_service.set_status(1, WorkflowStatus.EM_TRATAMENTO)

        assert record.status == WorkflowStatus.EM_TRATAMENTO

    @pytest.mark.asyncio
    async def test_set_tags_replaces_wholesale(self, workflow_service):
        await workflow_service.start_treatment(1, initial_tags=["a", "b"])

        record = await workflow_service.set_tags(1, [" c ", ""])

        assert record.tags == frozenset({"c"})

    @pytest.mark.asyncio
    async def test_set_owner_and_clear(self, workflow_service):
        await workflow_service.start_treatment(1)

        assert (await workflow_service.set_owner(1, "ana")).owner_id == "ana"
        assert (await workflow_service.set_owner(1, None)).owner_id is None

    @pytest.mark.asyncio
    async def test_list_records(self, workflow_service):
        await workflow_service.start_treatment(3)
        await workflow_service.start_treatment(1)

        records = await workflow_service.list_records()

        assert [r.customer_id for r in sorted_records(records)] == [1, 3]


# ============================================================
# FAILURES
# ============================================================

class TestStoreFailures:
    """Store errors surface as TransitionFailedError."""

    @pytest.mark.asyncio
    async def test_store_error_wrapped(self, failing_store, clock):
        service = WorkflowService(failing_store, clock=clock)

        with pytest.raises(TransitionFailedError) as exc_info:
            await service.start_treatment(1)

        assert exc_info.value.operation == "start_treatment"
        assert isinstance(exc_info.value.cause, ConnectionError)
        assert not exc_info.value.timed_out

    @pytest.mark.asyncio
    async def test_read_error_wrapped(self, clock):
        store = AsyncMock()
        store.get = AsyncMock(side_effect=RuntimeError("boom"))
        service = WorkflowService(store, clock=clock)

        with pytest.raises(TransitionFailedError):
            await service.get_record(1)

    @pytest.mark.asyncio
    async def test_list_records_error_wrapped(self, clock):
        store = AsyncMock()
        store.get_all = AsyncMock(side_effect=ConnectionError("store unreachable"))
        service = WorkflowService(store, clock=clock)

        with pytest.raises(TransitionFailedError) as exc_info:
            await service.list_records()

        assert exc_info.value.operation == "list_records"
        assert exc_info.value.customer_id is None

    @pytest.mark.asyncio
    async def test_timeout(self, clock):
        store = SlowWorkflowStore()
        service = WorkflowService(store, clock=clock, timeout_seconds=0.05)

        with pytest.raises(TransitionFailedError) as exc_info:
            await service.start_treatment(1)

        assert exc_info.value.timed_out
        assert await store.get(1) is None


class TestSerialization:
    """Writes for one customer run one at a time."""

    @pytest.mark.asyncio
    async def test_same_customer_is_serialized(self, clock):
        store = SlowWorkflowStore()
        service = WorkflowService(store, clock=clock)

        first = asyncio.create_task(service.start_treatment(1))
        second = asyncio.create_task(service.start_treatment(1))
        await asyncio.sleep(0.01)
        store.release.set()

        results = await asyncio.gather(first, second, return_exceptions=True)

        assert sum(isinstance(r, WorkflowRecord) for r in results) == 1
        assert sum(isinstance(r, AlreadyInTreatmentError) for r in results) == 1
        assert store.upsert_count == 1

    @pytest.mark.asyncio
    async def test_different_customers_proceed(self, clock):
        store = SlowWorkflowStore()
        service = WorkflowService(store, clock=clock)
        store.release.set()

        records = await asyncio.gather(*(service.start_treatment(cid) for cid in range(5)))

        assert {r.customer_id for r in records} == set(range(5))

    @pytest.mark.asyncio
    async def test_locks_released_after_use(self, workflow_service):
        await workflow_service.start_treatment(1)
        await workflow_service.set_status(1, WorkflowStatus.RESOLVIDO)
        with pytest.raises(NoWorkflowError):
            await workflow_service.set_owner(2, "ana")

        assert workflow_service._locks == {}
        assert workflow_service._lock_users == {}

    @pytest.mark.asyncio
    async def test_lock_kept_while_waiters_remain(self, clock):
        store = SlowWorkflowStore()
        service = WorkflowService(store, clock=clock)

        first = asyncio.create_task(service.start_treatment(1))
        second = asyncio.create_task(service.set_tags(1, ["vip"]))
        await asyncio.sleep(0.01)

        assert list(service._locks) == [1]
        assert service._lock_users == {1: 2}

        store.release.set()
        await asyncio.gather(first, second)

        assert service._locks == {}
        assert (await store.get(1)).tags == frozenset({"vip"})

    @pytest.mark.asyncio
    async def test_failed_operation_releases_lock(self, failing_store, clock):
        service = WorkflowService(failing_store, clock=clock)

        with pytest.raises(TransitionFailedError):
            await service.start_treatment(1)

        assert service._locks == {}
