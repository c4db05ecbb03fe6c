"""
Tests for the transition saga.
"""

import pytest

from core.exceptions import TransitionFailedError
from retention_board.intents import SetStatus, StartTreatment, TransitionPlan
from retention_board.saga import CompensationPolicy, SagaOutcome, TransitionSaga
from retention_workflow.repository import InMemoryWorkflowStore
from retention_workflow.service import WorkflowService
from retention_workflow.types import WorkflowStatus


# ============================================================
# FIXTURES
# ============================================================

class FlakyWorkflowStore(InMemoryWorkflowStore):
    """Fails every upsert after the first `ok_writes`."""

    def __init__(self, ok_writes):
        super().__init__()
        self.ok_writes = ok_writes

    async def upsert(self, record):
        if self.upsert_count >= self.ok_writes:
            raise ConnectionError("write rejected")
        return await super().upsert(record)


def two_step_plan(customer_id=1, status=WorkflowStatus.RESOLVIDO):
    return TransitionPlan(customer_id, status, (StartTreatment(), SetStatus(status)))


# ============================================================
# SAGA
# ============================================================

class TestTransitionSaga:

    def test_declares_no_compensation(self):
        assert TransitionSaga.compensation is CompensationPolicy.NONE

    @pytest.mark.asyncio
    async def test_all_steps_complete(self, workflow_service):
        result = await TransitionSaga(two_step_plan(), workflow_service).run()

        assert result.outcome is SagaOutcome.COMPLETED
        assert result.succeeded
        assert result.completed_steps == ("start_treatment", "set_status:resolvido")
        assert result.record.status == WorkflowStatus.RESOLVIDO

    @pytest.mark.asyncio
    async def test_start_on_existing_record_counts_as_success(self, workflow_service, workflow_store):
        await workflow_service.start_treatment(1)

        result = await TransitionSaga(two_step_plan(), workflow_service).run()

        assert result.outcome is SagaOutcome.COMPLETED
        assert workflow_store.upsert_count == 2

    @pytest.mark.asyncio
    async def test_second_step_failure_is_partial(self, clock):
        store = FlakyWorkflowStore(ok_writes=1)
        service = WorkflowService(store, clock=clock)

        result = await TransitionSaga(two_step_plan(), service).run()

        assert result.outcome is SagaOutcome.PARTIAL
        assert result.completed_steps == ("start_treatment",)
        assert result.failed_step == "set_status:resolvido"
        assert isinstance(result.error, TransitionFailedError)
        assert (await store.get(1)).status == WorkflowStatus.EM_TRATAMENTO

    @pytest.mark.asyncio
    async def test_first_step_failure_is_failed(self, clock):
        store = FlakyWorkflowStore(ok_writes=0)
        service = WorkflowService(store, clock=clock)

        result = await TransitionSaga(two_step_plan(), service).run()

        assert result.outcome is SagaOutcome.FAILED
        assert result.completed_steps == ()
        assert result.failed_step == "start_treatment"
        assert await store.get(1) is None
