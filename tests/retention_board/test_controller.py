"""
Tests for the Board Controller.

============================================================
PURPOSE
============================================================
1. Rendering from snapshots, config and workflow records
2. Drag gestures end to end
3. Pending guard
4. Partial and failed transitions reach the operator

============================================================
"""

import asyncio

import pytest

from retention_board.controller import BoardController
from retention_board.notices import NoticeLevel
from retention_board.types import BoardColumn, DragOutcome
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


class UnreachableWorkflowStore:
    """Every call fails, reads included."""

    async def get_all(self):
        raise ConnectionError("store unreachable")

    async def get(self, customer_id):
        raise ConnectionError("store unreachable")

    async def upsert(self, record):
        raise ConnectionError("store unreachable")


class GatedWorkflowStore(InMemoryWorkflowStore):
    """Holds every upsert until the gate opens."""

    def __init__(self):
        super().__init__()
        self.entered = asyncio.Event()
        self.gate = asyncio.Event()

    async def upsert(self, record):
        self.entered.set()
        await self.gate.wait()
        return await super().upsert(record)


@pytest.fixture
def make_controller(snapshot_source, config_store, notices, clock):
    def factory(store):
        return BoardController(snapshot_source, WorkflowService(store, clock=clock), config_store, notices)
    return factory


# ============================================================
# RENDER
# ============================================================

class TestRender:

    @pytest.mark.asyncio
    async def test_initial_board(self, board_controller):
        board = await board_controller.render()

        assert [c.customer_id for c in board.cards(BoardColumn.EM_RISCO)] == [1, 2]
        assert board.cards(BoardColumn.TRATAMENTO) == ()

    @pytest.mark.asyncio
    async def test_render_uses_current_config(self, board_controller, config_store):
        # Customer 2 drops from 45 to 25 with no quality weight
        config_store.update_weights({"quality_cap": 0})

        board = await board_controller.render()

        assert board.find(2) is None

    @pytest.mark.asyncio
    async def test_live_call_count_changes_bucket(self, board_controller, snapshot_source):
        snapshot_source.set_call_count(3, 30, 6)

        board = await board_controller.render()

        assert board.column_of(3) == BoardColumn.EM_RISCO
        assert board.find(3).score == 45

    @pytest.mark.asyncio
    async def test_assess_customer(self, board_controller):
        snapshot, assessment = await board_controller.assess_customer(1)

        assert snapshot.customer_id == 1
        assert assessment.score == 90
        assert await board_controller.assess_customer(404) is None


# ============================================================
# DRAG
# ============================================================

class TestHandleDrag:
    """End-to-end drag gestures."""

    @pytest.mark.asyncio
    async def test_drag_to_treatment(self, board_controller, workflow_store):
        result = await board_controller.handle_drag(2, BoardColumn.EM_RISCO, BoardColumn.TRATAMENTO)

        assert result.outcome is DragOutcome.APPLIED
        assert result.completed_steps == ("start_treatment",)
        assert result.board.column_of(2) == BoardColumn.TRATAMENTO
        assert (await workflow_store.get(2)).status == WorkflowStatus.EM_TRATAMENTO
        assert result.message == "Moved to Em Tratamento"

    @pytest.mark.asyncio
    async def test_critical_customer_to_resolved_issues_two_calls(self, board_controller, workflow_store):
        result = await board_controller.handle_drag(1, BoardColumn.EM_RISCO, BoardColumn.RESOLVIDO)

        assert result.outcome is DragOutcome.APPLIED
        assert result.completed_steps == ("start_treatment", "set_status:resolvido")
        assert workflow_store.upsert_count == 2
        assert result.board.column_of(1) == BoardColumn.RESOLVIDO

    @pytest.mark.asyncio
    async def test_resolved_customer_cannot_return_to_em_risco(
        self, board_controller, workflow_service, workflow_store, recorder
    ):
        await workflow_service.start_treatment(1)
        await workflow_service.set_status(1, WorkflowStatus.RESOLVIDO)
        writes = workflow_store.upsert_count

        result = await board_controller.handle_drag(1, BoardColumn.RESOLVIDO, BoardColumn.EM_RISCO)

        assert result.outcome is DragOutcome.REJECTED
        assert result.board.column_of(1) == BoardColumn.RESOLVIDO
        assert workflow_store.upsert_count == writes
        assert recorder.notices[-1].level is NoticeLevel.WARNING
        assert recorder.notices[-1].title == "Move not allowed"

    @pytest.mark.asyncio
    async def test_same_column_touches_nothing(self, board_controller, workflow_store, recorder):
        result = await board_controller.handle_drag(1, BoardColumn.EM_RISCO, BoardColumn.EM_RISCO)

        assert result.outcome is DragOutcome.NOOP
        assert workflow_store.upsert_count == 0
        assert recorder.notices == []
        assert result.board is not None

    @pytest.mark.asyncio
    async def test_move_between_closed_columns(self, board_controller, workflow_service):
        await workflow_service.start_treatment(2)

        first = await board_controller.handle_drag(2, BoardColumn.TRATAMENTO, BoardColumn.PERDIDO)
        second = await board_controller.handle_drag(2, BoardColumn.PERDIDO, BoardColumn.RESOLVIDO)

        assert first.board.column_of(2) == BoardColumn.PERDIDO
        assert second.board.column_of(2) == BoardColumn.RESOLVIDO

    @pytest.mark.asyncio
    async def test_statistics(self, board_controller):
        await board_controller.handle_drag(1, BoardColumn.EM_RISCO, BoardColumn.TRATAMENTO)
        await board_controller.handle_drag(1, BoardColumn.TRATAMENTO, BoardColumn.EM_RISCO)

        stats = board_controller.get_statistics()

        assert stats["applied"] == 1
        assert stats["rejected"] == 1
        assert stats["failed"] == 0


class TestPendingGuard:
    """A drag arriving while another is in flight is ignored."""

    @pytest.mark.asyncio
    async def test_second_drag_ignored_while_pending(self, make_controller):
        store = GatedWorkflowStore()
        controller = make_controller(store)

        first = asyncio.create_task(
            controller.handle_drag(1, BoardColumn.EM_RISCO, BoardColumn.TRATAMENTO)
        )
        await store.entered.wait()
        assert controller.is_pending

        second = await controller.handle_drag(2, BoardColumn.EM_RISCO, BoardColumn.TRATAMENTO)

        assert second.outcome is DragOutcome.IGNORED_PENDING
        assert second.board is None

        store.gate.set()
        result = await first

        assert result.outcome is DragOutcome.APPLIED
        assert not controller.is_pending
        assert await store.get(2) is None
        assert store.upsert_count == 1

    @pytest.mark.asyncio
    async def test_pending_cleared_after_failure(self, make_controller):
        controller = make_controller(FlakyWorkflowStore(ok_writes=0))

        result = await controller.handle_drag(1, BoardColumn.EM_RISCO, BoardColumn.TRATAMENTO)

        assert result.outcome is DragOutcome.FAILED
        assert not controller.is_pending

    @pytest.mark.asyncio
    async def test_pending_cleared_when_snapshot_source_raises(self, make_controller, snapshot_source, monkeypatch):
        controller = make_controller(InMemoryWorkflowStore())

        async def broken():
            raise RuntimeError("snapshot source down")

        monkeypatch.setattr(snapshot_source, "list_customer_snapshots", broken)

        with pytest.raises(RuntimeError):
            await controller.handle_drag(1, BoardColumn.EM_RISCO, BoardColumn.TRATAMENTO)
        assert not controller.is_pending


class TestFailures:
    """Store failures surface as notices, never as exceptions."""

    @pytest.mark.asyncio
    async def test_partial_transition_stays_in_treatment(self, make_controller, recorder):
        store = FlakyWorkflowStore(ok_writes=1)
        controller = make_controller(store)

        result = await controller.handle_drag(1, BoardColumn.EM_RISCO, BoardColumn.RESOLVIDO)

        assert result.outcome is DragOutcome.PARTIAL
        assert result.completed_steps == ("start_treatment",)
        assert result.board.column_of(1) == BoardColumn.TRATAMENTO

        notice = recorder.notices[-1]
        assert notice.level is NoticeLevel.WARNING
        assert notice.title == "Move partially applied"
        assert "resolvido" in notice.message
        assert notice.customer_id == 1
        assert notice.context["failed_step"] == "set_status:resolvido"

    @pytest.mark.asyncio
    async def test_failed_transition_leaves_card_in_place(self, make_controller, recorder):
        controller = make_controller(FlakyWorkflowStore(ok_writes=0))

        result = await controller.handle_drag(2, BoardColumn.EM_RISCO, BoardColumn.TRATAMENTO)

        assert result.outcome is DragOutcome.FAILED
        assert result.board.column_of(2) == BoardColumn.EM_RISCO
        assert recorder.notices[-1].level is NoticeLevel.ERROR
        assert recorder.notices[-1].title == "Move failed"

    @pytest.mark.asyncio
    async def test_timeout_reported_as_failure(self, snapshot_source, config_store, notices, clock, recorder):
        store = GatedWorkflowStore()
        service = WorkflowService(store, clock=clock, timeout_seconds=0.05)
        controller = BoardController(snapshot_source, service, config_store, notices)

        result = await controller.handle_drag(1, BoardColumn.EM_RISCO, BoardColumn.TRATAMENTO)

        assert result.outcome is DragOutcome.FAILED
        assert "timed out" in recorder.notices[-1].message

    @pytest.mark.asyncio
    async def test_unreachable_store_reports_failure_without_board(self, make_controller, recorder):
        controller = make_controller(UnreachableWorkflowStore())

        result = await controller.handle_drag(1, BoardColumn.EM_RISCO, BoardColumn.TRATAMENTO)

        assert result.outcome is DragOutcome.FAILED
        assert result.board is None
        assert not controller.is_pending
        assert recorder.notices[-1].level is NoticeLevel.ERROR
        assert "store unreachable" in recorder.notices[-1].message

    @pytest.mark.asyncio
    async def test_render_failure_after_applied_move_keeps_outcome(self, make_controller, monkeypatch):
        store = InMemoryWorkflowStore()
        controller = make_controller(store)

        async def unreachable():
            raise ConnectionError("store unreachable")

        monkeypatch.setattr(store, "get_all", unreachable)

        result = await controller.handle_drag(2, BoardColumn.EM_RISCO, BoardColumn.TRATAMENTO)

        assert result.outcome is DragOutcome.APPLIED
        assert result.board is None
        assert (await store.get(2)).status == WorkflowStatus.EM_TRATAMENTO


class TestUnknownCustomer:

    @pytest.mark.asyncio
    async def test_unknown_customer_rejected_without_writes(self, board_controller, workflow_store, recorder):
        result = await board_controller.handle_drag(404, BoardColumn.EM_RISCO, BoardColumn.TRATAMENTO)

        assert result.outcome is DragOutcome.REJECTED
        assert result.message == "Customer 404 not found"
        assert workflow_store.upsert_count == 0
        assert await workflow_store.get(404) is None
        assert recorder.notices[-1].level is NoticeLevel.WARNING
        assert recorder.notices[-1].customer_id == 404
        assert board_controller.get_statistics()["rejected"] == 1
