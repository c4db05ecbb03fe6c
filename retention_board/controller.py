"""
Retention Board - Controller.

============================================================
PURPOSE
============================================================
Renders the board and applies drag gestures to the workflow
store.

DRAG FLOW:
1. Pending check: a drag arriving while another is in flight
   is ignored, not queued
2. Unknown customers are rejected before any store access
3. Read the customer's workflow record
4. resolve_drag() -> NoOp / Rejected / TransitionPlan
5. Run the plan as a TransitionSaga
6. On failure, notify the operator
7. Re-render the board from the store; if the store cannot
   be read, the result carries no board

The pending flag is set before the first await and always
cleared, whatever happens in between.

============================================================
"""

import logging
from typing import Dict, Optional, Tuple

from churn_scoring.config_store import ScoringConfigStore
from churn_scoring.engine import RiskScoringEngine
from churn_scoring.types import CustomerSnapshot, RiskAssessment
from core.exceptions import TransitionFailedError
from retention_workflow.service import WorkflowService

from .intents import NoOp, Rejected, TransitionPlan, resolve_drag
from .notices import NoticeDispatcher, NoticeLevel
from .projection import build_board
from .saga import SagaOutcome, TransitionSaga
from .sources import SnapshotSource, load_customer_snapshots, load_snapshots
from .types import Board, BoardColumn, DragOutcome, DragResult


logger = logging.getLogger(__name__)


class BoardController:
    """
    The retention board.

    One controller per board. The pending flag is board-wide.
    """

    def __init__(
        self,
        snapshot_source: SnapshotSource,
        workflow_service: WorkflowService,
        config_store: ScoringConfigStore,
        notices: Optional[NoticeDispatcher] = None,
    ):
        self._source = snapshot_source
        self._workflows = workflow_service
        self._config_store = config_store
        self._notices = notices or NoticeDispatcher()
        self._pending = False

        self._stats: Dict[str, int] = {outcome.value: 0 for outcome in DragOutcome}

    @property
    def is_pending(self) -> bool:
        return self._pending

    def get_statistics(self) -> Dict[str, int]:
        return dict(self._stats)

    # --------------------------------------------------------
    # RENDER
    # --------------------------------------------------------

    async def render(self) -> Board:
        """Score every customer and place it in its column."""
        engine = RiskScoringEngine(self._config_store.current())
        snapshots = await load_snapshots(self._source)
        workflows = await self._workflows.list_records()

        scored = engine.assess_snapshots(snapshots)
        board = build_board(
            snapshots={cid: pair[0] for cid, pair in scored.items()},
            assessments={cid: pair[1] for cid, pair in scored.items()},
            workflows=workflows,
        )
        logger.debug(f"Board rendered: {board.total_cards} cards")
        return board

    async def assess_customer(
        self,
        customer_id: int,
    ) -> Optional[Tuple[CustomerSnapshot, RiskAssessment]]:
        """The customer's winning snapshot and assessment, None if unknown."""
        engine = RiskScoringEngine(self._config_store.current())
        snapshots = await load_customer_snapshots(self._source, customer_id)
        return engine.assess_snapshots(snapshots).get(customer_id)

    # --------------------------------------------------------
    # DRAG
    # --------------------------------------------------------

    async def handle_drag(
        self,
        customer_id: int,
        source: BoardColumn,
        target: BoardColumn,
    ) -> DragResult:
        """
        Apply one drag gesture.

        Never raises for workflow failures: they come back as
        FAILED or PARTIAL and reach the operator as a notice.
        Snapshot source failures propagate.
        """
        if self._pending:
            logger.warning(
                f"Drag ignored for customer {customer_id} "
                f"({source.value} -> {target.value}): transition in flight"
            )
            self._stats[DragOutcome.IGNORED_PENDING.value] += 1
            return DragResult(
                outcome=DragOutcome.IGNORED_PENDING,
                customer_id=customer_id,
                source=source,
                target=target,
                message="Another move is still being applied",
            )

        self._pending = True
        try:
            outcome, message, steps = await self._apply_drag(customer_id, source, target)
            self._stats[outcome.value] += 1
            return DragResult(
                outcome=outcome,
                customer_id=customer_id,
                source=source,
                target=target,
                message=message,
                completed_steps=steps,
                board=await self._render_after_drag(customer_id),
            )
        finally:
            self._pending = False

    async def _render_after_drag(self, customer_id: int) -> Optional[Board]:
        try:
            return await self.render()
        except TransitionFailedError as e:
            logger.error(f"Board not re-rendered after drag of customer {customer_id}: {e.message}")
            return None

    async def _apply_drag(
        self,
        customer_id: int,
        source: BoardColumn,
        target: BoardColumn,
    ) -> Tuple[DragOutcome, str, Tuple[str, ...]]:
        if await self.assess_customer(customer_id) is None:
            reason = f"Customer {customer_id} not found"
            logger.warning(f"Drag rejected: {reason}")
            await self._notices.notify(
                NoticeLevel.WARNING,
                "Move not allowed",
                reason,
                customer_id=customer_id,
                context={"source": source.value, "target": target.value},
            )
            return DragOutcome.REJECTED, reason, ()

        try:
            workflow = await self._workflows.get_record(customer_id)
        except TransitionFailedError as e:
            await self._notices.notify(
                NoticeLevel.ERROR,
                "Move failed",
                f"Could not read the workflow of customer {customer_id}: {e.message}",
                customer_id=customer_id,
            )
            return DragOutcome.FAILED, e.message, ()

        intent = resolve_drag(customer_id, source, target, workflow)

        if isinstance(intent, NoOp):
            logger.debug(f"Drag no-op for customer {customer_id}: {intent.reason}")
            return DragOutcome.NOOP, intent.reason, ()

        if isinstance(intent, Rejected):
            logger.warning(f"Drag rejected for customer {customer_id}: {intent.reason}")
            await self._notices.notify(
                NoticeLevel.WARNING,
                "Move not allowed",
                intent.reason,
                customer_id=customer_id,
                context={"source": source.value, "target": target.value},
            )
            return DragOutcome.REJECTED, intent.reason, ()

        return await self._run_plan(intent, source, target)

    async def _run_plan(
        self,
        plan: TransitionPlan,
        source: BoardColumn,
        target: BoardColumn,
    ) -> Tuple[DragOutcome, str, Tuple[str, ...]]:
        customer_id = plan.customer_id
        logger.info(
            f"Applying drag for customer {customer_id}: {source.value} -> {target.value} "
            f"via {list(plan.step_names)}"
        )
        result = await TransitionSaga(plan, self._workflows).run()
        context = {
            "source": source.value,
            "target": target.value,
            "completed_steps": list(result.completed_steps),
            "failed_step": result.failed_step,
        }

        if result.outcome is SagaOutcome.COMPLETED:
            return DragOutcome.APPLIED, f"Moved to {target.title}", result.completed_steps

        error_message = result.error.message if result.error else "unknown error"

        if result.outcome is SagaOutcome.PARTIAL:
            message = (
                f"Customer {customer_id} was placed in treatment but could not be "
                f"marked {plan.target_status.value}: {error_message}"
            )
            logger.warning(message)
            await self._notices.notify(
                NoticeLevel.WARNING,
                "Move partially applied",
                message,
                customer_id=customer_id,
                context=context,
            )
            return DragOutcome.PARTIAL, message, result.completed_steps

        message = f"Could not move customer {customer_id} to {target.title}: {error_message}"
        await self._notices.notify(
            NoticeLevel.ERROR,
            "Move failed",
            message,
            customer_id=customer_id,
            context=context,
        )
        return DragOutcome.FAILED, message, result.completed_steps
