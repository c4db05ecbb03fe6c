"""
Retention Board - Transition Saga.

============================================================
PURPOSE
============================================================
Run the workflow steps of a TransitionPlan in order.

- Steps run one after another, stopping at the first failure
- start_treatment is idempotent: AlreadyInTreatmentError
  counts as success
- No compensation: a failure after an earlier success leaves
  the earlier step applied (outcome PARTIAL)

============================================================
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from core.exceptions import AlreadyInTreatmentError, WorkflowError
from retention_workflow.service import WorkflowService
from retention_workflow.types import WorkflowRecord

from .intents import PlanStep, SetStatus, StartTreatment, TransitionPlan


logger = logging.getLogger(__name__)


class CompensationPolicy(str, Enum):
    """What the saga does with completed steps after a failure."""

    NONE = "none"


class SagaOutcome(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    PARTIAL = "partial"


@dataclass(frozen=True)
class SagaResult:
    """What the saga managed to do."""

    outcome: SagaOutcome
    completed_steps: Tuple[str, ...]
    failed_step: Optional[str] = None
    error: Optional[WorkflowError] = None
    record: Optional[WorkflowRecord] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is SagaOutcome.COMPLETED


class TransitionSaga:
    """One run of a TransitionPlan against a WorkflowService."""

    compensation = CompensationPolicy.NONE

    def __init__(self, plan: TransitionPlan, service: WorkflowService):
        self._plan = plan
        self._service = service

    @property
    def name(self) -> str:
        return f"drag:{self._plan.customer_id}:{self._plan.target_status.value}"

    async def _run_step(self, step: PlanStep) -> WorkflowRecord:
        customer_id = self._plan.customer_id
        if isinstance(step, StartTreatment):
            try:
                return await self._service.start_treatment(customer_id)
            except AlreadyInTreatmentError as e:
                logger.info(f"Saga {self.name}: customer already in treatment, continuing")
                return e.record
        if isinstance(step, SetStatus):
            return await self._service.set_status(customer_id, step.status)
        raise TypeError(f"Unknown saga step: {step!r}")

    async def run(self) -> SagaResult:
        completed: List[str] = []
        record: Optional[WorkflowRecord] = None

        for step in self._plan.steps:
            try:
                record = await self._run_step(step)
            except WorkflowError as e:
                outcome = SagaOutcome.PARTIAL if completed else SagaOutcome.FAILED
                logger.error(
                    f"Saga {self.name} stopped at {step.name} "
                    f"({outcome.value}, completed={completed}): {e.message}"
                )
                return SagaResult(
                    outcome=outcome,
                    completed_steps=tuple(completed),
                    failed_step=step.name,
                    error=e,
                    record=record,
                )
            completed.append(step.name)

        logger.info(f"Saga {self.name} completed: {completed}")
        return SagaResult(
            outcome=SagaOutcome.COMPLETED,
            completed_steps=tuple(completed),
            record=record,
        )
