"""
Retention Board - Drag Intents.

============================================================
PURPOSE
============================================================
Turn a drag gesture (source column -> target column) into
what should happen to the workflow store.

RULES (first match wins):
1. target == source                    -> NoOp
2. target == EM_RISCO                  -> Rejected
3. no record, target == TRATAMENTO     -> [start_treatment]
4. no record, target RESOLVIDO/PERDIDO -> [start_treatment, set_status]
5. record, target status != status     -> [set_status]
   record, target status == status     -> NoOp

Pure. The store is only touched when a TransitionPlan runs.

============================================================
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from retention_workflow.types import WorkflowRecord, WorkflowStatus

from .types import BoardColumn


# ============================================================
# PLAN STEPS
# ============================================================


@dataclass(frozen=True)
class StartTreatment:
    """Create the workflow record in em_tratamento."""

    @property
    def name(self) -> str:
        return "start_treatment"


@dataclass(frozen=True)
class SetStatus:
    """Move an existing record to a status."""

    status: WorkflowStatus

    @property
    def name(self) -> str:
        return f"set_status:{self.status.value}"


PlanStep = Union[StartTreatment, SetStatus]


# ============================================================
# INTENTS
# ============================================================


@dataclass(frozen=True)
class NoOp:
    reason: str


@dataclass(frozen=True)
class Rejected:
    reason: str


@dataclass(frozen=True)
class TransitionPlan:
    """Ordered workflow steps for one drag."""

    customer_id: int
    target_status: WorkflowStatus
    steps: Tuple[PlanStep, ...]

    @property
    def step_names(self) -> Tuple[str, ...]:
        return tuple(step.name for step in self.steps)


DragIntent = Union[NoOp, Rejected, TransitionPlan]


def resolve_drag(
    customer_id: int,
    source: BoardColumn,
    target: BoardColumn,
    workflow: Optional[WorkflowRecord],
) -> DragIntent:
    """Decide what a drag gesture means. Never touches a store."""
    if target == source:
        return NoOp(f"Customer {customer_id} dropped on its own column")

    if target == BoardColumn.EM_RISCO:
        return Rejected(f"Customers cannot be moved back to {target.title}")

    target_status = target.workflow_status

    if workflow is None:
        if target_status == WorkflowStatus.EM_TRATAMENTO:
            steps: Tuple[PlanStep, ...] = (StartTreatment(),)
        else:
            steps = (StartTreatment(), SetStatus(target_status))
        return TransitionPlan(customer_id, target_status, steps)

    if workflow.status == target_status:
        return NoOp(f"Customer {customer_id} is already {target_status.value}")

    return TransitionPlan(customer_id, target_status, (SetStatus(target_status),))
