"""
Retention Board - Column Projection.

Places scored customers into board columns. Pure: the same
assessments and workflow records always give the same board.
"""

from typing import Dict, List, Mapping, Optional

from churn_scoring.types import CustomerSnapshot, RiskAssessment, RiskBucket
from retention_workflow.types import WorkflowRecord

from .types import STATUS_TO_COLUMN, Board, BoardCard, BoardColumn


def column_for(bucket: RiskBucket, workflow: Optional[WorkflowRecord]) -> Optional[BoardColumn]:
    """
    Column of a customer, or None when it is not on the board.

    Workflow status takes priority over the bucket.
    """
    if workflow is not None:
        return STATUS_TO_COLUMN[workflow.status]
    if bucket.is_at_risk:
        return BoardColumn.EM_RISCO
    return None


def build_card(
    snapshot: CustomerSnapshot,
    assessment: RiskAssessment,
    workflow: Optional[WorkflowRecord],
    column: BoardColumn,
) -> BoardCard:
    return BoardCard(
        customer_id=snapshot.customer_id,
        name=snapshot.name,
        plan=snapshot.plan,
        score=assessment.score,
        bucket=assessment.bucket,
        column=column,
        driver=assessment.driver,
        monthly_amount=snapshot.monthly_amount,
        days_overdue=snapshot.days_overdue,
        nps_classification=snapshot.nps_classification,
        calls_30d=snapshot.calls_30d or 0,
        workflow_status=workflow.status if workflow else None,
        tags=workflow.tags if workflow else frozenset(),
        owner_id=workflow.owner_id if workflow else None,
    )


def build_board(
    snapshots: Mapping[int, CustomerSnapshot],
    assessments: Mapping[int, RiskAssessment],
    workflows: Mapping[int, WorkflowRecord],
) -> Board:
    """
    Project every scored customer onto the board.

    Cards are ordered by score descending, then customer id.
    """
    grouped: Dict[BoardColumn, List[BoardCard]] = {c: [] for c in BoardColumn.all_columns()}

    for customer_id, assessment in assessments.items():
        snapshot = snapshots.get(customer_id)
        if snapshot is None:
            continue
        workflow = workflows.get(customer_id)
        column = column_for(assessment.bucket, workflow)
        if column is None:
            continue
        grouped[column].append(build_card(snapshot, assessment, workflow, column))

    return Board(columns={
        column: tuple(sorted(cards, key=lambda c: c.sort_key))
        for column, cards in grouped.items()
    })
