"""
Retention Board - Type Definitions.

============================================================
PURPOSE
============================================================
Transient view objects for the drag-and-drop retention board.

A Board is rebuilt from the authoritative stores on every
render. Nothing here is persisted or mutated after creation.

============================================================
COLUMNS
============================================================
EM_RISCO    ALERTA/CRÍTICO customers without a workflow
TRATAMENTO  workflow status em_tratamento
RESOLVIDO   workflow status resolvido
PERDIDO     workflow status perdido

OK-bucket customers without a workflow are not on the board.

============================================================
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from churn_scoring.types import NpsClassification, Pillar, RiskBucket
from retention_workflow.types import WorkflowStatus


# ============================================================
# ENUMS
# ============================================================


class BoardColumn(str, Enum):
    """Board columns, in display order."""

    EM_RISCO = "em_risco"
    TRATAMENTO = "tratamento"
    RESOLVIDO = "resolvido"
    PERDIDO = "perdido"

    @classmethod
    def all_columns(cls) -> List["BoardColumn"]:
        return [cls.EM_RISCO, cls.TRATAMENTO, cls.RESOLVIDO, cls.PERDIDO]

    @property
    def title(self) -> str:
        return COLUMN_TITLES[self]

    @property
    def workflow_status(self) -> Optional[WorkflowStatus]:
        """Workflow status a card in this column has; None for EM_RISCO."""
        return COLUMN_TO_STATUS.get(self)


COLUMN_TITLES: Dict[BoardColumn, str] = {
    BoardColumn.EM_RISCO: "Em Risco",
    BoardColumn.TRATAMENTO: "Em Tratamento",
    BoardColumn.RESOLVIDO: "Resolvidos",
    BoardColumn.PERDIDO: "Perdidos",
}

COLUMN_TO_STATUS: Dict[BoardColumn, WorkflowStatus] = {
    BoardColumn.TRATAMENTO: WorkflowStatus.EM_TRATAMENTO,
    BoardColumn.RESOLVIDO: WorkflowStatus.RESOLVIDO,
    BoardColumn.PERDIDO: WorkflowStatus.PERDIDO,
}

STATUS_TO_COLUMN: Dict[WorkflowStatus, BoardColumn] = {
    status: column for column, status in COLUMN_TO_STATUS.items()
}


class DragOutcome(str, Enum):
    """
    What happened to a drag gesture.

    - IGNORED_PENDING: another transition was in flight
    - NOOP: nothing to change
    - REJECTED: the target is not a valid drop
    - APPLIED: every step succeeded
    - FAILED: the first step failed, nothing changed
    - PARTIAL: a later step failed after an earlier one succeeded
    """

    IGNORED_PENDING = "ignored_pending"
    NOOP = "noop"
    REJECTED = "rejected"
    APPLIED = "applied"
    FAILED = "failed"
    PARTIAL = "partial"


# ============================================================
# VIEW OBJECTS
# ============================================================


@dataclass(frozen=True)
class BoardCard:
    """One customer on the board."""

    customer_id: int
    name: str
    score: int
    bucket: RiskBucket
    column: BoardColumn
    plan: Optional[str] = None
    driver: Optional[Pillar] = None
    monthly_amount: Optional[Decimal] = None
    days_overdue: Optional[int] = None
    nps_classification: Optional[NpsClassification] = None
    calls_30d: int = 0
    workflow_status: Optional[WorkflowStatus] = None
    tags: FrozenSet[str] = field(default_factory=frozenset)
    owner_id: Optional[str] = None

    @property
    def sort_key(self) -> Tuple[int, int]:
        return (-self.score, self.customer_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "customer_id": self.customer_id,
            "name": self.name,
            "plan": self.plan,
            "score": self.score,
            "bucket": self.bucket.value,
            "column": self.column.value,
            "driver": self.driver.value if self.driver else None,
            "monthly_amount": str(self.monthly_amount) if self.monthly_amount is not None else None,
            "days_overdue": self.days_overdue,
            "nps_classification": self.nps_classification.value if self.nps_classification else None,
            "calls_30d": self.calls_30d,
            "workflow_status": self.workflow_status.value if self.workflow_status else None,
            "tags": sorted(self.tags),
            "owner_id": self.owner_id,
        }


@dataclass(frozen=True)
class Board:
    """Ordered columns of cards."""

    columns: Dict[BoardColumn, Tuple[BoardCard, ...]]

    def cards(self, column: BoardColumn) -> Tuple[BoardCard, ...]:
        return self.columns.get(column, ())

    def find(self, customer_id: int) -> Optional[BoardCard]:
        for cards in self.columns.values():
            for card in cards:
                if card.customer_id == customer_id:
                    return card
        return None

    def column_of(self, customer_id: int) -> Optional[BoardColumn]:
        card = self.find(customer_id)
        return card.column if card else None

    @property
    def total_cards(self) -> int:
        return sum(len(cards) for cards in self.columns.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "columns": [
                {
                    "id": column.value,
                    "title": column.title,
                    "count": len(self.cards(column)),
                    "cards": [card.to_dict() for card in self.cards(column)],
                }
                for column in BoardColumn.all_columns()
            ],
            "total_cards": self.total_cards,
        }


@dataclass(frozen=True)
class DragResult:
    """Outcome of one drag gesture plus the re-rendered board."""

    outcome: DragOutcome
    customer_id: int
    source: BoardColumn
    target: BoardColumn
    message: str = ""
    completed_steps: Tuple[str, ...] = ()
    board: Optional[Board] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "customer_id": self.customer_id,
            "source": self.source.value,
            "target": self.target.value,
            "message": self.message,
            "completed_steps": list(self.completed_steps),
            "board": self.board.to_dict() if self.board else None,
        }
