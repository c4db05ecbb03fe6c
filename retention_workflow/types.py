"""
Retention Workflow - Type Definitions.

============================================================
PURPOSE
============================================================
The operator-facing record that tracks how an at-risk
customer is being handled.

A customer has no record until it is explicitly placed into
treatment. Absence of a record is itself a state.

============================================================
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Optional


class WorkflowStatus(str, Enum):
    """Status of an existing workflow record."""

    EM_TRATAMENTO = "em_tratamento"
    RESOLVIDO = "resolvido"
    PERDIDO = "perdido"


def normalize_tags(tags: Iterable[str]) -> FrozenSet[str]:
    """Strip whitespace and drop empty tags."""
    return frozenset(t.strip() for t in tags if t and t.strip())


@dataclass(frozen=True)
class WorkflowRecord:
    """
    Workflow state of one customer.

    At most one per customer. Never deleted.
    """

    customer_id: int
    status: WorkflowStatus
    created_at: datetime
    updated_at: datetime
    tags: FrozenSet[str] = field(default_factory=frozenset)
    owner_id: Optional[str] = None

    def with_status(self, status: WorkflowStatus, now: datetime) -> "WorkflowRecord":
        return replace(self, status=status, updated_at=now)

    def with_tags(self, tags: Iterable[str], now: datetime) -> "WorkflowRecord":
        return replace(self, tags=normalize_tags(tags), updated_at=now)

    def with_owner(self, owner_id: Optional[str], now: datetime) -> "WorkflowRecord":
        return replace(self, owner_id=owner_id, updated_at=now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "customer_id": self.customer_id,
            "status": self.status.value,
            "tags": sorted(self.tags),
            "owner_id": self.owner_id,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


# ============================================================
# INTERACTION LOG
# ============================================================

class CommentType(str, Enum):
    """Kind of entry in a customer's interaction log."""

    COMMENT = "comment"
    ACTION = "action"


# Quick actions an operator can log with one click
QUICK_ACTIONS: Dict[str, str] = {
    "whatsapp": "WhatsApp",
    "ligacao": "Ligar",
    "acordo": "Acordo",
    "visita": "Visita/OS",
}


@dataclass(frozen=True)
class WorkflowComment:
    """
    One note or logged action on a customer.

    Entries are append-only and independent of the workflow
    record: a customer can be commented on before treatment.
    """

    id: str
    customer_id: int
    type: CommentType
    body: str
    created_at: datetime
    author_id: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "type": self.type.value,
            "body": self.body,
            "author_id": self.author_id,
            "meta": dict(self.meta) if self.meta else None,
            "created_at": self.created_at.isoformat(),
        }


# ============================================================
# TAG CATALOG
# ============================================================

@dataclass(frozen=True)
class TagDefinition:
    """A named, colored tag operators can attach to workflows."""

    name: str
    color: str
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "color": self.color,
            "created_at": self.created_at.isoformat(),
        }
