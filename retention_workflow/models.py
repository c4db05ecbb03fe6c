"""
Retention Workflow - Persistence Models.

============================================================
MODELS
============================================================
1. WorkflowModel: one row per customer in treatment
2. CommentModel: append-only interaction log
3. TagModel: tag catalog, keyed by name

customer_id is the primary key of WorkflowModel, which
enforces at most one workflow record per customer at the
database level.

============================================================
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import DateTime, Index, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from core.clock import ensure_utc
from database.engine import Base

from .types import CommentType, TagDefinition, WorkflowComment, WorkflowRecord, WorkflowStatus


class WorkflowModel(Base):
    """Workflow record of one customer."""

    __tablename__ = "retention_workflows"

    customer_id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=False,
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        index=True,
    )

    # Stored as a sorted JSON list
    tags: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
    )

    owner_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_retention_workflows_updated_at", "updated_at"),
    )

    def to_record(self) -> WorkflowRecord:
        return WorkflowRecord(
            customer_id=self.customer_id,
            status=WorkflowStatus(self.status),
            tags=frozenset(self.tags or ()),
            owner_id=self.owner_id,
            created_at=ensure_utc(self.created_at),
            updated_at=ensure_utc(self.updated_at),
        )

    def apply(self, record: WorkflowRecord) -> None:
        self.status = record.status.value
        self.tags = sorted(record.tags)
        self.owner_id = record.owner_id
        self.created_at = record.created_at
        self.updated_at = record.updated_at

    @classmethod
    def from_record(cls, record: WorkflowRecord) -> "WorkflowModel":
        model = cls(customer_id=record.customer_id)
        model.apply(record)
        return model


class CommentModel(Base):
    """One entry of a customer's interaction log."""

    __tablename__ = "retention_comments"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
    )

    customer_id: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    comment_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )

    body: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    author_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
    )

    meta: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        JSON,
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_retention_comments_customer_created", "customer_id", "created_at"),
    )

    def to_comment(self) -> WorkflowComment:
        return WorkflowComment(
            id=self.id,
            customer_id=self.customer_id,
            type=CommentType(self.comment_type),
            body=self.body,
            author_id=self.author_id,
            meta=self.meta,
            created_at=ensure_utc(self.created_at),
        )

    @classmethod
    def from_comment(cls, comment: WorkflowComment) -> "CommentModel":
        return cls(
            id=comment.id,
            customer_id=comment.customer_id,
            comment_type=comment.type.value,
            body=comment.body,
            author_id=comment.author_id,
            meta=dict(comment.meta) if comment.meta else None,
            created_at=comment.created_at,
        )


class TagModel(Base):
    """A tag definition in the catalog."""

    __tablename__ = "retention_tags"

    name: Mapped[str] = mapped_column(
        String(50),
        primary_key=True,
    )

    color: Mapped[str] = mapped_column(
        String(7),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    def to_tag(self) -> TagDefinition:
        return TagDefinition(name=self.name, color=self.color, created_at=ensure_utc(self.created_at))
