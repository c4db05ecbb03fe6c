"""
Retention Workflow - Repository.

============================================================
PURPOSE
============================================================
WorkflowStore implementations.

The store is a key-value table keyed by customer id with
upsert and read-all semantics. Business rules live in
WorkflowService; the store only persists records.

- SqlWorkflowStore: SQLAlchemy async, one transaction per call
- InMemoryWorkflowStore: dict-backed, for tests and dev

The interaction log (CommentStore) and the tag catalog
(TagCatalogStore) follow the same SQL / in-memory split.

============================================================
"""

import logging
from dataclasses import replace
from typing import Dict, List, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database.engine import transaction_scope

from .models import CommentModel, TagModel, WorkflowModel
from .types import TagDefinition, WorkflowComment, WorkflowRecord


logger = logging.getLogger(__name__)


class WorkflowStore(Protocol):
    """Persistence contract for workflow records."""

    async def get_all(self) -> Dict[int, WorkflowRecord]:
        ...

    async def get(self, customer_id: int) -> Optional[WorkflowRecord]:
        ...

    async def upsert(self, record: WorkflowRecord) -> WorkflowRecord:
        ...


# ============================================================
# SQL STORE
# ============================================================


class SqlWorkflowStore:
    """
    Workflow records in the retention_workflows table.

    ============================================================
    METHODS
    ============================================================
    - get_all: every record, keyed by customer id
    - get: one record or None
    - upsert: insert or overwrite the customer's row

    ============================================================
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    # --------------------------------------------------------
    # READ OPERATIONS
    # --------------------------------------------------------

    async def get_all(self) -> Dict[int, WorkflowRecord]:
        async with self._session_factory() as session:
            result = await session.execute(select(WorkflowModel))
            return {m.customer_id: m.to_record() for m in result.scalars().all()}

    async def get(self, customer_id: int) -> Optional[WorkflowRecord]:
        async with self._session_factory() as session:
            model = await session.get(WorkflowModel, customer_id)
            return model.to_record() if model else None

    # --------------------------------------------------------
    # WRITE OPERATIONS
    # --------------------------------------------------------

    async def upsert(self, record: WorkflowRecord) -> WorkflowRecord:
        async with transaction_scope(self._session_factory) as session:
            model = await session.get(WorkflowModel, record.customer_id)
            if model is None:
                model = WorkflowModel.from_record(record)
                session.add(model)
            else:
                model.apply(record)
            await session.flush()
            return model.to_record()


# ============================================================
# IN-MEMORY STORE
# ============================================================


class InMemoryWorkflowStore:
    """Dict-backed store. Counts writes so tests can assert on them."""

    def __init__(self, records: Optional[Dict[int, WorkflowRecord]] = None):
        self._records: Dict[int, WorkflowRecord] = dict(records or {})
        self.upsert_count = 0

    async def get_all(self) -> Dict[int, WorkflowRecord]:
        return dict(self._records)

    async def get(self, customer_id: int) -> Optional[WorkflowRecord]:
        return self._records.get(customer_id)

    async def upsert(self, record: WorkflowRecord) -> WorkflowRecord:
        self._records[record.customer_id] = record
        self.upsert_count += 1
        return record


# ============================================================
# INTERACTION LOG STORES
# ============================================================


class CommentStore(Protocol):
    """Append-only interaction log, newest entry first on read."""

    async def list_comments(self, customer_id: int) -> List[WorkflowComment]:
        ...

    async def add_comment(self, comment: WorkflowComment) -> WorkflowComment:
        ...


class SqlCommentStore:
    """Interaction log in the retention_comments table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def list_comments(self, customer_id: int) -> List[WorkflowComment]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(CommentModel)
                .where(CommentModel.customer_id == customer_id)
                .order_by(CommentModel.created_at.desc(), CommentModel.id.desc())
            )
            return [m.to_comment() for m in result.scalars().all()]

    async def add_comment(self, comment: WorkflowComment) -> WorkflowComment:
        async with transaction_scope(self._session_factory) as session:
            model = CommentModel.from_comment(comment)
            session.add(model)
            await session.flush()
            return model.to_comment()


class InMemoryCommentStore:

    def __init__(self):
        self._comments: Dict[int, List[WorkflowComment]] = {}

    async def list_comments(self, customer_id: int) -> List[WorkflowComment]:
        # Appended in time order; newest first on read
        return list(reversed(self._comments.get(customer_id, [])))

    async def add_comment(self, comment: WorkflowComment) -> WorkflowComment:
        self._comments.setdefault(comment.customer_id, []).append(comment)
        return comment


# ============================================================
# TAG CATALOG STORES
# ============================================================


class TagCatalogStore(Protocol):
    """Tag definitions keyed by name."""

    async def list_tags(self) -> List[TagDefinition]:
        ...

    async def upsert_tag(self, tag: TagDefinition) -> TagDefinition:
        ...

    async def delete_tag(self, name: str) -> bool:
        ...


class SqlTagCatalogStore:
    """
    Tag catalog in the retention_tags table.

    upsert_tag keeps the original created_at of an existing tag
    and only replaces its color.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def list_tags(self) -> List[TagDefinition]:
        async with self._session_factory() as session:
            result = await session.execute(select(TagModel).order_by(TagModel.name))
            return [m.to_tag() for m in result.scalars().all()]

    async def upsert_tag(self, tag: TagDefinition) -> TagDefinition:
        async with transaction_scope(self._session_factory) as session:
            model = await session.get(TagModel, tag.name)
            if model is None:
                model = TagModel(name=tag.name, color=tag.color, created_at=tag.created_at)
                session.add(model)
            else:
                model.color = tag.color
            await session.flush()
            return model.to_tag()

    async def delete_tag(self, name: str) -> bool:
        async with transaction_scope(self._session_factory) as session:
            model = await session.get(TagModel, name)
            if model is None:
                return False
            await session.delete(model)
            return True


class InMemoryTagCatalogStore:

    def __init__(self, tags: Optional[List[TagDefinition]] = None):
        self._tags: Dict[str, TagDefinition] = {t.name: t for t in tags or ()}

    async def list_tags(self) -> List[TagDefinition]:
        return [self._tags[name] for name in sorted(self._tags)]

    async def upsert_tag(self, tag: TagDefinition) -> TagDefinition:
        existing = self._tags.get(tag.name)
        if existing is not None:
            tag = replace(existing, color=tag.color)
        self._tags[tag.name] = tag
        return tag

    async def delete_tag(self, name: str) -> bool:
        return self._tags.pop(name, None) is not None
