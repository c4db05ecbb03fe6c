"""
Retention Workflow - Interactions.

============================================================
PURPOSE
============================================================
What operators write down about a customer, and the tags
they can choose from.

1. Interaction log: free-text comments and one-click actions
   ("Ação: Ligar"), newest first
2. Tag catalog: named, colored tags, created or recolored by
   name

Neither touches the workflow record. Tags on a record are
free text; the catalog is the palette the UI offers.

============================================================
"""

import logging
import re
import uuid
from typing import Any, Callable, Dict, List, Optional

from core.clock import ClockProtocol, SystemClock
from core.exceptions import InvalidInteractionError, TagNotFoundError

from .repository import CommentStore, TagCatalogStore
from .service import call_store
from .types import QUICK_ACTIONS, CommentType, TagDefinition, WorkflowComment


logger = logging.getLogger(__name__)


MAX_COMMENT_LENGTH = 4000
MAX_TAG_NAME_LENGTH = 50
TAG_COLOR_PATTERN = re.compile(r"^#[0-9a-fA-F]{6}$")


def _new_id() -> str:
    return str(uuid.uuid4())


# =============================================================
# INTERACTION LOG
# =============================================================

class InteractionLogService:
    """
    Comments and logged actions per customer.

    Store failures surface as TransitionFailedError, like the
    workflow operations.
    """

    def __init__(
        self,
        store: CommentStore,
        clock: Optional[ClockProtocol] = None,
        timeout_seconds: Optional[float] = None,
        id_factory: Callable[[], str] = _new_id,
    ):
        self._store = store
        self._clock = clock or SystemClock()
        self._timeout = timeout_seconds
        self._new_id = id_factory

    async def list_comments(self, customer_id: int) -> List[WorkflowComment]:
        return await call_store(
            customer_id, "list_comments", self._store.list_comments(customer_id), self._timeout
        )

    async def add_comment(
        self,
        customer_id: int,
        body: str,
        author_id: Optional[str] = None,
        comment_type: CommentType = CommentType.COMMENT,
        meta: Optional[Dict[str, Any]] = None,
    ) -> WorkflowComment:
        """
        Append a comment.

        Raises:
            InvalidInteractionError: blank or oversized body
            TransitionFailedError: store failure or timeout
        """
        text = (body or "").strip()
        if not text:
            raise InvalidInteractionError("body", body, "must not be blank", customer_id=customer_id)
        if len(text) > MAX_COMMENT_LENGTH:
            raise InvalidInteractionError(
                "body", text[:20], f"longer than {MAX_COMMENT_LENGTH} characters", customer_id=customer_id
            )

        comment = WorkflowComment(
            id=self._new_id(),
            customer_id=customer_id,
            type=comment_type,
            body=text,
            author_id=author_id,
            meta=dict(meta) if meta else None,
            created_at=self._clock.now(),
        )
        saved = await call_store(customer_id, "add_comment", self._store.add_comment(comment), self._timeout)
        logger.info(f"Customer {customer_id}: {comment_type.value} logged by {author_id or '-'}")
        return saved

    async def record_action(
        self,
        customer_id: int,
        action_type: str,
        author_id: Optional[str] = None,
    ) -> WorkflowComment:
        """Log one of QUICK_ACTIONS as an 'Ação: <label>' entry."""
        label = QUICK_ACTIONS.get(action_type)
        if label is None:
            raise InvalidInteractionError(
                "action_type",
                action_type,
                f"expected one of {sorted(QUICK_ACTIONS)}",
                customer_id=customer_id,
            )
        return await self.add_comment(
            customer_id,
            f"Ação: {label}",
            author_id=author_id,
            comment_type=CommentType.ACTION,
            meta={"action_type": action_type},
        )


# =============================================================
# TAG CATALOG
# =============================================================

class TagCatalogService:
    """Create, recolor, list and delete catalog tags."""

    def __init__(
        self,
        store: TagCatalogStore,
        clock: Optional[ClockProtocol] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self._store = store
        self._clock = clock or SystemClock()
        self._timeout = timeout_seconds

    async def list_tags(self) -> List[TagDefinition]:
        return await call_store(None, "list_tags", self._store.list_tags(), self._timeout)

    async def create_tag(self, name: str, color: str) -> TagDefinition:
        """Create a tag, or recolor it when the name already exists."""
        clean = (name or "").strip()
        if not clean:
            raise InvalidInteractionError("tag name", name, "must not be blank")
        if len(clean) > MAX_TAG_NAME_LENGTH:
            raise InvalidInteractionError("tag name", clean, f"longer than {MAX_TAG_NAME_LENGTH} characters")
        if not TAG_COLOR_PATTERN.match(color or ""):
            raise InvalidInteractionError("tag color", color, "expected #rrggbb")

        tag = TagDefinition(name=clean, color=color.lower(), created_at=self._clock.now())
        saved = await call_store(None, "create_tag", self._store.upsert_tag(tag), self._timeout)
        logger.info(f"Tag catalog: {saved.name} ({saved.color})")
        return saved

    async def delete_tag(self, name: str) -> None:
        """
        Remove a tag from the catalog.

        Workflow records that carry the tag keep it.

        Raises:
            TagNotFoundError: no tag with this name
        """
        clean = (name or "").strip()
        deleted = await call_store(None, "delete_tag", self._store.delete_tag(clean), self._timeout)
        if not deleted:
            raise TagNotFoundError(clean)
        logger.info(f"Tag catalog: {clean} removed")
