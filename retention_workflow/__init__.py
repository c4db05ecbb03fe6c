"""
Retention Workflow Package.

Per-customer workflow record (status, tags, owner), the
service that mutates it, and the operator interaction log and
tag catalog that sit beside it.

Components:
- types: WorkflowStatus, WorkflowRecord, WorkflowComment, TagDefinition
- state_machine: transition rules
- models / repository: store implementations
- service: WorkflowService
- interactions: InteractionLogService, TagCatalogService
"""

from .types import (
    WorkflowStatus,
    WorkflowRecord,
    normalize_tags,
    CommentType,
    QUICK_ACTIONS,
    WorkflowComment,
    TagDefinition,
)
from .state_machine import VALID_TRANSITIONS, TransitionGuard
from .repository import (
    WorkflowStore,
    SqlWorkflowStore,
    InMemoryWorkflowStore,
    CommentStore,
    SqlCommentStore,
    InMemoryCommentStore,
    TagCatalogStore,
    SqlTagCatalogStore,
    InMemoryTagCatalogStore,
)
from .service import WorkflowService, call_store, sorted_records
from .interactions import InteractionLogService, TagCatalogService


__all__ = [
    "WorkflowStatus",
    "WorkflowRecord",
    "normalize_tags",
    "CommentType",
    "QUICK_ACTIONS",
    "WorkflowComment",
    "TagDefinition",
    "VALID_TRANSITIONS",
    "TransitionGuard",
    "WorkflowStore",
    "SqlWorkflowStore",
    "InMemoryWorkflowStore",
    "CommentStore",
    "SqlCommentStore",
    "InMemoryCommentStore",
    "TagCatalogStore",
    "SqlTagCatalogStore",
    "InMemoryTagCatalogStore",
    "WorkflowService",
    "call_store",
    "sorted_records",
    "InteractionLogService",
    "TagCatalogService",
]
