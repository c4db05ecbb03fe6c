"""
Pydantic schemas for the Retention API.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from retention_board.types import BoardColumn
from retention_workflow.types import CommentType, WorkflowStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =======================
# COMMON
# =======================

class BaseResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    timestamp: datetime = Field(default_factory=_utcnow)


# =======================
# 1. BOARD
# =======================

class BoardCardSchema(BaseModel):
    customer_id: int
    name: str
    plan: Optional[str] = None
    score: int
    bucket: str
    column: BoardColumn
    driver: Optional[str] = None
    monthly_amount: Optional[str] = None
    days_overdue: Optional[int] = None
    nps_classification: Optional[str] = None
    calls_30d: int = 0
    workflow_status: Optional[WorkflowStatus] = None
    tags: List[str] = Field(default_factory=list)
    owner_id: Optional[str] = None


class BoardColumnSchema(BaseModel):
    id: BoardColumn
    title: str
    count: int
    cards: List[BoardCardSchema]


class BoardSchema(BaseModel):
    columns: List[BoardColumnSchema]
    total_cards: int


class BoardResponse(BaseResponse):
    data: BoardSchema


class DragRequest(BaseModel):
    customer_id: int
    source: BoardColumn
    target: BoardColumn


class DragResultSchema(BaseModel):
    outcome: str
    customer_id: int
    source: BoardColumn
    target: BoardColumn
    message: str = ""
    completed_steps: List[str] = Field(default_factory=list)
    board: Optional[BoardSchema] = None


class DragResponse(BaseResponse):
    data: DragResultSchema


# =======================
# 2. WORKFLOW
# =======================

class WorkflowRecordSchema(BaseModel):
    customer_id: int
    status: WorkflowStatus
    tags: List[str]
    owner_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class WorkflowResponse(BaseResponse):
    data: WorkflowRecordSchema


class WorkflowListResponse(BaseResponse):
    data: List[WorkflowRecordSchema]


class StartTreatmentRequest(BaseModel):
    tags: List[str] = Field(default_factory=list)


class StatusUpdateRequest(BaseModel):
    status: WorkflowStatus


class TagsUpdateRequest(BaseModel):
    tags: List[str]


class OwnerUpdateRequest(BaseModel):
    owner_id: Optional[str] = None


class CommentSchema(BaseModel):
    id: str
    customer_id: int
    type: CommentType
    body: str
    author_id: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None
    created_at: datetime


class CommentResponse(BaseResponse):
    data: CommentSchema


class CommentListResponse(BaseResponse):
    data: List[CommentSchema]


class AddCommentRequest(BaseModel):
    body: str
    author_id: Optional[str] = None


class RecordActionRequest(BaseModel):
    action_type: str
    author_id: Optional[str] = None


# =======================
# 3. CUSTOMERS
# =======================

class AssessmentSchema(BaseModel):
    customer_id: int
    name: str
    score: int
    bucket: str
    driver: Optional[str] = None
    pillars: Dict[str, int]
    summary: str


class AssessmentResponse(BaseResponse):
    data: AssessmentSchema


class RiskEventSchema(BaseModel):
    id: str
    customer_id: int
    type: str
    label: str
    impact_score: int
    description: Optional[str] = None
    occurred_at: datetime
    synthetic: bool


class TimelineResponse(BaseResponse):
    data: List[RiskEventSchema]


# =======================
# 4. SCORING CONFIG
# =======================

class ScoringConfigSchema(BaseModel):
    weights: Dict[str, int]
    thresholds: Dict[str, int]


class ScoringConfigResponse(BaseResponse):
    data: ScoringConfigSchema


class ScoringConfigUpdate(BaseModel):
    """
    Proposed configuration.

    Values are validated by the config store; booleans and
    fractional numbers are rejected, never coerced.
    """

    weights: Dict[str, Any]
    thresholds: Optional[Dict[str, Any]] = None


# =======================
# 5. TAG CATALOG
# =======================

class TagSchema(BaseModel):
    name: str
    color: str
    created_at: datetime


class TagResponse(BaseResponse):
    data: TagSchema


class TagListResponse(BaseResponse):
    data: List[TagSchema]


class CreateTagRequest(BaseModel):
    name: str
    color: str
