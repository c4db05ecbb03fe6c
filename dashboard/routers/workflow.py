"""
Workflow endpoints: list, start treatment, status/tags/owner, interaction log.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status

from core.exceptions import AlreadyInTreatmentError, WorkflowError
from dashboard.dependencies import get_interactions, get_workflow_service
from dashboard.errors import workflow_http_error
from dashboard.schemas import (
    AddCommentRequest,
    CommentListResponse,
    CommentResponse,
    OwnerUpdateRequest,
    RecordActionRequest,
    StartTreatmentRequest,
    StatusUpdateRequest,
    TagsUpdateRequest,
    WorkflowListResponse,
    WorkflowResponse,
)
from retention_workflow.interactions import InteractionLogService
from retention_workflow.service import WorkflowService, sorted_records

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/workflow", tags=["Retention Workflow"])


# =============================================================
# READ
# =============================================================

@router.get("", response_model=WorkflowListResponse)
async def list_workflows(service: WorkflowService = Depends(get_workflow_service)):
    """All workflow records, ordered by customer id."""
    try:
        records = await service.list_records()
    except WorkflowError as e:
        raise workflow_http_error(e)
    return WorkflowListResponse(data=[r.to_dict() for r in sorted_records(records)])


@router.get("/{customer_id}", response_model=WorkflowResponse)
async def get_workflow(customer_id: int, service: WorkflowService = Depends(get_workflow_service)):
    try:
        record = await service.get_record(customer_id)
    except WorkflowError as e:
        raise workflow_http_error(e)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Customer {customer_id} has no workflow record")
    return WorkflowResponse(data=record.to_dict())


# =============================================================
# MUTATIONS
# =============================================================

@router.post("/{customer_id}/start", response_model=WorkflowResponse, status_code=status.HTTP_201_CREATED)
async def start_treatment(
    customer_id: int,
    response: Response,
    body: Optional[StartTreatmentRequest] = None,
    service: WorkflowService = Depends(get_workflow_service),
):
    """
    Place a customer into treatment.

    201 when the record is created. 200 with a message and the
    existing record when the customer is already in the workflow.
    """
    tags = body.tags if body else []
    try:
        record = await service.start_treatment(customer_id, tags)
    except AlreadyInTreatmentError as e:
        response.status_code = status.HTTP_200_OK
        return WorkflowResponse(message=e.message, data=e.record.to_dict())
    except WorkflowError as e:
        raise workflow_http_error(e)
    return WorkflowResponse(data=record.to_dict())


@router.put("/{customer_id}/status", response_model=WorkflowResponse)
async def update_status(
    customer_id: int,
    body: StatusUpdateRequest,
    service: WorkflowService = Depends(get_workflow_service),
):
    try:
        record = await service.set_status(customer_id, body.status)
    except WorkflowError as e:
        raise workflow_http_error(e)
    return WorkflowResponse(data=record.to_dict())


@router.put("/{customer_id}/tags", response_model=WorkflowResponse)
async def update_tags(
    customer_id: int,
    body: TagsUpdateRequest,
    service: WorkflowService = Depends(get_workflow_service),
):
    """Replace the customer's tags."""
    try:
        record = await service.set_tags(customer_id, body.tags)
    except WorkflowError as e:
        raise workflow_http_error(e)
    return WorkflowResponse(data=record.to_dict())


@router.put("/{customer_id}/owner", response_model=WorkflowResponse)
async def update_owner(
    customer_id: int,
    body: OwnerUpdateRequest,
    service: WorkflowService = Depends(get_workflow_service),
):
    try:
        record = await service.set_owner(customer_id, body.owner_id)
    except WorkflowError as e:
        raise workflow_http_error(e)
    return WorkflowResponse(data=record.to_dict())


# =============================================================
# INTERACTION LOG
# =============================================================

@router.get("/{customer_id}/comments", response_model=CommentListResponse)
async def list_comments(
    customer_id: int,
    interactions: InteractionLogService = Depends(get_interactions),
):
    """The customer's comments and logged actions, newest first."""
    try:
        comments = await interactions.list_comments(customer_id)
    except WorkflowError as e:
        raise workflow_http_error(e)
    return CommentListResponse(data=[c.to_dict() for c in comments])


@router.post("/{customer_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    customer_id: int,
    body: AddCommentRequest,
    interactions: InteractionLogService = Depends(get_interactions),
):
    try:
        comment = await interactions.add_comment(customer_id, body.body, author_id=body.author_id)
    except WorkflowError as e:
        raise workflow_http_error(e)
    return CommentResponse(data=comment.to_dict())


@router.post("/{customer_id}/actions", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def record_action(
    customer_id: int,
    body: RecordActionRequest,
    interactions: InteractionLogService = Depends(get_interactions),
):
    """Log a quick action (whatsapp, ligacao, acordo, visita)."""
    try:
        comment = await interactions.record_action(customer_id, body.action_type, author_id=body.author_id)
    except WorkflowError as e:
        raise workflow_http_error(e)
    return CommentResponse(data=comment.to_dict())
