"""
Dashboard - Error mapping.

Workflow errors become HTTP errors carrying the exception's
to_dict() as detail.
"""

from fastapi import HTTPException

from core.exceptions import (
    InvalidInteractionError,
    NoWorkflowError,
    TagNotFoundError,
    TransitionFailedError,
    WorkflowError,
)


def workflow_http_error(e: WorkflowError) -> HTTPException:
    if isinstance(e, (NoWorkflowError, TagNotFoundError)):
        return HTTPException(status_code=404, detail=e.to_dict())
    if isinstance(e, InvalidInteractionError):
        return HTTPException(status_code=422, detail=e.to_dict())
    if isinstance(e, TransitionFailedError):
        return HTTPException(status_code=502, detail=e.to_dict())
    return HTTPException(status_code=500, detail=e.to_dict())
