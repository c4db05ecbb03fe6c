"""
Tag catalog endpoints.
"""

from fastapi import APIRouter, Depends, status

from core.exceptions import WorkflowError
from dashboard.dependencies import get_tag_catalog
from dashboard.errors import workflow_http_error
from dashboard.schemas import BaseResponse, CreateTagRequest, TagListResponse, TagResponse
from retention_workflow.interactions import TagCatalogService

router = APIRouter(prefix="/tags", tags=["Tag Catalog"])


@router.get("", response_model=TagListResponse)
async def list_tags(catalog: TagCatalogService = Depends(get_tag_catalog)):
    try:
        tags = await catalog.list_tags()
    except WorkflowError as e:
        raise workflow_http_error(e)
    return TagListResponse(data=[t.to_dict() for t in tags])


@router.post("", response_model=TagResponse, status_code=status.HTTP_201_CREATED)
async def create_tag(body: CreateTagRequest, catalog: TagCatalogService = Depends(get_tag_catalog)):
    """
    Create a tag.

    Posting an existing name recolors it.
    """
    try:
        tag = await catalog.create_tag(body.name, body.color)
    except WorkflowError as e:
        raise workflow_http_error(e)
    return TagResponse(data=tag.to_dict())


@router.delete("/{name}", response_model=BaseResponse)
async def delete_tag(name: str, catalog: TagCatalogService = Depends(get_tag_catalog)):
    try:
        await catalog.delete_tag(name)
    except WorkflowError as e:
        raise workflow_http_error(e)
    return BaseResponse(message=f"Tag {name} deleted")
