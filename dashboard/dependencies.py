"""
Dashboard - FastAPI dependencies.
"""
from fastapi import Depends, Request

from retention_board.controller import BoardController
from retention_workflow.interactions import InteractionLogService, TagCatalogService
from retention_workflow.service import WorkflowService
from churn_scoring.config_store import ScoringConfigStore

from .container import RetentionContainer
from .services import CustomerInsightsService


def get_container(request: Request) -> RetentionContainer:
    return request.app.state.container


def get_board(container: RetentionContainer = Depends(get_container)) -> BoardController:
    return container.board


def get_workflow_service(container: RetentionContainer = Depends(get_container)) -> WorkflowService:
    return container.workflow_service


def get_config_store(container: RetentionContainer = Depends(get_container)) -> ScoringConfigStore:
    return container.config_store


def get_insights(container: RetentionContainer = Depends(get_container)) -> CustomerInsightsService:
    return CustomerInsightsService(container)


def get_interactions(container: RetentionContainer = Depends(get_container)) -> InteractionLogService:
    return container.interactions


def get_tag_catalog(container: RetentionContainer = Depends(get_container)) -> TagCatalogService:
    return container.tags
