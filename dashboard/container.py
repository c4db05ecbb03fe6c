"""
Dashboard - Service Container.

Wires stores, services and the board controller together once
per process. The FastAPI app keeps the container on app.state.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from churn_scoring.config_store import (
    InMemoryConfigBackend,
    JsonFileConfigBackend,
    ScoringConfigStore,
)
from core.clock import ClockProtocol, SystemClock
from core.settings import RetentionSettings
from database.engine import (
    create_all_tables,
    create_database_engine,
    create_session_factory,
    verify_database_connection,
)
from retention_board.controller import BoardController
from retention_board.notices import (
    LoggingNoticeSender,
    NoticeDispatcher,
    NoticeSender,
    WebhookNoticeSender,
)
from retention_board.sources import InMemorySnapshotSource, SnapshotSource, SqlSnapshotSource
from retention_workflow.interactions import InteractionLogService, TagCatalogService
from retention_workflow.repository import (
    CommentStore,
    InMemoryCommentStore,
    InMemoryTagCatalogStore,
    InMemoryWorkflowStore,
    SqlCommentStore,
    SqlTagCatalogStore,
    SqlWorkflowStore,
    TagCatalogStore,
    WorkflowStore,
)
from retention_workflow.service import WorkflowService
from risk_timeline.repository import InMemoryRiskEventStore, RiskEventStore, SqlRiskEventStore
from risk_timeline.synthesizer import EventTimelineSynthesizer


logger = logging.getLogger(__name__)


@dataclass
class RetentionContainer:
    """Everything the HTTP layer needs."""

    settings: RetentionSettings
    clock: ClockProtocol
    config_store: ScoringConfigStore
    snapshot_source: SnapshotSource
    workflow_store: WorkflowStore
    event_store: RiskEventStore
    workflow_service: WorkflowService
    comment_store: CommentStore
    tag_store: TagCatalogStore
    interactions: InteractionLogService
    tags: TagCatalogService
    notices: NoticeDispatcher
    board: BoardController
    timeline: EventTimelineSynthesizer
    engine: Optional[AsyncEngine] = field(default=None, repr=False)

    async def startup(self) -> None:
        if self.engine is not None:
            # Registers every model on Base.metadata
            import retention_board.models  # noqa: F401
            import retention_workflow.models  # noqa: F401
            import risk_timeline.models  # noqa: F401

            await verify_database_connection(self.engine)
            await create_all_tables(self.engine)

    async def shutdown(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
            logger.info("Database engine disposed")


def _notice_senders(settings: RetentionSettings) -> List[NoticeSender]:
    senders: List[NoticeSender] = [LoggingNoticeSender()]
    if settings.notice_webhook_url:
        senders.append(WebhookNoticeSender(settings.notice_webhook_url))
    return senders


def _assemble(
    settings: RetentionSettings,
    clock: ClockProtocol,
    config_store: ScoringConfigStore,
    snapshot_source: SnapshotSource,
    workflow_store: WorkflowStore,
    event_store: RiskEventStore,
    comment_store: CommentStore,
    tag_store: TagCatalogStore,
    notices: NoticeDispatcher,
    engine: Optional[AsyncEngine] = None,
) -> RetentionContainer:
    timeout = settings.transition_timeout_seconds
    workflow_service = WorkflowService(workflow_store, clock=clock, timeout_seconds=timeout)
    return RetentionContainer(
        settings=settings,
        clock=clock,
        config_store=config_store,
        snapshot_source=snapshot_source,
        workflow_store=workflow_store,
        event_store=event_store,
        workflow_service=workflow_service,
        comment_store=comment_store,
        tag_store=tag_store,
        interactions=InteractionLogService(comment_store, clock=clock, timeout_seconds=timeout),
        tags=TagCatalogService(tag_store, clock=clock, timeout_seconds=timeout),
        notices=notices,
        board=BoardController(snapshot_source, workflow_service, config_store, notices),
        timeline=EventTimelineSynthesizer(clock),
        engine=engine,
    )


def build_container(settings: Optional[RetentionSettings] = None) -> RetentionContainer:
    """SQL-backed container for a real deployment."""
    settings = settings or RetentionSettings.from_env()
    clock = SystemClock()
    engine = create_database_engine(settings.database_url)
    session_factory = create_session_factory(engine)

    logger.info(f"Building retention container: {settings.to_dict()}")

    return _assemble(
        settings=settings,
        clock=clock,
        config_store=ScoringConfigStore(JsonFileConfigBackend(settings.scoring_config_path)),
        snapshot_source=SqlSnapshotSource(session_factory, clock),
        workflow_store=SqlWorkflowStore(session_factory),
        event_store=SqlRiskEventStore(session_factory),
        comment_store=SqlCommentStore(session_factory),
        tag_store=SqlTagCatalogStore(session_factory),
        notices=NoticeDispatcher(_notice_senders(settings), clock),
        engine=engine,
    )


def build_in_memory_container(
    snapshot_source: Optional[SnapshotSource] = None,
    workflow_store: Optional[WorkflowStore] = None,
    event_store: Optional[RiskEventStore] = None,
    config_store: Optional[ScoringConfigStore] = None,
    comment_store: Optional[CommentStore] = None,
    tag_store: Optional[TagCatalogStore] = None,
    notice_senders: Optional[List[NoticeSender]] = None,
    clock: Optional[ClockProtocol] = None,
    settings: Optional[RetentionSettings] = None,
) -> RetentionContainer:
    """Container over in-memory stores, for tests and local demos."""
    settings = settings or RetentionSettings()
    clock = clock or SystemClock()
    return _assemble(
        settings=settings,
        clock=clock,
        config_store=config_store or ScoringConfigStore(InMemoryConfigBackend()),
        snapshot_source=snapshot_source or InMemorySnapshotSource(),
        workflow_store=workflow_store or InMemoryWorkflowStore(),
        event_store=event_store or InMemoryRiskEventStore(),
        comment_store=comment_store or InMemoryCommentStore(),
        tag_store=tag_store or InMemoryTagCatalogStore(),
        notices=NoticeDispatcher(notice_senders or [LoggingNoticeSender()], clock),
    )
