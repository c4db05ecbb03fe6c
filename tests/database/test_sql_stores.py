"""
Tests for the SQL-backed stores.

============================================================
PURPOSE
============================================================
Run the SQLAlchemy stores against a throwaway SQLite file:
1. Workflow upsert and reads
2. Risk events ordering
3. Snapshot source and live signals
4. Interaction log and tag catalog
5. Transaction rollback and container startup

============================================================
"""

from datetime import timedelta
from decimal import Decimal

import pytest
import pytest_asyncio

pytest.importorskip("aiosqlite")

from churn_scoring.types import ChurnStatus, NpsClassification
from core.clock import MockClock
from core.settings import RetentionSettings
from dashboard.container import build_container
from database.engine import (
    create_all_tables,
    create_database_engine,
    create_session_factory,
    transaction_scope,
    verify_database_connection,
)
from retention_board.models import CustomerSnapshotModel, NpsResponseModel, SupportTicketModel
from retention_board.sources import SqlSnapshotSource, load_snapshots
from retention_workflow.models import WorkflowModel
from retention_workflow.repository import SqlCommentStore, SqlTagCatalogStore, SqlWorkflowStore
from retention_workflow.service import WorkflowService
from retention_workflow.types import CommentType, TagDefinition, WorkflowComment, WorkflowRecord, WorkflowStatus
from risk_timeline.models import RiskEventModel
from risk_timeline.repository import SqlRiskEventStore
from tests.conftest import NOW


# ============================================================
# FIXTURES
# ============================================================

@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_database_engine(f"sqlite+aiosqlite:///{tmp_path / 'retention.db'}")
    await create_all_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


async def add_rows(session_factory, *rows):
    async with transaction_scope(session_factory) as session:
        session.add_all(rows)


# ============================================================
# ENGINE
# ============================================================

class TestEngine:

    @pytest.mark.asyncio
    async def test_verify_connection(self, engine):
        assert await verify_database_connection(engine)

    @pytest.mark.asyncio
    async def test_transaction_rolls_back_on_error(self, session_factory):
        with pytest.raises(RuntimeError):
            async with transaction_scope(session_factory) as session:
                session.add(WorkflowModel.from_record(WorkflowRecord(
                    customer_id=1,
                    status=WorkflowStatus.EM_TRATAMENTO,
                    created_at=NOW,
                    updated_at=NOW,
                )))
                await session.flush()
                raise RuntimeError("abort")

        assert await SqlWorkflowStore(session_factory).get(1) is None


# ============================================================
# WORKFLOW STORE
# ============================================================

class TestSqlWorkflowStore:

    @pytest.mark.asyncio
    async def test_upsert_and_read(self, session_factory):
        store = SqlWorkflowStore(session_factory)
        record = WorkflowRecord(
            customer_id=7,
            status=WorkflowStatus.EM_TRATAMENTO,
            created_at=NOW,
            updated_at=NOW,
            tags=frozenset({"vip", "b2b"}),
        )

        await store.upsert(record)

        assert await store.get(7) == record
        assert await store.get_all() == {7: record}

    @pytest.mark.asyncio
    async def test_upsert_overwrites(self, session_factory):
        store = SqlWorkflowStore(session_factory)
        record = WorkflowRecord(
            customer_id=7, status=WorkflowStatus.EM_TRATAMENTO, created_at=NOW, updated_at=NOW
        )
        await store.upsert(record)

        later = record.with_owner("ana", NOW + timedelta(hours=1)).with_status(
            WorkflowStatus.RESOLVIDO, NOW + timedelta(hours=1)
        )
        await store.upsert(later)

        stored = await store.get(7)
        assert stored.status == WorkflowStatus.RESOLVIDO
        assert stored.owner_id == "ana"
        assert stored.created_at == NOW
        assert len(await store.get_all()) == 1

    @pytest.mark.asyncio
    async def test_service_over_sql_store(self, session_factory):
        service = WorkflowService(SqlWorkflowStore(session_factory), clock=MockClock(NOW))

        await service.start_treatment(3, ["vip"])
        record = await service.set_status(3, WorkflowStatus.PERDIDO)

        assert record.status == WorkflowStatus.PERDIDO
        assert (await service.get_record(3)).tags == frozenset({"vip"})


# ============================================================
# INTERACTION LOG AND TAG CATALOG
# ============================================================

class TestSqlInteractionStores:

    @pytest.mark.asyncio
    async def test_comments_newest_first(self, session_factory):
        store = SqlCommentStore(session_factory)
        await store.add_comment(WorkflowComment(
            id="c-1", customer_id=7, type=CommentType.COMMENT, body="primeiro", created_at=NOW,
        ))
        await store.add_comment(WorkflowComment(
            id="c-2", customer_id=7, type=CommentType.ACTION, body="Ação: Ligar",
            created_at=NOW + timedelta(minutes=5), author_id="ana", meta={"action_type": "ligacao"},
        ))
        await store.add_comment(WorkflowComment(
            id="c-3", customer_id=8, type=CommentType.COMMENT, body="outro", created_at=NOW,
        ))

        comments = await store.list_comments(7)

        assert [c.id for c in comments] == ["c-2", "c-1"]
        assert comments[0].type is CommentType.ACTION
        assert comments[0].meta == {"action_type": "ligacao"}
        assert comments[0].created_at == NOW + timedelta(minutes=5)

    @pytest.mark.asyncio
    async def test_tag_catalog(self, session_factory):
        store = SqlTagCatalogStore(session_factory)
        await store.upsert_tag(TagDefinition(name="vip", color="#22c55e", created_at=NOW))
        await store.upsert_tag(TagDefinition(name="b2b", color="#3b82f6", created_at=NOW))

        recolored = await store.upsert_tag(
            TagDefinition(name="vip", color="#ef4444", created_at=NOW + timedelta(days=1))
        )

        assert recolored.color == "#ef4444"
        assert recolored.created_at == NOW
        assert [t.name for t in await store.list_tags()] == ["b2b", "vip"]
        assert await store.delete_tag("b2b")
        assert not await store.delete_tag("b2b")
        assert [t.name for t in await store.list_tags()] == ["vip"]

# ============================================================
# RISK EVENT STORE
# ============================================================

class TestSqlRiskEventStore:

    @pytest.mark.asyncio
    async def test_events_oldest_first(self, session_factory):
        await add_rows(
            session_factory,
            RiskEventModel(id="b", customer_id=1, event_type="nps_detrator", impact_score=30,
                           occurred_at=NOW),
            RiskEventModel(id="a", customer_id=1, event_type="chamado_reincidente", impact_score=25,
                           occurred_at=NOW - timedelta(days=1)),
            RiskEventModel(id="c", customer_id=2, event_type="nps_detrator", impact_score=30,
                           occurred_at=NOW),
        )

        events = await SqlRiskEventStore(session_factory).list_events(1)

        assert [e.id for e in events] == ["a", "b"]
        assert events[0].occurred_at == NOW - timedelta(days=1)
        assert not events[0].synthetic


# ============================================================
# SNAPSHOT SOURCE
# ============================================================

class TestSqlSnapshotSource:

    @pytest.mark.asyncio
    async def test_snapshot_mapping(self, session_factory):
        await add_rows(session_factory, CustomerSnapshotModel(
            customer_id=4,
            name="Cliente 4",
            plan="Fibra 500MB",
            monthly_amount=Decimal("129.90"),
            days_overdue=45,
            score_financial=30.0,
            calls_30d=1,
            nps_classification="DETRATOR",
            churn_status="cancelled",
            cancelled_at=NOW - timedelta(days=2),
            as_of=NOW,
        ))

        [snapshot] = await SqlSnapshotSource(session_factory, MockClock(NOW)).list_customer_snapshots()

        assert snapshot.customer_id == 4
        assert snapshot.raw_financial == 30.0
        assert snapshot.nps_classification is NpsClassification.DETRACTOR
        assert snapshot.churn_status is ChurnStatus.CANCELLED
        assert snapshot.cancelled_at == NOW - timedelta(days=2)

    @pytest.mark.asyncio
    async def test_live_signals(self, session_factory):
        await add_rows(
            session_factory,
            CustomerSnapshotModel(customer_id=4, name="Cliente 4", calls_30d=0, as_of=NOW),
            SupportTicketModel(customer_id=4, opened_at=NOW - timedelta(days=2)),
            SupportTicketModel(customer_id=4, opened_at=NOW - timedelta(days=10)),
            SupportTicketModel(customer_id=4, opened_at=NOW - timedelta(days=60)),
            NpsResponseModel(customer_id=4, score=9, classification="promotor",
                             answered_at=NOW - timedelta(days=90)),
            NpsResponseModel(customer_id=4, score=2, classification="detrator",
                             answered_at=NOW - timedelta(days=3)),
        )
        source = SqlSnapshotSource(session_factory, MockClock(NOW))

        assert await source.get_call_counts(4, 30) == 2
        assert await source.get_call_counts(4, 90) == 3
        reading = await source.get_nps_classification(4)
        assert reading.classification is NpsClassification.DETRACTOR
        assert reading.score == 2

        [snapshot] = await load_snapshots(source)
        assert snapshot.calls_30d == 2
        assert snapshot.is_detractor

    @pytest.mark.asyncio
    async def test_no_calls_falls_back_to_snapshot(self, session_factory):
        await add_rows(
            session_factory,
            CustomerSnapshotModel(customer_id=5, name="Cliente 5", calls_30d=4, as_of=NOW),
        )
        source = SqlSnapshotSource(session_factory, MockClock(NOW))

        assert await source.get_call_counts(5, 30) is None
        assert await source.get_nps_classification(5) is None

        [snapshot] = await load_snapshots(source)
        assert snapshot.calls_30d == 4


# ============================================================
# CONTAINER
# ============================================================

class TestSqlContainer:

    @pytest.mark.asyncio
    async def test_startup_verifies_connection_and_creates_tables(self, tmp_path, monkeypatch):
        settings = RetentionSettings(
            database_url=f"sqlite+aiosqlite:///{tmp_path / 'startup.db'}",
            scoring_config_path=tmp_path / "weights.json",
        )
        container = build_container(settings)
        verified = []

        async def verify(engine):
            verified.append(engine)
            return await verify_database_connection(engine)

        monkeypatch.setattr("dashboard.container.verify_database_connection", verify)

        await container.startup()
        try:
            await container.tags.create_tag("vip", "#22c55e")
            assert [t.name for t in await container.tags.list_tags()] == ["vip"]
            assert await container.workflow_service.list_records() == {}
        finally:
            await container.shutdown()

        assert verified == [container.engine]
