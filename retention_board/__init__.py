"""
Retention Board Package.

Drag-and-drop board over scored customers and their workflow.

Components:
- types: columns, cards, board, drag results
- projection: column placement
- intents: drag gesture -> NoOp / Rejected / TransitionPlan
- saga: ordered execution of a plan
- notices: operator notices
- sources: customer snapshot sources
- controller: BoardController
"""

from .types import (
    BoardColumn,
    BoardCard,
    Board,
    DragOutcome,
    DragResult,
)
from .projection import column_for, build_board
from .intents import (
    StartTreatment,
    SetStatus,
    NoOp,
    Rejected,
    TransitionPlan,
    resolve_drag,
)
from .saga import CompensationPolicy, SagaOutcome, SagaResult, TransitionSaga
from .notices import (
    NoticeLevel,
    OperatorNotice,
    NoticeSender,
    LoggingNoticeSender,
    WebhookNoticeSender,
    RecordingNoticeSender,
    NoticeDispatcher,
)
from .sources import (
    SnapshotSource,
    SqlSnapshotSource,
    InMemorySnapshotSource,
    load_snapshots,
    load_customer_snapshots,
)
from .controller import BoardController


__all__ = [
    "BoardColumn",
    "BoardCard",
    "Board",
    "DragOutcome",
    "DragResult",
    "column_for",
    "build_board",
    "StartTreatment",
    "SetStatus",
    "NoOp",
    "Rejected",
    "TransitionPlan",
    "resolve_drag",
    "CompensationPolicy",
    "SagaOutcome",
    "SagaResult",
    "TransitionSaga",
    "NoticeLevel",
    "OperatorNotice",
    "NoticeSender",
    "LoggingNoticeSender",
    "WebhookNoticeSender",
    "RecordingNoticeSender",
    "NoticeDispatcher",
    "SnapshotSource",
    "SqlSnapshotSource",
    "InMemorySnapshotSource",
    "load_snapshots",
    "load_customer_snapshots",
    "BoardController",
]
