"""
Retention Board - Operator Notices.

============================================================
PURPOSE
============================================================
How board failures and warnings reach the operator.

Provides:
- OperatorNotice: structured message for one event
- NoticeSender protocol with logging and webhook senders
- NoticeDispatcher: fan-out to every sender

A sender failure is logged and never breaks the transition
that produced the notice.

============================================================
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol

import httpx

from core.clock import ClockProtocol, SystemClock


logger = logging.getLogger(__name__)


# ============================================================
# NOTICE DATACLASS
# ============================================================


class NoticeLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class OperatorNotice:
    """
    One message for the operator.

    ============================================================
    FIELDS
    ============================================================
    - level: INFO, WARNING, ERROR
    - title: Short title
    - message: Detailed message
    - customer_id: Customer the notice is about, if any
    - timestamp: When the notice was created
    - context: Additional structured data

    ============================================================
    """

    level: NoticeLevel
    title: str
    message: str
    timestamp: datetime
    customer_id: Optional[int] = None
    context: Dict[str, Any] = field(default_factory=dict)

    def to_text(self) -> str:
        prefix = {"info": "ℹ️", "warning": "⚠️", "error": "❌"}[self.level.value]
        lines = [f"{prefix} {self.title}", self.message]
        if self.customer_id is not None:
            lines.append(f"Customer: {self.customer_id}")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level.value,
            "title": self.title,
            "message": self.message,
            "customer_id": self.customer_id,
            "timestamp": self.timestamp.isoformat(),
            "context": self.context,
        }


# ============================================================
# NOTICE SENDER PROTOCOL
# ============================================================


class NoticeSender(Protocol):
    """Destination for operator notices."""

    async def send(self, notice: OperatorNotice) -> bool:
        """
        Send a notice.

        Returns:
            True if delivered
        """
        ...


class LoggingNoticeSender:
    """Writes notices to the log at a matching level."""

    _LEVELS = {
        NoticeLevel.INFO: logging.INFO,
        NoticeLevel.WARNING: logging.WARNING,
        NoticeLevel.ERROR: logging.ERROR,
    }

    def __init__(self, logger_name: str = "retention.notices"):
        self._logger = logging.getLogger(logger_name)

    async def send(self, notice: OperatorNotice) -> bool:
        self._logger.log(
            self._LEVELS[notice.level],
            f"{notice.title}: {notice.message} (customer={notice.customer_id})",
        )
        return True


class WebhookNoticeSender:
    """
    POSTs notices as JSON to a webhook URL.

    ============================================================
    USAGE
    ============================================================
    Set NOTICE_WEBHOOK_URL. Any endpoint that accepts a JSON
    body works (chat incoming-webhooks, internal relays).

    ============================================================
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._url = url
        self._timeout = timeout
        self._client = client

    async def send(self, notice: OperatorNotice) -> bool:
        payload = {"text": notice.to_text(), "notice": notice.to_dict()}
        try:
            if self._client is not None:
                response = await self._client.post(self._url, json=payload, timeout=self._timeout)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.post(self._url, json=payload, timeout=self._timeout)
        except httpx.HTTPError as e:
            logger.warning(f"Notice webhook failed: {e}")
            return False

        if response.status_code >= 400:
            logger.warning(f"Notice webhook returned HTTP {response.status_code}")
            return False
        return True


class RecordingNoticeSender:
    """Keeps sent notices in memory. For tests and the dev server."""

    def __init__(self) -> None:
        self.notices: List[OperatorNotice] = []

    async def send(self, notice: OperatorNotice) -> bool:
        self.notices.append(notice)
        return True


# ============================================================
# DISPATCHER
# ============================================================


class NoticeDispatcher:
    """Builds notices and sends them to every sender."""

    def __init__(
        self,
        senders: Optional[List[NoticeSender]] = None,
        clock: Optional[ClockProtocol] = None,
    ):
        self._senders: List[NoticeSender] = list(senders) if senders else [LoggingNoticeSender()]
        self._clock = clock or SystemClock()

    def build(
        self,
        level: NoticeLevel,
        title: str,
        message: str,
        customer_id: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> OperatorNotice:
        return OperatorNotice(
            level=level,
            title=title,
            message=message,
            timestamp=self._clock.now(),
            customer_id=customer_id,
            context=context or {},
        )

    async def dispatch(self, notice: OperatorNotice) -> bool:
        """Send to all senders. True if at least one delivered."""
        delivered = False
        for sender in self._senders:
            try:
                if await sender.send(notice):
                    delivered = True
            except Exception as e:
                logger.error(f"Notice sender {type(sender).__name__} failed: {e}")
        return delivered

    async def notify(
        self,
        level: NoticeLevel,
        title: str,
        message: str,
        customer_id: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> OperatorNotice:
        notice = self.build(level, title, message, customer_id, context)
        await self.dispatch(notice)
        return notice
