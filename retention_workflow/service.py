"""
Retention Workflow Service.

This service handles:
- Placing a customer into treatment
- Status, tag and owner changes on an existing record
- Serializing mutations per customer
- Wrapping store failures and timeouts in TransitionFailedError
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Dict, Iterable, List, Optional, TypeVar

from core.clock import ClockProtocol, SystemClock
from core.exceptions import (
    AlreadyInTreatmentError,
    NoWorkflowError,
    RetentionException,
    TransitionFailedError,
)

from .repository import WorkflowStore
from .state_machine import TransitionGuard
from .types import WorkflowRecord, WorkflowStatus, normalize_tags


logger = logging.getLogger(__name__)

T = TypeVar("T")


async def call_store(
    customer_id: Optional[int],
    operation: str,
    awaitable: Awaitable[T],
    timeout: Optional[float] = None,
) -> T:
    """
    Await a store call, mapping failures to TransitionFailedError.

    RetentionExceptions pass through untouched.
    """
    try:
        if timeout is not None:
            return await asyncio.wait_for(awaitable, timeout=timeout)
        return await awaitable
    except asyncio.TimeoutError as e:
        logger.error(f"Workflow {operation} timed out (customer={customer_id}) after {timeout}s")
        raise TransitionFailedError(customer_id, operation, cause=e, timed_out=True) from e
    except RetentionException:
        raise
    except Exception as e:
        logger.error(f"Workflow store failed during {operation} (customer={customer_id}): {e}")
        raise TransitionFailedError(customer_id, operation, cause=e) from e


# =============================================================
# WORKFLOW SERVICE
# =============================================================

class WorkflowService:
    """
    The four workflow operations over a WorkflowStore.

    Operations for one customer are serialized with a per-customer
    asyncio.Lock. Operations for different customers run freely.
    A lock is dropped once its last holder or waiter leaves.
    Writes from other processes are not serialized (last write wins).
    """

    def __init__(
        self,
        store: WorkflowStore,
        clock: Optional[ClockProtocol] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self._store = store
        self._clock = clock or SystemClock()
        self._timeout = timeout_seconds
        self._locks: Dict[int, asyncio.Lock] = {}
        self._lock_users: Dict[int, int] = {}

    @asynccontextmanager
    async def _customer_lock(self, customer_id: int) -> AsyncIterator[None]:
        lock = self._locks.get(customer_id)
        if lock is None:
            lock = self._locks[customer_id] = asyncio.Lock()
        self._lock_users[customer_id] = self._lock_users.get(customer_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[customer_id] -= 1
            if self._lock_users[customer_id] == 0:
                del self._lock_users[customer_id]
                del self._locks[customer_id]

    # ---------------------------------------------------------
    # STORE ACCESS
    # ---------------------------------------------------------

    async def _call(self, customer_id: Optional[int], operation: str, awaitable: Awaitable[T]) -> T:
        return await call_store(customer_id, operation, awaitable, self._timeout)

    async def _require(self, customer_id: int, operation: str) -> WorkflowRecord:
        record = await self._call(customer_id, operation, self._store.get(customer_id))
        if record is None:
            logger.warning(f"Workflow {operation} refused: customer {customer_id} has no record")
            raise NoWorkflowError(customer_id, operation)
        return record

    # ---------------------------------------------------------
    # READ OPERATIONS
    # ---------------------------------------------------------

    async def get_record(self, customer_id: int) -> Optional[WorkflowRecord]:
        return await self._call(customer_id, "get_record", self._store.get(customer_id))

    async def list_records(self) -> Dict[int, WorkflowRecord]:
        return await self._call(None, "list_records", self._store.get_all())

    # ---------------------------------------------------------
    # MUTATIONS
    # ---------------------------------------------------------

    async def start_treatment(
        self,
        customer_id: int,
        initial_tags: Iterable[str] = (),
    ) -> WorkflowRecord:
        """
        Create the customer's record in EM_TRATAMENTO.

        Raises:
            AlreadyInTreatmentError: a record exists (carries it)
            TransitionFailedError: store failure or timeout
        """
        async with self._customer_lock(customer_id):
            existing = await self._call(customer_id, "start_treatment", self._store.get(customer_id))
            if existing is not None:
                logger.info(
                    f"Customer {customer_id} already in workflow (status={existing.status.value})"
                )
                raise AlreadyInTreatmentError(customer_id, existing)

            now = self._clock.now()
            record = WorkflowRecord(
                customer_id=customer_id,
                status=WorkflowStatus.EM_TRATAMENTO,
                tags=normalize_tags(initial_tags),
                owner_id=None,
                created_at=now,
                updated_at=now,
            )
            saved = await self._call(customer_id, "start_treatment", self._store.upsert(record))
            logger.info(f"Customer {customer_id} placed into treatment")
            return saved

    async def set_status(self, customer_id: int, status: WorkflowStatus) -> WorkflowRecord:
        async with self._customer_lock(customer_id):
            record = await self._require(customer_id, "set_status")
            allowed, reason = TransitionGuard.can_transition(record.status, status)
            if not allowed:
                raise TransitionFailedError(customer_id, "set_status", cause=ValueError(reason))

            updated = record.with_status(status, self._clock.now())
            saved = await self._call(customer_id, "set_status", self._store.upsert(updated))
            logger.info(
                f"Customer {customer_id} workflow status: {record.status.value} -> {status.value}"
            )
            return saved

    async def set_tags(self, customer_id: int, tags: Iterable[str]) -> WorkflowRecord:
        """Replace the tag set wholesale."""
        async with self._customer_lock(customer_id):
            record = await self._require(customer_id, "set_tags")
            updated = record.with_tags(tags, self._clock.now())
            saved = await self._call(customer_id, "set_tags", self._store.upsert(updated))
            logger.info(f"Customer {customer_id} workflow tags: {sorted(updated.tags)}")
            return saved

    async def set_owner(self, customer_id: int, owner_id: Optional[str]) -> WorkflowRecord:
        async with self._customer_lock(customer_id):
            record = await self._require(customer_id, "set_owner")
            updated = record.with_owner(owner_id, self._clock.now())
            saved = await self._call(customer_id, "set_owner", self._store.upsert(updated))
            logger.info(f"Customer {customer_id} workflow owner: {owner_id or '-'}")
            return saved


def sorted_records(records: Dict[int, WorkflowRecord]) -> List[WorkflowRecord]:
    """Records ordered by customer id."""
    return [records[k] for k in sorted(records)]
