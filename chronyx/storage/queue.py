"""Offline mutation queue.

OfflineQueue owns the durable snapshot of writes that have not reached the
remote store yet. Every read and write of the snapshot goes through this
class; replay is delegated to ReplayEngine, which reports each entry's
outcome back through ``_apply_outcome``.
"""

import asyncio
import json
import logging
import uuid
from typing import Any, Callable, Dict, List, Optional

from chronyx.core.validation import validate_operation, validate_payload
from chronyx.logging_config import log_enqueue, log_replay
from chronyx.protocols import QueueStore
from chronyx.types import (
    MAX_RETRIES,
    QUEUE_STORAGE_KEY,
    QueuedMutation,
    QueueStatus,
    ReplayResult,
    now_ms,
)

from .cloud import RestClient
from .replay_engine import ReplayEngine

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


class OfflineQueue:
    """Durable queue of pending writes with bounded-retry replay.

    Args:
        store: Where the snapshot is persisted.
        remote: Client used by replay. Defaults to a RestClient built from settings.
        clock: Returns "now" in ms since the epoch.
        id_factory: Returns a fresh mutation id.
        max_retries: Failed attempts before a mutation is dropped.
        record_events: Append lifecycle events to the queue event log.
        storage_key: Key the snapshot lives under in ``store``.
    """

    def __init__(
        self,
        store: QueueStore,
        remote: Optional[RestClient] = None,
        *,
        clock: Callable[[], int] = now_ms,
        id_factory: Callable[[], str] = _new_id,
        max_retries: int = MAX_RETRIES,
        record_events: bool = True,
        storage_key: str = QUEUE_STORAGE_KEY,
    ):
        self._store = store
        self.remote = remote if remote is not None else RestClient()
        self._clock = clock
        self._id_factory = id_factory
        self.record_events = record_events
        self.storage_key = storage_key
        self._engine = ReplayEngine(self, max_retries=max_retries)
        self._replay_lock = asyncio.Lock()

    @property
    def max_retries(self) -> int:
        return self._engine.max_retries

    # === Persistence ===

    def _load(self) -> List[QueuedMutation]:
        """Read the snapshot. Missing or unreadable snapshots read as empty."""
        raw = self._store.get_item(self.storage_key)
        if not raw:
            return []
        try:
            records = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Offline queue snapshot is not valid JSON, ignoring it: {e}")
            return []
        if not isinstance(records, list):
            logger.warning("Offline queue snapshot is not a list, ignoring it")
            return []

        queue = []
        for record in records:
            if not isinstance(record, dict):
                logger.warning(f"Skipping malformed queue record: {record!r:.80}")
                continue
            try:
                queue.append(QueuedMutation.from_dict(record))
            except (KeyError, TypeError, ValueError, OverflowError) as e:
                logger.warning(f"Skipping malformed queue record ({e}): {record!r:.80}")
        return queue

    def _save(self, queue: List[QueuedMutation]) -> None:
        self._store.set_item(self.storage_key, json.dumps([m.to_dict() for m in queue]))

    def _apply_outcome(self, mutation_id: str, updated: Optional[QueuedMutation]) -> None:
        """Write one replay outcome into the current snapshot.

        ``updated`` replaces the stored entry; None removes it. An entry that
        was dequeued or cleared while its request was in flight stays gone.
        """
        queue = self._load()
        retained = []
        for mutation in queue:
            if mutation.id != mutation_id:
                retained.append(mutation)
            elif updated is not None:
                retained.append(updated)
        self._save(retained)

    # === Queue Operations ===

    def enqueue(
        self,
        table: str,
        operation: str,
        data: Optional[Dict[str, Any]] = None,
        match_column: Optional[str] = None,
        match_value: Any = None,
    ) -> QueuedMutation:
        """Add a write to the queue and persist the snapshot.

        Update/delete without ``match_column``/``match_value`` are accepted
        here and will fail at replay.

        Raises:
            ValueError: unknown operation or non-mapping ``data``.
        """
        mutation = QueuedMutation(
            id=self._id_factory(),
            table=table,
            operation=validate_operation(operation),
            data=validate_payload(data),
            match_column=match_column,
            match_value=match_value,
            timestamp=self._clock(),
            retry_count=0,
        )
        queue = self._load()
        queue.append(mutation)
        self._save(queue)

        logger.debug(f"Added to queue: {table} {mutation.operation} {mutation.id}")
        if self.record_events:
            log_enqueue(table, mutation.operation, mutation.id)
        return mutation

    def dequeue(self, mutation_id: str) -> None:
        """Remove a mutation by id. No-op when it is not queued."""
        queue = self._load()
        self._save([m for m in queue if m.id != mutation_id])

    def clear(self) -> None:
        """Drop every queued mutation (e.g. on sign-out)."""
        self._store.remove_item(self.storage_key)
        logger.info("Offline queue cleared")

    def pending(self) -> List[QueuedMutation]:
        """Queued mutations in replay order."""
        return sorted(self._load(), key=lambda m: m.timestamp)

    def get(self, mutation_id: str) -> Optional[QueuedMutation]:
        for mutation in self._load():
            if mutation.id == mutation_id:
                return mutation
        return None

    def queue_status(self) -> QueueStatus:
        """Count and oldest enqueue time. Reads only."""
        queue = self._load()
        if not queue:
            return QueueStatus(count=0, oldest_timestamp=None)
        return QueueStatus(count=len(queue), oldest_timestamp=min(m.timestamp for m in queue))

    # === Replay ===

    async def replay_all(self, cancel: Optional[asyncio.Event] = None) -> ReplayResult:
        """Replay every queued mutation, oldest first, one request at a time.

        Never raises. Concurrent calls on the same queue run one after the
        other.

        Args:
            cancel: When set, no further mutations are started; the rest stay
                queued untouched.
        """
        async with self._replay_lock:
            result = await self._engine.replay_all(cancel=cancel)
        if self.record_events and (result.succeeded or result.errors):
            log_replay(result.succeeded, result.permanently_failed, result.still_pending)
        return result
