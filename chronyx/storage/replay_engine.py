"""Replay engine for the offline queue.

ReplayEngine sends queued mutations to the remote store in enqueue order and
decides, per entry, whether it is done, retried on the next pass, or dropped
at the retry ceiling. Receives the host OfflineQueue to read the snapshot
and write outcomes back.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Optional

import httpx

from chronyx.logging_config import log_dropped
from chronyx.protocols import (
    MissingMatchFieldError,
    MutationRejected,
    RemoteConfigError,
    StorageError,
    UnknownOperationError,
)
from chronyx.types import MAX_RETRIES, QueuedMutation, ReplayResult

if TYPE_CHECKING:
    from .queue import OfflineQueue

logger = logging.getLogger(__name__)


class ReplayEngine:
    """Sequential, bounded-retry replay of queued mutations.

    Every failure counts the same: a missing API key, a dropped connection
    and a constraint violation each cost the entry one attempt.

    Args:
        host: The OfflineQueue owning the snapshot and the remote client.
        max_retries: Attempts after which an entry is dropped.
    """

    def __init__(self, host: "OfflineQueue", max_retries: int = MAX_RETRIES):
        self._host = host
        self.max_retries = max_retries

    async def _attempt(self, mutation: QueuedMutation) -> Optional[str]:
        """Send one mutation. Returns None on success, else the error text."""
        try:
            await self._host.remote.send(mutation)
        except RemoteConfigError as e:
            logger.error(f"Missing Supabase credentials: {e}")
            return str(e)
        except (MissingMatchFieldError, UnknownOperationError, ValueError) as e:
            logger.error(f"Invalid mutation {mutation.id}: {e}")
            return str(e)
        except MutationRejected as e:
            logger.error(f"Mutation failed: {mutation.table} {mutation.operation}: {e}")
            return str(e)
        except httpx.HTTPError as e:
            logger.error(f"Mutation error: {mutation.table} {mutation.operation}: {e}")
            return f"{type(e).__name__}: {e}"
        except Exception as e:
            logger.error(f"Unexpected error replaying {mutation.id}: {e}", exc_info=True)
            return f"{type(e).__name__}: {e}"

        logger.debug(f"Mutation succeeded: {mutation.id}")
        return None

    async def replay_all(self, cancel: Optional[asyncio.Event] = None) -> ReplayResult:
        """Process the snapshot oldest-first; see OfflineQueue.replay_all."""
        result = ReplayResult()

        queue = self._host._load()
        if not queue:
            return result

        logger.info(f"Processing queue: {len(queue)} items")
        ordered = sorted(queue, key=lambda m: m.timestamp)

        for index, mutation in enumerate(ordered):
            if cancel is not None and cancel.is_set():
                result.cancelled = True
                result.still_pending += len(ordered) - index
                logger.info(f"Replay cancelled with {len(ordered) - index} items left")
                break

            error = await self._attempt(mutation)

            if error is not None:
                mutation.retry_count += 1
                result.errors.append(
                    f"{mutation.table}:{mutation.id[:8]} "
                    f"(retry {mutation.retry_count}/{self.max_retries}): {error[:500]}"
                )
            retained = error is not None and mutation.retry_count < self.max_retries

            try:
                self._host._apply_outcome(mutation.id, mutation if retained else None)
            except StorageError as e:
                # Outcomes can no longer be recorded; stop before sending more
                logger.error(f"Failed to persist replay outcome for {mutation.id}: {e}")
                result.errors.append(f"Failed to persist offline queue: {e}")
                result.still_pending += len(ordered) - index
                break

            if error is None:
                result.succeeded += 1
            elif retained:
                result.still_pending += 1
            else:
                result.permanently_failed += 1
                logger.warning(f"Max retries reached for: {mutation.id}")
                if self._host.record_events:
                    log_dropped(
                        mutation.table,
                        mutation.operation,
                        mutation.id,
                        mutation.retry_count,
                        error,
                    )

        logger.info(
            f"Replay complete: succeeded={result.succeeded}, "
            f"permanently_failed={result.permanently_failed}, "
            f"still_pending={result.still_pending}"
        )
        return result
