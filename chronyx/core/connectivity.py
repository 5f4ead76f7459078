"""Online/offline tracking and sync triggering.

The monitor remembers whether the device went offline, replays the queue
when it comes back, and tells a status badge what to show.
"""

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from chronyx.types import ReplayResult, SyncIndicator

if TYPE_CHECKING:
    from chronyx.storage import OfflineQueue, RestClient

logger = logging.getLogger(__name__)

# Listener events
EVENT_OFFLINE = "offline"
EVENT_ONLINE = "online"
EVENT_SYNCED = "synced"
EVENT_SYNC_FAILED = "sync_failed"

Listener = Callable[[str, Optional[ReplayResult]], None]


def _plural(count: int) -> str:
    return "s" if count != 1 else ""


class ConnectivityMonitor:
    """Tracks connectivity for one queue and syncs on reconnect.

    Args:
        queue: The offline queue to replay.
        client: Client used by ``probe``. Defaults to the queue's client.
        online: Initial connectivity state.
    """

    def __init__(
        self,
        queue: "OfflineQueue",
        client: Optional["RestClient"] = None,
        online: bool = True,
    ):
        self.queue = queue
        self.client = client if client is not None else queue.remote
        self.is_online = online
        self.was_offline = not online
        self.is_syncing = False
        self._listeners: List[Listener] = []

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, event: str, result: Optional[ReplayResult] = None) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, result)
            except Exception as e:
                logger.error(f"Connectivity listener failed on {event}: {e}", exc_info=True)

    def mark_offline(self) -> None:
        """Record that the device lost connectivity."""
        if self.is_online:
            logger.warning("You are offline, changes will sync when you reconnect")
        self.is_online = False
        self.was_offline = True
        self._notify(EVENT_OFFLINE)

    async def mark_online(self) -> Optional[ReplayResult]:
        """Record that connectivity is back; sync if it had been lost."""
        self.is_online = True
        if not self.was_offline:
            return None
        self.was_offline = False
        logger.info("Back online, syncing offline changes")
        self._notify(EVENT_ONLINE)
        return await self.sync_now()

    async def sync_now(self) -> ReplayResult:
        """Replay the queue if anything is pending.

        Returns an empty result when the queue is empty or a sync is already
        running.
        """
        if self.is_syncing:
            logger.debug("Sync already in progress")
            return ReplayResult(still_pending=self.queue.queue_status().count)

        self.is_syncing = True
        try:
            status = self.queue.queue_status()
            if status.count == 0:
                result = ReplayResult()
            else:
                logger.info(f"Syncing offline changes: {status.count} pending")
                result = await self.queue.replay_all()
                if result.succeeded > 0:
                    logger.info(f"Offline changes synced: {result.succeeded} saved")
                if result.permanently_failed > 0:
                    logger.warning(
                        f"Some changes failed to sync: {result.permanently_failed} "
                        f"could not be saved and were dropped"
                    )
        finally:
            self.is_syncing = False

        self._notify(EVENT_SYNC_FAILED if result.permanently_failed else EVENT_SYNCED, result)
        return result

    async def probe(self, timeout: float = 3.0) -> Dict[str, Any]:
        """Check the REST endpoint and move to online/offline accordingly."""
        health = await self.client.health_check(timeout=timeout)
        if health.get("healthy"):
            await self.mark_online()
        else:
            self.mark_offline()
        return health

    def indicator(self) -> SyncIndicator:
        """State, label and description for a sync status badge."""
        pending = self.queue.queue_status().count

        if not self.is_online:
            if pending > 0:
                description = f"{pending} pending change{_plural(pending)} will sync when online"
            else:
                description = "You're offline. Changes will sync when connected."
            return SyncIndicator("offline", "Offline", description, pending)

        if self.is_syncing:
            return SyncIndicator(
                "syncing", "Syncing...", "Syncing your changes with the server", pending
            )

        if pending > 0:
            return SyncIndicator(
                "pending",
                f"{pending} pending",
                f"{pending} change{_plural(pending)} waiting to sync",
                pending,
            )

        return SyncIndicator("synced", "Synced", "All changes are synced", 0)
