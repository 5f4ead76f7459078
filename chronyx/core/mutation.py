"""Direct writes with an offline fallback.

The app writes straight to the hosted database when it can. When the device
is known to be offline, or the request dies on the network, the write goes
into the offline queue instead and is replayed later.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

import httpx

from chronyx.core.validation import validate_operation, validate_payload
from chronyx.types import MATCHED_OPERATIONS, MutationOutcome, QueuedMutation

if TYPE_CHECKING:
    from chronyx.core.connectivity import ConnectivityMonitor
    from chronyx.storage import OfflineQueue, RestClient

logger = logging.getLogger(__name__)


class OfflineMutator:
    """Writes to one remote store, queueing whatever cannot be sent now.

    Args:
        queue: Where writes go when they cannot be sent.
        client: Client for immediate writes. Defaults to the queue's client.
        monitor: Connectivity source. Without one the device is assumed online.
    """

    def __init__(
        self,
        queue: "OfflineQueue",
        client: Optional["RestClient"] = None,
        monitor: Optional["ConnectivityMonitor"] = None,
    ):
        self.queue = queue
        self.client = client if client is not None else queue.remote
        self.monitor = monitor

    @property
    def is_online(self) -> bool:
        return self.monitor.is_online if self.monitor is not None else True

    def _defer(
        self,
        table: str,
        operation: str,
        data: Dict[str, Any],
        match_column: Optional[str],
        match_value: Any,
    ) -> MutationOutcome:
        mutation = self.queue.enqueue(table, operation, data, match_column, match_value)
        logger.info(f"Saved offline: {table} {operation}, will sync on reconnect")
        return MutationOutcome(queued=True, mutation_id=mutation.id)

    async def mutate(
        self,
        table: str,
        operation: str,
        data: Optional[Dict[str, Any]] = None,
        match_value: Any = None,
        match_column: str = "id",
    ) -> MutationOutcome:
        """Write now, or queue the write if the network is unavailable.

        Raises:
            ValueError: bad operation or payload, or update/delete without
                ``match_value``.
            MutationRejected: the store answered with an error status.
            RemoteConfigError: no credentials configured.
        """
        operation = validate_operation(operation)
        data = validate_payload(data)
        if operation in MATCHED_OPERATIONS and not match_value:
            raise ValueError(f"match_value required for {operation}")

        if not self.is_online:
            return self._defer(table, operation, data, match_column, match_value)

        mutation = QueuedMutation(
            id="",
            table=table,
            operation=operation,
            data=data,
            match_column=match_column,
            match_value=match_value,
        )
        try:
            record = await self.client.send(mutation, returning=True)
        except httpx.TransportError as e:
            logger.warning(f"Network error writing {table}, queueing: {e}")
            return self._defer(table, operation, data, match_column, match_value)

        return MutationOutcome(queued=False, record=record)
