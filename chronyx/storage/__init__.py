"""chronyx storage layer.

Local-first: writes that cannot reach the hosted database are kept in a
durable queue on this device and replayed later.
"""

from chronyx.types import (
    MAX_RETRIES,
    QUEUE_STORAGE_KEY,
    MutationOperation,
    QueuedMutation,
    QueueStatus,
    ReplayResult,
)

from .cloud import RestClient
from .local import FileQueueStore, MemoryQueueStore
from .queue import OfflineQueue
from .replay_engine import ReplayEngine

__all__ = [
    # Types
    "MAX_RETRIES",
    "QUEUE_STORAGE_KEY",
    "MutationOperation",
    "QueuedMutation",
    "QueueStatus",
    "ReplayResult",
    # Stores
    "FileQueueStore",
    "MemoryQueueStore",
    # Queue and replay
    "OfflineQueue",
    "ReplayEngine",
    "RestClient",
]
