"""
chronyx Protocol Definitions
=============================

Interface contracts for the offline sync layer.

Components and their roles:
- QueueStore:    Durable key/value storage on the local device. Holds the
                 queue snapshot under a single key, like browser storage.
- OfflineQueue:  Owns the snapshot. The only thing that reads or writes it.
- ReplayEngine:  Sends queued mutations to the remote store, in order.
- RemoteClient:  Speaks the REST dialect of the hosted database.

Error handling philosophy:
- Queue operations raise StorageError only when the store cannot be written
- The replay engine absorbs every error and reports it in ReplayResult
- Direct writes (OfflineMutator) raise remote rejections to the caller
- Invalid arguments raise ValueError
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

# =============================================================================
# ERRORS
# =============================================================================


class ChronyxError(Exception):
    """Base for all chronyx errors."""

    pass


class StorageError(ChronyxError):
    """Raised when the local queue store cannot be written."""

    pass


class RemoteConfigError(ChronyxError):
    """Raised when the remote URL or API key is missing or unsafe."""

    pass


class MissingMatchFieldError(ChronyxError):
    """Raised for an update/delete that has no match column or value."""

    pass


class UnknownOperationError(ChronyxError):
    """Raised for a queued operation outside insert/update/delete/upsert."""

    pass


class MutationRejected(ChronyxError):
    """Raised when the remote store answers with a non-2xx status."""

    def __init__(self, status_code: int, body: str = ""):
        super().__init__(f"HTTP {status_code}: {body[:200]}" if body else f"HTTP {status_code}")
        self.status_code = status_code
        self.body = body


# =============================================================================
# STORAGE
# =============================================================================


@runtime_checkable
class QueueStore(Protocol):
    """Durable string storage keyed by name.

    Implementations: FileQueueStore, MemoryQueueStore.
    """

    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value, or None when the key is absent."""
        ...

    def set_item(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        ...

    def remove_item(self, key: str) -> None:
        """Delete ``key``. No-op when absent."""
        ...
