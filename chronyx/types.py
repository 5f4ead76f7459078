"""
Shared queue types for chronyx.

These dataclasses are the vocabulary between the queue, the replay engine,
the remote client and the CLI. The on-disk shape of a QueuedMutation is the
JSON record written by the web client, so field names are translated in
``to_dict``/``from_dict`` rather than renamed here.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

# Storage key holding the JSON-encoded queue snapshot
QUEUE_STORAGE_KEY = "chronyx_offline_queue"

# Failed attempts after which a mutation is dropped for good
MAX_RETRIES = 3


def now_ms() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


# === Enums ===


class MutationOperation(str, Enum):
    """Write operations the remote store accepts."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    UPSERT = "upsert"


VALID_OPERATIONS = frozenset(op.value for op in MutationOperation)

# Operations that address existing rows through a match column/value
MATCHED_OPERATIONS = frozenset({MutationOperation.UPDATE.value, MutationOperation.DELETE.value})


# === Queue Records ===


@dataclass
class QueuedMutation:
    """A write not yet confirmed by the remote store."""

    id: str
    table: str
    operation: str  # 'insert', 'update', 'delete', 'upsert'
    data: Dict[str, Any] = field(default_factory=dict)
    match_column: Optional[str] = None
    match_value: Any = None
    timestamp: int = 0  # enqueue time, ms since epoch
    retry_count: int = 0

    @property
    def has_match(self) -> bool:
        """True when both halves of the row filter are present."""
        return bool(self.match_column) and self.match_value is not None

    def to_dict(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "id": self.id,
            "table": self.table,
            "operation": self.operation,
            "data": self.data,
        }
        if self.match_column is not None:
            record["matchColumn"] = self.match_column
        if self.match_value is not None:
            record["matchValue"] = self.match_value
        record["timestamp"] = self.timestamp
        record["retryCount"] = self.retry_count
        return record

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> "QueuedMutation":
        """Build a mutation from its stored JSON record.

        Raises:
            KeyError: if ``id`` or ``table`` is missing.
        """
        return cls(
            id=str(record["id"]),
            table=str(record["table"]),
            operation=str(record.get("operation", "")),
            data=record.get("data") or {},
            match_column=record.get("matchColumn"),
            match_value=record.get("matchValue"),
            timestamp=int(record.get("timestamp") or 0),
            retry_count=int(record.get("retryCount") or 0),
        )


# === Results ===


@dataclass
class ReplayResult:
    """Outcome of one pass over the queue."""

    succeeded: int = 0
    permanently_failed: int = 0
    still_pending: int = 0
    errors: List[str] = field(default_factory=list)
    cancelled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "succeeded": self.succeeded,
            "permanently_failed": self.permanently_failed,
            "still_pending": self.still_pending,
            "errors": list(self.errors),
            "cancelled": self.cancelled,
        }


@dataclass(frozen=True)
class QueueStatus:
    """Read-only summary of the queue."""

    count: int = 0
    oldest_timestamp: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"count": self.count, "oldest_timestamp": self.oldest_timestamp}


@dataclass
class MutationOutcome:
    """Result of a direct write that may have fallen back to the queue."""

    queued: bool = False
    record: Optional[Dict[str, Any]] = None
    mutation_id: Optional[str] = None  # set when queued


@dataclass(frozen=True)
class SyncIndicator:
    """What a status badge should show for the current sync state."""

    state: str  # 'offline', 'syncing', 'pending', 'synced'
    label: str
    description: str
    pending: int = 0
