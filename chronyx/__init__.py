"""
chronyx - Offline write queue for the CHRONYX life dashboard.

Writes that cannot reach the hosted database wait on this device and are
replayed, in order, when the connection comes back.
"""

from .core import ConnectivityMonitor, OfflineMutator
from .storage import FileQueueStore, MemoryQueueStore, OfflineQueue, RestClient

try:
    from importlib.metadata import version

    __version__ = version("chronyx")
except Exception:
    __version__ = "0.0.0"

__all__ = [
    "ConnectivityMonitor",
    "FileQueueStore",
    "MemoryQueueStore",
    "OfflineMutator",
    "OfflineQueue",
    "RestClient",
]
