"""Application-facing pieces built on the offline queue."""

from .connectivity import ConnectivityMonitor
from .mutation import OfflineMutator

__all__ = ["ConnectivityMonitor", "OfflineMutator"]
