"""
Offline mode: cached documents, offline map regions, the pending-write
queue and connectivity-driven sync.
"""

from tripbuddy.offline.cache_manager import OfflineCacheManager
from tripbuddy.offline.connectivity import ConnectivityMonitor
from tripbuddy.offline.queue import (
    OfflineQueue,
    QueueAction,
    QueueCollection,
    QueueProcessResult,
)
from tripbuddy.offline.schemas import DocumentDownload, MapRegionRequest
from tripbuddy.offline.sizing import CacheSizeSummary, format_bytes
from tripbuddy.offline.tiles import HttpTileFetcher, TileBundle, TileFetchError

__all__ = [
    "OfflineCacheManager",
    "ConnectivityMonitor",
    "OfflineQueue",
    "QueueAction",
    "QueueCollection",
    "QueueProcessResult",
    "DocumentDownload",
    "MapRegionRequest",
    "CacheSizeSummary",
    "format_bytes",
    "HttpTileFetcher",
    "TileBundle",
    "TileFetchError",
]
