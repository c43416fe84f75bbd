"""Connectivity tracking and reconnect sync."""

from datetime import datetime
from typing import Mapping

from sqlalchemy.orm import sessionmaker

from tripbuddy.logging_config import get_logger
from tripbuddy.models import SyncState
from tripbuddy.offline.cache_manager import OfflineCacheManager
from tripbuddy.offline.queue import OfflineQueue, QueueCollection, QueueHandler, QueueProcessResult

logger = get_logger(__name__)

LAST_SYNC_KEY = "last_sync"


class ConnectivityMonitor:
    """
    Tracks online state and replays the offline queue on reconnect.

    The platform's network listener calls ``set_online`` on every change.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        queue: OfflineQueue,
        handlers: Mapping[QueueCollection, QueueHandler] | None = None,
        cache_manager: OfflineCacheManager | None = None,
        is_online: bool = True,
    ):
        self.session_factory = session_factory
        self.queue = queue
        self.handlers = dict(handlers or {})
        self.cache_manager = cache_manager
        self.is_online = is_online

    async def set_online(self, is_online: bool) -> QueueProcessResult | None:
        """
        Record a connectivity change.

        Returns:
            The replay result when this call brought the device back online
        """
        was_online = self.is_online
        self.is_online = is_online
        logger.info("connectivity_changed", is_online=is_online)

        if is_online and not was_online:
            return await self.sync()
        return None

    async def sync(self) -> QueueProcessResult:
        """Replay pending writes, refresh the cache size and stamp the sync time."""
        result = await self.queue.process(self.handlers)
        if self.cache_manager is not None:
            await self.cache_manager.refresh_cache_size()
        if not result.failed:
            self.mark_synced()
        return result

    @property
    def pending_actions(self) -> int:
        return len(self.queue)

    def mark_synced(self, at: datetime | None = None) -> datetime:
        """Persist the last successful sync time."""
        synced_at = at or datetime.utcnow()
        with self.session_factory() as db:
            state = db.get(SyncState, LAST_SYNC_KEY)
            if state is None:
                db.add(SyncState(key=LAST_SYNC_KEY, synced_at=synced_at))
            else:
                state.synced_at = synced_at
            db.commit()
        logger.debug("sync_marked", synced_at=synced_at.isoformat())
        return synced_at

    def last_sync(self) -> datetime | None:
        with self.session_factory() as db:
            state = db.get(SyncState, LAST_SYNC_KEY)
            return state.synced_at if state else None
