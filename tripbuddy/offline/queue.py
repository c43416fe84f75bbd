"""
Offline action queue.

Writes made while the device is offline are queued here and replayed
against the document store once connectivity returns. Items stay queued
until their handler succeeds.
"""

import uuid
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Awaitable, Callable, Mapping

from sqlalchemy import delete, select
from sqlalchemy.orm import sessionmaker

from tripbuddy.logging_config import get_logger
from tripbuddy.models import OfflineQueueItem

logger = get_logger(__name__)


class QueueAction(StrEnum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class QueueCollection(StrEnum):
    TRIPS = "trips"
    EXPENSES = "expenses"
    DOCUMENTS = "documents"
    COLLABORATORS = "collaborators"
    ITINERARY = "itinerary"


QueueHandler = Callable[[OfflineQueueItem], Awaitable[None]]


@dataclass
class QueueProcessResult:
    """Outcome of one replay pass."""

    processed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def remaining(self) -> int:
        return len(self.failed) + len(self.skipped)


class OfflineQueue:
    """Persisted FIFO of pending document-store writes."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def add(
        self,
        action: QueueAction,
        collection: QueueCollection,
        payload: dict[str, Any],
    ) -> OfflineQueueItem:
        """Queue a write for later replay."""
        item = OfflineQueueItem(
            id=uuid.uuid4().hex,
            action=QueueAction(action).value,
            collection=QueueCollection(collection).value,
            payload=payload,
        )
        with self.session_factory() as db:
            db.add(item)
            db.commit()
            db.refresh(item)
        logger.info("offline_action_queued", item_id=item.id, action=item.action, collection=item.collection)
        return item

    def items(self) -> list[OfflineQueueItem]:
        """Pending items, oldest first."""
        with self.session_factory() as db:
            return list(db.scalars(select(OfflineQueueItem).order_by(OfflineQueueItem.pk)))

    def __len__(self) -> int:
        return len(self.items())

    def remove(self, item_id: str) -> None:
        with self.session_factory() as db:
            db.execute(delete(OfflineQueueItem).where(OfflineQueueItem.id == item_id))
            db.commit()

    def clear(self) -> None:
        with self.session_factory() as db:
            db.execute(delete(OfflineQueueItem))
            db.commit()
        logger.info("offline_queue_cleared")

    def _record_failure(self, item_id: str, error: str) -> None:
        with self.session_factory() as db:
            item = db.scalar(select(OfflineQueueItem).where(OfflineQueueItem.id == item_id))
            if item is not None:
                item.attempts += 1
                item.last_error = error[:1000]
                db.commit()

    async def process(
        self, handlers: Mapping[QueueCollection, QueueHandler]
    ) -> QueueProcessResult:
        """
        Replay queued items in order.

        Args:
            handlers: Async handler per collection; items whose collection has
                no handler stay queued

        Returns:
            QueueProcessResult listing item ids per outcome
        """
        result = QueueProcessResult()

        for item in self.items():
            handler = handlers.get(QueueCollection(item.collection))
            if handler is None:
                result.skipped.append(item.id)
                continue

            try:
                await handler(item)
            except Exception as e:
                logger.warning(
                    "offline_action_replay_failed",
                    item_id=item.id,
                    collection=item.collection,
                    error=str(e),
                )
                self._record_failure(item.id, str(e))
                result.failed.append(item.id)
                continue

            self.remove(item.id)
            result.processed.append(item.id)

        logger.info(
            "offline_queue_processed",
            processed=len(result.processed),
            failed=len(result.failed),
            skipped=len(result.skipped),
        )
        return result
