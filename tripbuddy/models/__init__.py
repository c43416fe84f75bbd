"""
SQLAlchemy ORM models for the application.
All models must be imported here so ``init_db`` creates their tables.
"""

from tripbuddy.models.expense import Expense, ExpenseShare
from tripbuddy.models.offline import (
    BYTES_PER_MB,
    CachedDocument,
    OfflineMapRegion,
    OfflineQueueItem,
    SyncState,
)
from tripbuddy.models.trip import Trip, TripCollaborator, TripDocument

__all__ = [
    "BYTES_PER_MB",
    "CachedDocument",
    "OfflineMapRegion",
    "OfflineQueueItem",
    "SyncState",
    "Trip",
    "TripCollaborator",
    "TripDocument",
    "Expense",
    "ExpenseShare",
]
