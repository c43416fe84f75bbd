"""
Storage layer for persisting data.

This module provides:
- Object storage (local directory or MinIO) for cached file bytes
- Cache inventory records for downloaded documents and map regions
- Usage counters for plan limit checks
- Trip writer for trip management
- Collaborator writer for trip members and trip documents
- Expense writer that stores an expense with its split shares
"""

from tripbuddy.storage.collaborator_writer import (
    CollaboratorWriteResult,
    DocumentWriteResult,
    add_collaborator,
    add_document,
    get_trip_collaborators,
    remove_collaborator,
)
from tripbuddy.storage.expense_writer import (
    ExpenseWriteResult,
    create_expense,
    delete_expense,
    get_expense_by_id,
    get_trip_expenses,
)
from tripbuddy.storage.object_storage import (
    BlobStore,
    LocalBlobStore,
    MinioBlobStore,
    ObjectStorageError,
    compute_file_hash,
    get_blob_store,
)
from tripbuddy.storage.trip_writer import (
    TripWriteResult,
    create_trip,
    delete_trip,
    get_trip_by_id,
    get_user_trips,
)
from tripbuddy.storage.usage import get_usage_counters

__all__ = [
    # Collaborator writer
    "CollaboratorWriteResult",
    "DocumentWriteResult",
    "add_collaborator",
    "add_document",
    "get_trip_collaborators",
    "remove_collaborator",
    # Expense writer
    "ExpenseWriteResult",
    "create_expense",
    "delete_expense",
    "get_expense_by_id",
    "get_trip_expenses",
    # Object storage
    "BlobStore",
    "LocalBlobStore",
    "MinioBlobStore",
    "ObjectStorageError",
    "compute_file_hash",
    "get_blob_store",
    # Trip writer
    "TripWriteResult",
    "create_trip",
    "delete_trip",
    "get_trip_by_id",
    "get_user_trips",
    # Usage
    "get_usage_counters",
]
