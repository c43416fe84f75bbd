"""
Cache inventory record store.

Persists CachedDocument and OfflineMapRegion metadata. Only the offline
cache manager calls into this module; nothing else may write these tables.
"""

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from tripbuddy.logging_config import get_logger
from tripbuddy.models import CachedDocument, OfflineMapRegion

logger = get_logger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Documents
# ─────────────────────────────────────────────────────────────────────────────

def get_document(db: Session, document_id: str) -> CachedDocument | None:
    """Get a cached document record by its remote id."""
    return db.scalar(select(CachedDocument).where(CachedDocument.id == document_id))


def list_documents(db: Session, trip_id: str | None = None) -> list[CachedDocument]:
    """
    List cached document records in insertion order.

    Args:
        db: Database session
        trip_id: Optional trip filter

    Returns:
        List of CachedDocument
    """
    query = select(CachedDocument)
    if trip_id is not None:
        query = query.where(CachedDocument.trip_id == trip_id)
    return list(db.scalars(query.order_by(CachedDocument.pk)))


def replace_document(db: Session, record: CachedDocument) -> CachedDocument:
    """
    Insert a document record, replacing any previous record with the same id.

    Commits the transaction.
    """
    db.execute(delete(CachedDocument).where(CachedDocument.id == record.id))
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.debug("cached_document_recorded", document_id=record.id, size_bytes=record.file_size_bytes)
    return record


def delete_document(db: Session, document_id: str) -> bool:
    """
    Delete a document record.

    Returns:
        True if a record was deleted
    """
    result = db.execute(delete(CachedDocument).where(CachedDocument.id == document_id))
    db.commit()
    return result.rowcount > 0


def documents_size_bytes(db: Session) -> int:
    """Sum of recorded document sizes."""
    return int(db.scalar(select(func.coalesce(func.sum(CachedDocument.file_size_bytes), 0))))


# ─────────────────────────────────────────────────────────────────────────────
# Map regions
# ─────────────────────────────────────────────────────────────────────────────

def get_region(db: Session, region_id: str) -> OfflineMapRegion | None:
    """Get a map region record by id."""
    return db.scalar(select(OfflineMapRegion).where(OfflineMapRegion.id == region_id))


def list_regions(db: Session, trip_id: str | None = None) -> list[OfflineMapRegion]:
    """List map region records in insertion order, optionally for one trip."""
    query = select(OfflineMapRegion)
    if trip_id is not None:
        query = query.where(OfflineMapRegion.trip_id == trip_id)
    return list(db.scalars(query.order_by(OfflineMapRegion.pk)))


def replace_region(db: Session, record: OfflineMapRegion) -> OfflineMapRegion:
    """Insert a map region record, replacing any previous one with the same id."""
    db.execute(delete(OfflineMapRegion).where(OfflineMapRegion.id == record.id))
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.debug("map_region_recorded", region_id=record.id, size_in_mb=record.size_in_mb)
    return record


def delete_region(db: Session, region_id: str) -> bool:
    """Delete a map region record. Returns True if one was deleted."""
    result = db.execute(delete(OfflineMapRegion).where(OfflineMapRegion.id == region_id))
    db.commit()
    return result.rowcount > 0


def count_regions(db: Session, trip_id: str) -> int:
    """Number of regions recorded for a trip."""
    return int(
        db.scalar(
            select(func.count()).select_from(OfflineMapRegion).where(OfflineMapRegion.trip_id == trip_id)
        )
    )


def maps_size_bytes(db: Session) -> int:
    """Sum of recorded region sizes in bytes (each region rounded to whole bytes)."""
    return sum(region.size_bytes for region in db.scalars(select(OfflineMapRegion)))


__all__ = [
    "get_document",
    "list_documents",
    "replace_document",
    "delete_document",
    "documents_size_bytes",
    "get_region",
    "list_regions",
    "replace_region",
    "delete_region",
    "count_regions",
    "maps_size_bytes",
]
