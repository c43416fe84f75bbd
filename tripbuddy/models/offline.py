"""Offline cache inventory, pending-action queue and sync markers."""

from datetime import datetime

from sqlalchemy import JSON, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from tripbuddy.database import Base

BYTES_PER_MB = 1024 * 1024


class CachedDocument(Base):
    """
    One trip document downloaded for offline use.

    Records are never mutated in place; a re-download replaces the row.
    """

    __tablename__ = "cached_document"

    # Surrogate key keeps insertion order; ``id`` is the remote document id.
    pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    trip_id: Mapped[str] = mapped_column(String(128), index=True, nullable=False)

    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_size_bytes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    local_uri: Mapped[str] = mapped_column(Text, nullable=False)
    file_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)  # SHA256
    original_url: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(50), default="other")  # flight, hotel, activity, other

    downloaded_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    def __repr__(self) -> str:
        return (
            f"<CachedDocument(id={self.id}, trip={self.trip_id}, "
            f"file={self.file_name}, size={self.file_size_bytes})>"
        )


class OfflineMapRegion(Base):
    """
    One map tile-region downloaded for offline use.

    A trip's map is available offline when at least one region exists for it.
    """

    __tablename__ = "offline_map_region"

    pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    trip_id: Mapped[str] = mapped_column(String(128), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Viewport
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    latitude_delta: Mapped[float] = mapped_column(Float, nullable=False)
    longitude_delta: Mapped[float] = mapped_column(Float, nullable=False)
    zoom_level: Mapped[int] = mapped_column(Integer, nullable=False)

    # Recorded size (estimated when the tile source does not report one)
    tile_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    size_in_mb: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    local_uri: Mapped[str | None] = mapped_column(Text, nullable=True)

    downloaded_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    @property
    def size_bytes(self) -> int:
        """Recorded size converted to bytes."""
        return round(self.size_in_mb * BYTES_PER_MB)

    def __repr__(self) -> str:
        return (
            f"<OfflineMapRegion(id={self.id}, trip={self.trip_id}, "
            f"zoom={self.zoom_level}, tiles={self.tile_count}, mb={self.size_in_mb})>"
        )


class OfflineQueueItem(Base):
    """A write made while offline, replayed against the document store on reconnect."""

    __tablename__ = "offline_queue_item"

    pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    action: Mapped[str] = mapped_column(String(20), nullable=False)  # create, update, delete
    collection: Mapped[str] = mapped_column(String(50), nullable=False)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    attempts: Mapped[int] = mapped_column(Integer, default=0)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<OfflineQueueItem(id={self.id}, {self.action} {self.collection})>"


class SyncState(Base):
    """Named sync markers, e.g. the last successful sync time."""

    __tablename__ = "sync_state"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    synced_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
