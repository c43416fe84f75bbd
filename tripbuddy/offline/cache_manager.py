"""
Offline Cache Manager.

Keeps the on-device inventory of downloaded trip documents and map regions
and answers "is this available offline?" without touching the network.

Contract for every download:
1. fetch bytes (the only suspension point)
2. write bytes durably under a fresh key
3. insert the inventory record

A record therefore never exists before its bytes do. Failures at any step
return False and leave neither a record nor orphaned bytes. A download that
is cancelled while fetching has written nothing yet.

Operations on the same id are serialized by a per-id lock; different ids
interleave freely.

Usage:
    >>> async with OfflineCacheManager.from_settings() as cache:
    ...     ok = await cache.download_document(DocumentDownload(...))
    ...     summary = await cache.refresh_cache_size()
"""

import asyncio
import uuid
from contextlib import asynccontextmanager, contextmanager
from typing import AsyncIterator, Iterator

import httpx
from sqlalchemy.orm import Session, sessionmaker

from tripbuddy.config import settings
from tripbuddy.database import get_session_local
from tripbuddy.logging_config import get_logger
from tripbuddy.models import BYTES_PER_MB, CachedDocument, OfflineMapRegion
from tripbuddy.offline.schemas import DocumentDownload, MapRegionRequest
from tripbuddy.offline.sizing import CacheSizeSummary, estimate_size_mb
from tripbuddy.offline.tiles import HttpTileFetcher, TileBundle, TileFetcher, region_tiles
from tripbuddy.storage import cache_inventory
from tripbuddy.storage.object_storage import (
    BlobStore,
    compute_file_hash,
    get_blob_store,
    safe_key_part,
)

logger = get_logger(__name__)


class OfflineCacheManager:
    """Sole owner of the cached document and offline map region inventory."""

    def __init__(
        self,
        session_factory: sessionmaker,
        blob_store: BlobStore,
        http_client: httpx.AsyncClient | None = None,
        tile_fetcher: TileFetcher | None = None,
        download_timeout: float | None = None,
        average_tile_kb: float | None = None,
    ):
        self.session_factory = session_factory
        self.blob_store = blob_store
        self.http_client = http_client
        self.tile_fetcher = tile_fetcher
        self.download_timeout = (
            download_timeout if download_timeout is not None else settings.download_timeout_seconds
        )
        self.average_tile_kb = (
            average_tile_kb if average_tile_kb is not None else settings.average_tile_size_kb
        )
        self.cache_size = CacheSizeSummary.empty()
        self._locks: dict[tuple[str, str], asyncio.Lock] = {}
        self._lock_users: dict[tuple[str, str], int] = {}
        self._owns_http_client = False

    @classmethod
    def from_settings(cls) -> "OfflineCacheManager":
        """Build a manager wired to the configured database, storage and tile server."""
        client = httpx.AsyncClient(
            timeout=settings.download_timeout_seconds,
            follow_redirects=True,
        )
        tile_fetcher = None
        if settings.tiles_configured:
            tile_fetcher = HttpTileFetcher(
                client,
                settings.tile_url_template,
                max_tiles=settings.max_tiles_per_region,
            )
        manager = cls(
            session_factory=get_session_local(),
            blob_store=get_blob_store(),
            http_client=client,
            tile_fetcher=tile_fetcher,
        )
        manager._owns_http_client = True
        return manager

    async def aclose(self) -> None:
        """Release the HTTP client if this manager created it."""
        if self._owns_http_client and self.http_client is not None:
            await self.http_client.aclose()

    async def __aenter__(self) -> "OfflineCacheManager":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ─────────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────────

    @asynccontextmanager
    async def _lock(self, kind: str, item_id: str) -> AsyncIterator[None]:
        """Hold the per-id lock; the entry is dropped once nobody holds or awaits it."""
        key = (kind, item_id)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self.session_factory()
        try:
            yield db
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    async def _fetch(self, url: str) -> bytes:
        """GET url and return the body; raises httpx.HTTPError or httpx.InvalidURL on failure."""
        if self.http_client is not None:
            response = await self.http_client.get(
                url, timeout=self.download_timeout, follow_redirects=True
            )
        else:
            async with httpx.AsyncClient(timeout=self.download_timeout) as client:
                response = await client.get(url, follow_redirects=True)
        response.raise_for_status()
        return response.content

    def _discard_bytes(self, key: str | None) -> None:
        if key and not self.blob_store.delete_bytes(key):
            logger.warning("orphaned_bytes_not_deleted", key=key)

    # ─────────────────────────────────────────────────────────────────────
    # Documents
    # ─────────────────────────────────────────────────────────────────────

    async def is_document_cached(self, document_id: str) -> bool:
        """
        Check the inventory for a document.

        Trusts the record; the bytes on disk are not inspected.
        """
        with self._session() as db:
            return cache_inventory.get_document(db, document_id) is not None

    async def get_document_from_cache(
        self, document_id: str, verify: bool = True
    ) -> CachedDocument | None:
        """
        Get a cached document record.

        Args:
            document_id: Remote document id
            verify: Drop the record and return None if its bytes are gone

        Returns:
            CachedDocument or None
        """
        async with self._lock("document", document_id):
            with self._session() as db:
                record = cache_inventory.get_document(db, document_id)
                if record is None:
                    return None
                if verify and not self.blob_store.exists(record.local_uri):
                    cache_inventory.delete_document(db, document_id)
                    logger.warning("cached_document_missing_bytes", document_id=document_id)
                    return None
                return record

    async def download_document(self, request: DocumentDownload) -> bool:
        """
        Download a document and add it to the offline inventory.

        A re-download replaces the previous record and its bytes.

        Returns:
            True on success, False on any network or storage failure
        """
        async with self._lock("document", request.id):
            try:
                data = await self._fetch(request.url)
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                logger.error(
                    "document_download_failed",
                    document_id=request.id,
                    trip_id=request.trip_id,
                    error=str(e) or type(e).__name__,
                )
                return False

            key = (
                f"{settings.documents_prefix}/{safe_key_part(request.id)}_"
                f"{uuid.uuid4().hex[:8]}_{safe_key_part(request.file_name)}"
            )
            written = None
            try:
                self.blob_store.write_bytes(key, data)
                written = key
                with self._session() as db:
                    previous = cache_inventory.get_document(db, request.id)
                    previous_key = previous.local_uri if previous else None
                    cache_inventory.replace_document(
                        db,
                        CachedDocument(
                            id=request.id,
                            trip_id=request.trip_id,
                            file_name=request.file_name,
                            file_size_bytes=len(data),
                            local_uri=key,
                            file_hash=compute_file_hash(data),
                            original_url=request.url,
                            type=request.type,
                        ),
                    )
            except Exception as e:
                logger.error(
                    "document_cache_write_failed",
                    document_id=request.id,
                    error=str(e),
                    exc_info=True,
                )
                self._discard_bytes(written)
                return False

            if previous_key and previous_key != key:
                self._discard_bytes(previous_key)

            logger.info(
                "document_cached",
                document_id=request.id,
                trip_id=request.trip_id,
                size_bytes=len(data),
            )

        await self.refresh_cache_size()
        return True

    async def remove_document_from_cache(self, document_id: str) -> None:
        """
        Remove a document's bytes and record.

        Removing an id that is not cached is a no-op. If the bytes cannot be
        deleted the record is kept, so it keeps counting toward the cache size.
        """
        async with self._lock("document", document_id):
            with self._session() as db:
                record = cache_inventory.get_document(db, document_id)
                if record is None:
                    return
                if not self.blob_store.delete_bytes(record.local_uri):
                    logger.warning("document_removal_incomplete", document_id=document_id)
                    return
                cache_inventory.delete_document(db, document_id)
            logger.info("document_removed_from_cache", document_id=document_id)

        await self.refresh_cache_size()

    async def get_cached_documents(self, trip_id: str | None = None) -> list[CachedDocument]:
        """Cached documents, optionally for one trip."""
        with self._session() as db:
            return cache_inventory.list_documents(db, trip_id)

    # ─────────────────────────────────────────────────────────────────────
    # Map regions
    # ─────────────────────────────────────────────────────────────────────

    def _region_size(
        self, request: MapRegionRequest, bundle: TileBundle | None
    ) -> tuple[int, float]:
        if bundle is not None:
            return bundle.tile_count, round(len(bundle.data) / BYTES_PER_MB, 6)
        if request.has_known_size:
            return request.tile_count, request.size_in_mb
        tile_count = request.tile_count or region_tiles(request).count
        size_in_mb = request.size_in_mb or estimate_size_mb(tile_count, self.average_tile_kb)
        return tile_count, size_in_mb

    async def download_map_region(self, request: MapRegionRequest) -> bool:
        """
        Download a map region's tiles and add it to the offline inventory.

        Without a tile fetcher only the region metadata is recorded, with an
        estimated tile count and size.

        Returns:
            True on success, False on any network or storage failure
        """
        async with self._lock("map", request.id):
            bundle = None
            if self.tile_fetcher is not None:
                try:
                    bundle = await self.tile_fetcher(request)
                except Exception as e:
                    logger.error(
                        "map_region_download_failed",
                        region_id=request.id,
                        trip_id=request.trip_id,
                        error=str(e) or type(e).__name__,
                    )
                    return False

            tile_count, size_in_mb = self._region_size(request, bundle)
            key = None
            if bundle is not None:
                key = (
                    f"{settings.maps_prefix}/{safe_key_part(request.id)}_"
                    f"{uuid.uuid4().hex[:8]}.zip"
                )

            written = None
            try:
                if key is not None:
                    self.blob_store.write_bytes(key, bundle.data)
                    written = key
                with self._session() as db:
                    previous = cache_inventory.get_region(db, request.id)
                    previous_key = previous.local_uri if previous else None
                    cache_inventory.replace_region(
                        db,
                        OfflineMapRegion(
                            id=request.id,
                            trip_id=request.trip_id,
                            name=request.name,
                            latitude=request.latitude,
                            longitude=request.longitude,
                            latitude_delta=request.latitude_delta,
                            longitude_delta=request.longitude_delta,
                            zoom_level=request.zoom_level,
                            tile_count=tile_count,
                            size_in_mb=size_in_mb,
                            local_uri=key,
                        ),
                    )
            except Exception as e:
                logger.error(
                    "map_region_write_failed",
                    region_id=request.id,
                    error=str(e),
                    exc_info=True,
                )
                self._discard_bytes(written)
                return False

            if previous_key and previous_key != key:
                self._discard_bytes(previous_key)

            logger.info(
                "map_region_cached",
                region_id=request.id,
                trip_id=request.trip_id,
                tile_count=tile_count,
                size_in_mb=size_in_mb,
                estimated=bundle is None,
            )

        await self.refresh_cache_size()
        return True

    async def remove_map_region(self, region_id: str) -> None:
        """Remove a map region. Removing an unknown id is a no-op."""
        async with self._lock("map", region_id):
            with self._session() as db:
                record = cache_inventory.get_region(db, region_id)
                if record is None:
                    return
                if record.local_uri and not self.blob_store.delete_bytes(record.local_uri):
                    logger.warning("map_region_removal_incomplete", region_id=region_id)
                    return
                cache_inventory.delete_region(db, region_id)
            logger.info("map_region_removed", region_id=region_id)

        await self.refresh_cache_size()

    async def get_cached_map_regions(self, trip_id: str | None = None) -> list[OfflineMapRegion]:
        """Cached map regions, optionally for one trip."""
        with self._session() as db:
            return cache_inventory.list_regions(db, trip_id)

    async def has_offline_map(self, trip_id: str) -> bool:
        """A trip's map is available offline when it has at least one region."""
        with self._session() as db:
            return cache_inventory.count_regions(db, trip_id) > 0

    # ─────────────────────────────────────────────────────────────────────
    # Cache management
    # ─────────────────────────────────────────────────────────────────────

    async def clear_cache(self) -> CacheSizeSummary:
        """
        Remove every cached document and map region.

        Best effort: each item is attempted even if another fails, and the
        returned summary reflects whatever survived.
        """
        documents = await self.get_cached_documents()
        regions = await self.get_cached_map_regions()

        for document in documents:
            try:
                await self.remove_document_from_cache(document.id)
            except Exception as e:
                logger.error("clear_cache_document_failed", document_id=document.id, error=str(e))

        for region in regions:
            try:
                await self.remove_map_region(region.id)
            except Exception as e:
                logger.error("clear_cache_region_failed", region_id=region.id, error=str(e))

        summary = await self.refresh_cache_size()
        logger.info(
            "cache_cleared",
            documents_attempted=len(documents),
            regions_attempted=len(regions),
            remaining_bytes=summary.total,
        )
        return summary

    async def refresh_cache_size(self) -> CacheSizeSummary:
        """Recompute the cache size from inventory records."""
        with self._session() as db:
            summary = CacheSizeSummary(
                documents=cache_inventory.documents_size_bytes(db),
                maps=cache_inventory.maps_size_bytes(db),
            )
        self.cache_size = summary
        return summary
