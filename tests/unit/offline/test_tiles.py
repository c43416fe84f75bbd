"""Unit tests for the HTTP map tile fetcher."""

import zipfile
from io import BytesIO

import httpx
import pytest

from tripbuddy.offline import HttpTileFetcher, MapRegionRequest, TileFetchError

TEMPLATE = "https://tiles.example.org/{z}/{x}/{y}.png"


def world_region(zoom: int = 1) -> MapRegionRequest:
    return MapRegionRequest(
        id="region-world",
        trip_id="trip-1",
        latitude=0,
        longitude=0,
        latitude_delta=170,
        longitude_delta=350,
        zoom_level=zoom,
    )


def tile_client(missing: set[str] | None = None) -> tuple[httpx.AsyncClient, list[str]]:
    requested = []
    missing = missing or set()

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(request.url.path)
        if request.url.path in missing:
            return httpx.Response(404)
        return httpx.Response(200, content=f"png:{request.url.path}".encode())

    return httpx.AsyncClient(transport=httpx.MockTransport(handler)), requested


class TestHttpTileFetcher:
    """Tests for HttpTileFetcher."""

    @pytest.mark.asyncio
    async def test_bundles_every_tile(self):
        client, requested = tile_client()
        fetcher = HttpTileFetcher(client, TEMPLATE)

        bundle = await fetcher(world_region())

        assert bundle.tile_count == 4
        assert len(requested) == 4
        with zipfile.ZipFile(BytesIO(bundle.data)) as archive:
            assert sorted(archive.namelist()) == ["1/0/0.png", "1/0/1.png", "1/1/0.png", "1/1/1.png"]
            assert archive.read("1/1/0.png") == b"png:/1/1/0.png"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_rejects_oversized_region(self):
        """Regions above the tile cap fail before any request is made."""
        client, requested = tile_client()
        fetcher = HttpTileFetcher(client, TEMPLATE, max_tiles=3)

        with pytest.raises(TileFetchError):
            await fetcher(world_region())

        assert requested == []
        await client.aclose()

    @pytest.mark.asyncio
    async def test_missing_tile_fails_the_region(self):
        client, _ = tile_client(missing={"/1/0/1.png"})
        fetcher = HttpTileFetcher(client, TEMPLATE)

        with pytest.raises(ExceptionGroup) as exc_info:
            await fetcher(world_region())

        assert exc_info.group_contains(httpx.HTTPStatusError)
        await client.aclose()

    @pytest.mark.asyncio
    async def test_cache_manager_records_fetched_region(self, cache_manager_factory, blob_store):
        """End to end: tiles fetched over HTTP land in the offline inventory."""
        client, _ = tile_client()
        cache = cache_manager_factory(tile_fetcher=HttpTileFetcher(client, TEMPLATE))

        assert await cache.download_map_region(world_region()) is True

        [region] = await cache.get_cached_map_regions()
        assert region.tile_count == 4
        assert blob_store.exists(region.local_uri)
        assert cache.cache_size.maps == region.size_bytes
        await client.aclose()
