"""
Map tile download for offline regions.

A tile fetcher turns a viewport into one bundle of bytes (a zip of
``z/x/y.png`` entries) that the cache manager stores under a single key.
"""

import asyncio
import zipfile
from dataclasses import dataclass
from io import BytesIO
from typing import Protocol

import httpx

from tripbuddy.logging_config import get_logger
from tripbuddy.offline.schemas import MapRegionRequest
from tripbuddy.offline.sizing import TileRange, tile_range

logger = get_logger(__name__)


class TileFetchError(Exception):
    """Raised when a region's tiles cannot be fetched."""

    pass


@dataclass
class TileBundle:
    """Fetched tiles for one region."""

    data: bytes
    tile_count: int


class TileFetcher(Protocol):
    async def __call__(self, region: MapRegionRequest) -> TileBundle: ...


def region_tiles(region: MapRegionRequest) -> TileRange:
    """Tile range covering a requested region."""
    return tile_range(
        region.latitude,
        region.longitude,
        region.latitude_delta,
        region.longitude_delta,
        region.zoom_level,
    )


class HttpTileFetcher:
    """
    Fetch tiles from an XYZ tile server.

    Example:
        >>> fetcher = HttpTileFetcher(client, "https://tiles.example.org/{z}/{x}/{y}.png")
        >>> bundle = await fetcher(region)
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        url_template: str,
        max_tiles: int = 2500,
        concurrency: int = 8,
    ):
        self.client = client
        self.url_template = url_template
        self.max_tiles = max_tiles
        self._semaphore = asyncio.Semaphore(concurrency)

    async def _fetch_tile(self, z: int, x: int, y: int) -> bytes:
        url = self.url_template.format(z=z, x=x, y=y)
        async with self._semaphore:
            response = await self.client.get(url)
        response.raise_for_status()
        return response.content

    async def __call__(self, region: MapRegionRequest) -> TileBundle:
        tiles = region_tiles(region)
        if tiles.count > self.max_tiles:
            raise TileFetchError(
                f"Region {region.id} needs {tiles.count} tiles, limit is {self.max_tiles}"
            )

        async with asyncio.TaskGroup() as group:
            tasks = {
                (z, x, y): group.create_task(self._fetch_tile(z, x, y))
                for z, x, y in tiles.tiles()
            }

        buffer = BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_STORED) as archive:
            for (z, x, y), task in tasks.items():
                archive.writestr(f"{z}/{x}/{y}.png", task.result())

        logger.debug(
            "map_tiles_fetched",
            region_id=region.id,
            zoom=tiles.zoom,
            tile_count=tiles.count,
        )
        return TileBundle(data=buffer.getvalue(), tile_count=tiles.count)
