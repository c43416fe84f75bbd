"""
Cache size bookkeeping and map tile arithmetic.

Sizes are always recomputed from inventory records; nothing here keeps a
running counter.
"""

import math
from dataclasses import dataclass
from typing import Any

MAX_TILE_LATITUDE = 85.05112878
_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


@dataclass(frozen=True)
class CacheSizeSummary:
    """Aggregate size of the offline cache, in bytes."""

    documents: int
    maps: int

    @property
    def total(self) -> int:
        return self.documents + self.maps

    @property
    def formatted(self) -> str:
        return format_bytes(self.total)

    @classmethod
    def empty(cls) -> "CacheSizeSummary":
        return cls(documents=0, maps=0)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "documents": self.documents,
            "maps": self.maps,
            "total": self.total,
            "formatted": self.formatted,
        }


def format_bytes(size_bytes: int) -> str:
    """
    Format a byte count for display.

    >>> format_bytes(0)
    '0 B'
    >>> format_bytes(1536)
    '1.5 KB'
    """
    if size_bytes <= 0:
        return "0 B"
    exponent = min((int(size_bytes).bit_length() - 1) // 10, len(_SIZE_UNITS) - 1)
    value = round(size_bytes / 1024**exponent, 1)
    text = f"{value:.1f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[exponent]}"


# ─────────────────────────────────────────────────────────────────────────────
# Slippy-map tiles
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class TileRange:
    """Inclusive tile index range covering a viewport at one zoom level."""

    zoom: int
    x_min: int
    x_max: int
    y_min: int
    y_max: int

    @property
    def count(self) -> int:
        return (self.x_max - self.x_min + 1) * (self.y_max - self.y_min + 1)

    def tiles(self):
        """Yield (z, x, y) for every tile in the range."""
        for x in range(self.x_min, self.x_max + 1):
            for y in range(self.y_min, self.y_max + 1):
                yield self.zoom, x, y


def zoom_for_longitude_delta(longitude_delta: float) -> int:
    """Zoom level whose single tile spans roughly the given longitude delta."""
    if longitude_delta <= 0:
        return 0
    return max(0, round(math.log2(360 / longitude_delta)))


def _tile_x(longitude: float, n: int) -> int:
    x = int((longitude + 180.0) / 360.0 * n)
    return min(max(x, 0), n - 1)


def _tile_y(latitude: float, n: int) -> int:
    lat = min(max(latitude, -MAX_TILE_LATITUDE), MAX_TILE_LATITUDE)
    lat_rad = math.radians(lat)
    y = int((1.0 - math.asinh(math.tan(lat_rad)) / math.pi) / 2.0 * n)
    return min(max(y, 0), n - 1)


def tile_range(
    latitude: float,
    longitude: float,
    latitude_delta: float,
    longitude_delta: float,
    zoom: int,
) -> TileRange:
    """Tiles covering the viewport centred on (latitude, longitude)."""
    n = 2**zoom
    half_lat = abs(latitude_delta) / 2
    half_lon = abs(longitude_delta) / 2
    x_min = _tile_x(longitude - half_lon, n)
    x_max = _tile_x(longitude + half_lon, n)
    # Tile y grows southwards
    y_min = _tile_y(latitude + half_lat, n)
    y_max = _tile_y(latitude - half_lat, n)
    return TileRange(zoom=zoom, x_min=x_min, x_max=x_max, y_min=y_min, y_max=y_max)


def estimate_size_mb(tile_count: int, average_tile_kb: float) -> float:
    """Estimated storage for a number of tiles."""
    return round(tile_count * average_tile_kb / 1024, 3)
