"""Unit tests for cache size formatting and tile arithmetic."""

import pytest

from tripbuddy.offline.sizing import (
    CacheSizeSummary,
    TileRange,
    estimate_size_mb,
    format_bytes,
    tile_range,
    zoom_for_longitude_delta,
)


class TestFormatBytes:
    """Tests for format_bytes."""

    @pytest.mark.parametrize(
        "size, expected",
        [
            (0, "0 B"),
            (512, "512 B"),
            (1023, "1023 B"),
            (1024, "1 KB"),
            (1536, "1.5 KB"),
            (1024 * 1024, "1 MB"),
            (int(2.4 * 1024 * 1024), "2.4 MB"),
            (1024**3, "1 GB"),
            (3 * 1024**4, "3 TB"),
        ],
    )
    def test_formats(self, size, expected):
        assert format_bytes(size) == expected

    def test_caps_at_terabytes(self):
        assert format_bytes(2 * 1024**5) == "2048 TB"

    def test_negative_is_zero(self):
        assert format_bytes(-5) == "0 B"


class TestCacheSizeSummary:
    """Tests for CacheSizeSummary."""

    def test_total_and_formatted(self):
        summary = CacheSizeSummary(documents=1024, maps=512)

        assert summary.total == 1536
        assert summary.formatted == "1.5 KB"

    def test_to_dict(self):
        assert CacheSizeSummary(documents=10, maps=0).to_dict() == {
            "documents": 10,
            "maps": 0,
            "total": 10,
            "formatted": "10 B",
        }

    def test_empty(self):
        assert CacheSizeSummary.empty().total == 0


class TestTileMath:
    """Tests for slippy-map tile helpers."""

    def test_zoom_zero_is_single_tile(self):
        tiles = tile_range(0, 0, 10, 10, zoom=0)

        assert tiles == TileRange(zoom=0, x_min=0, x_max=0, y_min=0, y_max=0)
        assert tiles.count == 1
        assert list(tiles.tiles()) == [(0, 0, 0)]

    def test_world_at_zoom_one(self):
        tiles = tile_range(0, 0, 170, 350, zoom=1)

        assert tiles.count == 4
        assert sorted(tiles.tiles()) == [(1, 0, 0), (1, 0, 1), (1, 1, 0), (1, 1, 1)]

    def test_small_viewport_at_high_zoom(self):
        """A ~5 km viewport at zoom 14 covers a handful of tiles."""
        tiles = tile_range(38.7223, -9.1393, 0.05, 0.05, zoom=14)

        assert 4 <= tiles.count <= 16
        assert tiles.x_min <= tiles.x_max
        assert tiles.y_min <= tiles.y_max

    def test_clamps_at_map_edges(self):
        tiles = tile_range(89.9, 179.9, 10, 10, zoom=2)

        assert tiles.x_max == 3
        assert tiles.y_min == 0

    def test_zoom_for_longitude_delta(self):
        assert zoom_for_longitude_delta(360) == 0
        assert zoom_for_longitude_delta(0.05) == 13
        assert zoom_for_longitude_delta(0) == 0

    def test_estimate_size_mb(self):
        assert estimate_size_mb(1024, 15.0) == 15.0
        assert estimate_size_mb(0, 15.0) == 0.0
