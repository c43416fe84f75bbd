"""
Pydantic schemas for offline download requests.
Screens build these from trip documents and the visible map viewport.
"""

from typing import Literal

from pydantic import BaseModel, Field, field_validator


class DocumentDownload(BaseModel):
    """A trip document to fetch and keep on device."""

    id: str = Field(..., min_length=1, max_length=128)
    trip_id: str = Field(..., min_length=1, max_length=128)
    file_name: str = Field(..., min_length=1, max_length=255)
    url: str = Field(..., min_length=1, description="Remote download URL")
    type: Literal["flight", "hotel", "activity", "other"] = Field(default="other")

    @field_validator("type", mode="before")
    @classmethod
    def default_unknown_type(cls, v: str | None) -> str:
        """Unknown or missing document types fall back to 'other'."""
        if v in ("flight", "hotel", "activity", "other"):
            return v
        return "other"


class MapRegionRequest(BaseModel):
    """
    A map viewport to download for offline use.

    ``tile_count`` and ``size_in_mb`` may be left unset; the cache manager
    then records the tile source's actual figures, or estimates them.
    """

    id: str = Field(..., min_length=1, max_length=128)
    trip_id: str = Field(..., min_length=1, max_length=128)
    name: str = Field(default="Trip Map", max_length=255)

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    latitude_delta: float = Field(..., gt=0, le=180)
    longitude_delta: float = Field(..., gt=0, le=360)
    zoom_level: int = Field(..., ge=0, le=22)

    tile_count: int | None = Field(default=None, ge=0)
    size_in_mb: float | None = Field(default=None, ge=0)

    @property
    def has_known_size(self) -> bool:
        return bool(self.tile_count) and bool(self.size_in_mb)
