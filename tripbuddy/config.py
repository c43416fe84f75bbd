"""
Application configuration management using Pydantic Settings.
All settings are loaded from environment variables.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TRIPBUDDY_",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Database Configuration (cache inventory + local document store)
    # =========================================================================
    database_url: str = Field(default="sqlite:///tripbuddy.db")
    database_echo: bool = Field(default=False)

    # =========================================================================
    # Offline Cache Storage
    # =========================================================================
    storage_backend: Literal["local", "minio"] = Field(default="local")
    cache_directory: Path = Field(default=Path("tripbuddy_cache"))

    # MinIO (S3-compatible) backend
    minio_host: str = Field(default="localhost")
    minio_port: int = Field(default=9000)
    minio_access_key: str = Field(default="minioadmin")
    minio_secret_key: str = Field(default="minioadmin")
    minio_bucket_name: str = Field(default="tripbuddy-offline")
    minio_secure: bool = Field(default=False)

    # =========================================================================
    # Downloads
    # =========================================================================
    download_timeout_seconds: float = Field(default=30.0)

    # Map tiles
    tile_url_template: str = Field(default="")  # e.g. https://tile.example.org/{z}/{x}/{y}.png
    average_tile_size_kb: float = Field(default=15.0)
    max_tiles_per_region: int = Field(default=2500)

    # =========================================================================
    # Logging Configuration
    # =========================================================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )
    log_format: Literal["json", "console"] = Field(default="json")

    # =========================================================================
    # Application Settings
    # =========================================================================
    environment: Literal["development", "staging", "production"] = Field(
        default="development"
    )

    @property
    def documents_prefix(self) -> str:
        """Key prefix for cached document bytes."""
        return "documents"

    @property
    def maps_prefix(self) -> str:
        """Key prefix for cached map tile bundles."""
        return "maps"

    @property
    def tiles_configured(self) -> bool:
        """Check if a tile server is configured for map downloads."""
        return bool(self.tile_url_template)


# Global settings instance
settings = Settings()
