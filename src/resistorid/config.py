"""Environment-based configuration for ResistorID."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from RESISTORID_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="RESISTORID_",
        case_sensitive=False,
    )

    # Server
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8080

    # Authentication for the HTTP surface (None = disabled)
    api_key: str | None = None

    # Inference service
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.5-flash"

    # Camera (0 is the default/environment-facing device on most kiosks)
    camera_index: int = Field(default=0, ge=0)
    jpeg_quality: int = Field(default=90, ge=1, le=100)

    # Input limits
    max_file_size: int = Field(default=20_971_520, ge=1)


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()
