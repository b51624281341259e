"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    google_client_id: str
    google_client_secret: str
    google_token_url: str = "https://oauth2.googleapis.com/token"
    drive_api_base_url: str = "https://www.googleapis.com/drive/v3"
    supported_extensions: str | None = None
    preview_cache_backend: str = "local"
    preview_cache_dir: str = "storage/previews"
    preview_cache_url: str = "/previews"
    preview_bucket: str = "previews"
    preview_max_age_days: int = 7
    raw_preview_max_bytes: int = 5 * 1024 * 1024
    thumbnail_size: int = 1600
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_extensions(raw: str | None) -> tuple[str, ...] | None:
    """Parse a comma-separated override of supported file extensions."""
    if raw is None:
        return None
    cleaned = raw.strip()
    if cleaned in {"", "*"}:
        return None
    extensions: list[str] = []
    for chunk in cleaned.split(","):
        value = chunk.strip().lower().lstrip(".")
        if value and value.isalnum() and value not in extensions:
            extensions.append(value)
    return tuple(extensions) or None
