"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

import httpx
from supabase import Client, create_client

from photo_sorter.adapters.google_oauth_client import HttpxGoogleOAuthClient
from photo_sorter.adapters.local_preview_cache import LocalPreviewCache
from photo_sorter.adapters.supabase_preview_cache import SupabasePreviewCache
from photo_sorter.adapters.supabase_session_repository import (
    SupabaseSessionRepository,
)
from photo_sorter.adapters.supabase_token_repository import SupabaseTokenRepository
from photo_sorter.config import Settings, parse_extensions
from photo_sorter.domain.formats import SUPPORTED_EXTENSIONS
from photo_sorter.services.cache import InMemoryPreviewCache, PreviewCache
from photo_sorter.services.drive_auth import DriveClientProvider
from photo_sorter.services.previews import PreviewService
from photo_sorter.services.sorting import SortingService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    drive_clients: DriveClientProvider
    sorting_service: SortingService
    preview_service: PreviewService
    close_resources: Callable[[], Awaitable[None]]


def build_preview_cache(settings: Settings, supabase_client: Client) -> PreviewCache:
    """Select the preview cache backend named in settings."""
    backend = settings.preview_cache_backend.lower()
    if backend == "memory":
        return InMemoryPreviewCache(base_url=settings.preview_cache_url)
    if backend == "local":
        return LocalPreviewCache(
            directory=Path(settings.preview_cache_dir),
            base_url=settings.preview_cache_url,
        )
    if backend == "supabase":
        return SupabasePreviewCache(supabase_client, bucket=settings.preview_bucket)
    raise ValueError(f"Unknown preview cache backend: {settings.preview_cache_backend}")


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    oauth_client = HttpxGoogleOAuthClient.create(
        client_id=resolved_settings.google_client_id,
        client_secret=resolved_settings.google_client_secret,
        token_url=resolved_settings.google_token_url,
    )
    drive_clients = DriveClientProvider(
        token_repository=SupabaseTokenRepository(supabase_client),
        oauth_client=oauth_client,
        http_client=httpx.AsyncClient(),
        base_url=resolved_settings.drive_api_base_url,
        extensions=(
            parse_extensions(resolved_settings.supported_extensions)
            or SUPPORTED_EXTENSIONS
        ),
    )
    sorting_service = SortingService(
        session_repository=SupabaseSessionRepository(supabase_client),
        drive_clients=drive_clients,
    )
    preview_service = PreviewService(
        cache=build_preview_cache(resolved_settings, supabase_client),
        max_raw_bytes=resolved_settings.raw_preview_max_bytes,
        thumbnail_size=resolved_settings.thumbnail_size,
    )

    async def close_resources() -> None:
        await drive_clients.close()
        await oauth_client.close()

    return AppContainer(
        settings=resolved_settings,
        drive_clients=drive_clients,
        sorting_service=sorting_service,
        preview_service=preview_service,
        close_resources=close_resources,
    )
