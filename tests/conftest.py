"""Shared test fixtures."""

from uuid import UUID, uuid4

import pytest

from photo_sorter.config import Settings
from photo_sorter.containers import AppContainer
from photo_sorter.services.cache import InMemoryPreviewCache
from photo_sorter.services.previews import PreviewService
from photo_sorter.services.sorting import SortingService
from tests.fakes import (
    SOURCE_FOLDER_ID,
    FakeDriveClient,
    FakeDriveClients,
    InMemorySessionRepository,
    make_images,
)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        admin_token="admin-token",
        google_client_id="client-id",
        google_client_secret="client-secret",
        preview_cache_backend="memory",
    )


@pytest.fixture
def owner_id() -> UUID:
    return uuid4()


@pytest.fixture
def drive() -> FakeDriveClient:
    return FakeDriveClient(images={SOURCE_FOLDER_ID: make_images(3)})


@pytest.fixture
def drive_clients(drive: FakeDriveClient) -> FakeDriveClients:
    return FakeDriveClients(drive=drive)


@pytest.fixture
def session_repository() -> InMemorySessionRepository:
    return InMemorySessionRepository()


@pytest.fixture
def sorting_service(
    session_repository: InMemorySessionRepository, drive_clients: FakeDriveClients
) -> SortingService:
    return SortingService(
        session_repository=session_repository, drive_clients=drive_clients
    )


@pytest.fixture
def preview_cache() -> InMemoryPreviewCache:
    return InMemoryPreviewCache()


@pytest.fixture
def container(
    settings: Settings,
    drive_clients: FakeDriveClients,
    sorting_service: SortingService,
    preview_cache: InMemoryPreviewCache,
) -> AppContainer:
    async def close_resources() -> None:
        await drive_clients.close()

    return AppContainer(
        settings=settings,
        drive_clients=drive_clients,  # type: ignore[arg-type]
        sorting_service=sorting_service,
        preview_service=PreviewService(cache=preview_cache),
        close_resources=close_resources,
    )
