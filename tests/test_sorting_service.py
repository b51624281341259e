"""Tests for the sorting session state machine."""

import asyncio
from dataclasses import replace
from datetime import UTC, datetime
from uuid import UUID, uuid4

import pytest

from photo_sorter.domain.errors import (
    DriveNotConnected,
    ExternalServiceError,
    InvalidIndex,
    LimitExceeded,
    MoveFailed,
    NotFound,
    PreconditionFailed,
    Unauthorized,
)
from photo_sorter.domain.sessions import (
    STATUS_ACTIVE,
    STATUS_COMPLETED,
    STATUS_SETUP,
    DestinationFolder,
    SortingSession,
    new_session,
)
from photo_sorter.services.sorting import SkipResult, SortingService, SortResult
from tests.fakes import (
    SOURCE_FOLDER_ID,
    FakeDriveClient,
    InMemorySessionRepository,
    make_images,
)

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def _seed_active(
    repository: InMemorySessionRepository,
    owner_id: UUID,
    total: int = 3,
    folders: tuple[str, ...] = ("A", "B"),
) -> SortingSession:
    session = repository.create_session(
        new_session(owner_id, SOURCE_FOLDER_ID, "Holiday", make_images(total))
    )
    session = replace(
        session,
        destination_folders=tuple(
            DestinationFolder(id=folder_id, name=f"Folder {folder_id}")
            for folder_id in folders
        ),
        status=STATUS_ACTIVE,
    )
    repository.sessions[session.id] = session
    return session


def _assert_counts_consistent(session: SortingSession) -> None:
    assert session.sorted_count + session.remaining_count == session.total_images


def test_create_session_snapshots_source_images(
    sorting_service: SortingService, owner_id: UUID
) -> None:
    session = asyncio.run(
        sorting_service.create_session(owner_id, SOURCE_FOLDER_ID, "Holiday")
    )

    assert session.id is not None
    assert session.status == STATUS_SETUP
    assert session.total_images == 3
    assert session.remaining_count == 3
    assert session.sorted_count == 0
    assert session.cursor == 0
    assert [image.id for image in session.images] == ["file-0", "file-1", "file-2"]
    _assert_counts_consistent(session)


def test_create_session_rejects_second_open_session(
    sorting_service: SortingService, owner_id: UUID
) -> None:
    asyncio.run(sorting_service.create_session(owner_id, SOURCE_FOLDER_ID, "One"))

    with pytest.raises(PreconditionFailed):
        asyncio.run(sorting_service.create_session(owner_id, SOURCE_FOLDER_ID, "Two"))


def test_create_session_requires_connected_drive(
    sorting_service: SortingService, drive_clients, owner_id: UUID
) -> None:
    drive_clients.connected = set()

    with pytest.raises(DriveNotConnected):
        asyncio.run(
            sorting_service.create_session(owner_id, SOURCE_FOLDER_ID, "Holiday")
        )


def test_add_destination_folder_creates_folder_under_source(
    sorting_service: SortingService, drive: FakeDriveClient, owner_id: UUID
) -> None:
    session = asyncio.run(
        sorting_service.create_session(owner_id, SOURCE_FOLDER_ID, "Holiday")
    )

    updated, folder = asyncio.run(
        sorting_service.add_destination_folder(owner_id, session.id, "  Keepers ")
    )

    assert drive.created_folders == [("Keepers", SOURCE_FOLDER_ID)]
    assert folder.name == "Keepers"
    assert updated.destination_folders == (folder,)


def test_add_destination_folder_rejects_tenth_folder(
    sorting_service: SortingService,
    session_repository: InMemorySessionRepository,
    drive: FakeDriveClient,
    owner_id: UUID,
) -> None:
    session = asyncio.run(
        sorting_service.create_session(owner_id, SOURCE_FOLDER_ID, "Holiday")
    )
    for index in range(9):
        asyncio.run(
            sorting_service.add_destination_folder(owner_id, session.id, f"F{index}")
        )
    before = session_repository.sessions[session.id]

    with pytest.raises(LimitExceeded):
        asyncio.run(
            sorting_service.add_destination_folder(owner_id, session.id, "Tenth")
        )

    assert len(before.destination_folders) == 9
    assert session_repository.sessions[session.id] == before
    assert len(drive.created_folders) == 9


def test_add_destination_folder_requires_setup(
    sorting_service: SortingService,
    session_repository: InMemorySessionRepository,
    owner_id: UUID,
) -> None:
    session = _seed_active(session_repository, owner_id)

    with pytest.raises(PreconditionFailed):
        asyncio.run(
            sorting_service.add_destination_folder(owner_id, session.id, "Late")
        )


def test_remove_destination_folder_shifts_shortcuts(
    sorting_service: SortingService,
    session_repository: InMemorySessionRepository,
    owner_id: UUID,
) -> None:
    session = _seed_active(session_repository, owner_id, folders=("A", "B", "C"))
    session_repository.sessions[session.id] = replace(session, status=STATUS_SETUP)

    updated = sorting_service.remove_destination_folder(owner_id, session.id, "A")

    assert [folder.id for folder in updated.destination_folders] == ["B", "C"]


def test_remove_unknown_folder_is_noop(
    sorting_service: SortingService, owner_id: UUID
) -> None:
    session = asyncio.run(
        sorting_service.create_session(owner_id, SOURCE_FOLDER_ID, "Holiday")
    )

    updated = sorting_service.remove_destination_folder(owner_id, session.id, "nope")

    assert updated == session


def test_start_sorting_requires_destination_folder(
    sorting_service: SortingService, owner_id: UUID
) -> None:
    session = asyncio.run(
        sorting_service.create_session(owner_id, SOURCE_FOLDER_ID, "Holiday")
    )

    with pytest.raises(PreconditionFailed):
        sorting_service.start_sorting(owner_id, session.id)


def test_start_sorting_activates_session(
    sorting_service: SortingService, owner_id: UUID
) -> None:
    session = asyncio.run(
        sorting_service.create_session(owner_id, SOURCE_FOLDER_ID, "Holiday")
    )
    asyncio.run(sorting_service.add_destination_folder(owner_id, session.id, "Keep"))

    started = sorting_service.start_sorting(owner_id, session.id)

    assert started.status == STATUS_ACTIVE


def test_sort_image_advances_counters_and_cursor(
    sorting_service: SortingService,
    session_repository: InMemorySessionRepository,
    drive: FakeDriveClient,
    owner_id: UUID,
) -> None:
    session = _seed_active(session_repository, owner_id)

    result = asyncio.run(sorting_service.sort_image(owner_id, session.id, 0, "A"))

    assert isinstance(result, SortResult)
    assert drive.moves == [("file-0", "A")]
    assert result.session.sorted_count == 1
    assert result.session.remaining_count == 2
    assert result.session.cursor == 1
    assert result.session.status == STATUS_ACTIVE
    assert result.next_image is not None
    assert result.next_image.id == "file-1"
    _assert_counts_consistent(result.session)


def test_sort_last_image_completes_session(
    session_repository: InMemorySessionRepository, drive_clients, owner_id: UUID
) -> None:
    service = SortingService(
        session_repository=session_repository,
        drive_clients=drive_clients,
        clock=lambda: FIXED_NOW,
    )
    session = _seed_active(session_repository, owner_id)
    session_repository.sessions[session.id] = replace(
        session, sorted_count=2, remaining_count=1, cursor=2
    )

    result = asyncio.run(service.sort_image(owner_id, session.id, 2, "B"))

    assert result.session.status == STATUS_COMPLETED
    assert result.session.completed_at == FIXED_NOW
    assert result.session.cursor == 2
    assert result.session.remaining_count == 0
    assert result.next_image is None
    _assert_counts_consistent(result.session)


def test_sort_after_completion_is_rejected(
    sorting_service: SortingService,
    session_repository: InMemorySessionRepository,
    drive: FakeDriveClient,
    owner_id: UUID,
) -> None:
    session = _seed_active(session_repository, owner_id, total=1)
    asyncio.run(sorting_service.sort_image(owner_id, session.id, 0, "A"))

    with pytest.raises(PreconditionFailed):
        asyncio.run(sorting_service.sort_image(owner_id, session.id, 0, "A"))

    assert len(drive.moves) == 1


@pytest.mark.parametrize("index", [-1, 3, 100])
def test_sort_image_out_of_range_leaves_session_unchanged(
    sorting_service: SortingService,
    session_repository: InMemorySessionRepository,
    owner_id: UUID,
    index: int,
) -> None:
    session = _seed_active(session_repository, owner_id)

    with pytest.raises(InvalidIndex):
        asyncio.run(sorting_service.sort_image(owner_id, session.id, index, "A"))

    assert session_repository.sessions[session.id] == session
    assert session_repository.updates == 0


def test_sort_image_move_failure_leaves_session_unchanged(
    sorting_service: SortingService,
    session_repository: InMemorySessionRepository,
    drive: FakeDriveClient,
    owner_id: UUID,
) -> None:
    session = _seed_active(session_repository, owner_id)
    drive.move_result = False

    with pytest.raises(MoveFailed):
        asyncio.run(sorting_service.sort_image(owner_id, session.id, 0, "A"))

    assert session_repository.sessions[session.id] == session


def test_sort_image_transport_error_reports_move_failed(
    sorting_service: SortingService,
    session_repository: InMemorySessionRepository,
    drive: FakeDriveClient,
    owner_id: UUID,
) -> None:
    session = _seed_active(session_repository, owner_id)
    drive.move_error = ExternalServiceError("boom")

    with pytest.raises(MoveFailed):
        asyncio.run(sorting_service.sort_image(owner_id, session.id, 0, "A"))

    assert session_repository.sessions[session.id] == session


def test_sort_image_to_foreign_folder_is_rejected(
    sorting_service: SortingService,
    session_repository: InMemorySessionRepository,
    drive: FakeDriveClient,
    owner_id: UUID,
) -> None:
    session = _seed_active(session_repository, owner_id)

    with pytest.raises(NotFound):
        asyncio.run(sorting_service.sort_image(owner_id, session.id, 0, "Z"))

    assert drive.moves == []


def test_operations_reject_other_owner(
    sorting_service: SortingService,
    session_repository: InMemorySessionRepository,
    owner_id: UUID,
) -> None:
    session = _seed_active(session_repository, owner_id)

    with pytest.raises(Unauthorized):
        asyncio.run(sorting_service.sort_image(uuid4(), session.id, 0, "A"))
    with pytest.raises(Unauthorized):
        sorting_service.skip_image(uuid4(), session.id, "next")


def test_unknown_session_is_not_found(
    sorting_service: SortingService, owner_id: UUID
) -> None:
    with pytest.raises(NotFound):
        sorting_service.get_session(owner_id, uuid4())


def test_skip_moves_cursor_and_clamps(
    sorting_service: SortingService,
    session_repository: InMemorySessionRepository,
    owner_id: UUID,
) -> None:
    session = _seed_active(session_repository, owner_id)

    at_start = sorting_service.skip_image(owner_id, session.id, "previous")
    assert isinstance(at_start, SkipResult)
    assert at_start.session.cursor == 0

    sorting_service.skip_image(owner_id, session.id, "next")
    second = sorting_service.skip_image(owner_id, session.id, "next")
    assert second.session.cursor == 2

    at_end = sorting_service.skip_image(owner_id, session.id, "next")
    assert at_end.session.cursor == 2
    assert at_end.current_image is not None
    assert at_end.current_image.id == "file-2"
    _assert_counts_consistent(at_end.session)


def test_skip_at_bounds_does_not_write(
    sorting_service: SortingService,
    session_repository: InMemorySessionRepository,
    owner_id: UUID,
) -> None:
    session = _seed_active(session_repository, owner_id)

    sorting_service.skip_image(owner_id, session.id, "previous")

    assert session_repository.updates == 0


def test_skip_rejects_unknown_direction(
    sorting_service: SortingService,
    session_repository: InMemorySessionRepository,
    owner_id: UUID,
) -> None:
    session = _seed_active(session_repository, owner_id)

    with pytest.raises(PreconditionFailed):
        sorting_service.skip_image(owner_id, session.id, "sideways")


def test_handle_key_sorts_current_image_into_bound_folder(
    sorting_service: SortingService,
    session_repository: InMemorySessionRepository,
    drive: FakeDriveClient,
    owner_id: UUID,
) -> None:
    session = _seed_active(session_repository, owner_id)
    session_repository.sessions[session.id] = replace(session, cursor=1)

    result = asyncio.run(sorting_service.handle_key(owner_id, session.id, "2"))

    assert isinstance(result, SortResult)
    assert drive.moves == [("file-1", "B")]


def test_handle_key_arrows_navigate(
    sorting_service: SortingService,
    session_repository: InMemorySessionRepository,
    owner_id: UUID,
) -> None:
    session = _seed_active(session_repository, owner_id)

    result = asyncio.run(sorting_service.handle_key(owner_id, session.id, "ArrowRight"))

    assert isinstance(result, SkipResult)
    assert result.session.cursor == 1


@pytest.mark.parametrize("key", ["3", "0", "x", "Enter"])
def test_handle_key_unbound_key_is_rejected(
    sorting_service: SortingService,
    session_repository: InMemorySessionRepository,
    owner_id: UUID,
    key: str,
) -> None:
    session = _seed_active(session_repository, owner_id)

    with pytest.raises(PreconditionFailed):
        asyncio.run(sorting_service.handle_key(owner_id, session.id, key))


def test_reset_session_deletes_in_any_state(
    sorting_service: SortingService,
    session_repository: InMemorySessionRepository,
    owner_id: UUID,
) -> None:
    session = _seed_active(session_repository, owner_id)
    session_repository.sessions[session.id] = replace(
        session, status=STATUS_COMPLETED
    )

    sorting_service.reset_session(owner_id, session.id)

    assert session.id not in session_repository.sessions
    assert sorting_service.get_active_session(owner_id) is None


def test_start_sorting_completes_empty_session(
    session_repository: InMemorySessionRepository, drive_clients, owner_id: UUID
) -> None:
    service = SortingService(
        session_repository=session_repository,
        drive_clients=drive_clients,
        clock=lambda: FIXED_NOW,
    )
    session = asyncio.run(service.create_session(owner_id, "empty-folder", "Empty"))
    asyncio.run(service.add_destination_folder(owner_id, session.id, "Keep"))

    started = service.start_sorting(owner_id, session.id)

    assert started.total_images == 0
    assert started.status == STATUS_COMPLETED
    assert started.completed_at == FIXED_NOW
    assert service.get_active_session(owner_id) is None
