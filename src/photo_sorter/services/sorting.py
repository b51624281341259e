"""Sorting session state machine.

A session moves setup -> active -> completed. Folders are managed during
setup, images are sorted or skipped while active. Every operation validates
first, performs the Drive side effect second and persists a new session
value last, so a failed call leaves the stored session untouched.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from photo_sorter.adapters.google_drive_client import DriveClient
from photo_sorter.domain.errors import (
    ExternalServiceError,
    InvalidIndex,
    LimitExceeded,
    MoveFailed,
    NotFound,
    PreconditionFailed,
    Unauthorized,
)
from photo_sorter.domain.sessions import (
    DIRECTION_NEXT,
    DIRECTION_PREVIOUS,
    MAX_DESTINATION_FOLDERS,
    STATUS_ACTIVE,
    STATUS_COMPLETED,
    STATUS_PAUSED,
    STATUS_SETUP,
    DestinationFolder,
    ImageDescriptor,
    SortingSession,
    new_session,
)
from photo_sorter.domain.shortcuts import direction_for_key, folder_for_key

logger = logging.getLogger(__name__)


class SessionRepository(Protocol):
    """Persistence interface for sorting sessions."""

    def find_active_session(self, owner_id: UUID) -> SortingSession | None:
        """Return the owner's session that is not completed, if any."""

    def get_session(self, session_id: UUID) -> SortingSession | None:
        """Return a session by id, if present."""

    def create_session(self, session: SortingSession) -> SortingSession:
        """Persist a new session and return it with its id."""

    def update_session(self, session: SortingSession) -> SortingSession:
        """Persist the new state of an existing session."""

    def delete_session(self, session_id: UUID) -> None:
        """Delete a session."""


class DriveClientFactory(Protocol):
    """Provides a Drive client authorised for a given user."""

    async def for_user(self, owner_id: UUID) -> DriveClient:
        """Return a Drive client for the user."""


@dataclass(frozen=True)
class SortResult:
    """Outcome of filing one image."""

    session: SortingSession
    next_image: ImageDescriptor | None


@dataclass(frozen=True)
class SkipResult:
    """Outcome of moving the cursor."""

    session: SortingSession
    current_image: ImageDescriptor | None


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class SortingService:
    """Drives sorting sessions for their owners."""

    session_repository: SessionRepository
    drive_clients: DriveClientFactory
    clock: Callable[[], datetime] = field(default=_utcnow)

    def get_active_session(self, owner_id: UUID) -> SortingSession | None:
        """Return the owner's open session, if any."""
        return self.session_repository.find_active_session(owner_id)

    def get_session(self, owner_id: UUID, session_id: UUID) -> SortingSession:
        """Return one of the owner's sessions."""
        return self._load(owner_id, session_id)

    async def create_session(
        self, owner_id: UUID, source_folder_id: str, source_folder_name: str
    ) -> SortingSession:
        """Enumerate a source folder and open a session in setup."""
        if self.session_repository.find_active_session(owner_id) is not None:
            raise PreconditionFailed(
                "An unfinished sorting session already exists. Reset it first."
            )
        drive = await self.drive_clients.for_user(owner_id)
        images = await drive.list_images(source_folder_id)
        session = self.session_repository.create_session(
            new_session(owner_id, source_folder_id, source_folder_name, images)
        )
        logger.info(
            "Created sorting session %s with %d images from %s",
            session.id,
            session.total_images,
            source_folder_name,
        )
        return session

    async def add_destination_folder(
        self, owner_id: UUID, session_id: UUID, folder_name: str
    ) -> tuple[SortingSession, DestinationFolder]:
        """Create a Drive folder under the source folder and append it."""
        session = self._load(owner_id, session_id)
        if len(session.destination_folders) >= MAX_DESTINATION_FOLDERS:
            raise LimitExceeded(
                f"At most {MAX_DESTINATION_FOLDERS} destination folders are allowed"
            )
        self._require_status(session, {STATUS_SETUP}, "add destination folders")
        name = folder_name.strip()
        if not name:
            raise PreconditionFailed("Folder name is required")

        drive = await self.drive_clients.for_user(owner_id)
        created = await drive.create_folder(name, session.source_folder_id)
        folder = DestinationFolder(id=created.id, name=created.name)
        updated = self.session_repository.update_session(
            replace(
                session,
                destination_folders=(*session.destination_folders, folder),
            )
        )
        return updated, folder

    def remove_destination_folder(
        self, owner_id: UUID, session_id: UUID, folder_id: str
    ) -> SortingSession:
        """Drop a destination folder; later folders shift down one shortcut."""
        session = self._load(owner_id, session_id)
        self._require_status(session, {STATUS_SETUP}, "remove destination folders")
        remaining = list(session.destination_folders)
        for index, folder in enumerate(remaining):
            if folder.id == folder_id:
                del remaining[index]
                break
        else:
            return session
        return self.session_repository.update_session(
            replace(session, destination_folders=tuple(remaining))
        )

    def start_sorting(self, owner_id: UUID, session_id: UUID) -> SortingSession:
        """Move a configured session into active; an empty one completes."""
        session = self._load(owner_id, session_id)
        if not session.destination_folders:
            raise PreconditionFailed("At least one destination folder is required")
        self._require_status(
            session, {STATUS_SETUP, STATUS_PAUSED, STATUS_ACTIVE}, "start sorting"
        )
        if session.status == STATUS_ACTIVE:
            return session
        if session.remaining_count <= 0:
            return self.session_repository.update_session(
                replace(session, status=STATUS_COMPLETED, completed_at=self.clock())
            )
        return self.session_repository.update_session(
            replace(session, status=STATUS_ACTIVE, completed_at=None)
        )

    async def sort_image(
        self,
        owner_id: UUID,
        session_id: UUID,
        image_index: int,
        destination_folder_id: str,
    ) -> SortResult:
        """Move one image into a destination folder and advance the cursor."""
        session = self._load(owner_id, session_id)
        self._require_status(session, {STATUS_ACTIVE}, "sort images")
        if not 0 <= image_index < session.total_images:
            raise InvalidIndex("Invalid image index")
        if session.find_folder(destination_folder_id) is None:
            raise NotFound("Destination folder is not part of this session")

        image = session.images[image_index]
        drive = await self.drive_clients.for_user(owner_id)
        try:
            moved = await drive.move_file(image.id, destination_folder_id)
        except ExternalServiceError as exc:
            raise MoveFailed(f"Failed to move file: {exc.message}") from exc
        if not moved:
            raise MoveFailed("Failed to move file")

        remaining = session.remaining_count - 1
        completed = remaining <= 0
        updated = self.session_repository.update_session(
            replace(
                session,
                sorted_count=session.sorted_count + 1,
                remaining_count=remaining,
                cursor=min(image_index + 1, session.total_images - 1),
                status=STATUS_COMPLETED if completed else STATUS_ACTIVE,
                completed_at=self.clock() if completed else None,
            )
        )
        if completed:
            logger.info("Sorting session %s completed", updated.id)
        return SortResult(
            session=updated,
            next_image=None if completed else updated.current_image,
        )

    def skip_image(
        self, owner_id: UUID, session_id: UUID, direction: str
    ) -> SkipResult:
        """Move the cursor one image forward or back, clamping at the ends."""
        session = self._load(owner_id, session_id)
        self._require_status(session, {STATUS_ACTIVE}, "navigate images")
        last_index = max(session.total_images - 1, 0)
        if direction == DIRECTION_NEXT:
            cursor = min(session.cursor + 1, last_index)
        elif direction == DIRECTION_PREVIOUS:
            cursor = max(session.cursor - 1, 0)
        else:
            raise PreconditionFailed(f"Unknown direction: {direction}")
        if cursor != session.cursor:
            session = self.session_repository.update_session(
                replace(session, cursor=cursor)
            )
        return SkipResult(session=session, current_image=session.current_image)

    async def handle_key(
        self, owner_id: UUID, session_id: UUID, key: str
    ) -> SortResult | SkipResult:
        """Apply a key press: 1-9 files the current image, arrows navigate."""
        session = self._load(owner_id, session_id)
        folder = folder_for_key(session, key)
        if folder is not None:
            return await self.sort_image(
                owner_id, session_id, session.cursor, folder.id
            )
        direction = direction_for_key(key)
        if direction is not None:
            return self.skip_image(owner_id, session_id, direction)
        raise PreconditionFailed(f"No action bound to key {key!r}")

    def reset_session(self, owner_id: UUID, session_id: UUID) -> None:
        """Delete a session regardless of its status."""
        session = self._load(owner_id, session_id)
        self.session_repository.delete_session(session_id)
        logger.info("Reset sorting session %s (status=%s)", session_id, session.status)

    def _load(self, owner_id: UUID, session_id: UUID) -> SortingSession:
        session = self.session_repository.get_session(session_id)
        if session is None:
            raise NotFound("Sorting session not found")
        if session.owner_id != owner_id:
            raise Unauthorized("Unauthorized")
        return session

    @staticmethod
    def _require_status(
        session: SortingSession, allowed: set[str], action: str
    ) -> None:
        if session.status not in allowed:
            raise PreconditionFailed(
                f"Cannot {action} while the session is {session.status}"
            )
