"""Supabase-backed sorting session repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from photo_sorter.domain.sessions import (
    OPEN_STATUSES,
    DestinationFolder,
    ImageDescriptor,
    SortingSession,
)
from photo_sorter.services.sorting import SessionRepository

_TABLE = "sorting_sessions"
_COLUMNS = (
    "id, user_id, source_folder_id, source_folder_name, destination_folders, "
    "images, total_images, sorted_images, remaining_images, current_image_index, "
    "status, completed_at, created_at"
)


@dataclass
class SupabaseSessionRepository(SessionRepository):
    """Supabase implementation for sorting sessions."""

    client: Client

    def find_active_session(self, owner_id: UUID) -> SortingSession | None:
        """Return the most recent unfinished session for a user."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("user_id", str(owner_id))
            .in_("status", sorted(OPEN_STATUSES))
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _row_to_session(response.data[0])

    def get_session(self, session_id: UUID) -> SortingSession | None:
        """Return a session by id, if present."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("id", str(session_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _row_to_session(response.data[0])

    def create_session(self, session: SortingSession) -> SortingSession:
        """Insert a session row and return it."""
        response = (
            self.client.table(_TABLE)
            .insert({"user_id": str(session.owner_id), **_session_payload(session)})
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create sorting session")
        return _row_to_session(response.data[0])

    def update_session(self, session: SortingSession) -> SortingSession:
        """Write all mutable columns of a session."""
        if session.id is None:
            raise ValueError("Cannot update a session without an id")
        payload = {
            **_session_payload(session),
            "updated_at": datetime.now(tz=UTC).isoformat(),
        }
        response = (
            self.client.table(_TABLE)
            .update(payload)
            .eq("id", str(session.id))
            .execute()
        )
        if not response.data:
            return session
        return _row_to_session(response.data[0])

    def delete_session(self, session_id: UUID) -> None:
        """Delete a session row."""
        self.client.table(_TABLE).delete().eq("id", str(session_id)).execute()


def _session_payload(session: SortingSession) -> dict[str, object]:
    return {
        "source_folder_id": session.source_folder_id,
        "source_folder_name": session.source_folder_name,
        "destination_folders": [
            folder.to_dict() for folder in session.destination_folders
        ],
        "images": [image.to_dict() for image in session.images],
        "total_images": session.total_images,
        "sorted_images": session.sorted_count,
        "remaining_images": session.remaining_count,
        "current_image_index": session.cursor,
        "status": session.status,
        "completed_at": (
            session.completed_at.isoformat() if session.completed_at else None
        ),
    }


def _row_to_session(row: dict[str, object]) -> SortingSession:
    return SortingSession(
        id=UUID(str(row["id"])),
        owner_id=UUID(str(row["user_id"])),
        source_folder_id=str(row["source_folder_id"]),
        source_folder_name=str(row["source_folder_name"]),
        images=tuple(
            ImageDescriptor.from_dict(item) for item in row.get("images") or []
        ),
        destination_folders=tuple(
            DestinationFolder.from_dict(item)
            for item in row.get("destination_folders") or []
        ),
        total_images=int(row.get("total_images") or 0),
        sorted_count=int(row.get("sorted_images") or 0),
        remaining_count=int(row.get("remaining_images") or 0),
        cursor=int(row.get("current_image_index") or 0),
        status=str(row["status"]),
        completed_at=_parse_datetime(row.get("completed_at")),
        created_at=_parse_datetime(row.get("created_at")),
    )


def _parse_datetime(value: object) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed
