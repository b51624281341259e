"""Domain models for sorting sessions."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

STATUS_SETUP = "setup"
STATUS_ACTIVE = "active"
STATUS_COMPLETED = "completed"
STATUS_PAUSED = "paused"

OPEN_STATUSES = frozenset({STATUS_SETUP, STATUS_ACTIVE, STATUS_PAUSED})

DIRECTION_NEXT = "next"
DIRECTION_PREVIOUS = "previous"

MAX_DESTINATION_FOLDERS = 9


@dataclass(frozen=True)
class ImageDescriptor:
    """Snapshot of a Drive image taken when the session was created."""

    id: str
    name: str
    mime_type: str
    size: int = 0
    thumbnail_link: str | None = None
    web_content_link: str | None = None
    modified_time: str | None = None
    width: int | None = None
    height: int | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "mimeType": self.mime_type,
            "size": self.size,
            "thumbnailLink": self.thumbnail_link,
            "webContentLink": self.web_content_link,
            "modifiedTime": self.modified_time,
            "width": self.width,
            "height": self.height,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, object]) -> "ImageDescriptor":
        return cls(
            id=str(payload["id"]),
            name=str(payload.get("name", "")),
            mime_type=str(payload.get("mimeType", "")),
            size=_as_int(payload.get("size")) or 0,
            thumbnail_link=payload.get("thumbnailLink"),  # type: ignore[arg-type]
            web_content_link=payload.get("webContentLink"),  # type: ignore[arg-type]
            modified_time=payload.get("modifiedTime"),  # type: ignore[arg-type]
            width=_as_int(payload.get("width")),
            height=_as_int(payload.get("height")),
        )


@dataclass(frozen=True)
class DestinationFolder:
    """A Drive folder images can be filed into."""

    id: str
    name: str

    def to_dict(self) -> dict[str, object]:
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_dict(cls, payload: dict[str, object]) -> "DestinationFolder":
        return cls(id=str(payload["id"]), name=str(payload.get("name", "")))


@dataclass(frozen=True)
class SortingSession:
    """A user's pass over one source folder.

    Instances are immutable; every transition produces a new value which the
    repository persists as a whole.
    """

    id: UUID | None
    owner_id: UUID
    source_folder_id: str
    source_folder_name: str
    images: tuple[ImageDescriptor, ...] = ()
    destination_folders: tuple[DestinationFolder, ...] = ()
    total_images: int = 0
    sorted_count: int = 0
    remaining_count: int = 0
    cursor: int = 0
    status: str = STATUS_SETUP
    completed_at: datetime | None = None
    created_at: datetime | None = field(default=None, compare=False)

    @property
    def current_image(self) -> ImageDescriptor | None:
        if 0 <= self.cursor < len(self.images):
            return self.images[self.cursor]
        return None

    def find_folder(self, folder_id: str) -> DestinationFolder | None:
        for folder in self.destination_folders:
            if folder.id == folder_id:
                return folder
        return None


def new_session(
    owner_id: UUID,
    source_folder_id: str,
    source_folder_name: str,
    images: list[ImageDescriptor],
) -> SortingSession:
    """Build a fresh session in setup with counters derived from the images."""
    return SortingSession(
        id=None,
        owner_id=owner_id,
        source_folder_id=source_folder_id,
        source_folder_name=source_folder_name,
        images=tuple(images),
        total_images=len(images),
        sorted_count=0,
        remaining_count=len(images),
        cursor=0,
        status=STATUS_SETUP,
    )


def shortcut_for(index: int) -> int:
    """Return the number key bound to the folder at index."""
    return index + 1


def session_to_dict(session: SortingSession) -> dict[str, object]:
    """Serialize a session for API responses."""
    return {
        "id": str(session.id) if session.id else None,
        "user_id": str(session.owner_id),
        "source_folder_id": session.source_folder_id,
        "source_folder_name": session.source_folder_name,
        "destination_folders": [
            {**folder.to_dict(), "shortcut": shortcut_for(index)}
            for index, folder in enumerate(session.destination_folders)
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


def _as_int(value: object) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return None
