"""Sorting session endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Request

from photo_sorter.api.dependencies import current_user_id
from photo_sorter.api.models import (
    AddFolderRequest,
    CreateSessionRequest,
    KeyPressRequest,
    RemoveFolderRequest,
    SessionRequest,
    SkipImageRequest,
    SortImageRequest,
)
from photo_sorter.domain.sessions import ImageDescriptor, session_to_dict
from photo_sorter.services.sorting import SkipResult, SortResult

if TYPE_CHECKING:
    from photo_sorter.containers import AppContainer

router = APIRouter(prefix="/sorting", tags=["sorting"])


@router.get("/session")
async def current_session(
    request: Request, owner_id: UUID = Depends(current_user_id)
) -> dict[str, object]:
    """Return the caller's unfinished session and Drive connection state."""
    container: AppContainer = request.app.state.container
    session = container.sorting_service.get_active_session(owner_id)
    connection = container.drive_clients.connection_status(owner_id)
    return {
        "session": session_to_dict(session) if session else None,
        "google_connected": connection["connected"],
    }


@router.post("/session")
async def create_session(
    payload: CreateSessionRequest,
    request: Request,
    owner_id: UUID = Depends(current_user_id),
) -> dict[str, object]:
    """Open a session over a source folder."""
    container: AppContainer = request.app.state.container
    session = await container.sorting_service.create_session(
        owner_id, payload.source_folder_id, payload.source_folder_name
    )
    return {"success": True, "session": session_to_dict(session)}


@router.delete("/session")
async def reset_session(
    payload: SessionRequest,
    request: Request,
    owner_id: UUID = Depends(current_user_id),
) -> dict[str, object]:
    """Delete a session in any state."""
    container: AppContainer = request.app.state.container
    container.sorting_service.reset_session(owner_id, payload.session_id)
    return {"success": True}


@router.post("/session/folder")
async def add_destination_folder(
    payload: AddFolderRequest,
    request: Request,
    owner_id: UUID = Depends(current_user_id),
) -> dict[str, object]:
    """Create a destination folder and bind it to the next shortcut."""
    container: AppContainer = request.app.state.container
    session, folder = await container.sorting_service.add_destination_folder(
        owner_id, payload.session_id, payload.folder_name
    )
    return {
        "success": True,
        "folder": folder.to_dict(),
        "session": session_to_dict(session),
    }


@router.delete("/session/folder")
async def remove_destination_folder(
    payload: RemoveFolderRequest,
    request: Request,
    owner_id: UUID = Depends(current_user_id),
) -> dict[str, object]:
    """Unbind a destination folder from the session."""
    container: AppContainer = request.app.state.container
    session = container.sorting_service.remove_destination_folder(
        owner_id, payload.session_id, payload.folder_id
    )
    return {"success": True, "session": session_to_dict(session)}


@router.post("/session/start")
async def start_sorting(
    payload: SessionRequest,
    request: Request,
    owner_id: UUID = Depends(current_user_id),
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    session = container.sorting_service.start_sorting(owner_id, payload.session_id)
    return {"success": True, "session": session_to_dict(session)}


@router.post("/session/sort")
async def sort_image(
    payload: SortImageRequest,
    request: Request,
    owner_id: UUID = Depends(current_user_id),
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    result = await container.sorting_service.sort_image(
        owner_id,
        payload.session_id,
        payload.image_index,
        payload.destination_folder_id,
    )
    return _sort_payload(result)


@router.post("/session/skip")
async def skip_image(
    payload: SkipImageRequest,
    request: Request,
    owner_id: UUID = Depends(current_user_id),
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    result = container.sorting_service.skip_image(
        owner_id, payload.session_id, payload.direction
    )
    return _skip_payload(result)


@router.post("/session/key")
async def press_key(
    payload: KeyPressRequest,
    request: Request,
    owner_id: UUID = Depends(current_user_id),
) -> dict[str, object]:
    """Apply a keyboard shortcut from the sorting view."""
    container: AppContainer = request.app.state.container
    result = await container.sorting_service.handle_key(
        owner_id, payload.session_id, payload.key
    )
    if isinstance(result, SortResult):
        return _sort_payload(result)
    return _skip_payload(result)


def _sort_payload(result: SortResult) -> dict[str, object]:
    return {
        "success": True,
        "session": session_to_dict(result.session),
        "next_image": _image_payload(result.next_image),
    }


def _skip_payload(result: SkipResult) -> dict[str, object]:
    return {
        "success": True,
        "session": session_to_dict(result.session),
        "current_image": _image_payload(result.current_image),
    }


def _image_payload(image: ImageDescriptor | None) -> dict[str, object] | None:
    return image.to_dict() if image else None
