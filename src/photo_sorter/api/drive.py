"""Google Drive browsing, connection and preview endpoints."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, RedirectResponse, Response

from photo_sorter.api.dependencies import current_user_id
from photo_sorter.api.models import CreateFolderRequest, MoveFileRequest
from photo_sorter.domain.formats import is_raw_file

if TYPE_CHECKING:
    from photo_sorter.containers import AppContainer

logger = logging.getLogger(__name__)

router = APIRouter(tags=["drive"])

PREVIEW_FIELDS = "name,mimeType,fileExtension"
THUMBNAIL_CACHE_CONTROL = "public, max-age=86400"


def drive_view_url(file_id: str) -> str:
    return f"https://drive.google.com/uc?id={file_id}&export=view"


@router.get("/google-drive/check")
async def check_connection(
    request: Request, owner_id: UUID = Depends(current_user_id)
) -> dict[str, object]:
    """Report whether the caller has connected Google Drive."""
    container: AppContainer = request.app.state.container
    return container.drive_clients.connection_status(owner_id)


@router.post("/google-drive/disconnect")
async def disconnect(
    request: Request, owner_id: UUID = Depends(current_user_id)
) -> dict[str, object]:
    """Forget the caller's Drive credentials."""
    container: AppContainer = request.app.state.container
    container.drive_clients.disconnect(owner_id)
    return {"success": True, "message": "Google Drive disconnected successfully"}


@router.get("/google/folders")
async def list_folders(
    request: Request,
    parent_id: str | None = None,
    owner_id: UUID = Depends(current_user_id),
) -> dict[str, object]:
    """List Drive folders, optionally under a parent."""
    container: AppContainer = request.app.state.container
    drive = await container.drive_clients.for_user(owner_id)
    folders = await drive.list_folders(parent_id)
    return {
        "success": True,
        "folders": [folder.model_dump(by_alias=True) for folder in folders],
    }


@router.get("/google/images", response_model=None)
async def list_images(
    request: Request,
    folder_id: str | None = None,
    owner_id: UUID = Depends(current_user_id),
) -> dict[str, object] | JSONResponse:
    """List supported images in a folder."""
    if not folder_id:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": "Folder ID is required"},
        )
    container: AppContainer = request.app.state.container
    drive = await container.drive_clients.for_user(owner_id)
    images = await drive.list_images(folder_id)
    return {"success": True, "images": [image.to_dict() for image in images]}


@router.post("/google/folders")
async def create_folder(
    payload: CreateFolderRequest,
    request: Request,
    owner_id: UUID = Depends(current_user_id),
) -> dict[str, object]:
    """Create a folder under a parent folder."""
    container: AppContainer = request.app.state.container
    drive = await container.drive_clients.for_user(owner_id)
    folder = await drive.create_folder(payload.name, payload.parent_id)
    return {"success": True, "folder": folder.model_dump(by_alias=True)}


@router.post("/google/files/move")
async def move_file(
    payload: MoveFileRequest,
    request: Request,
    owner_id: UUID = Depends(current_user_id),
) -> dict[str, object]:
    """Move a file outside of a sorting session."""
    container: AppContainer = request.app.state.container
    drive = await container.drive_clients.for_user(owner_id)
    moved = await drive.move_file(payload.file_id, payload.destination_folder_id)
    return {"success": moved}


@router.get("/google/files/{file_id}", response_model=None)
async def get_file(
    file_id: str, request: Request, owner_id: UUID = Depends(current_user_id)
) -> dict[str, object] | JSONResponse:
    """Return image metadata for one file."""
    container: AppContainer = request.app.state.container
    drive = await container.drive_clients.for_user(owner_id)
    image = await drive.get_file(file_id)
    if image is None:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"success": False, "message": "File not found"},
        )
    return {"success": True, "file": image.to_dict()}


@router.get("/google/preview/{file_id}")
async def get_preview(
    file_id: str, request: Request, owner_id: UUID = Depends(current_user_id)
) -> Response:
    """Redirect to a viewable rendition; RAW files get an extracted JPEG."""
    container: AppContainer = request.app.state.container
    try:
        drive = await container.drive_clients.for_user(owner_id)
        metadata = await drive.get_file_metadata(file_id, PREVIEW_FIELDS)
        file_name = metadata.name or "unknown"
        if not is_raw_file(file_name, metadata.file_extension):
            return RedirectResponse(drive_view_url(file_id), status_code=302)

        preview_url = await container.preview_service.get_or_create_preview(
            drive, file_id, file_name
        )
        if preview_url:
            return RedirectResponse(preview_url, status_code=302)
        logger.warning("Failed to generate preview for RAW file: %s", file_name)
        return _svg_response(NO_PREVIEW_SVG)
    except Exception:
        logger.exception("Preview fetch failed for file %s", file_id)
        return _svg_response(ERROR_PREVIEW_SVG)


@router.get("/google/thumbnails/{file_id}")
async def get_thumbnail(
    file_id: str, request: Request, owner_id: UUID = Depends(current_user_id)
) -> Response:
    """Proxy Drive's thumbnail so the browser needs no Google session."""
    container: AppContainer = request.app.state.container
    drive = await container.drive_clients.for_user(owner_id)
    content = await container.preview_service.get_thumbnail(drive, file_id)
    if content is None:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"success": False, "message": "No thumbnail available"},
        )
    return Response(
        content=content,
        media_type="image/jpeg",
        headers={"Cache-Control": THUMBNAIL_CACHE_CONTROL},
    )


def _svg_response(svg: str) -> Response:
    return Response(content=svg, media_type="image/svg+xml")


NO_PREVIEW_SVG = """<svg xmlns="http://www.w3.org/2000/svg" width="400" height="300" \
viewBox="0 0 400 300">
  <rect width="400" height="300" fill="#f3f4f6"/>
  <text x="200" y="150" font-family="sans-serif" font-size="18" fill="#6b7280" \
text-anchor="middle">No preview available</text>
</svg>
"""

ERROR_PREVIEW_SVG = """<svg xmlns="http://www.w3.org/2000/svg" width="400" height="300" \
viewBox="0 0 400 300">
  <rect width="400" height="300" fill="#fef2f2"/>
  <text x="200" y="150" font-family="sans-serif" font-size="18" fill="#b91c1c" \
text-anchor="middle">Preview failed to load</text>
</svg>
"""
