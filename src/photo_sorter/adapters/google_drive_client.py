"""Google Drive v3 REST client."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

import httpx

from photo_sorter.domain.drive import DriveFileMetadata, DriveFolder
from photo_sorter.domain.errors import ExternalServiceError, NotFound
from photo_sorter.domain.formats import FOLDER_MIME_TYPE, SUPPORTED_EXTENSIONS
from photo_sorter.domain.sessions import ImageDescriptor

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.googleapis.com/drive/v3"

_FOLDER_FIELDS = "id, name, parents, modifiedTime, webViewLink"
_IMAGE_FIELDS = (
    "id, name, mimeType, size, thumbnailLink, webContentLink, modifiedTime, "
    "imageMediaMetadata"
)
_PAGE_SIZE = 1000


class DriveClient(Protocol):
    """Interface for the Drive operations the sorter needs."""

    async def list_folders(self, parent_id: str | None = None) -> list[DriveFolder]:
        """List folders, optionally restricted to a parent folder."""

    async def list_images(self, folder_id: str) -> list[ImageDescriptor]:
        """List supported images in a folder ordered by name."""

    async def create_folder(self, name: str, parent_id: str) -> DriveFolder:
        """Create a folder under parent_id and return it."""

    async def move_file(self, file_id: str, new_parent_id: str) -> bool:
        """Move a file into new_parent_id; return False on failure."""

    async def get_file(self, file_id: str) -> ImageDescriptor | None:
        """Return image metadata for a file, or None when it does not exist."""

    async def get_file_metadata(self, file_id: str, fields: str) -> DriveFileMetadata:
        """Return the requested metadata fields of a file."""

    async def download_bytes(
        self, file_id: str, range_limit: int | None = None
    ) -> bytes:
        """Download file content, at most range_limit bytes when given."""

    async def download_url(self, url: str) -> bytes:
        """Download an authenticated Drive URL such as a thumbnail link."""


def escape_query_value(value: str) -> str:
    """Escape a literal for use inside a Drive search query."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def build_folder_query(parent_id: str | None = None) -> str:
    query = f"mimeType='{FOLDER_MIME_TYPE}' and trashed=false"
    if parent_id:
        query += f" and '{escape_query_value(parent_id)}' in parents"
    return query


def build_image_query(folder_id: str, extensions: Iterable[str]) -> str:
    parts = " or ".join(f"name contains '.{ext}'" for ext in extensions)
    folder = escape_query_value(folder_id)
    return f"'{folder}' in parents and ({parts}) and trashed=false"


def to_image_descriptor(metadata: DriveFileMetadata) -> ImageDescriptor:
    """Convert Drive file metadata into an image snapshot."""
    media = metadata.image_media_metadata
    return ImageDescriptor(
        id=metadata.id or "",
        name=metadata.name or "",
        mime_type=metadata.mime_type or "",
        size=metadata.size or 0,
        thumbnail_link=metadata.thumbnail_link,
        web_content_link=metadata.web_content_link,
        modified_time=metadata.modified_time,
        width=media.width if media else None,
        height=media.height if media else None,
    )


@dataclass
class HttpxGoogleDriveClient(DriveClient):
    """Drive client for one user's access token using httpx."""

    access_token: str
    http_client: httpx.AsyncClient
    base_url: str = DEFAULT_BASE_URL
    extensions: tuple[str, ...] = SUPPORTED_EXTENSIONS

    async def list_folders(self, parent_id: str | None = None) -> list[DriveFolder]:
        """List non-trashed folders ordered by name."""
        files = await self._list_files(
            query=build_folder_query(parent_id), fields=_FOLDER_FIELDS
        )
        return [DriveFolder.model_validate(item) for item in files]

    async def list_images(self, folder_id: str) -> list[ImageDescriptor]:
        """List supported images in a folder ordered by name."""
        files = await self._list_files(
            query=build_image_query(folder_id, self.extensions), fields=_IMAGE_FIELDS
        )
        return [
            to_image_descriptor(DriveFileMetadata.model_validate(item))
            for item in files
        ]

    async def create_folder(self, name: str, parent_id: str) -> DriveFolder:
        """Create a folder under parent_id."""
        response = await self._request(
            "POST",
            f"{self.base_url}/files",
            params={"fields": "id, name, parents"},
            json={"name": name, "mimeType": FOLDER_MIME_TYPE, "parents": [parent_id]},
        )
        return DriveFolder.model_validate(response.json())

    async def move_file(self, file_id: str, new_parent_id: str) -> bool:
        """Replace a file's parents with new_parent_id."""
        try:
            current = await self._request(
                "GET",
                f"{self.base_url}/files/{file_id}",
                params={"fields": "parents"},
            )
            previous_parents = ",".join(current.json().get("parents") or [])
            await self._request(
                "PATCH",
                f"{self.base_url}/files/{file_id}",
                params={
                    "addParents": new_parent_id,
                    "removeParents": previous_parents,
                    "fields": "id, parents",
                },
                json={},
            )
        except (ExternalServiceError, NotFound) as exc:
            logger.error("Failed to move file %s: %s", file_id, exc.message)
            return False
        return True

    async def get_file(self, file_id: str) -> ImageDescriptor | None:
        """Return image metadata, or None for unknown files."""
        try:
            metadata = await self.get_file_metadata(file_id, _IMAGE_FIELDS)
        except NotFound:
            logger.info("Drive file %s not found", file_id)
            return None
        return to_image_descriptor(metadata)

    async def get_file_metadata(self, file_id: str, fields: str) -> DriveFileMetadata:
        """Fetch selected metadata fields for a file."""
        response = await self._request(
            "GET", f"{self.base_url}/files/{file_id}", params={"fields": fields}
        )
        return DriveFileMetadata.model_validate(response.json())

    async def download_bytes(
        self, file_id: str, range_limit: int | None = None
    ) -> bytes:
        """Stream file content, stopping after range_limit bytes."""
        headers = self._headers()
        if range_limit is not None:
            headers["Range"] = f"bytes=0-{range_limit - 1}"
        url = f"{self.base_url}/files/{file_id}"
        buffer = bytearray()
        try:
            async with self.http_client.stream(
                "GET", url, params={"alt": "media"}, headers=headers, timeout=60
            ) as response:
                response.raise_for_status()
                async for chunk in response.aiter_bytes():
                    buffer.extend(chunk)
                    if range_limit is not None and len(buffer) >= range_limit:
                        break
        except httpx.HTTPError as exc:
            raise ExternalServiceError(f"Drive download failed: {exc}") from exc
        if range_limit is not None:
            return bytes(buffer[:range_limit])
        return bytes(buffer)

    async def download_url(self, url: str) -> bytes:
        """Download an arbitrary Drive URL with the user's credentials."""
        response = await self._request("GET", url, timeout=30)
        return response.content

    async def _list_files(self, query: str, fields: str) -> list[dict[str, object]]:
        files: list[dict[str, object]] = []
        page_token: str | None = None
        while True:
            params: dict[str, object] = {
                "q": query,
                "fields": f"nextPageToken, files({fields})",
                "orderBy": "name",
                "pageSize": _PAGE_SIZE,
            }
            if page_token:
                params["pageToken"] = page_token
            response = await self._request(
                "GET", f"{self.base_url}/files", params=params
            )
            payload = response.json()
            files.extend(payload.get("files") or [])
            page_token = payload.get("nextPageToken")
            if not page_token:
                return files

    async def _request(
        self, method: str, url: str, timeout: float = 15, **kwargs: object
    ) -> httpx.Response:
        try:
            response = await self.http_client.request(
                method, url, headers=self._headers(), timeout=timeout, **kwargs
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == httpx.codes.NOT_FOUND:
                raise NotFound(f"Drive file not found: {exc.request.url.path}") from exc
            raise ExternalServiceError(
                f"Drive API {method} {exc.request.url.path} returned "
                f"{exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ExternalServiceError(f"Drive API request failed: {exc}") from exc
        return response

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}
