"""Preview generation for RAW images.

Previews are produced by an ordered chain of strategies. Each strategy
returns JPEG bytes or None; the first non-empty result is cached under the
source file id and later requests are served from the cache. Failures are
logged per strategy and never propagate to the caller, who shows a
placeholder instead.
"""

import base64
import binascii
import io
import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from PIL import Image, UnidentifiedImageError

from photo_sorter.adapters.google_drive_client import DriveClient
from photo_sorter.services.cache import PreviewCache

logger = logging.getLogger(__name__)

JPEG_START = b"\xff\xd8\xff"
JPEG_END = b"\xff\xd9"

DEFAULT_MAX_RAW_BYTES = 5 * 1024 * 1024
DEFAULT_THUMBNAIL_SIZE = 1600
DEFAULT_MAX_AGE_DAYS = 7

THUMBNAIL_FIELDS = "thumbnailLink,hasThumbnail,contentHints/thumbnail"

_SIZE_SUFFIX = re.compile(r"=s\d+(?=$|[-&?])")

PreviewStrategy = Callable[[DriveClient, str], Awaitable[bytes | None]]


def cache_key(file_id: str) -> str:
    """Return the cache key for a file's preview."""
    return f"{file_id}.jpg"


def upgrade_thumbnail_url(link: str, size: int = DEFAULT_THUMBNAIL_SIZE) -> str:
    """Ask Drive for a larger rendition of a thumbnail link."""
    if _SIZE_SUFFIX.search(link):
        return _SIZE_SUFFIX.sub(f"=s{size}", link, count=1)
    return link


def is_jpeg(data: bytes) -> bool:
    """Probe data with Pillow and confirm it is a JPEG with real dimensions."""
    try:
        with Image.open(io.BytesIO(data)) as image:
            width, height = image.size
            return image.format == "JPEG" and width > 0 and height > 0
    except (UnidentifiedImageError, OSError, ValueError):
        return False


def extract_embedded_jpeg(data: bytes) -> bytes | None:
    """Carve the first embedded JPEG out of a RAW file payload."""
    start = data.find(JPEG_START)
    if start == -1:
        return None
    end = data.find(JPEG_END, start)
    if end == -1:
        return None
    candidate = data[start : end + len(JPEG_END)]
    if not is_jpeg(candidate):
        logger.info("Embedded JPEG candidate at offset %d failed validation", start)
        return None
    return candidate


@dataclass
class PreviewService:
    """Creates and caches JPEG previews for files Drive cannot render."""

    cache: PreviewCache
    max_raw_bytes: int = DEFAULT_MAX_RAW_BYTES
    thumbnail_size: int = DEFAULT_THUMBNAIL_SIZE
    strategies: list[tuple[str, PreviewStrategy]] = field(init=False)

    def __post_init__(self) -> None:
        self.strategies = [
            ("thumbnail", self._from_thumbnail),
            ("embedded_jpeg", self._from_embedded_jpeg),
        ]

    async def get_or_create_preview(
        self, drive: DriveClient, file_id: str, file_name: str
    ) -> str | None:
        """Return the URL of a cached preview, creating it when needed."""
        key = cache_key(file_id)
        if self.cache.exists(key):
            logger.info("RAW preview cache hit for file: %s", file_name)
            return self.cache.url_for(key)

        logger.info("Creating RAW preview for %s (ID: %s)", file_name, file_id)
        for name, strategy in self.strategies:
            try:
                preview = await strategy(drive, file_id)
            except Exception as exc:  # noqa: BLE001
                logger.warning("Preview strategy %s failed: %s", name, exc)
                continue
            if preview:
                self.cache.put(key, preview)
                logger.info("RAW preview for %s created via %s", file_name, name)
                return self.cache.url_for(key)

        logger.warning("Could not create preview for RAW file: %s", file_name)
        return None

    async def get_thumbnail(self, drive: DriveClient, file_id: str) -> bytes | None:
        """Return Drive's own thumbnail for a file, if it has one."""
        metadata = await drive.get_file_metadata(file_id, "thumbnailLink")
        if not metadata.thumbnail_link:
            return None
        content = await drive.download_url(metadata.thumbnail_link)
        return content or None

    def clear_cache(self, file_id: str) -> None:
        """Drop the cached preview for a file."""
        key = cache_key(file_id)
        if self.cache.exists(key):
            self.cache.delete(key)
            logger.info("Cleared RAW preview cache for file ID: %s", file_id)

    def clear_old_cache(
        self, days: int = DEFAULT_MAX_AGE_DAYS, now: datetime | None = None
    ) -> int:
        """Delete previews last modified more than days ago."""
        threshold = (now or datetime.now(tz=UTC)) - timedelta(days=days)
        removed = 0
        for key, modified_at in self.cache.list_with_age():
            if modified_at < threshold:
                self.cache.delete(key)
                removed += 1
        logger.info("Cleared %d RAW previews older than %d days", removed, days)
        return removed

    async def _from_thumbnail(self, drive: DriveClient, file_id: str) -> bytes | None:
        metadata = await drive.get_file_metadata(file_id, THUMBNAIL_FIELDS)
        logger.info("File metadata retrieved, hasThumbnail=%s", metadata.has_thumbnail)
        if not metadata.has_thumbnail:
            return None
        if metadata.thumbnail_link:
            url = upgrade_thumbnail_url(metadata.thumbnail_link, self.thumbnail_size)
            content = await drive.download_url(url)
            if content:
                return content
        hints = metadata.content_hints
        if hints and hints.thumbnail and hints.thumbnail.image:
            try:
                return base64.b64decode(hints.thumbnail.image, validate=False) or None
            except (binascii.Error, ValueError):
                logger.warning("Invalid contentHints thumbnail for %s", file_id)
        return None

    async def _from_embedded_jpeg(
        self, drive: DriveClient, file_id: str
    ) -> bytes | None:
        data = await drive.download_bytes(file_id, range_limit=self.max_raw_bytes)
        return extract_embedded_jpeg(data)
