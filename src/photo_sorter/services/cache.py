"""Preview cache abstractions."""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol


class PreviewCache(Protocol):
    """Content store for generated previews keyed by file name."""

    def exists(self, key: str) -> bool:
        """Return True when an entry is stored under key."""

    def put(self, key: str, data: bytes) -> None:
        """Store data under key, replacing any previous entry."""

    def get(self, key: str) -> bytes | None:
        """Return stored bytes for key, if present."""

    def url_for(self, key: str) -> str:
        """Return the public URL serving the entry."""

    def delete(self, key: str) -> None:
        """Remove the entry for key if present."""

    def list_with_age(self) -> list[tuple[str, datetime]]:
        """Return (key, last_modified) for every entry."""


@dataclass
class _CacheEntry:
    data: bytes
    modified_at: datetime


@dataclass
class InMemoryPreviewCache(PreviewCache):
    """In-memory preview cache for local development."""

    _entries: dict[str, _CacheEntry]
    base_url: str

    def __init__(self, base_url: str = "/previews") -> None:
        self._entries = {}
        self.base_url = base_url.rstrip("/")

    def exists(self, key: str) -> bool:
        return key in self._entries

    def put(self, key: str, data: bytes) -> None:
        self._entries[key] = _CacheEntry(data=data, modified_at=datetime.now(tz=UTC))

    def get(self, key: str) -> bytes | None:
        entry = self._entries.get(key)
        return entry.data if entry else None

    def url_for(self, key: str) -> str:
        return f"{self.base_url}/{key}"

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def list_with_age(self) -> list[tuple[str, datetime]]:
        return [(key, entry.modified_at) for key, entry in self._entries.items()]

    def touch(self, key: str, modified_at: datetime) -> None:
        """Override the modification time of an entry."""
        self._entries[key].modified_at = modified_at
