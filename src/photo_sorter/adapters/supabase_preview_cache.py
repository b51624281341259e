"""Supabase Storage-backed preview cache."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from photo_sorter.services.cache import PreviewCache

_LIST_PAGE_SIZE = 100


@dataclass
class SupabasePreviewCache(PreviewCache):
    """Stores previews in a public Supabase Storage bucket."""

    client: Client
    bucket: str = "previews"
    folder: str = "thumbnails"

    def exists(self, key: str) -> bool:
        items = self._bucket().list(
            self.folder, {"limit": _LIST_PAGE_SIZE, "search": key}
        )
        return any(item.get("name") == key for item in items or [])

    def put(self, key: str, data: bytes) -> None:
        self._bucket().upload(
            self._path(key),
            data,
            {"content-type": "image/jpeg", "upsert": "true"},
        )

    def get(self, key: str) -> bytes | None:
        if not self.exists(key):
            return None
        return self._bucket().download(self._path(key))

    def url_for(self, key: str) -> str:
        return self._bucket().get_public_url(self._path(key))

    def delete(self, key: str) -> None:
        self._bucket().remove([self._path(key)])

    def list_with_age(self) -> list[tuple[str, datetime]]:
        entries: list[tuple[str, datetime]] = []
        offset = 0
        while True:
            items = self._bucket().list(
                self.folder, {"limit": _LIST_PAGE_SIZE, "offset": offset}
            ) or []
            for item in items:
                modified = _parse_timestamp(item.get("updated_at"))
                if item.get("name") and modified is not None:
                    entries.append((item["name"], modified))
            if len(items) < _LIST_PAGE_SIZE:
                return entries
            offset += _LIST_PAGE_SIZE

    def _bucket(self):  # type: ignore[no-untyped-def]
        return self.client.storage.from_(self.bucket)

    def _path(self, key: str) -> str:
        return f"{self.folder}/{key}"


def _parse_timestamp(value: object) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed
