"""Filesystem-backed preview cache."""

from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from photo_sorter.services.cache import PreviewCache


@dataclass
class LocalPreviewCache(PreviewCache):
    """Stores previews as files in a directory served under base_url."""

    directory: Path
    base_url: str = "/previews"

    def __post_init__(self) -> None:
        self.directory = Path(self.directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self.base_url = self.base_url.rstrip("/")

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    def put(self, key: str, data: bytes) -> None:
        path = self._path(key)
        tmp_path = path.with_name(f".{path.name}.tmp")
        tmp_path.write_bytes(data)
        tmp_path.replace(path)

    def get(self, key: str) -> bytes | None:
        path = self._path(key)
        if not path.is_file():
            return None
        return path.read_bytes()

    def url_for(self, key: str) -> str:
        return f"{self.base_url}/{key}"

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def list_with_age(self) -> list[tuple[str, datetime]]:
        entries: list[tuple[str, datetime]] = []
        for path in self.directory.iterdir():
            if not path.is_file() or path.name.startswith("."):
                continue
            modified = datetime.fromtimestamp(path.stat().st_mtime, tz=UTC)
            entries.append((path.name, modified))
        return entries

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise ValueError(f"Invalid cache key: {key!r}")
        return self.directory / key
