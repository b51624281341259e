"""Image formats accepted for sorting."""

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"

RAW_EXTENSIONS = (
    "arw",
    "cr2",
    "cr3",
    "nef",
    "nrw",
    "raf",
    "rw2",
    "orf",
    "pef",
    "dng",
)

SUPPORTED_EXTENSIONS = ("jpg", "jpeg", "png", "heic", "gif", "webp", *RAW_EXTENSIONS)


def file_extension(name: str) -> str:
    """Return the lowercase extension of a file name without the dot."""
    _, dot, extension = name.rpartition(".")
    if not dot:
        return ""
    return extension.lower()


def is_raw_file(name: str, extension: str | None = None) -> bool:
    """Return True when the file is a camera RAW format."""
    resolved = (extension or "").strip().lower() or file_extension(name)
    return resolved in RAW_EXTENSIONS
