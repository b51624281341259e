"""Keyboard shortcuts derived from destination folder order."""

from photo_sorter.domain.sessions import (
    DIRECTION_NEXT,
    DIRECTION_PREVIOUS,
    MAX_DESTINATION_FOLDERS,
    DestinationFolder,
    SortingSession,
    shortcut_for,
)

_ARROW_DIRECTIONS = {
    "ArrowLeft": DIRECTION_PREVIOUS,
    "ArrowRight": DIRECTION_NEXT,
}


def folder_for_key(session: SortingSession, key: str) -> DestinationFolder | None:
    """Return the destination folder bound to a number key, if any."""
    if len(key) != 1 or not key.isdigit():
        return None
    number = int(key)
    if not 1 <= number <= MAX_DESTINATION_FOLDERS:
        return None
    for index, folder in enumerate(session.destination_folders):
        if shortcut_for(index) == number:
            return folder
    return None


def direction_for_key(key: str) -> str | None:
    """Return the skip direction bound to an arrow key, if any."""
    return _ARROW_DIRECTIONS.get(key)
