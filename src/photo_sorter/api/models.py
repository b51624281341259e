"""Request bodies accepted by the sorting API."""

from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field


class CreateSessionRequest(BaseModel):
    source_folder_id: str = Field(min_length=1)
    source_folder_name: str = Field(min_length=1)


class SessionRequest(BaseModel):
    session_id: UUID


class AddFolderRequest(SessionRequest):
    folder_name: str = Field(min_length=1, max_length=255)


class RemoveFolderRequest(SessionRequest):
    folder_id: str = Field(min_length=1)


class SortImageRequest(SessionRequest):
    image_index: int
    destination_folder_id: str = Field(min_length=1)


class SkipImageRequest(SessionRequest):
    direction: Literal["next", "previous"]


class KeyPressRequest(SessionRequest):
    """A key pressed in the sorting view: 1-9, ArrowLeft or ArrowRight."""

    key: str = Field(min_length=1, max_length=16)


class CreateFolderRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    parent_id: str = Field(min_length=1)


class MoveFileRequest(BaseModel):
    file_id: str = Field(min_length=1)
    destination_folder_id: str = Field(min_length=1)
