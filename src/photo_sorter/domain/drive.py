"""Models for Google Drive API payloads."""

from pydantic import BaseModel, ConfigDict, Field


class _DriveModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class DriveFolder(_DriveModel):
    """Drive folder as returned by files.list or files.create."""

    id: str
    name: str
    parents: list[str] = Field(default_factory=list)
    modified_time: str | None = Field(default=None, alias="modifiedTime")
    web_view_link: str | None = Field(default=None, alias="webViewLink")


class ContentHintsThumbnail(_DriveModel):
    image: str | None = None
    mime_type: str | None = Field(default=None, alias="mimeType")


class ContentHints(_DriveModel):
    thumbnail: ContentHintsThumbnail | None = None


class ImageMediaMetadata(_DriveModel):
    width: int | None = None
    height: int | None = None


class DriveFileMetadata(_DriveModel):
    """Subset of Drive file fields used for previews and listings."""

    id: str | None = None
    name: str | None = None
    mime_type: str | None = Field(default=None, alias="mimeType")
    file_extension: str | None = Field(default=None, alias="fileExtension")
    size: int | None = None
    parents: list[str] = Field(default_factory=list)
    has_thumbnail: bool = Field(default=False, alias="hasThumbnail")
    thumbnail_link: str | None = Field(default=None, alias="thumbnailLink")
    web_content_link: str | None = Field(default=None, alias="webContentLink")
    modified_time: str | None = Field(default=None, alias="modifiedTime")
    content_hints: ContentHints | None = Field(default=None, alias="contentHints")
    image_media_metadata: ImageMediaMetadata | None = Field(
        default=None, alias="imageMediaMetadata"
    )
