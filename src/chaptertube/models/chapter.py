"""
Chapter models: definitions, chapters with thumbnails, and playback cursor.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

from chaptertube.models.frame import CapturedFrame


class ChapterRecord(BaseModel):
    """A chapter record as supplied by an external chapter source.

    Accepts both camelCase (``startTime``, ``thumbnailHint``) and snake_case
    keys, since chapter APIs disagree on naming.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    title: str = ""
    start_time: float = Field(0.0, alias="startTime", ge=0)
    thumbnail_hint: str | None = Field(None, alias="thumbnailHint")


@dataclass(frozen=True)
class ChapterDefinition:
    """A named chapter boundary.

    Attributes:
        title: Chapter title
        start_time: Start time in seconds
    """

    title: str
    start_time: float

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {"title": self.title, "startTime": self.start_time}


@dataclass
class Chapter:
    """A chapter definition plus its thumbnail.

    ``thumbnail`` is either a captured frame, a remote image reference (URL),
    or None when capture failed. Only the fallback logic changes it after
    creation.

    Attributes:
        title: Chapter title
        start_time: Start time in seconds
        thumbnail: Captured frame, image URL, or None
        fallback_thumbnail: Image URL to use if ``thumbnail`` fails to load
    """

    title: str
    start_time: float
    thumbnail: CapturedFrame | str | None = None
    fallback_thumbnail: str | None = None

    @classmethod
    def from_definition(
        cls,
        definition: ChapterDefinition,
        thumbnail: CapturedFrame | str | None = None,
    ) -> Chapter:
        return cls(
            title=definition.title,
            start_time=definition.start_time,
            thumbnail=thumbnail,
        )

    @property
    def definition(self) -> ChapterDefinition:
        return ChapterDefinition(title=self.title, start_time=self.start_time)

    @property
    def thumbnail_url(self) -> str | None:
        """The thumbnail as something an image tag can display."""
        if isinstance(self.thumbnail, CapturedFrame):
            return self.thumbnail.to_data_url()
        return self.thumbnail

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "title": self.title,
            "startTime": self.start_time,
            "thumbnailUrl": self.thumbnail_url,
            "fallbackThumbnail": self.fallback_thumbnail,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Chapter:
        """Create from dictionary (JSON deserialization)."""
        return cls(
            title=data.get("title", ""),
            start_time=data.get("startTime", data.get("start_time", 0.0)),
            thumbnail=data.get("thumbnailUrl"),
            fallback_thumbnail=data.get("fallbackThumbnail"),
        )


@dataclass
class PlaybackCursor:
    """Which chapter is currently playing (-1 = none)."""

    current_chapter_index: int = -1

    def move_to(self, index: int) -> bool:
        """Set the index; return True if it changed."""
        if index == self.current_chapter_index:
            return False
        self.current_chapter_index = index
        return True
