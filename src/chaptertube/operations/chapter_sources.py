"""
External chapter sources.

A chapter source supplies authoritative chapter records for a media
identifier, or None when it has nothing for that media (in which case
chapters are synthesized from the duration).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Protocol, runtime_checkable

from chaptertube.models.chapter import ChapterRecord
from chaptertube.operations.chapters import chapters_from_metadata

logger = logging.getLogger(__name__)


@runtime_checkable
class ChapterSource(Protocol):
    """Protocol for services that know a video's chapters."""

    async def fetch_chapters(self, media_id: str) -> list[ChapterRecord] | None:
        """Return chapter records for ``media_id``, or None if unknown."""
        ...


class StaticChapterSource:
    """Serves chapter records held in memory, keyed by media id."""

    def __init__(self, chapters: Mapping[str, list[ChapterRecord | Mapping]]):
        self._chapters = {
            media_id: [
                r if isinstance(r, ChapterRecord) else ChapterRecord.model_validate(dict(r))
                for r in records
            ]
            for media_id, records in chapters.items()
        }

    async def fetch_chapters(self, media_id: str) -> list[ChapterRecord] | None:
        return self._chapters.get(media_id)


class MetadataChapterSource:
    """Reads chapters from yt-dlp style info dicts, keyed by media id."""

    def __init__(self, video_infos: Mapping[str, Mapping]):
        self._video_infos = dict(video_infos)

    async def fetch_chapters(self, media_id: str) -> list[ChapterRecord] | None:
        info = self._video_infos.get(media_id)
        if info is None:
            return None
        records = chapters_from_metadata(info)
        return records or None
