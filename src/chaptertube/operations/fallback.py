"""
Thumbnail fallback handling.

When a displayed thumbnail fails to load, the chapter swaps to its fallback
thumbnail, and if that is unavailable (or is what just failed) to a remote
representative image from a thumbnail service.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Protocol, runtime_checkable

from chaptertube.models.chapter import Chapter

logger = logging.getLogger(__name__)


@runtime_checkable
class ThumbnailFallbackService(Protocol):
    """Protocol for services returning a representative image for a video."""

    def thumbnail_url(self, media_id: str) -> str | None:
        """Best-effort still image URL for ``media_id``, or None."""
        ...


class TemplateThumbnailService:
    """Builds thumbnail URLs from a template containing ``{media_id}``.

    Example:
        >>> service = TemplateThumbnailService("https://img.example.com/{media_id}.jpg")
        >>> service.thumbnail_url("abc123")
        'https://img.example.com/abc123.jpg'
    """

    def __init__(self, template: str):
        if "{media_id}" not in template:
            raise ValueError("Thumbnail template must contain '{media_id}'")
        self.template = template

    def thumbnail_url(self, media_id: str) -> str | None:
        if not media_id:
            return None
        return self.template.format(media_id=media_id)


def attach_fallback_thumbnails(
    chapters: Sequence[Chapter],
    service: ThumbnailFallbackService | None = None,
    media_id: str | None = None,
    hints: Mapping[float, str] | None = None,
) -> list[Chapter]:
    """Set ``fallback_thumbnail`` on each chapter.

    A hint keyed by the chapter's start time (from the external chapter
    source) wins over the service URL.

    Returns:
        The same chapters, for chaining.
    """
    service_url = service.thumbnail_url(media_id) if service and media_id else None
    for chapter in chapters:
        hint = (hints or {}).get(chapter.start_time)
        fallback = hint or service_url
        if fallback:
            chapter.fallback_thumbnail = fallback
    return list(chapters)


def handle_thumbnail_load_failure(
    chapter: Chapter,
    service: ThumbnailFallbackService | None = None,
    media_id: str | None = None,
) -> bool:
    """Swap a chapter's thumbnail after it failed to load.

    Returns:
        True if the thumbnail changed, False if there was nothing left to try.
    """
    if chapter.fallback_thumbnail and chapter.thumbnail != chapter.fallback_thumbnail:
        logger.debug(f'Using fallback thumbnail for "{chapter.title}"')
        chapter.thumbnail = chapter.fallback_thumbnail
        return True

    remote = service.thumbnail_url(media_id) if service and media_id else None
    if remote and chapter.thumbnail != remote:
        logger.debug(f'Using remote thumbnail for "{chapter.title}"')
        chapter.thumbnail = remote
        return True

    logger.warning(f'No thumbnail left to try for "{chapter.title}"')
    return False
