"""
Chapter session pipeline.

Ties the pieces together for one media source: load metadata, fetch external
chapters, build definitions, capture thumbnails, attach fallbacks, and start
tracking the playing chapter.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from chaptertube.config.loader import CaptureSettings, get_capture_settings, get_config
from chaptertube.exceptions import LoadError, MetadataUnavailableError
from chaptertube.media.base import MediaStatus, ReadyState
from chaptertube.media.events import wait_for_ready_state
from chaptertube.navigation.tracker import PlaybackPositionTracker
from chaptertube.operations.chapters import build_chapter_definitions
from chaptertube.operations.fallback import (
    TemplateThumbnailService,
    ThumbnailFallbackService,
    attach_fallback_thumbnails,
    handle_thumbnail_load_failure,
)
from chaptertube.operations.thumbnails import generate_chapter_thumbnails
from chaptertube.utils.logging import log_timed

if TYPE_CHECKING:
    from chaptertube.media.base import MediaSource
    from chaptertube.models.chapter import Chapter, ChapterRecord
    from chaptertube.operations.chapter_sources import ChapterSource

logger = logging.getLogger(__name__)


def default_fallback_service() -> ThumbnailFallbackService | None:
    """Service built from the configured fallback thumbnail template, if any."""
    template = get_config().fallback_thumbnail_template
    return TemplateThumbnailService(template) if template else None


async def _load_metadata(source: MediaSource, settings: CaptureSettings) -> float | None:
    if source.status is MediaStatus.IDLE:
        source.load()
    try:
        await wait_for_ready_state(
            source,
            ReadyState.HAVE_METADATA,
            timeout=settings.metadata_timeout,
            poll_interval=settings.poll_interval,
        )
    except LoadError as e:
        raise MetadataUnavailableError(
            f"Failed to load metadata for {source.src}: {e}", details=e.details
        ) from e
    return source.duration if source.has_duration else None


async def _fetch_records(
    chapter_source: ChapterSource | None, media_id: str | None
) -> list[ChapterRecord]:
    if chapter_source is None or not media_id:
        return []
    try:
        records = await chapter_source.fetch_chapters(media_id)
    except Exception as e:
        logger.warning(f"Chapter source failed for {media_id}, using equal chapters: {e}")
        return []
    return list(records or [])


@dataclass
class ChapterSession:
    """Chapters for one media source plus the tracker following its playback.

    Attributes:
        source: The media source
        chapters: Chapters with thumbnails, ordered by start time
        tracker: Attached position tracker
        external: True if the chapters came from an external chapter source
        media_id: Identifier used for chapter and thumbnail lookups
        fallback_service: Last-resort thumbnail service
    """

    source: MediaSource
    chapters: list[Chapter]
    tracker: PlaybackPositionTracker
    external: bool = False
    media_id: str | None = None
    fallback_service: ThumbnailFallbackService | None = field(default=None, repr=False)

    @classmethod
    async def prepare(
        cls,
        source: MediaSource,
        chapter_source: ChapterSource | None = None,
        media_id: str | None = None,
        count: int | None = None,
        base_title: str | None = None,
        width: int | None = None,
        height: int | None = None,
        *,
        fallback_service: ThumbnailFallbackService | None = None,
        settings: CaptureSettings | None = None,
    ) -> ChapterSession:
        """Build chapters with thumbnails for ``source`` and start tracking.

        Args:
            source: Media source to capture from and track
            chapter_source: Optional external chapter source
            media_id: Identifier passed to the chapter source and fallback service
            count: Number of synthetic chapters (default from config)
            base_title: Synthetic chapter title prefix (default from config)
            width: Thumbnail width (default from config)
            height: Thumbnail height (default from config)
            fallback_service: Thumbnail fallback service (default from config)
            settings: Capture settings (default: resolved config)

        Raises:
            MetadataUnavailableError: If the source's metadata cannot be loaded
                and chapters have to be synthesized.
        """
        settings = settings or get_capture_settings()
        fallback_service = fallback_service or default_fallback_service()
        t0 = time.time()

        duration = await _load_metadata(source, settings)
        records = await _fetch_records(chapter_source, media_id)

        definitions, external = build_chapter_definitions(
            records,
            duration,
            count or settings.chapter_count,
            base_title or settings.chapter_prefix,
        )
        log_timed(
            f"Using {len(definitions)} {'external' if external else 'equal'} chapters",
            t0,
        )

        chapters = await generate_chapter_thumbnails(
            source, definitions, width, height, settings=settings
        )

        hints = {r.start_time: r.thumbnail_hint for r in records if r.thumbnail_hint}
        attach_fallback_thumbnails(chapters, fallback_service, media_id, hints)

        tracker = PlaybackPositionTracker(
            source,
            chapters,
            external=external,
            seek_timeout=settings.navigation_seek_timeout,
        )
        tracker.attach()

        log_timed(f"Chapter session ready ({len(chapters)} chapters)", t0)
        return cls(
            source=source,
            chapters=chapters,
            tracker=tracker,
            external=external,
            media_id=media_id,
            fallback_service=fallback_service,
        )

    async def seek_to_chapter(self, chapter: Chapter) -> bool:
        return await self.tracker.seek_to_chapter(chapter)

    def thumbnail_failed(self, chapter: Chapter) -> bool:
        """Swap ``chapter`` to its next thumbnail after a load failure."""
        return handle_thumbnail_load_failure(chapter, self.fallback_service, self.media_id)

    def close(self) -> None:
        """Stop tracking the source."""
        self.tracker.detach()
