"""
Chapter thumbnail generation.

Captures one frame per chapter against a shared media source. Captures run
strictly one after another: the source has a single decode pipeline and a
single ``current_time``, so overlapping seeks would produce frames for the
wrong timestamp. A failed capture only costs that chapter its thumbnail.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING

from chaptertube.config.loader import CaptureSettings, get_capture_settings
from chaptertube.exceptions import (
    LoadError,
    MetadataUnavailableError,
    PlaybackRejectedError,
)
from chaptertube.media.base import MediaStatus, ReadyState
from chaptertube.media.events import wait_for_ready_state
from chaptertube.media.ffmpeg_source import FFmpegMediaSource
from chaptertube.models.chapter import Chapter, ChapterDefinition
from chaptertube.operations.frame_capture import (
    SourceFactory,
    capture_frame,
    capture_frame_from_url,
)
from chaptertube.utils.logging import log_timed

if TYPE_CHECKING:
    from chaptertube.media.base import MediaSource
    from chaptertube.models.frame import CapturedFrame

logger = logging.getLogger(__name__)


async def _wait_until_capturable(source: MediaSource, settings: CaptureSettings) -> None:
    """Wait for minimal decode readiness before the first capture.

    Raises:
        MetadataUnavailableError: If no duration is known after waiting.
    """
    if source.ready_state < ReadyState.HAVE_CURRENT_DATA:
        if source.status is MediaStatus.IDLE:
            source.load()
        try:
            ready = await wait_for_ready_state(
                source,
                ReadyState.HAVE_CURRENT_DATA,
                timeout=settings.readiness_timeout,
                poll_interval=settings.poll_interval,
            )
        except LoadError as e:
            logger.warning(f"Source reported an error while loading: {e}")
            ready = False
        if not ready:
            logger.warning(
                f"Source not ready after {settings.readiness_timeout}s "
                f"({source.ready_state.name}), attempting captures anyway"
            )

    if not source.has_duration:
        raise MetadataUnavailableError(
            f"Duration unknown for {source.src}, cannot generate thumbnails",
            details={"ready_state": source.ready_state.name},
        )


async def _restore(source: MediaSource, was_playing: bool) -> None:
    """Rewind to the start and resume playback if it was playing before."""
    try:
        source.current_time = 0
    except Exception as e:
        logger.error(f"Could not rewind after thumbnails: {e}")
    if not was_playing:
        return
    try:
        await source.play()
    except PlaybackRejectedError as e:
        logger.warning(f"Could not resume playback after thumbnails: {e}")
    except Exception as e:
        logger.error(f"Resuming playback after thumbnails failed: {e}")


async def generate_chapter_thumbnails(
    source: MediaSource,
    definitions: Sequence[ChapterDefinition],
    width: int | None = None,
    height: int | None = None,
    *,
    settings: CaptureSettings | None = None,
) -> list[Chapter]:
    """Generate a thumbnail per chapter from a live media source.

    The source is paused for the duration of the batch if it was playing.
    Afterwards it is rewound to 0 and playback resumes if it had been
    playing.

    Args:
        source: Shared media source (reused in place)
        definitions: Chapter definitions, in display order
        width: Thumbnail width (default from config)
        height: Thumbnail height (default from config)
        settings: Capture settings (default: resolved config)

    Returns:
        One Chapter per definition, in the same order. Chapters whose capture
        failed have ``thumbnail=None``.

    Raises:
        MetadataUnavailableError: If the source never reports a duration.
    """
    settings = settings or get_capture_settings()
    t0 = time.time()
    total = len(definitions)

    was_playing = not source.paused
    if was_playing:
        source.pause()

    chapters: list[Chapter] = []
    try:
        await _wait_until_capturable(source, settings)

        for i, definition in enumerate(definitions):
            if i > 0:
                # Let the previous seek settle before starting the next one
                await asyncio.sleep(settings.capture_pacing)

            log_timed(
                f'Generating thumbnail for "{definition.title}" '
                f"at {definition.start_time:.2f}s...",
                t0,
                step=i + 1,
                total=total,
            )
            frame: CapturedFrame | None
            try:
                frame = await capture_frame(
                    source,
                    definition.start_time,
                    width,
                    height,
                    settings=settings,
                )
            except Exception as e:
                logger.error(
                    f'Failed to generate thumbnail for chapter "{definition.title}" '
                    f"at {definition.start_time}s: {e}"
                )
                frame = None
            else:
                logger.debug(f'Thumbnail generated for "{definition.title}"')

            chapters.append(Chapter.from_definition(definition, thumbnail=frame))
    finally:
        await _restore(source, was_playing)

    captured = sum(1 for ch in chapters if ch.thumbnail is not None)
    log_timed(
        f"Thumbnails complete: {captured}/{total} captured",
        t0,
        level=logging.INFO if captured == total else logging.WARNING,
    )
    return chapters


async def generate_chapter_thumbnails_from_url(
    url: str,
    definitions: Sequence[ChapterDefinition],
    width: int | None = None,
    height: int | None = None,
    *,
    settings: CaptureSettings | None = None,
    source_factory: SourceFactory = FFmpegMediaSource,
) -> list[Chapter]:
    """Generate thumbnails with a fresh media source per chapter.

    Slower than :func:`generate_chapter_thumbnails`; use it when no live
    source is available.

    Returns:
        One Chapter per definition, in the same order.
    """
    settings = settings or get_capture_settings()
    t0 = time.time()
    total = len(definitions)
    chapters: list[Chapter] = []

    for i, definition in enumerate(definitions):
        log_timed(
            f'Generating thumbnail for "{definition.title}" '
            f"at {definition.start_time:.2f}s...",
            t0,
            step=i + 1,
            total=total,
        )
        frame: CapturedFrame | None
        try:
            frame = await capture_frame_from_url(
                url,
                definition.start_time,
                width,
                height,
                settings=settings,
                source_factory=source_factory,
            )
        except Exception as e:
            logger.error(
                f'Failed to generate thumbnail for chapter "{definition.title}" '
                f"at {definition.start_time}s: {e}"
            )
            frame = None
        chapters.append(Chapter.from_definition(definition, thumbnail=frame))

        if i < total - 1:
            await asyncio.sleep(settings.url_capture_pacing)

    return chapters
