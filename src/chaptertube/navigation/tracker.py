"""
Playback position tracking and chapter navigation.

The tracker keeps ``current_chapter_index`` consistent with the playing
position. Chapters partition [0, duration) into half-open intervals
[start_i, start_{i+1}); the index is the greatest ``i`` whose start is at or
before the playback time, or -1 before the first chapter.
"""

from __future__ import annotations

import asyncio
import bisect
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Callable

from chaptertube.config.loader import get_capture_settings
from chaptertube.exceptions import PlaybackRejectedError, SeekTimeoutError
from chaptertube.media.base import MediaEvent
from chaptertube.media.events import load_error_for, subscribe
from chaptertube.models.chapter import Chapter, PlaybackCursor

if TYPE_CHECKING:
    from chaptertube.media.base import MediaSource

logger = logging.getLogger(__name__)

ChapterChangeListener = Callable[[int, "Chapter | None"], None]


class PlaybackPositionTracker:
    """Maps playback time to the current chapter and seeks between chapters.

    Args:
        source: The media source being played
        chapters: Chapters ordered by start time
        external: True when chapters came from an external source, which
            enables external chapter-change notifications
        seek_timeout: Max seconds to wait for ``seeked`` when navigating

    Example:
        >>> with PlaybackPositionTracker(source, chapters) as tracker:
        ...     tracker.add_listener(lambda i, ch: print("now in", ch.title))
        ...     await tracker.seek_to_chapter(chapters[2])
    """

    def __init__(
        self,
        source: MediaSource,
        chapters: Sequence[Chapter],
        *,
        external: bool = False,
        seek_timeout: float | None = None,
    ):
        self.source = source
        self.chapters = list(chapters)
        self.external = external
        self.seek_timeout = (
            get_capture_settings().navigation_seek_timeout
            if seek_timeout is None
            else seek_timeout
        )
        self.cursor = PlaybackCursor()
        self._starts = [chapter.start_time for chapter in self.chapters]
        self._listeners: list[ChapterChangeListener] = []
        self._attached = False

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    def attach(self) -> None:
        """Start following the source's ``timeupdate`` events."""
        if not self._attached:
            self.source.add_listener(MediaEvent.TIME_UPDATE, self._on_time_update)
            self._attached = True
        self.handle_time_update(self.source.current_time)

    def detach(self) -> None:
        if self._attached:
            self.source.remove_listener(MediaEvent.TIME_UPDATE, self._on_time_update)
            self._attached = False

    def __enter__(self) -> PlaybackPositionTracker:
        self.attach()
        return self

    def __exit__(self, *exc) -> None:
        self.detach()

    def add_listener(self, callback: ChapterChangeListener) -> None:
        """Call ``callback(index, chapter)`` whenever the chapter changes."""
        self._listeners.append(callback)

    def remove_listener(self, callback: ChapterChangeListener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def current_index(self) -> int:
        return self.cursor.current_chapter_index

    @property
    def current_chapter(self) -> Chapter | None:
        index = self.cursor.current_chapter_index
        return self.chapters[index] if index >= 0 else None

    def index_for(self, current_time: float) -> int:
        """Index of the chapter containing ``current_time`` (-1 if none)."""
        return bisect.bisect_right(self._starts, current_time) - 1

    def _set_index(self, index: int) -> None:
        if not self.cursor.move_to(index):
            return
        chapter = self.chapters[index] if index >= 0 else None
        logger.debug(
            f"Current chapter -> {index}" + (f' "{chapter.title}"' if chapter else "")
        )
        for callback in list(self._listeners):
            try:
                callback(index, chapter)
            except Exception:
                logger.exception("Chapter change listener failed")

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _on_time_update(self, source: MediaSource) -> None:
        self.handle_time_update(source.current_time)

    def handle_time_update(self, current_time: float | None = None) -> int:
        """Recompute the index from a playback time (default: the source's)."""
        if current_time is None:
            current_time = self.source.current_time
        self._set_index(self.index_for(current_time))
        return self.cursor.current_chapter_index

    def handle_external_chapter_change(self, chapter: Chapter) -> bool:
        """Apply a chapter-change notification from the external chapter source.

        The notified chapter is matched by start time.

        Returns:
            True if a matching chapter was found.
        """
        if not self.external:
            logger.debug("Ignoring external chapter change for synthetic chapters")
            return False
        for index, candidate in enumerate(self.chapters):
            if candidate.start_time == chapter.start_time:
                self._set_index(index)
                return True
        logger.debug(f"No chapter starts at {chapter.start_time}s, ignoring change")
        return False

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _index_of(self, chapter: Chapter) -> int:
        for index, candidate in enumerate(self.chapters):
            if candidate is chapter:
                return index
        for index, candidate in enumerate(self.chapters):
            if candidate.start_time == chapter.start_time:
                return index
        return -1

    async def _play_with_retry(self) -> bool:
        try:
            await self.source.play()
            return True
        except PlaybackRejectedError as e:
            logger.warning(f"Play request rejected, retrying once: {e}")
        try:
            await self.source.play()
            return True
        except PlaybackRejectedError as e:
            logger.error(f"Play request rejected again, giving up: {e}")
            return False

    async def seek_to_chapter(self, chapter: Chapter) -> bool:
        """Jump playback to the start of ``chapter`` and resume playing.

        Never raises; failures are logged and reported through the return
        value.

        Returns:
            True if the seek was issued and the chapter became current.
        """
        index = self._index_of(chapter)
        if index < 0:
            logger.warning(f'Unknown chapter "{chapter.title}" at {chapter.start_time}s')
            return False

        try:
            with subscribe(self.source, MediaEvent.SEEKED) as seeked, subscribe(
                self.source, MediaEvent.ERROR
            ) as errored:
                self.source.current_time = chapter.start_time
                done, _ = await asyncio.wait(
                    {seeked, errored},
                    timeout=self.seek_timeout,
                    return_when=asyncio.FIRST_COMPLETED,
                )
            if errored in done:
                raise load_error_for(self.source)
            if seeked not in done:
                # Some decoders never signal; navigate anyway
                logger.debug(
                    SeekTimeoutError(target=chapter.start_time, timeout=self.seek_timeout)
                )
            await self._play_with_retry()
        except Exception as e:
            logger.error(f'Failed to seek to chapter "{chapter.title}": {e}')
            return False

        self._set_index(index)
        return True
