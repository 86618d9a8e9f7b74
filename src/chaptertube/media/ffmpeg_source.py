"""
FFmpeg-backed headless media element.

Metadata comes from ffprobe. Every seek decodes exactly one frame through
ffmpeg (rawvideo on a pipe) into a numpy array; blocking tool calls run in the
default executor. Playback is a clock: while playing, ``current_time``
advances in real time and ``timeupdate`` fires periodically, but frames are
only decoded on seek.
"""

from __future__ import annotations

import asyncio
import logging
import time
from functools import partial

import numpy as np
from PIL import Image

from chaptertube.config import defaults
from chaptertube.exceptions import DecodeNotReadyError, PlaybackRejectedError
from chaptertube.media.base import MediaError, MediaEvent, MediaSource, ReadyState
from chaptertube.tools.ffmpeg import FFmpegTool
from chaptertube.tools.ffprobe import FFprobeTool, VideoMetadata

logger = logging.getLogger(__name__)


class FFmpegMediaSource(MediaSource):
    """A media element that decodes frames on demand with ffmpeg.

    Args:
        src: Path or URL of the video.
        autoplay_allowed: When False, ``play()`` is rejected, as a browser
            autoplay policy would.
        time_update_interval: Seconds between ``timeupdate`` events while
            playing.
        ffmpeg: FFmpeg wrapper (injectable for tests).
        ffprobe: FFprobe wrapper (injectable for tests).
    """

    def __init__(
        self,
        src: str,
        *,
        autoplay_allowed: bool = True,
        time_update_interval: float = defaults.TIME_UPDATE_INTERVAL,
        ffmpeg: FFmpegTool | None = None,
        ffprobe: FFprobeTool | None = None,
    ):
        super().__init__(src)
        self.autoplay_allowed = autoplay_allowed
        self._time_update_interval = time_update_interval
        self._ffmpeg = ffmpeg or FFmpegTool()
        self._ffprobe = ffprobe or FFprobeTool()

        self._metadata: VideoMetadata | None = None
        self._ready_state = ReadyState.HAVE_NOTHING
        self._current_time = 0.0
        self._paused = True
        self._seeking = False
        self._frame: np.ndarray | None = None
        self._seek_generation = 0

        self._load_task: asyncio.Task | None = None
        self._seek_task: asyncio.Task | None = None
        self._clock_task: asyncio.Task | None = None

    def __repr__(self) -> str:
        return (
            f"FFmpegMediaSource(src={self.src!r}, "
            f"ready_state={self._ready_state.name}, t={self._current_time:.2f})"
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def ready_state(self) -> ReadyState:
        return self._ready_state

    @property
    def duration(self) -> float | None:
        return self._metadata.duration if self._metadata else None

    @property
    def current_time(self) -> float:
        return self._current_time

    @current_time.setter
    def current_time(self, value: float) -> None:
        self._current_time = max(0.0, float(value))
        if self._metadata is None:
            # Applied once metadata arrives
            return
        self._start_seek()

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def seeking(self) -> bool:
        return self._seeking

    @property
    def metadata(self) -> VideoMetadata | None:
        return self._metadata

    # ------------------------------------------------------------------
    # Loading and seeking
    # ------------------------------------------------------------------

    def load(self) -> None:
        if self._load_task is not None and not self._load_task.done():
            return
        self.error = None
        self._load_task = asyncio.get_running_loop().create_task(self._load())

    async def _load(self) -> None:
        loop = asyncio.get_running_loop()
        metadata = await loop.run_in_executor(
            None, partial(self._ffprobe.get_metadata, self.src)
        )
        if metadata is None:
            self.fail(MediaError.NETWORK, f"Could not probe {self.src}")
            return
        if not metadata.has_video:
            self.fail(MediaError.SRC_NOT_SUPPORTED, "No video stream")
            return

        self._metadata = metadata
        self._ready_state = ReadyState.HAVE_METADATA
        logger.debug(
            f"Loaded metadata for {self.src}: {metadata.duration}s "
            f"{metadata.width}x{metadata.height}"
        )
        self.emit(MediaEvent.LOADED_METADATA)

        # Decode the first frame at the (possibly pre-set) position
        ok = await self._decode_current()
        if ok:
            self.emit(MediaEvent.CAN_PLAY)

    def _start_seek(self) -> None:
        self._seek_generation += 1
        if self._seek_task is not None and not self._seek_task.done():
            self._seek_task.cancel()
        self.error = None
        self._seeking = True
        if self._ready_state > ReadyState.HAVE_METADATA:
            self._ready_state = ReadyState.HAVE_METADATA
        self.emit(MediaEvent.SEEKING)
        self._seek_task = asyncio.get_running_loop().create_task(self._seek())

    async def _seek(self) -> None:
        ok = await self._decode_current()
        self._seeking = False
        if ok:
            self.emit(MediaEvent.SEEKED)
            self.emit(MediaEvent.TIME_UPDATE)

    async def _decode_current(self) -> bool:
        """Decode the frame at ``current_time``; emit ``error`` on failure."""
        if self._metadata is None:
            # Closed while the seek was pending
            return False
        target = self._current_time
        generation = self._seek_generation
        loop = asyncio.get_running_loop()
        frame = await loop.run_in_executor(
            None,
            partial(
                self._ffmpeg.decode_frame,
                self.src,
                target,
                self._metadata.width,
                self._metadata.height,
            ),
        )
        if generation != self._seek_generation:
            # Superseded by a newer seek, which decodes on its own
            return False
        if frame is None:
            self._frame = None
            self.fail(MediaError.DECODE, f"No frame decoded at {target:.2f}s")
            return False
        self._frame = frame
        self._ready_state = ReadyState.HAVE_ENOUGH_DATA
        return True

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------

    async def play(self) -> None:
        if not self.autoplay_allowed:
            raise PlaybackRejectedError("Playback rejected by autoplay policy")
        if self._metadata is None or self.error is not None:
            raise PlaybackRejectedError(
                f"Cannot play {self.src}: media not loaded",
                details={"ready_state": self._ready_state.name},
            )
        if not self._paused:
            return
        self._paused = False
        self.emit(MediaEvent.PLAY)
        self._clock_task = asyncio.get_running_loop().create_task(self._run_clock())

    def pause(self) -> None:
        if self._clock_task is not None and not self._clock_task.done():
            self._clock_task.cancel()
        self._clock_task = None
        if self._paused:
            return
        self._paused = True
        self.emit(MediaEvent.PAUSE)

    async def _run_clock(self) -> None:
        last = time.monotonic()
        duration = self.duration or 0.0
        while not self._paused:
            await asyncio.sleep(self._time_update_interval)
            now = time.monotonic()
            if not self._seeking:
                self._current_time = min(duration, self._current_time + (now - last))
            last = now
            self.emit(MediaEvent.TIME_UPDATE)
            if self._current_time >= duration:
                self._paused = True
                self.emit(MediaEvent.PAUSE)
                self.emit(MediaEvent.ENDED)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render_frame(self, width: int, height: int) -> Image.Image:
        if self._frame is None or self._ready_state < ReadyState.HAVE_CURRENT_DATA:
            raise DecodeNotReadyError(
                details={"ready_state": self._ready_state.name, "t": self._current_time}
            )
        image = Image.fromarray(self._frame)
        if image.size != (width, height):
            image = image.resize((width, height), Image.Resampling.BILINEAR)
        return image

    async def close(self) -> None:
        """Cancel pending work and drop the decoded frame."""
        self.pause()
        tasks = [t for t in (self._load_task, self._seek_task) if t and not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._load_task = self._seek_task = None
        self._frame = None
        self._metadata = None
        self._seeking = False
        self._ready_state = ReadyState.HAVE_NOTHING
