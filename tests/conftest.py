"""Pytest configuration for chaptertube tests."""

from __future__ import annotations

import asyncio

import pytest
from PIL import Image

from chaptertube.config.loader import CaptureSettings, clear_config_cache
from chaptertube.exceptions import LoadError, PlaybackRejectedError
from chaptertube.media.base import MediaError, MediaEvent, MediaSource, ReadyState
from chaptertube.models.chapter import Chapter
from chaptertube.operations.chapters import generate_equal_chapters


class FakeMediaSource(MediaSource):
    """In-memory media element with scriptable decoder behavior.

    Seek modes:
        "event": complete the seek and emit ``seeked``
        "silent": complete the seek without emitting ``seeked``
        "hang": stay seeking forever
        "not_ready": emit ``seeked`` but never decode a frame
        "error": report a decode error
        "raise": raise LoadError from the ``current_time`` setter

    Load modes:
        "ok": load metadata and the first frame
        "error": report a network error
        "hang": never finish loading
    """

    def __init__(
        self,
        src: str = "fake.mp4",
        *,
        duration: float | None = 100.0,
        loaded: bool = True,
        load_mode: str = "ok",
        seek_mode: str = "event",
        seek_mode_at: dict[float, str] | None = None,
        seek_delay: float = 0.0,
        paused: bool = True,
        play_rejections: int = 0,
    ):
        super().__init__(src)
        self._duration = duration
        self._ready_state = ReadyState.HAVE_NOTHING
        self._current_time = 0.0
        self._paused = paused
        self._seeking = False
        self.load_mode = load_mode
        self.seek_mode = seek_mode
        self.seek_mode_at = seek_mode_at or {}
        self.seek_delay = seek_delay
        self.play_rejections = play_rejections

        self.seeks: list[float] = []
        self.play_calls = 0
        self.pause_calls = 0
        self.load_calls = 0
        self.closed = False

        if loaded:
            self._ready_state = (
                ReadyState.HAVE_ENOUGH_DATA if duration else ReadyState.HAVE_METADATA
            )

    # State

    @property
    def ready_state(self) -> ReadyState:
        return self._ready_state

    @property
    def duration(self) -> float | None:
        if self._ready_state < ReadyState.HAVE_METADATA:
            return None
        return self._duration

    @property
    def current_time(self) -> float:
        return self._current_time

    @current_time.setter
    def current_time(self, value: float) -> None:
        mode = self.seek_mode_at.get(value, self.seek_mode)
        if mode == "raise":
            raise LoadError(code=MediaError.DECODE)
        self._current_time = value
        self.seeks.append(value)
        if self._ready_state < ReadyState.HAVE_METADATA:
            return
        self.error = None
        self._seeking = True
        self._ready_state = ReadyState.HAVE_METADATA
        self.emit(MediaEvent.SEEKING)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._complete_seek(mode)
            return
        loop.call_later(self.seek_delay, self._complete_seek, mode)

    def _complete_seek(self, mode: str) -> None:
        if mode == "hang":
            return
        if mode == "error":
            self._seeking = False
            self.fail(MediaError.DECODE, "scripted decode failure")
            return
        self._seeking = False
        if mode != "not_ready":
            self._ready_state = ReadyState.HAVE_ENOUGH_DATA
        if mode != "silent":
            self.emit(MediaEvent.SEEKED)
            self.emit(MediaEvent.TIME_UPDATE)

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def seeking(self) -> bool:
        return self._seeking

    # Operations

    def load(self) -> None:
        self.load_calls += 1
        asyncio.get_running_loop().call_soon(self._complete_load)

    def _complete_load(self) -> None:
        if self.load_mode == "hang":
            return
        if self.load_mode == "error":
            self.fail(MediaError.NETWORK, "scripted network failure")
            return
        self._ready_state = ReadyState.HAVE_METADATA
        self.emit(MediaEvent.LOADED_METADATA)
        if self._duration:
            self._ready_state = ReadyState.HAVE_ENOUGH_DATA
            self.emit(MediaEvent.CAN_PLAY)

    async def play(self) -> None:
        self.play_calls += 1
        if self.play_rejections > 0:
            self.play_rejections -= 1
            raise PlaybackRejectedError("scripted autoplay rejection")
        self._paused = False
        self.emit(MediaEvent.PLAY)

    def pause(self) -> None:
        self.pause_calls += 1
        self._paused = True
        self.emit(MediaEvent.PAUSE)

    def render_frame(self, width: int, height: int) -> Image.Image:
        shade = int(self._current_time) % 256
        return Image.new("RGB", (width, height), (shade, shade, shade))

    async def close(self) -> None:
        self.closed = True

    # Test helpers

    def advance(self, t: float) -> None:
        """Move the playhead and emit ``timeupdate``."""
        self._current_time = t
        self.emit(MediaEvent.TIME_UPDATE)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep tests away from real user and project config files."""
    monkeypatch.setenv("CHAPTERTUBE_ROOT", str(tmp_path / "root"))
    monkeypatch.chdir(tmp_path)
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def settings():
    """Capture settings with timings shrunk for tests."""
    return CaptureSettings(
        capture_timeout=0.5,
        url_capture_timeout=0.5,
        readiness_timeout=0.2,
        metadata_timeout=0.2,
        navigation_seek_timeout=0.05,
        seek_grace_period=0.02,
        poll_interval=0.005,
        settle_delay=0.0,
        not_ready_retry_delay=0.01,
        capture_pacing=0.0,
        url_capture_pacing=0.0,
    )


@pytest.fixture
def source():
    return FakeMediaSource()


@pytest.fixture
def chapters():
    """Five equal chapters over 100s: starts at 0, 20, 40, 60, 80."""
    return [Chapter.from_definition(d) for d in generate_equal_chapters(100.0, 5)]
