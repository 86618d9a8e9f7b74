"""Tests for single-frame capture."""

import io

import pytest
from conftest import FakeMediaSource
from PIL import Image

from chaptertube.exceptions import (
    DecodeNotReadyError,
    DecodeTimeoutError,
    LoadError,
    MetadataUnavailableError,
)
from chaptertube.operations.frame_capture import (
    capture_frame,
    capture_frame_from_url,
    clamp_seek_time,
    encode_jpeg,
    get_video_duration,
)


class TestClampSeekTime:
    """Tests for seek time clamping."""

    @pytest.mark.parametrize(
        "at_time,duration,expected",
        [
            (50.0, 100.0, 50.0),
            (0.0, 100.0, 0.1),
            (-5.0, 100.0, 0.1),
            (150.0, 100.0, 99.9),
            (100.0, 100.0, 99.9),
            (0.0, 0.05, 0.0),
        ],
    )
    def test_clamp(self, at_time, duration, expected):
        assert clamp_seek_time(at_time, duration) == pytest.approx(expected)

    def test_never_negative(self):
        assert clamp_seek_time(5.0, 0.05) == 0.0


class TestEncodeJpeg:
    def test_produces_jpeg(self):
        data = encode_jpeg(Image.new("RGB", (16, 9), (200, 10, 10)))
        assert data[:2] == b"\xff\xd8"
        assert Image.open(io.BytesIO(data)).size == (16, 9)

    def test_converts_rgba(self):
        data = encode_jpeg(Image.new("RGBA", (4, 4)))
        assert Image.open(io.BytesIO(data)).mode == "RGB"


class TestCaptureFrame:
    """Tests for capture_frame against a live source."""

    @pytest.mark.asyncio
    async def test_captures_at_requested_time(self, source, settings):
        frame = await capture_frame(source, 40.0, settings=settings)

        assert source.seeks == [40.0]
        assert frame.timestamp == 40.0
        assert (frame.width, frame.height) == (320, 180)
        assert frame.mime_type == "image/jpeg"
        assert Image.open(io.BytesIO(frame.data)).size == (320, 180)

    @pytest.mark.asyncio
    async def test_custom_size(self, source, settings):
        frame = await capture_frame(source, 10.0, 64, 36, settings=settings)
        assert Image.open(io.BytesIO(frame.data)).size == (64, 36)

    @pytest.mark.asyncio
    async def test_zero_is_nudged_forward(self, source, settings):
        frame = await capture_frame(source, 0.0, settings=settings)
        assert source.seeks == [pytest.approx(0.1)]
        assert frame.timestamp == pytest.approx(0.1)

    @pytest.mark.asyncio
    async def test_end_is_clamped(self, source, settings):
        await capture_frame(source, 500.0, settings=settings)
        assert source.seeks == [pytest.approx(99.9)]

    @pytest.mark.asyncio
    async def test_missing_seeked_falls_back_to_polling(self, settings):
        source = FakeMediaSource(seek_mode="silent")
        frame = await capture_frame(source, 30.0, settings=settings)
        assert frame.timestamp == 30.0

    @pytest.mark.asyncio
    async def test_decode_error_raises_load_error(self, settings):
        source = FakeMediaSource(seek_mode="error")
        with pytest.raises(LoadError) as exc_info:
            await capture_frame(source, 30.0, settings=settings)
        assert exc_info.value.code == 3
        assert "MEDIA_ERR_DECODE" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_not_ready_after_seek(self, settings):
        source = FakeMediaSource(seek_mode="not_ready")
        with pytest.raises(DecodeNotReadyError):
            await capture_frame(source, 30.0, settings=settings)

    @pytest.mark.asyncio
    async def test_hung_seek_times_out(self, settings):
        source = FakeMediaSource(seek_mode="hang")
        with pytest.raises(DecodeTimeoutError) as exc_info:
            await capture_frame(source, 30.0, timeout=0.1, settings=settings)
        assert exc_info.value.timeout == 0.1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("seek_mode", ["event", "silent", "error", "not_ready", "hang"])
    async def test_listeners_removed_on_every_path(self, settings, seek_mode):
        source = FakeMediaSource(seek_mode=seek_mode)
        try:
            await capture_frame(source, 30.0, timeout=0.1, settings=settings)
        except (LoadError, DecodeNotReadyError, DecodeTimeoutError):
            pass
        assert source.listener_count() == 0

    @pytest.mark.asyncio
    async def test_loads_idle_source(self, settings):
        source = FakeMediaSource(loaded=False)
        frame = await capture_frame(source, 20.0, settings=settings)
        assert source.load_calls == 1
        assert frame.timestamp == 20.0

    @pytest.mark.asyncio
    async def test_load_failure(self, settings):
        source = FakeMediaSource(loaded=False, load_mode="error")
        with pytest.raises(LoadError) as exc_info:
            await capture_frame(source, 20.0, settings=settings)
        assert exc_info.value.code == 2

    @pytest.mark.asyncio
    async def test_unknown_duration(self, settings):
        source = FakeMediaSource(duration=None)
        with pytest.raises(MetadataUnavailableError):
            await capture_frame(source, 20.0, settings=settings)

    @pytest.mark.asyncio
    async def test_play_state_untouched(self, settings):
        source = FakeMediaSource(paused=True)
        await capture_frame(source, 20.0, settings=settings)
        assert source.paused is True
        assert source.play_calls == 0
        assert source.pause_calls == 0


class TestCaptureFrameFromUrl:
    """Tests for capture with a fresh private source."""

    @pytest.mark.asyncio
    async def test_creates_and_closes_source(self, settings):
        created = []

        def factory(url):
            src = FakeMediaSource(url, loaded=False)
            created.append(src)
            return src

        frame = await capture_frame_from_url(
            "https://example.com/v.mp4", 40.0, settings=settings, source_factory=factory
        )

        assert frame.timestamp == 40.0
        assert len(created) == 1
        assert created[0].src == "https://example.com/v.mp4"
        assert created[0].closed is True

    @pytest.mark.asyncio
    async def test_closes_source_on_failure(self, settings):
        created = []

        def factory(url):
            src = FakeMediaSource(url, loaded=False, seek_mode="error")
            created.append(src)
            return src

        with pytest.raises(LoadError):
            await capture_frame_from_url(
                "v.mp4", 40.0, settings=settings, source_factory=factory
            )
        assert created[0].closed is True


class TestGetVideoDuration:
    @pytest.mark.asyncio
    async def test_returns_duration(self):
        duration = await get_video_duration(
            "v.mp4", source_factory=lambda url: FakeMediaSource(url, duration=42.5, loaded=False)
        )
        assert duration == 42.5

    @pytest.mark.asyncio
    async def test_load_error(self):
        with pytest.raises(MetadataUnavailableError):
            await get_video_duration(
                "v.mp4",
                source_factory=lambda url: FakeMediaSource(url, loaded=False, load_mode="error"),
            )

    @pytest.mark.asyncio
    async def test_timeout(self):
        with pytest.raises(MetadataUnavailableError, match="Timeout"):
            await get_video_duration(
                "v.mp4",
                timeout=0.05,
                source_factory=lambda url: FakeMediaSource(url, loaded=False, load_mode="hang"),
            )

    @pytest.mark.asyncio
    async def test_no_duration(self):
        with pytest.raises(MetadataUnavailableError):
            await get_video_duration(
                "v.mp4",
                source_factory=lambda url: FakeMediaSource(url, duration=None, loaded=False),
            )
