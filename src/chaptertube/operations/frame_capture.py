"""
Frame capture: seek a media source and encode the decoded frame as a JPEG.

The capture runs as a sequence of bounded suspensions against the source:
metadata readiness, seek completion (``seeked`` raced against ``error`` and a
grace timer, then readiness polling), a short settle delay, and finally the
raster draw. An overall timeout bounds the whole sequence. Subscriptions are
scoped, so every exit path leaves the source with no listeners from us.
"""

from __future__ import annotations

import asyncio
import io
import logging
from typing import TYPE_CHECKING, Callable

from chaptertube.config import defaults
from chaptertube.config.loader import CaptureSettings, get_capture_settings
from chaptertube.exceptions import (
    DecodeNotReadyError,
    DecodeTimeoutError,
    LoadError,
    MetadataUnavailableError,
)
from chaptertube.media.base import MediaEvent, MediaStatus, ReadyState
from chaptertube.media.events import load_error_for, subscribe, wait_for_ready_state
from chaptertube.media.ffmpeg_source import FFmpegMediaSource
from chaptertube.models.frame import CapturedFrame, CaptureRequest

if TYPE_CHECKING:
    from PIL import Image

    from chaptertube.media.base import MediaSource

logger = logging.getLogger(__name__)

SourceFactory = Callable[[str], "MediaSource"]


def clamp_seek_time(
    at_time: float,
    duration: float,
    end_margin: float = defaults.SEEK_END_MARGIN,
    start_offset: float = defaults.START_OFFSET,
) -> float:
    """Clamp a requested capture time into the seekable range.

    Seeks stay ``end_margin`` short of the end. A seek to exactly 0 is nudged
    to ``start_offset`` when the media is long enough, since the very first
    frame often fails to decode from a ranged request.

    Args:
        at_time: Requested time in seconds
        duration: Media duration in seconds
        end_margin: Distance to keep from the end
        start_offset: Replacement for a seek to 0

    Returns:
        Seek time in seconds
    """
    seek_time = max(0.0, min(max(0.0, at_time), duration - end_margin))
    if seek_time == 0 and duration > start_offset:
        seek_time = start_offset
    return seek_time


def encode_jpeg(image: Image.Image, quality: int = defaults.JPEG_QUALITY) -> bytes:
    """Encode a raster as JPEG bytes."""
    buffer = io.BytesIO()
    image.convert("RGB").save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


async def _await_seek(
    source: MediaSource,
    seeked: asyncio.Future,
    errored: asyncio.Future,
    settings: CaptureSettings,
) -> None:
    """Wait for the seek to finish.

    Some decoders never emit ``seeked`` in certain buffering states, so after
    the grace period readiness is polled directly.
    """
    done, _ = await asyncio.wait(
        {seeked, errored},
        timeout=settings.seek_grace_period,
        return_when=asyncio.FIRST_COMPLETED,
    )
    if errored in done:
        raise load_error_for(source)
    if seeked in done:
        return

    logger.debug(
        f"No seeked event within {settings.seek_grace_period}s, polling readiness"
    )
    while True:
        if errored.done():
            raise load_error_for(source)
        if seeked.done():
            return
        if not source.seeking and source.ready_state >= ReadyState.HAVE_CURRENT_DATA:
            return
        await asyncio.sleep(settings.poll_interval)


async def _ensure_metadata(source: MediaSource, settings: CaptureSettings) -> float:
    """Load metadata if needed and return the duration."""
    if source.ready_state < ReadyState.HAVE_METADATA:
        if source.status is MediaStatus.IDLE:
            source.load()
        await wait_for_ready_state(
            source,
            ReadyState.HAVE_METADATA,
            timeout=settings.metadata_timeout,
            poll_interval=settings.poll_interval,
        )
        # Let a freshly loaded decoder settle before the first seek
        await asyncio.sleep(defaults.METADATA_SETTLE_DELAY)

    if not source.has_duration:
        raise MetadataUnavailableError(
            f"Duration unknown for {source.src}",
            details={"ready_state": source.ready_state.name},
        )
    return float(source.duration)


async def _capture(request: CaptureRequest, settings: CaptureSettings) -> CapturedFrame:
    source = request.source
    duration = await _ensure_metadata(source, settings)
    seek_time = clamp_seek_time(request.at_time, duration)

    with subscribe(source, MediaEvent.SEEKED) as seeked, subscribe(
        source, MediaEvent.ERROR
    ) as errored:
        source.current_time = seek_time
        await _await_seek(source, seeked, errored, settings)

        await asyncio.sleep(settings.settle_delay)
        if source.ready_state < ReadyState.HAVE_CURRENT_DATA:
            await asyncio.sleep(settings.not_ready_retry_delay)
            if errored.done():
                raise load_error_for(source)
            if source.ready_state < ReadyState.HAVE_CURRENT_DATA:
                raise DecodeNotReadyError(
                    details={
                        "at_time": seek_time,
                        "ready_state": source.ready_state.name,
                    }
                )

        image = source.render_frame(request.width, request.height)

    if image.size != (request.width, request.height):
        image = image.resize((request.width, request.height))
    return CapturedFrame(
        data=encode_jpeg(image, settings.jpeg_quality),
        width=request.width,
        height=request.height,
        timestamp=seek_time,
    )


async def capture_frame(
    source: MediaSource,
    at_time: float,
    width: int | None = None,
    height: int | None = None,
    *,
    timeout: float | None = None,
    settings: CaptureSettings | None = None,
) -> CapturedFrame:
    """Capture the frame at ``at_time`` from a live media source.

    The source is reused in place: its decoder is not recreated and it is not
    closed afterwards. Its ``current_time`` is left at the capture position
    and its play/pause state is untouched.

    Args:
        source: Media source to capture from
        at_time: Time in seconds (clamped into the seekable range)
        width: Raster width (default from config)
        height: Raster height (default from config)
        timeout: Overall timeout in seconds (default from config)
        settings: Capture settings (default: resolved config)

    Returns:
        The encoded frame

    Raises:
        DecodeTimeoutError: If the capture did not finish within ``timeout``.
        DecodeNotReadyError: If the seek finished but no frame was presentable.
        LoadError: If the decoder reported an error.
        MetadataUnavailableError: If the duration never became known.
    """
    settings = settings or get_capture_settings()
    timeout = settings.capture_timeout if timeout is None else timeout
    request = CaptureRequest(
        source=source,
        at_time=at_time,
        width=width or settings.width,
        height=height or settings.height,
    )

    try:
        return await asyncio.wait_for(_capture(request, settings), timeout=timeout)
    except asyncio.TimeoutError:
        raise DecodeTimeoutError(
            timeout=timeout, details={"at_time": at_time, "src": source.src}
        ) from None


async def capture_frame_from_url(
    url: str,
    at_time: float,
    width: int | None = None,
    height: int | None = None,
    *,
    timeout: float | None = None,
    settings: CaptureSettings | None = None,
    source_factory: SourceFactory = FFmpegMediaSource,
) -> CapturedFrame:
    """Capture a frame using a fresh, private media source.

    Prefer :func:`capture_frame` when a live source already exists; opening a
    second decoder on the same resource is slower and fails more often.

    Args:
        url: Path or URL of the video
        at_time: Time in seconds
        width: Raster width (default from config)
        height: Raster height (default from config)
        timeout: Overall timeout in seconds (default: url_capture_timeout)
        settings: Capture settings (default: resolved config)
        source_factory: Creates the media source for ``url``

    Returns:
        The encoded frame
    """
    settings = settings or get_capture_settings()
    timeout = settings.url_capture_timeout if timeout is None else timeout

    source = source_factory(url)
    try:
        source.load()
        return await capture_frame(
            source, at_time, width, height, timeout=timeout, settings=settings
        )
    finally:
        await source.close()


async def get_video_duration(
    url: str,
    timeout: float | None = None,
    *,
    source_factory: SourceFactory = FFmpegMediaSource,
) -> float:
    """Load metadata on a fresh source and return its duration.

    Raises:
        MetadataUnavailableError: On timeout, load error, or unknown duration.
    """
    timeout = get_capture_settings().metadata_timeout if timeout is None else timeout
    source = source_factory(url)
    try:
        source.load()
        try:
            ready = await wait_for_ready_state(
                source, ReadyState.HAVE_METADATA, timeout=timeout
            )
        except LoadError as e:
            raise MetadataUnavailableError(
                f"Failed to load video: {e}", details={"src": url}
            ) from e
        if not ready:
            raise MetadataUnavailableError(
                "Timeout while loading video metadata",
                details={"src": url, "timeout": timeout},
            )
        if not source.has_duration:
            raise MetadataUnavailableError(
                f"Duration unknown for {url}", details={"src": url}
            )
        return float(source.duration)
    finally:
        await source.close()
