"""
Media element abstraction and the ffmpeg-backed implementation.
"""

from chaptertube.media.base import (
    MediaError,
    MediaEvent,
    MediaSource,
    MediaStatus,
    ReadyState,
)
from chaptertube.media.events import (
    listening,
    subscribe,
    wait_for_event,
    wait_for_ready_state,
)
from chaptertube.media.ffmpeg_source import FFmpegMediaSource

__all__ = [
    "FFmpegMediaSource",
    "MediaError",
    "MediaEvent",
    "MediaSource",
    "MediaStatus",
    "ReadyState",
    "listening",
    "subscribe",
    "wait_for_event",
    "wait_for_ready_state",
]
