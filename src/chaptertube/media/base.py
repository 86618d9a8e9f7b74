"""
chaptertube.media.base - The media element surface the capture engine drives.

A MediaSource models a decoding element: it loads metadata, seeks
asynchronously, reports readiness, plays and pauses, and notifies listeners
through named events. Seeks are requested by assigning ``current_time`` and
completed when the element emits ``seeked``.

Classes:
    MediaSource: Abstract base class for media elements.
    MediaError: A decoder failure with a media error code.

Enums:
    ReadyState: Ordinal decode readiness (HAVE_NOTHING .. HAVE_ENOUGH_DATA).
    MediaStatus: Coarse lifecycle (IDLE, METADATA_LOADED, CAN_CAPTURE, ERROR).
    MediaEvent: Event names emitted by a MediaSource.

Example:
    >>> source = FFmpegMediaSource("talk.mp4")
    >>> source.add_listener(MediaEvent.SEEKED, lambda s: print(s.current_time))
    >>> source.load()
    >>> source.current_time = 42.0
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Callable

from chaptertube.exceptions import media_error_name

if TYPE_CHECKING:
    from PIL import Image

logger = logging.getLogger(__name__)


class ReadyState(IntEnum):
    """How much decoded data is available at the current position."""

    HAVE_NOTHING = 0
    HAVE_METADATA = 1
    HAVE_CURRENT_DATA = 2
    HAVE_FUTURE_DATA = 3
    HAVE_ENOUGH_DATA = 4


class MediaStatus(Enum):
    """Coarse lifecycle derived from ready state and error."""

    IDLE = "idle"
    METADATA_LOADED = "metadata_loaded"
    CAN_CAPTURE = "can_capture"
    ERROR = "error"


class MediaEvent(str, Enum):
    """Event names emitted by a MediaSource."""

    LOADED_METADATA = "loadedmetadata"
    CAN_PLAY = "canplay"
    SEEKING = "seeking"
    SEEKED = "seeked"
    TIME_UPDATE = "timeupdate"
    PLAY = "play"
    PAUSE = "pause"
    ENDED = "ended"
    ERROR = "error"


@dataclass(frozen=True)
class MediaError:
    """A decoder failure.

    Attributes:
        code: Media error code (1=aborted, 2=network, 3=decode, 4=unsupported)
        message: Free-form detail from the decoder
    """

    code: int
    message: str = ""

    ABORTED = 1
    NETWORK = 2
    DECODE = 3
    SRC_NOT_SUPPORTED = 4

    @property
    def name(self) -> str:
        return media_error_name(self.code)


Listener = Callable[["MediaSource"], None]


class MediaSource(ABC):
    """Abstract base class for a decodable video resource.

    Subclasses own the decoder and implement the state properties, seeking,
    and playback. This base class owns listener bookkeeping and event
    dispatch. Listeners are called synchronously with the source as their
    only argument.

    Args:
        src: Path or URL of the media resource.
    """

    def __init__(self, src: str | None = None):
        self.src = src
        self.error: MediaError | None = None
        self._listeners: dict[MediaEvent, list[Listener]] = defaultdict(list)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def add_listener(self, event: MediaEvent, callback: Listener) -> None:
        """Register ``callback`` for ``event``."""
        self._listeners[MediaEvent(event)].append(callback)

    def remove_listener(self, event: MediaEvent, callback: Listener) -> None:
        """Unregister ``callback``; unknown callbacks are ignored."""
        listeners = self._listeners.get(MediaEvent(event), [])
        if callback in listeners:
            listeners.remove(callback)

    def listener_count(self, event: MediaEvent | None = None) -> int:
        """Number of registered listeners, for one event or in total."""
        if event is not None:
            return len(self._listeners.get(MediaEvent(event), []))
        return sum(len(callbacks) for callbacks in self._listeners.values())

    def emit(self, event: MediaEvent) -> None:
        """Dispatch ``event`` to a snapshot of its listeners.

        A failing listener is logged and does not stop the others.
        """
        for callback in list(self._listeners.get(MediaEvent(event), [])):
            try:
                callback(self)
            except Exception:
                logger.exception(f"Listener for '{event.value}' failed")

    def fail(self, code: int, message: str = "") -> None:
        """Record a decoder error and emit ``error``."""
        self.error = MediaError(code=code, message=message)
        logger.debug(f"Media error on {self.src}: {self.error.name} {message}")
        self.emit(MediaEvent.ERROR)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def status(self) -> MediaStatus:
        if self.error is not None:
            return MediaStatus.ERROR
        if self.ready_state >= ReadyState.HAVE_CURRENT_DATA:
            return MediaStatus.CAN_CAPTURE
        if self.ready_state >= ReadyState.HAVE_METADATA:
            return MediaStatus.METADATA_LOADED
        return MediaStatus.IDLE

    @property
    def has_duration(self) -> bool:
        """True once a finite, positive duration is known."""
        duration = self.duration
        return (
            self.ready_state >= ReadyState.HAVE_METADATA
            and duration is not None
            and math.isfinite(duration)
            and duration > 0
        )

    @property
    @abstractmethod
    def ready_state(self) -> ReadyState:
        ...

    @property
    @abstractmethod
    def duration(self) -> float | None:
        """Duration in seconds; None until metadata is loaded."""
        ...

    @property
    @abstractmethod
    def current_time(self) -> float:
        ...

    @current_time.setter
    @abstractmethod
    def current_time(self, value: float) -> None:
        """Request a seek. Completion is signalled by ``seeked``."""
        ...

    @property
    @abstractmethod
    def paused(self) -> bool:
        ...

    @property
    @abstractmethod
    def seeking(self) -> bool:
        ...

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    @abstractmethod
    def load(self) -> None:
        """Start loading metadata; emits ``loadedmetadata`` then ``canplay``."""
        ...

    @abstractmethod
    async def play(self) -> None:
        """Start playback.

        Raises:
            PlaybackRejectedError: If playback is not allowed right now.
        """
        ...

    @abstractmethod
    def pause(self) -> None:
        ...

    @abstractmethod
    def render_frame(self, width: int, height: int) -> Image.Image:
        """Draw the frame at ``current_time`` into a ``width x height`` image.

        Raises:
            DecodeNotReadyError: If no frame is decoded at the current position.
        """
        ...

    async def close(self) -> None:
        """Release decoder resources. The default does nothing."""
        return None
