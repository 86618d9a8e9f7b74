"""
Custom exceptions for chaptertube.

All chaptertube exceptions inherit from ChaptertubeError for easy catching.
"""

from __future__ import annotations

from typing import Any

# Media element error codes and their names
MEDIA_ERROR_NAMES: dict[int, str] = {
    1: "MEDIA_ERR_ABORTED",
    2: "MEDIA_ERR_NETWORK",
    3: "MEDIA_ERR_DECODE",
    4: "MEDIA_ERR_SRC_NOT_SUPPORTED",
}


def media_error_name(code: int | None) -> str:
    """Return the symbolic name for a media error code."""
    if code is None:
        return "Unknown error"
    return MEDIA_ERROR_NAMES.get(code, "Unknown error")


class ChaptertubeError(Exception):
    """Base exception for all chaptertube errors.

    Attributes:
        message: Human-readable error message
        category: Error classification (e.g., "timeout", "load")
        details: Additional diagnostic information
    """

    category = "unknown"

    def __init__(self, message: str, *, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a structured dict for reporting."""
        result: dict[str, Any] = {
            "type": self.__class__.__name__,
            "message": self.message,
            "category": self.category,
        }
        if self.details:
            result["details"] = self.details
        return result


class MetadataUnavailableError(ChaptertubeError):
    """Media duration is unknown, so nothing can be generated."""

    category = "metadata"


class FrameCaptureError(ChaptertubeError):
    """Error while capturing a still frame from a media source."""

    category = "capture"


class DecodeTimeoutError(FrameCaptureError):
    """The decoder did not become ready within the capture timeout."""

    category = "timeout"

    def __init__(
        self,
        message: str = "Timeout while capturing video frame",
        *,
        timeout: float | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if timeout is not None:
            details["timeout"] = timeout
        super().__init__(message, details=details)
        self.timeout = timeout


class DecodeNotReadyError(FrameCaptureError):
    """The seek finished but no presentable frame was decoded."""

    category = "not_ready"

    def __init__(
        self,
        message: str = "Video not ready for frame capture",
        *,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details=details)


class LoadError(FrameCaptureError):
    """The decoder reported a hard failure."""

    category = "load"

    def __init__(
        self,
        message: str | None = None,
        *,
        code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        code_name = media_error_name(code)
        if code is not None:
            details["code"] = code
            details["code_name"] = code_name
        if message is None:
            detail = f"Code {code}: {code_name}" if code is not None else code_name
            message = f"Failed to load video: {detail}"
        super().__init__(message, details=details)
        self.code = code
        self.code_name = code_name


class SeekTimeoutError(ChaptertubeError):
    """A seek did not signal completion in time.

    This is a soft failure; callers log it and carry on.
    """

    category = "seek_timeout"

    def __init__(
        self,
        message: str | None = None,
        *,
        target: float | None = None,
        timeout: float | None = None,
    ):
        details: dict[str, Any] = {}
        if target is not None:
            details["target"] = target
        if timeout is not None:
            details["timeout"] = timeout
        if message is None:
            message = f"No seek completion within {timeout}s (target={target}s)"
        super().__init__(message, details=details)
        self.target = target
        self.timeout = timeout


class PlaybackRejectedError(ChaptertubeError):
    """A play request was rejected (e.g., by an autoplay policy)."""

    category = "playback_rejected"


class ToolNotFoundError(ChaptertubeError):
    """Required external tool (ffmpeg, ffprobe) not found."""

    category = "tool_not_found"

    def __init__(self, tool_name: str, message: str | None = None):
        self.tool_name = tool_name
        msg = message or f"Required tool '{tool_name}' not found in PATH"
        super().__init__(msg, details={"tool": tool_name})
