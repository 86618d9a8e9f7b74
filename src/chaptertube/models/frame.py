"""
Captured frame and capture request models.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from chaptertube.media.base import MediaSource


@dataclass(frozen=True)
class CapturedFrame:
    """A compressed still image of one decoded frame.

    Attributes:
        data: Encoded image bytes
        width: Raster width in pixels
        height: Raster height in pixels
        timestamp: Media time the frame was captured at (seconds)
        mime_type: MIME type of ``data``
    """

    data: bytes
    width: int
    height: int
    timestamp: float
    mime_type: str = "image/jpeg"

    def to_data_url(self) -> str:
        """Encode as a ``data:`` URL."""
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"

    def save(self, path: Path) -> Path:
        """Write the encoded image to disk."""
        path.write_bytes(self.data)
        return path

    def __repr__(self) -> str:
        return (
            f"CapturedFrame({self.width}x{self.height}, t={self.timestamp:.2f}s, "
            f"{len(self.data)} bytes)"
        )


@dataclass(frozen=True)
class CaptureRequest:
    """One frame capture against a media source."""

    source: MediaSource
    at_time: float
    width: int
    height: int
