"""
FFmpeg tool wrapper for single-frame decoding.
"""

from __future__ import annotations

import logging

import numpy as np

from chaptertube.tools.base import VideoTool
from chaptertube.utils.system import find_tool

logger = logging.getLogger(__name__)

# rgb24: one byte per channel
_CHANNELS = 3


class FFmpegTool(VideoTool):
    """Wrapper for FFmpeg frame decoding."""

    @property
    def name(self) -> str:
        return "ffmpeg"

    def get_path(self) -> str:
        return find_tool("ffmpeg")

    def decode_frame(
        self,
        src: str,
        timestamp: float,
        width: int,
        height: int,
        timeout: float | None = 30,
    ) -> np.ndarray | None:
        """Decode the frame at ``timestamp`` into an RGB array.

        Uses input seeking (-ss before -i) for fast keyframe-based seeks, then
        pipes one rawvideo frame to stdout.

        Args:
            src: Path or URL of the media resource
            timestamp: Time in seconds
            width: Output frame width
            height: Output frame height
            timeout: Seconds before the decode is abandoned

        Returns:
            uint8 array of shape (height, width, 3), or None if no frame
            could be decoded at that time
        """
        args = [
            "-v", "error",
            "-ss", f"{timestamp:.3f}",
            "-i", src,
            "-frames:v", "1",
            "-f", "rawvideo",
            "-pix_fmt", "rgb24",
            "-s", f"{width}x{height}",
            "pipe:1",
        ]

        result = self._run(args, timeout=timeout, binary=True)
        if not result.success:
            logger.error(
                f"Frame decode at {timestamp:.2f}s failed: {result.error or result.stderr}"
            )
            return None

        expected = width * height * _CHANNELS
        if len(result.output) < expected:
            # Seeking past the last decodable frame yields an empty pipe
            logger.debug(
                f"Short frame at {timestamp:.2f}s: {len(result.output)}/{expected} bytes"
            )
            return None

        frame = np.frombuffer(result.output[:expected], dtype=np.uint8)
        return frame.reshape((height, width, _CHANNELS))
