"""
FFprobe tool wrapper for reading media metadata before decoding.
"""

from __future__ import annotations

import contextlib
import json
import logging
from dataclasses import dataclass

from chaptertube.tools.base import VideoTool
from chaptertube.utils.system import find_tool

logger = logging.getLogger(__name__)


def parse_frame_rate(fps_str: str | None) -> float | None:
    """Parse frame rate string (e.g., '30/1', '30000/1001') to float."""
    if not fps_str or fps_str == "0/0":
        return None

    try:
        if "/" in fps_str:
            num, den = (int(part) for part in fps_str.split("/"))
            if den == 0:
                return None
            return round(num / den, 3)
        return float(fps_str)
    except (ValueError, ZeroDivisionError):
        return None


@dataclass
class VideoMetadata:
    """What the decoder needs to know before the first seek."""

    duration: float | None = None
    width: int | None = None
    height: int | None = None
    fps: float | None = None
    codec: str | None = None

    @property
    def has_video(self) -> bool:
        return bool(self.width and self.height)

    @classmethod
    def from_probe(cls, probe_data: dict) -> VideoMetadata:
        """Build metadata from ``ffprobe -show_format -show_streams`` JSON."""
        metadata = cls()

        format_info = probe_data.get("format", {})
        if "duration" in format_info:
            with contextlib.suppress(ValueError, TypeError):
                metadata.duration = float(format_info["duration"])

        video_stream = next(
            (s for s in probe_data.get("streams", []) if s.get("codec_type") == "video"),
            None,
        )
        if video_stream:
            metadata.width = video_stream.get("width")
            metadata.height = video_stream.get("height")
            metadata.codec = video_stream.get("codec_name")
            metadata.fps = parse_frame_rate(
                video_stream.get("r_frame_rate") or video_stream.get("avg_frame_rate")
            )
            # Some containers only report duration on the stream
            if metadata.duration is None and "duration" in video_stream:
                with contextlib.suppress(ValueError, TypeError):
                    metadata.duration = float(video_stream["duration"])

        return metadata


class FFprobeTool(VideoTool):
    """Wrapper for FFprobe metadata extraction."""

    @property
    def name(self) -> str:
        return "ffprobe"

    def get_path(self) -> str:
        return find_tool("ffprobe")

    def probe(self, src: str, timeout: float | None = 30) -> dict | None:
        """Run ffprobe and return raw JSON output.

        Args:
            src: Path or URL of the media resource
            timeout: Seconds before giving up

        Returns:
            Parsed JSON dict, or None if failed
        """
        args = [
            "-v", "quiet",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            src,
        ]

        result = self._run(args, timeout=timeout)
        if not result.success:
            logger.error(f"ffprobe failed for {src}: {result.error or result.stderr}")
            return None

        try:
            return json.loads(result.stdout)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse ffprobe JSON: {e}")
            return None

    def get_metadata(self, src: str, timeout: float | None = 30) -> VideoMetadata | None:
        """Probe a media resource.

        Returns:
            VideoMetadata, or None if the resource could not be probed
        """
        probe_data = self.probe(src, timeout=timeout)
        if probe_data is None:
            return None
        return VideoMetadata.from_probe(probe_data)
