"""
External tool wrappers for chaptertube.

Provides clean interfaces to ffmpeg and ffprobe.
"""

from chaptertube.tools.base import ToolResult, VideoTool
from chaptertube.tools.ffmpeg import FFmpegTool
from chaptertube.tools.ffprobe import FFprobeTool, VideoMetadata

__all__ = [
    "VideoTool",
    "ToolResult",
    "FFmpegTool",
    "FFprobeTool",
    "VideoMetadata",
]
