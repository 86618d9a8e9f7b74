"""
chaptertube - Chapter thumbnails and chapter-synced playback for videos.

1. Load the video's metadata (duration)
2. Take chapters from an external source, or divide the video equally
3. Capture one thumbnail frame per chapter
4. Track which chapter is playing and seek between chapters
"""

# Exceptions
from chaptertube.exceptions import (
    ChaptertubeError,
    DecodeNotReadyError,
    DecodeTimeoutError,
    FrameCaptureError,
    LoadError,
    MetadataUnavailableError,
    PlaybackRejectedError,
    SeekTimeoutError,
    ToolNotFoundError,
)

# Media
from chaptertube.media import FFmpegMediaSource, MediaEvent, MediaSource, ReadyState

# Models
from chaptertube.models import CapturedFrame, Chapter, ChapterDefinition, ChapterRecord
from chaptertube.navigation import PlaybackPositionTracker

# Core functions
from chaptertube.operations import (
    ChapterSession,
    build_chapter_definitions,
    capture_frame,
    capture_frame_from_url,
    generate_chapter_thumbnails,
    generate_chapter_thumbnails_from_url,
    generate_equal_chapters,
    get_video_duration,
)

__version__ = "0.1.0"

__all__ = [
    # Core functions
    "capture_frame",
    "capture_frame_from_url",
    "get_video_duration",
    "generate_chapter_thumbnails",
    "generate_chapter_thumbnails_from_url",
    "generate_equal_chapters",
    "build_chapter_definitions",
    "ChapterSession",
    "PlaybackPositionTracker",
    # Media
    "MediaSource",
    "FFmpegMediaSource",
    "MediaEvent",
    "ReadyState",
    # Models
    "CapturedFrame",
    "Chapter",
    "ChapterDefinition",
    "ChapterRecord",
    # Exceptions
    "ChaptertubeError",
    "MetadataUnavailableError",
    "FrameCaptureError",
    "DecodeTimeoutError",
    "DecodeNotReadyError",
    "LoadError",
    "SeekTimeoutError",
    "PlaybackRejectedError",
    "ToolNotFoundError",
]
