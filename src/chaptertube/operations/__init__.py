"""
High-level chapter operations.
"""

from chaptertube.operations.chapter_sources import (
    ChapterSource,
    MetadataChapterSource,
    StaticChapterSource,
)
from chaptertube.operations.chapters import (
    build_chapter_definitions,
    chapters_from_description,
    chapters_from_metadata,
    chapters_from_records,
    generate_equal_chapters,
    parse_timestamp,
)
from chaptertube.operations.fallback import (
    TemplateThumbnailService,
    ThumbnailFallbackService,
    attach_fallback_thumbnails,
    handle_thumbnail_load_failure,
)
from chaptertube.operations.frame_capture import (
    capture_frame,
    capture_frame_from_url,
    clamp_seek_time,
    encode_jpeg,
    get_video_duration,
)
from chaptertube.operations.session import ChapterSession, default_fallback_service
from chaptertube.operations.thumbnails import (
    generate_chapter_thumbnails,
    generate_chapter_thumbnails_from_url,
)

__all__ = [
    # Chapter definitions
    "build_chapter_definitions",
    "chapters_from_description",
    "chapters_from_metadata",
    "chapters_from_records",
    "generate_equal_chapters",
    "parse_timestamp",
    # Chapter sources
    "ChapterSource",
    "MetadataChapterSource",
    "StaticChapterSource",
    # Frame capture
    "capture_frame",
    "capture_frame_from_url",
    "clamp_seek_time",
    "encode_jpeg",
    "get_video_duration",
    # Thumbnails
    "generate_chapter_thumbnails",
    "generate_chapter_thumbnails_from_url",
    "TemplateThumbnailService",
    "ThumbnailFallbackService",
    "attach_fallback_thumbnails",
    "handle_thumbnail_load_failure",
    # Session
    "ChapterSession",
    "default_fallback_service",
]
