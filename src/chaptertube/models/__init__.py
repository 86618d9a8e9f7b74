"""
Data models for chaptertube.
"""

from chaptertube.models.chapter import (
    Chapter,
    ChapterDefinition,
    ChapterRecord,
    PlaybackCursor,
)
from chaptertube.models.frame import CapturedFrame, CaptureRequest

__all__ = [
    "CaptureRequest",
    "CapturedFrame",
    "Chapter",
    "ChapterDefinition",
    "ChapterRecord",
    "PlaybackCursor",
]
