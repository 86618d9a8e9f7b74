"""
Navigation module for chapter-aware playback.

Keeps the current chapter in sync with the playing position and seeks
between chapters.
"""

from chaptertube.navigation.tracker import ChapterChangeListener, PlaybackPositionTracker

__all__ = [
    "ChapterChangeListener",
    "PlaybackPositionTracker",
]
