"""
Utility functions for chaptertube.
"""

from chaptertube.utils.formatting import format_duration
from chaptertube.utils.logging import log_timed
from chaptertube.utils.system import find_tool

__all__ = [
    "format_duration",
    "log_timed",
    "find_tool",
]
