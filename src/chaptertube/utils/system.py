"""
System utilities for locating the ffmpeg toolchain.
"""

import shutil
import sys
from pathlib import Path

from chaptertube.exceptions import ToolNotFoundError


def find_tool(name: str) -> str:
    """Find an executable, preferring the active environment's bin directory.

    Args:
        name: Tool name (e.g., "ffmpeg", "ffprobe")

    Returns:
        Path to executable, or the bare name if it could not be resolved
    """
    venv = Path(sys.prefix) / "bin" / name
    if venv.exists():
        return str(venv)
    return shutil.which(name) or name


def require_tool(name: str) -> str:
    """Like find_tool, but raise if the tool is not installed.

    Raises:
        ToolNotFoundError: If the executable cannot be found.
    """
    path = find_tool(name)
    if path == name and shutil.which(name) is None:
        raise ToolNotFoundError(
            name, f"{name} not found. Install ffmpeg: brew install ffmpeg"
        )
    return path
