"""
Base classes for external tool wrappers.
"""

from __future__ import annotations

import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class ToolResult:
    """Result from running an external tool.

    ``output`` carries raw stdout bytes for tools run in binary mode
    (e.g. ffmpeg piping decoded frames); ``stdout`` is the text form.
    """

    success: bool
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0
    error: str | None = None
    output: bytes = b""

    @classmethod
    def from_error(cls, error: str) -> ToolResult:
        """Create a failed result from an error message."""
        return cls(success=False, error=error, returncode=-1)

    @classmethod
    def ok(cls, stdout: str = "", stderr: str = "") -> ToolResult:
        """Create a successful result."""
        return cls(success=True, stdout=stdout, stderr=stderr, returncode=0)


class VideoTool(ABC):
    """Abstract base class for external video processing tools."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Tool name for logging and error messages."""
        pass

    @abstractmethod
    def get_path(self) -> str:
        """Get the path to the tool executable."""
        pass

    def is_available(self) -> bool:
        """Check if the tool is installed and runs."""
        try:
            result = subprocess.run(
                [self.get_path(), "-version"],
                capture_output=True,
                timeout=5,
            )
            return result.returncode == 0
        except (OSError, subprocess.SubprocessError):
            return False

    def _run(
        self,
        args: list[str],
        timeout: float | None = None,
        binary: bool = False,
    ) -> ToolResult:
        """Run the tool with given arguments.

        Args:
            args: Command-line arguments (without the executable)
            timeout: Seconds before the process is killed
            binary: Keep stdout as bytes in ``ToolResult.output``
        """
        cmd = [self.get_path()] + args
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            return ToolResult.from_error(f"Timeout after {timeout}s")
        except FileNotFoundError:
            return ToolResult.from_error(
                f"{self.name} not found. Install ffmpeg: brew install ffmpeg"
            )
        except OSError as e:
            return ToolResult.from_error(str(e))

        stderr = result.stderr.decode("utf-8", errors="replace")
        if binary:
            return ToolResult(
                success=result.returncode == 0,
                stderr=stderr,
                returncode=result.returncode,
                output=result.stdout,
            )
        return ToolResult(
            success=result.returncode == 0,
            stdout=result.stdout.decode("utf-8", errors="replace"),
            stderr=stderr,
            returncode=result.returncode,
        )
