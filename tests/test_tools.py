"""Tests for the ffmpeg/ffprobe tool wrappers."""

import json
import subprocess
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from chaptertube.exceptions import ToolNotFoundError
from chaptertube.tools import FFmpegTool, FFprobeTool, ToolResult, VideoMetadata
from chaptertube.tools.ffprobe import parse_frame_rate
from chaptertube.utils.system import require_tool

PROBE_OUTPUT = {
    "format": {"duration": "125.48"},
    "streams": [
        {"codec_type": "audio", "codec_name": "aac"},
        {
            "codec_type": "video",
            "codec_name": "h264",
            "width": 1280,
            "height": 720,
            "r_frame_rate": "30000/1001",
        },
    ],
}


class TestParseFrameRate:
    @pytest.mark.parametrize(
        "value,expected",
        [("30/1", 30.0), ("30000/1001", 29.97), ("25", 25.0), ("0/0", None), (None, None), ("1/0", None)],
    )
    def test_parse(self, value, expected):
        assert parse_frame_rate(value) == expected


class TestVideoMetadata:
    def test_from_probe(self):
        metadata = VideoMetadata.from_probe(PROBE_OUTPUT)
        assert metadata.duration == 125.48
        assert (metadata.width, metadata.height) == (1280, 720)
        assert metadata.codec == "h264"
        assert metadata.fps == 29.97
        assert metadata.has_video

    def test_stream_duration_fallback(self):
        probe = {"streams": [{"codec_type": "video", "width": 2, "height": 2, "duration": "7.5"}]}
        assert VideoMetadata.from_probe(probe).duration == 7.5

    def test_audio_only(self):
        metadata = VideoMetadata.from_probe(
            {"format": {"duration": "60"}, "streams": [{"codec_type": "audio"}]}
        )
        assert metadata.duration == 60.0
        assert not metadata.has_video


class TestFFprobeTool:
    def test_get_metadata(self):
        tool = FFprobeTool()
        with patch.object(tool, "_run", return_value=ToolResult.ok(json.dumps(PROBE_OUTPUT))):
            metadata = tool.get_metadata("v.mp4")
        assert metadata.duration == 125.48

    def test_failure_returns_none(self):
        tool = FFprobeTool()
        with patch.object(tool, "_run", return_value=ToolResult.from_error("boom")):
            assert tool.get_metadata("v.mp4") is None

    def test_bad_json_returns_none(self):
        tool = FFprobeTool()
        with patch.object(tool, "_run", return_value=ToolResult.ok("not json")):
            assert tool.probe("v.mp4") is None


class TestFFmpegTool:
    def test_decode_frame(self):
        tool = FFmpegTool()
        raw = bytes(range(4 * 2 * 3))
        with patch.object(
            tool, "_run", return_value=ToolResult(success=True, output=raw)
        ) as run:
            frame = tool.decode_frame("v.mp4", 12.5, 4, 2)

        assert frame.shape == (2, 4, 3)
        assert frame.dtype == np.uint8
        args = run.call_args.args[0]
        assert args[args.index("-ss") + 1] == "12.500"
        assert args[args.index("-s") + 1] == "4x2"
        assert run.call_args.kwargs["binary"] is True

    def test_short_output_returns_none(self):
        tool = FFmpegTool()
        with patch.object(tool, "_run", return_value=ToolResult(success=True, output=b"\x00")):
            assert tool.decode_frame("v.mp4", 999.0, 4, 2) is None

    def test_failure_returns_none(self):
        tool = FFmpegTool()
        with patch.object(tool, "_run", return_value=ToolResult.from_error("boom")):
            assert tool.decode_frame("v.mp4", 1.0, 4, 2) is None


class TestRun:
    """Tests for VideoTool._run error translation."""

    def test_timeout(self):
        tool = FFprobeTool()
        with patch(
            "chaptertube.tools.base.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="ffprobe", timeout=1),
        ):
            result = tool._run(["-version"], timeout=1)
        assert not result.success
        assert "Timeout" in result.error

    def test_missing_binary(self):
        tool = FFmpegTool()
        with patch("chaptertube.tools.base.subprocess.run", side_effect=FileNotFoundError):
            result = tool._run(["-version"])
        assert not result.success
        assert "ffmpeg not found" in result.error

    def test_binary_output(self):
        tool = FFmpegTool()
        completed = MagicMock(returncode=0, stdout=b"\x01\x02", stderr=b"")
        with patch("chaptertube.tools.base.subprocess.run", return_value=completed):
            result = tool._run(["x"], binary=True)
        assert result.success
        assert result.output == b"\x01\x02"

    def test_text_output(self):
        tool = FFprobeTool()
        completed = MagicMock(returncode=1, stdout=b"out", stderr=b"err")
        with patch("chaptertube.tools.base.subprocess.run", return_value=completed):
            result = tool._run(["x"])
        assert not result.success
        assert (result.stdout, result.stderr) == ("out", "err")


class TestRequireTool:
    def test_missing_tool_raises(self):
        with patch("chaptertube.utils.system.shutil.which", return_value=None):
            with pytest.raises(ToolNotFoundError) as exc_info:
                require_tool("definitely-not-installed-tool")
        assert exc_info.value.tool_name == "definitely-not-installed-tool"
