#!/usr/bin/env python3
"""
chaptertube CLI - Chapter thumbnails for any video.

Usage:
    chaptertube talk.mp4
    chaptertube talk.mp4 --chapters 8 --output thumbs/
    chaptertube "https://example.com/video.mp4" --chapters-json chapters.json
    chaptertube duration talk.mp4
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from chaptertube.config.loader import get_capture_settings
from chaptertube.exceptions import ChaptertubeError
from chaptertube.media.ffmpeg_source import FFmpegMediaSource
from chaptertube.models.frame import CapturedFrame
from chaptertube.operations.chapter_sources import StaticChapterSource
from chaptertube.operations.frame_capture import get_video_duration
from chaptertube.operations.session import ChapterSession
from chaptertube.utils.formatting import format_duration
from chaptertube.utils.system import require_tool

MANIFEST_NAME = "chapters.json"


def _load_chapter_records(path: Path) -> list[dict]:
    """Read chapter records from a JSON file (a list, or {"chapters": [...]})."""
    data = json.loads(path.read_text())
    if isinstance(data, dict):
        data = data.get("chapters", [])
    if not isinstance(data, list):
        raise ValueError(f"{path} does not contain a list of chapters")
    return data


def write_outputs(chapters, output_dir: Path) -> Path:
    """Write chapter_XX.jpg files and the chapters.json manifest.

    Returns:
        Path to the manifest
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    manifest = []
    for i, chapter in enumerate(chapters, start=1):
        entry = {
            "title": chapter.title,
            "startTime": chapter.start_time,
            "thumbnail": None,
            "fallbackThumbnail": chapter.fallback_thumbnail,
        }
        if isinstance(chapter.thumbnail, CapturedFrame):
            path = chapter.thumbnail.save(output_dir / f"chapter_{i:02d}.jpg")
            entry["thumbnail"] = path.name
        elif chapter.thumbnail:
            entry["thumbnail"] = chapter.thumbnail
        manifest.append(entry)

    manifest_path = output_dir / MANIFEST_NAME
    manifest_path.write_text(json.dumps(manifest, indent=2))
    return manifest_path


async def _generate(args) -> int:
    chapter_source = None
    if args.chapters_json:
        records = _load_chapter_records(args.chapters_json)
        chapter_source = StaticChapterSource({args.video: records})

    source = FFmpegMediaSource(args.video)
    try:
        session = await ChapterSession.prepare(
            source,
            chapter_source=chapter_source,
            media_id=args.video,
            count=args.chapters,
            base_title=args.prefix,
            width=args.width,
            height=args.height,
        )
        session.close()
    finally:
        await source.close()

    manifest_path = write_outputs(session.chapters, args.output)
    captured = sum(1 for ch in session.chapters if isinstance(ch.thumbnail, CapturedFrame))

    print("\n=== CHAPTERS ===")
    for i, chapter in enumerate(session.chapters, start=1):
        marker = "+" if isinstance(chapter.thumbnail, CapturedFrame) else "-"
        print(f"  {marker} {i:2d}. [{format_duration(chapter.start_time)}] {chapter.title}")
    print(f"\nSource: {'external' if session.external else 'equal division'}")
    print(f"Thumbnails: {captured}/{len(session.chapters)}")
    print(f"Manifest: {manifest_path}")
    return 0 if captured == len(session.chapters) else 2


def _cmd_generate(args):
    """Handle the default generate-thumbnails command."""
    try:
        require_tool("ffprobe")
        require_tool("ffmpeg")
        sys.exit(asyncio.run(_generate(args)))
    except (ChaptertubeError, OSError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)


def _cmd_duration(args):
    """Handle the duration subcommand."""
    try:
        require_tool("ffprobe")
        duration = asyncio.run(get_video_duration(args.video, timeout=args.timeout))
    except ChaptertubeError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"{duration:.3f}s ({format_duration(duration)})")


def _build_generate_parser() -> argparse.ArgumentParser:
    settings = get_capture_settings()
    parser = argparse.ArgumentParser(
        prog="chaptertube",
        description="Generate chapter thumbnails for a video",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    %(prog)s talk.mp4
    %(prog)s talk.mp4 --chapters 8 --prefix Part
    %(prog)s talk.mp4 --chapters-json chapters.json -o thumbs/
    %(prog)s duration talk.mp4
        """,
    )
    parser.add_argument("video", help="Video file path or URL")
    parser.add_argument(
        "--chapters", type=int, default=settings.chapter_count,
        help=f"Number of equal chapters (default: {settings.chapter_count})",
    )
    parser.add_argument(
        "--prefix", default=settings.chapter_prefix,
        help=f"Chapter title prefix (default: {settings.chapter_prefix})",
    )
    parser.add_argument(
        "--width", type=int, default=settings.width,
        help=f"Thumbnail width (default: {settings.width})",
    )
    parser.add_argument(
        "--height", type=int, default=settings.height,
        help=f"Thumbnail height (default: {settings.height})",
    )
    parser.add_argument(
        "--chapters-json", type=Path, default=None,
        help="JSON file with chapter records (title, startTime)",
    )
    parser.add_argument(
        "-o", "--output", type=Path, default=Path("."), help="Output directory"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _build_duration_parser() -> argparse.ArgumentParser:
    settings = get_capture_settings()
    parser = argparse.ArgumentParser(
        prog="chaptertube duration",
        description="Print a video's duration",
    )
    parser.add_argument("video", help="Video file path or URL")
    parser.add_argument(
        "--timeout", type=float, default=settings.metadata_timeout,
        help=f"Metadata timeout in seconds (default: {settings.metadata_timeout})",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv=None):
    argv = sys.argv[1:] if argv is None else list(argv)

    if argv and argv[0] == "duration":
        args = _build_duration_parser().parse_args(argv[1:])
        handler = _cmd_duration
    else:
        args = _build_generate_parser().parse_args(argv)
        handler = _cmd_generate

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
        stream=sys.stderr,
    )
    handler(args)


if __name__ == "__main__":
    main()
