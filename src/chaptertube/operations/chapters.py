"""
Chapter definition building.

Chapters either come from an external source, passed through verbatim, or
are synthesized by dividing a known duration into equal parts. External
records can also be read from yt-dlp style metadata (native chapters or
timestamps in the description).
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping

from chaptertube.config import defaults
from chaptertube.exceptions import MetadataUnavailableError
from chaptertube.models.chapter import ChapterDefinition, ChapterRecord

logger = logging.getLogger(__name__)

# "0:00 Title", "1:23 - Title", "01:23:45  Title"
_DESCRIPTION_PATTERN = re.compile(
    r"(?:^|\n)\s*(\d{1,2}:\d{2}(?::\d{2})?)\s*[-–—]?\s*(.+?)(?=\n|$)"
)


def parse_timestamp(ts: str) -> float:
    """Convert timestamp string to seconds.

    Supports formats:
    - "1:23" (minutes:seconds)
    - "1:23:45" (hours:minutes:seconds)
    """
    parts = list(map(int, ts.split(":")))
    if len(parts) == 3:
        return float(parts[0] * 3600 + parts[1] * 60 + parts[2])
    if len(parts) == 2:
        return float(parts[0] * 60 + parts[1])
    return float(parts[0]) if parts else 0.0


def _to_record(record: ChapterRecord | Mapping) -> ChapterRecord:
    if isinstance(record, ChapterRecord):
        return record
    return ChapterRecord.model_validate(dict(record))


def chapters_from_records(
    records: Iterable[ChapterRecord | Mapping],
) -> list[ChapterDefinition]:
    """Pass external chapter records through as definitions.

    Order is preserved; the caller is responsible for supplying records
    ordered by start time.

    Args:
        records: ChapterRecord objects or dicts with ``title`` and
            ``startTime`` (or ``start_time``)

    Returns:
        One definition per record
    """
    return [
        ChapterDefinition(title=rec.title, start_time=rec.start_time)
        for rec in map(_to_record, records)
    ]


def generate_equal_chapters(
    duration: float,
    count: int,
    base_title: str = defaults.DEFAULT_CHAPTER_PREFIX,
) -> list[ChapterDefinition]:
    """Split a video into ``count`` equal chapters.

    Chapter ``i`` starts at ``i * duration / count`` and is titled
    ``"{base_title} {i + 1}"``.

    Args:
        duration: Video duration in seconds (> 0)
        count: Number of chapters (>= 1)
        base_title: Title prefix (e.g. "Chapter" -> "Chapter 1", "Chapter 2")

    Returns:
        Exactly ``count`` definitions spanning [0, duration)

    Raises:
        ValueError: If duration or count is out of range.
    """
    if count < 1:
        raise ValueError(f"count must be >= 1, got {count}")
    if not duration > 0:
        raise ValueError(f"duration must be > 0, got {duration}")

    segment = duration / count
    return [
        ChapterDefinition(title=f"{base_title} {i + 1}", start_time=i * segment)
        for i in range(count)
    ]


def build_chapter_definitions(
    records: Iterable[ChapterRecord | Mapping] | None,
    duration: float | None,
    count: int = defaults.DEFAULT_CHAPTER_COUNT,
    base_title: str = defaults.DEFAULT_CHAPTER_PREFIX,
) -> tuple[list[ChapterDefinition], bool]:
    """Choose between external and synthetic chapters.

    Returns:
        (definitions, external) where ``external`` is True if the
        definitions came from ``records``

    Raises:
        MetadataUnavailableError: If synthesis is needed but duration is unknown.
    """
    external = list(records or [])
    if external:
        logger.debug(f"Using {len(external)} external chapters")
        return chapters_from_records(external), True

    if not duration or duration <= 0:
        raise MetadataUnavailableError(
            "Cannot generate chapters without a known duration",
            details={"duration": duration},
        )
    logger.debug(f"Generating {count} equal chapters over {duration:.2f}s")
    return generate_equal_chapters(duration, count, base_title), False


def chapters_from_description(description: str) -> list[ChapterRecord]:
    """Parse "0:00 Title" lines out of a video description.

    Returns:
        Records sorted by start time. Empty list if none found.
    """
    records: list[ChapterRecord] = []
    for ts_str, title in _DESCRIPTION_PATTERN.findall(description or ""):
        title = title.strip()
        if not title:
            continue
        try:
            records.append(ChapterRecord(title=title, start_time=parse_timestamp(ts_str)))
        except (ValueError, IndexError):
            logger.debug(f"Failed to parse timestamp: {ts_str}")

    records.sort(key=lambda r: r.start_time)
    return records


def chapters_from_metadata(video_info: Mapping) -> list[ChapterRecord]:
    """Read chapter records from yt-dlp style metadata.

    Tries two methods:
    1. Native chapters (``video_info['chapters']``, creator-curated)
    2. Timestamps parsed from the description

    Returns:
        Records, empty if the metadata has no chapters.
    """
    native = video_info.get("chapters") or []
    if native:
        records = [
            ChapterRecord(
                title=ch.get("title", ""),
                start_time=ch.get("start_time", 0.0),
                thumbnail_hint=ch.get("thumbnail"),
            )
            for ch in native
        ]
        logger.debug(f"Found {len(records)} native chapters")
        return records

    records = chapters_from_description(video_info.get("description", "") or "")
    if records:
        logger.debug(f"Parsed {len(records)} chapters from description")
    return records
