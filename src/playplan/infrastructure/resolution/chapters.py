"""Chapter derivation from extractor records or free-text descriptions."""

from __future__ import annotations

import re
from typing import Iterable

import structlog

from playplan.domain.entities.extraction import RawChapter
from playplan.domain.entities.plan import Chapter

log = structlog.get_logger(__name__)

_HMS_RE = re.compile(r"(\d+):(\d{2}):(\d{2})")
_MS_RE = re.compile(r"(\d{1,2}):(\d{2})")


def timestamp_to_seconds(text: str) -> int | None:
    """Find the first ``H:MM:SS`` (else ``M:SS``) timestamp in *text*."""
    match = _HMS_RE.search(text)
    if match:
        hours, minutes, seconds = (int(g) for g in match.groups())
        return hours * 3600 + minutes * 60 + seconds
    match = _MS_RE.search(text)
    if match:
        minutes, seconds = (int(g) for g in match.groups())
        return minutes * 60 + seconds
    return None


def extract(text: str | Iterable[str], total_duration: float) -> list[Chapter]:
    """Scan lines of *text* for timestamps.

    Lines without a timestamp, and lines whose timestamp is not strictly
    before *total_duration*, are ignored.  The chapter title is the whole
    line, timestamp included.  Chapters sharing a timestamp keep their
    input order.
    """
    lines = text.splitlines() if isinstance(text, str) else text
    found: list[Chapter] = []
    for line in lines:
        if not line:
            continue
        seconds = timestamp_to_seconds(line)
        if seconds is None or seconds >= total_duration:
            continue
        found.append(Chapter(time=seconds, title=line))
    found.sort(key=lambda chapter: chapter.time)
    return found


def from_records(records: Iterable[RawChapter]) -> list[Chapter]:
    """Convert pre-parsed records, naming untitled ones ``Chapter NN``."""
    chapters: list[Chapter] = []
    for index, record in enumerate(records, start=1):
        title = record.title or f"Chapter {index:02d}"
        chapters.append(Chapter(time=record.start_time, title=title))
    log.debug("chapters_from_records", count=len(chapters))
    return chapters
