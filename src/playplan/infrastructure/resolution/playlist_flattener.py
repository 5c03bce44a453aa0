"""Playlist flattening.

A playlist result is one of:

- a multi-arc video: the origin serves one logical video as several
  consecutive entries, all pointing back at the parent page; the entries
  are stitched into a single EDL stream,
- a single self-redirecting entry: resolved like an ordinary video,
- a genuine multi-title playlist: entries are handed back to the host for
  re-resolution when they are played.
"""

from __future__ import annotations

import re

import structlog

from playplan.domain.entities.extraction import (
    ExtractionResult,
    Fragment,
    StreamProtocol,
)
from playplan.domain.entities.plan import (
    DeferredEntry,
    DeferredPlaylist,
    MultiArcPlan,
    Resolution,
    SubtitleTrack,
)
from playplan.domain.exceptions import MissingDataError
from playplan.infrastructure.resolution import edl
from playplan.infrastructure.resolution.safety import is_safe
from playplan.infrastructure.resolution.track_selector import (
    MEMORY_PREFIX,
    TrackSelector,
)

log = structlog.get_logger(__name__)

# Filler for entries that have no subtitle in a given language.
BLANK_SUBTITLE = MEMORY_PREFIX + "WEBVTT"

DEFERRED_PREFIX = "ytdl://"

_WHITESPACE_RE = re.compile(r"\s+")
# A line break inside an entry url would split it into extra m3u lines.
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")


def is_self_redirecting(result: ExtractionResult) -> bool:
    """True when the first entry is just a piece of the parent item."""
    if not result.entries:
        return False
    first = result.entries[0]
    return (
        not first.is_url_transparent
        and bool(first.webpage_url)
        and first.webpage_url == result.webpage_url
    )


class PlaylistFlattener:
    def __init__(self, selector: TrackSelector) -> None:
        self._selector = selector

    def flatten(self, result: ExtractionResult) -> Resolution:
        entries = result.entries
        if not entries:
            log.warning("playlist_empty", title=result.title)
            raise MissingDataError("empty playlist")

        self_redirecting = is_self_redirecting(result)
        first = entries[0]

        if (
            self_redirecting
            and len(entries) > 1
            and first.protocol is StreamProtocol.HLS_NATIVE
            and first.url
        ):
            log.info("multi_arc_detected", entries=len(entries))
            return self._multi_arc(result)

        if self_redirecting and len(entries) == 1:
            log.info("playlist_single_entry")
            return self._selector.resolve_one(first)

        return self._deferred(result, self_redirecting)

    # ------------------------------------------------------------------

    def _multi_arc(self, result: ExtractionResult) -> MultiArcPlan:
        entries = result.entries
        fragments = [Fragment(url=entry.url, duration=entry.duration) for entry in entries]
        stream_url = edl.join(fragments)
        if stream_url is None:
            raise MissingDataError("empty playlist")
        log.debug("multi_arc_edl", edl=stream_url)

        # Headers cannot vary per entry; the first entry's apply to all.
        user_agent, header_fields = self._selector.http_header_hints(
            entries[0].http_headers
        )

        return MultiArcPlan(
            stream_url=stream_url,
            title=result.title or "",
            user_agent=user_agent,
            http_header_fields=header_fields,
            subtitle_tracks=self._combined_subtitles(result),
            segment_count=len(entries),
        )

    def _combined_subtitles(self, result: ExtractionResult) -> tuple[SubtitleTrack, ...]:
        """One EDL per language, padded with blank subtitles where missing."""
        entries = result.entries

        languages: dict[str, str | None] = {}
        for entry in entries:
            for language, sub in entry.requested_subtitles.items():
                languages.setdefault(language, sub.ext)
        if not languages:
            return ()

        if any(entry.duration is None for entry in entries):
            log.warning(
                "multi_arc_subtitles_skipped",
                reason="entry without duration",
                languages=list(languages),
            )
            return ()

        tracks: list[SubtitleTrack] = []
        for language, ext in languages.items():
            sources = [_subtitle_source(entry, language) for entry in entries]
            if None in sources:
                log.warning("multi_arc_subtitles_unsafe", language=language)
                continue
            subfile = edl.EDL_PREFIX + "".join(
                f"{edl.escape(source)},length={edl.format_seconds(entry.duration)};"
                for source, entry in zip(sources, entries)
            )
            log.debug("multi_arc_subtitle_edl", language=language, edl=subfile)
            tracks.append(SubtitleTrack(source=subfile, language=language, ext=ext))
        return tuple(tracks)

    def _deferred(
        self, result: ExtractionResult, self_redirecting: bool
    ) -> DeferredPlaylist:
        deferred: list[DeferredEntry] = []
        for entry in result.entries:
            # Full-info entries may point straight at the media file; prefer
            # the page so the entry is re-resolved, unless that loops back.
            site = entry.url
            if entry.webpage_url and not self_redirecting:
                site = entry.webpage_url

            if not site:
                log.warning("playlist_entry_without_url", title=entry.title)
                continue

            if _CONTROL_RE.search(site):
                log.warning("playlist_entry_dropped", url=site, reason="control character")
                continue

            if "://" not in site:
                # Bare id from --flat-playlist.
                url = DEFERRED_PREFIX + site
            elif is_safe(site):
                url = site
            else:
                log.warning("playlist_entry_dropped", url=site)
                continue

            title = None
            if entry.title is not None:
                title = _WHITESPACE_RE.sub(" ", entry.title)
            deferred.append(DeferredEntry(url=url, title=title))

        if not deferred:
            raise MissingDataError("nothing playable in playlist")
        log.info("playlist_deferred", entries=len(deferred))
        return DeferredPlaylist(entries=tuple(deferred))


def _subtitle_source(entry: ExtractionResult, language: str) -> str | None:
    """Source of one entry's subtitle segment; None when its url is unsafe."""
    sub = entry.requested_subtitles.get(language)
    if sub is None:
        return BLANK_SUBTITLE
    if sub.url is not None:
        return sub.url if is_safe(sub.url) else None
    if sub.data is not None:
        return MEMORY_PREFIX + sub.data
    return BLANK_SUBTITLE
