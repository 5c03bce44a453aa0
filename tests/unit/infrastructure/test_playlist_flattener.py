"""Tests for playlist flattening (multi-arc, single entry, deferred)."""

from __future__ import annotations

from typing import Any, Callable

import pytest

from playplan.domain.entities.extraction import ExtractionResult
from playplan.domain.entities.plan import (
    DeferredEntry,
    DeferredPlaylist,
    MultiArcPlan,
    PlaybackPlan,
)
from playplan.domain.exceptions import MissingDataError, UnsafeUrlError
from playplan.infrastructure.resolution import edl
from playplan.infrastructure.resolution.playlist_flattener import (
    BLANK_SUBTITLE,
    PlaylistFlattener,
    is_self_redirecting,
)

MakeResult = Callable[..., ExtractionResult]

PAGE = "https://tv.example.com/show/42"


def _arc(url: str, duration: float | None = 600, **extra: Any) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "url": url,
        "protocol": "m3u8_native",
        "webpage_url": PAGE,
    }
    if duration is not None:
        entry["duration"] = duration
    entry.update(extra)
    return entry


def _multi_arc(*entries: dict[str, Any], **extra: Any) -> dict[str, Any]:
    return {
        "_type": "multi_video",
        "title": "Episode 42",
        "webpage_url": PAGE,
        "entries": list(entries),
        **extra,
    }


# ---------------------------------------------------------------------------
# Self-redirect detection
# ---------------------------------------------------------------------------


class TestSelfRedirecting:
    def test_matching_page(self, make_result: MakeResult) -> None:
        assert is_self_redirecting(make_result(**_multi_arc(_arc("https://a.b/1.m3u8"))))

    def test_different_page(self, make_result: MakeResult) -> None:
        result = make_result(
            _type="playlist",
            webpage_url=PAGE,
            entries=[{"url": "https://a.b/v", "webpage_url": "https://other/1"}],
        )
        assert not is_self_redirecting(result)

    def test_url_transparent_entry(self, make_result: MakeResult) -> None:
        result = make_result(
            **_multi_arc(_arc("https://a.b/1.m3u8", _type="url_transparent"))
        )
        assert not is_self_redirecting(result)

    def test_no_entries(self, make_result: MakeResult) -> None:
        assert not is_self_redirecting(make_result(_type="playlist"))


# ---------------------------------------------------------------------------
# Multi-arc
# ---------------------------------------------------------------------------


class TestMultiArc:
    def test_entries_stitched_into_edl(
        self, flattener: PlaylistFlattener, make_result: MakeResult
    ) -> None:
        result = make_result(
            **_multi_arc(
                _arc("https://a.b/part1.m3u8", 600),
                _arc("https://a.b/part2.m3u8", 612.5),
            )
        )
        plan = flattener.flatten(result)

        assert isinstance(plan, MultiArcPlan)
        assert plan.segment_count == 2
        assert plan.title == "Episode 42"
        assert plan.stream_url == (
            "edl://%22%https://a.b/part1.m3u8,length=600;"
            "%22%https://a.b/part2.m3u8,length=612.5;"
        )

    def test_headers_from_first_entry(
        self, flattener: PlaylistFlattener, make_result: MakeResult
    ) -> None:
        result = make_result(
            **_multi_arc(
                _arc(
                    "https://a.b/1.m3u8",
                    http_headers={"User-Agent": "UA-1", "Cookie": "s=1"},
                ),
                _arc("https://a.b/2.m3u8", http_headers={"User-Agent": "UA-2"}),
            )
        )
        plan = flattener.flatten(result)
        assert plan.user_agent == "UA-1"
        assert plan.http_header_fields == ("Cookie: s=1",)

    def test_unsafe_entry_fails(
        self, flattener: PlaylistFlattener, make_result: MakeResult
    ) -> None:
        result = make_result(
            **_multi_arc(_arc("https://a.b/1.m3u8"), _arc("file:///tmp/2.m3u8"))
        )
        with pytest.raises(UnsafeUrlError):
            flattener.flatten(result)

    def test_non_hls_first_entry_is_deferred(
        self, flattener: PlaylistFlattener, make_result: MakeResult
    ) -> None:
        result = make_result(
            **_multi_arc(
                _arc("https://a.b/1.mp4", protocol="https"),
                _arc("https://a.b/2.mp4", protocol="https"),
            )
        )
        assert isinstance(flattener.flatten(result), DeferredPlaylist)


class TestMultiArcSubtitles:
    def test_missing_language_padded_with_blank(
        self, flattener: PlaylistFlattener, make_result: MakeResult
    ) -> None:
        result = make_result(
            **_multi_arc(
                _arc(
                    "https://a.b/1.m3u8",
                    100,
                    requested_subtitles={"en": {"ext": "vtt", "url": "https://a.b/1.en.vtt"}},
                ),
                _arc("https://a.b/2.m3u8", 50),
            )
        )
        plan = flattener.flatten(result)

        (track,) = plan.subtitle_tracks
        assert track.language == "en"
        assert track.ext == "vtt"
        doc = edl.parse(track.source)
        assert [(s.url, s.length) for s in doc.segments] == [
            ("https://a.b/1.en.vtt", 100.0),
            (BLANK_SUBTITLE, 50.0),
        ]

    def test_inline_data_used_when_no_url(
        self, flattener: PlaylistFlattener, make_result: MakeResult
    ) -> None:
        result = make_result(
            **_multi_arc(
                _arc("https://a.b/1.m3u8", 10, requested_subtitles={"de": {"data": "X"}}),
                _arc("https://a.b/2.m3u8", 10, requested_subtitles={"de": {"data": "Y"}}),
            )
        )
        (track,) = flattener.flatten(result).subtitle_tracks
        assert [s.url for s in edl.parse(track.source).segments] == [
            "memory://X",
            "memory://Y",
        ]

    def test_unsafe_subtitle_skips_language_only(
        self, flattener: PlaylistFlattener, make_result: MakeResult
    ) -> None:
        result = make_result(
            **_multi_arc(
                _arc(
                    "https://a.b/1.m3u8",
                    10,
                    requested_subtitles={
                        "en": {"url": "javascript://x"},
                        "fr": {"url": "https://a.b/fr.vtt"},
                    },
                ),
                _arc("https://a.b/2.m3u8", 10),
            )
        )
        tracks = flattener.flatten(result).subtitle_tracks
        assert [t.language for t in tracks] == ["fr"]

    def test_entry_without_duration_skips_subtitles(
        self, flattener: PlaylistFlattener, make_result: MakeResult
    ) -> None:
        result = make_result(
            **_multi_arc(
                _arc(
                    "https://a.b/1.m3u8",
                    10,
                    requested_subtitles={"en": {"url": "https://a.b/en.vtt"}},
                ),
                _arc("https://a.b/2.m3u8", None),
            )
        )
        plan = flattener.flatten(result)
        assert plan.subtitle_tracks == ()
        # The video EDL is still built; the second part just has no length.
        assert [s.length for s in edl.parse(plan.stream_url).segments] == [10.0, None]


# ---------------------------------------------------------------------------
# Single self-redirecting entry
# ---------------------------------------------------------------------------


class TestSingleEntry:
    def test_resolved_like_a_video(
        self, flattener: PlaylistFlattener, make_result: MakeResult
    ) -> None:
        result = make_result(
            _type="playlist",
            webpage_url=PAGE,
            entries=[
                {
                    "url": "https://cdn.example.com/only.mp4",
                    "webpage_url": PAGE,
                    "title": "Only Part",
                }
            ],
        )
        plan = flattener.flatten(result)
        assert type(plan) is PlaybackPlan
        assert plan.stream_url == "https://cdn.example.com/only.mp4"
        assert plan.title == "Only Part"


# ---------------------------------------------------------------------------
# Deferred playlists
# ---------------------------------------------------------------------------


class TestDeferred:
    def test_prefers_webpage_url(
        self, flattener: PlaylistFlattener, make_result: MakeResult
    ) -> None:
        result = make_result(
            _type="playlist",
            webpage_url="https://site.example.com/list",
            entries=[
                {
                    "url": "https://cdn.example.com/1.mp4",
                    "webpage_url": "https://site.example.com/watch/1",
                    "title": "First\n  Video",
                },
                {"url": "https://site.example.com/watch/2"},
            ],
        )
        playlist = flattener.flatten(result)
        assert playlist == DeferredPlaylist(
            entries=(
                DeferredEntry(url="https://site.example.com/watch/1", title="First Video"),
                DeferredEntry(url="https://site.example.com/watch/2", title=None),
            )
        )

    def test_bare_ids_get_ytdl_prefix(
        self, flattener: PlaylistFlattener, make_result: MakeResult
    ) -> None:
        result = make_result(
            _type="playlist",
            entries=[{"url": "dQw4w9WgXcQ", "title": "Song"}],
        )
        playlist = flattener.flatten(result)
        assert playlist.entries == (DeferredEntry(url="ytdl://dQw4w9WgXcQ", title="Song"),)
        assert playlist.to_m3u() == "#EXTM3U\n#EXTINF:0,Song\nytdl://dQw4w9WgXcQ"

    def test_self_redirecting_uses_entry_url(
        self, flattener: PlaylistFlattener, make_result: MakeResult
    ) -> None:
        result = make_result(
            **_multi_arc(
                _arc("https://a.b/1.mp4", protocol="https"),
                _arc("https://a.b/2.mp4", protocol="https"),
            )
        )
        playlist = flattener.flatten(result)
        assert [e.url for e in playlist.entries] == ["https://a.b/1.mp4", "https://a.b/2.mp4"]

    def test_unsafe_and_empty_entries_dropped(
        self, flattener: PlaylistFlattener, make_result: MakeResult
    ) -> None:
        result = make_result(
            _type="playlist",
            entries=[
                {"url": "javascript://alert(1)"},
                {"title": "no url"},
                {"url": "https://ok.example.com/v"},
            ],
        )
        playlist = flattener.flatten(result)
        assert [e.url for e in playlist.entries] == ["https://ok.example.com/v"]

    def test_line_breaks_cannot_smuggle_entries(
        self, flattener: PlaylistFlattener, make_result: MakeResult
    ) -> None:
        result = make_result(
            _type="playlist",
            webpage_url="https://site.example.com/list",
            entries=[
                {"webpage_url": "https://site.example.com/v1\nfile:///etc/passwd"},
                {"url": "abc\r\njavascript://x"},
                {"url": "https://site.example.com/v\x002"},
                {"webpage_url": "https://site.example.com/v3", "title": "Three"},
            ],
        )
        playlist = flattener.flatten(result)

        assert playlist.entries == (
            DeferredEntry(url="https://site.example.com/v3", title="Three"),
        )
        urls = [
            line for line in playlist.to_m3u().splitlines() if not line.startswith("#")
        ]
        assert urls == ["https://site.example.com/v3"]

    def test_nothing_playable(
        self, flattener: PlaylistFlattener, make_result: MakeResult
    ) -> None:
        result = make_result(_type="playlist", entries=[{"url": "file:///x"}])
        with pytest.raises(MissingDataError, match="nothing playable"):
            flattener.flatten(result)

    def test_empty_playlist(
        self, flattener: PlaylistFlattener, make_result: MakeResult
    ) -> None:
        with pytest.raises(MissingDataError, match="empty playlist"):
            flattener.flatten(make_result(_type="playlist", entries=[]))
