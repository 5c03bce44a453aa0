"""Shared test fixtures for the playplan test suite."""

from __future__ import annotations

from typing import Any, Callable

import pytest

from playplan.application.use_cases.resolve_playback import ResolvePlaybackUseCase
from playplan.domain.entities.extraction import ExtractionResult
from playplan.domain.entities.plan import CallerOptions, HostCapabilities
from playplan.infrastructure.exclusion import ExclusionList
from playplan.infrastructure.extractor.info_parser import parse_info
from playplan.infrastructure.player.recording_host import RecordingPlayerHost
from playplan.infrastructure.resolution.playlist_flattener import PlaylistFlattener
from playplan.infrastructure.resolution.track_selector import TrackSelector

# ---------------------------------------------------------------------------
# Raw info dict fixtures (shape of youtube-dl -J output)
# ---------------------------------------------------------------------------


@pytest.fixture()
def single_info() -> dict[str, Any]:
    """Plain progressive download with headers and a description."""
    return {
        "title": "Concert Recording",
        "url": "https://cdn.example.com/video.mp4",
        "protocol": "https",
        "webpage_url": "https://video.example.com/watch?v=abc",
        "duration": 240,
        "description": "0:00 Intro\n1:30 Verse\n5:00 Outro",
        "http_headers": {
            "User-Agent": "Mozilla/5.0",
            "Referer": "https://video.example.com/",
            "Accept": "*/*",
        },
    }


@pytest.fixture()
def split_info() -> dict[str, Any]:
    """Separate video and audio requested formats."""
    return {
        "title": "Split Tracks",
        "webpage_url": "https://video.example.com/watch?v=split",
        "requested_formats": [
            {
                "url": "https://cdn.example.com/video-1080.mp4",
                "protocol": "https",
                "vcodec": "avc1.640028",
                "acodec": "none",
                "tbr": 4500.0,
                "format_note": "1080p",
            },
            {
                "url": "https://cdn.example.com/audio-128.m4a",
                "protocol": "https",
                "vcodec": "none",
                "acodec": "mp4a.40.2",
                "tbr": 128.0,
                "format_note": "medium",
            },
        ],
    }


@pytest.fixture()
def dash_info() -> dict[str, Any]:
    """DASH formats with fragments and a manifest url."""
    return {
        "title": "Dash Stream",
        "protocol": "http_dash_segments",
        "requested_formats": [
            {
                "manifest_url": "https://cdn.example.com/manifest.mpd",
                "protocol": "http_dash_segments",
                "fragment_base_url": "https://cdn.example.com/v/",
                "fragments": [
                    {"path": "init.mp4"},
                    {"path": "seg-1.m4s", "duration": 5.0},
                    {"path": "seg-2.m4s", "duration": 5.0},
                ],
                "vcodec": "avc1",
                "acodec": "none",
                "tbr": 2500,
            },
            {
                "manifest_url": "https://cdn.example.com/manifest.mpd",
                "protocol": "http_dash_segments",
                "fragment_base_url": "https://cdn.example.com/a/",
                "fragments": [
                    {"path": "init.mp4"},
                    {"path": "seg-1.m4s", "duration": 5.0},
                ],
                "vcodec": "none",
                "acodec": "opus",
                "tbr": 160,
                "format_note": "opus",
            },
        ],
    }


# ---------------------------------------------------------------------------
# Resolution fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_result() -> Callable[..., ExtractionResult]:
    """Parse a raw info dict built from keyword arguments."""

    def _make(**raw: Any) -> ExtractionResult:
        return parse_info(raw)

    return _make


@pytest.fixture()
def selector() -> TrackSelector:
    return TrackSelector(HostCapabilities(native_dash=True), CallerOptions())


@pytest.fixture()
def flattener(selector: TrackSelector) -> PlaylistFlattener:
    return PlaylistFlattener(selector)


class FakeExtractor:
    """ExtractorPort double returning a canned result."""

    def __init__(self, result: ExtractionResult | Exception) -> None:
        self.result = result
        self.calls: list[str] = []

    def extract(self, url: str) -> ExtractionResult:
        self.calls.append(url)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


@pytest.fixture()
def make_use_case(
    selector: TrackSelector, flattener: PlaylistFlattener
) -> Callable[..., tuple[ResolvePlaybackUseCase, FakeExtractor]]:
    def _make(
        result: ExtractionResult | Exception, exclude: str | None = None
    ) -> tuple[ResolvePlaybackUseCase, FakeExtractor]:
        extractor = FakeExtractor(result)
        use_case = ResolvePlaybackUseCase(
            extractor=extractor,
            selector=selector,
            flattener=flattener,
            exclusions=ExclusionList.from_config(exclude),
        )
        return use_case, extractor

    return _make


@pytest.fixture()
def host() -> RecordingPlayerHost:
    return RecordingPlayerHost()
