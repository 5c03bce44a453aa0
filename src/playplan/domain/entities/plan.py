"""Domain entities for the resolved playback output.

Pure value objects: built within one resolution call and handed off whole.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

# Options a caller can pin explicitly; inferred hints never override them.
OPTION_USER_AGENT = "user-agent"
OPTION_HTTP_HEADER_FIELDS = "http-header-fields"
OPTION_START = "start"
OPTION_VIDEO_ASPECT = "video-aspect"
OPTION_HLS_BITRATE = "hls-bitrate"


@dataclass(frozen=True)
class HostCapabilities:
    """What the host player can play natively."""

    native_dash: bool = True


@dataclass(frozen=True)
class CallerOptions:
    """Host options the caller configured explicitly."""

    explicit: frozenset[str] = frozenset()

    def is_set(self, name: str) -> bool:
        return name in self.explicit


@dataclass(frozen=True)
class Chapter:
    time: float  # seconds
    title: str


@dataclass(frozen=True)
class AudioTrack:
    url: str
    label: str = ""


@dataclass(frozen=True)
class SubtitleTrack:
    source: str  # remote url or memory:// resource
    language: str
    ext: str | None = None


@dataclass(frozen=True)
class PlaybackPlan:
    """Fully resolved, safety-checked answer for one item."""

    stream_url: str
    title: str = ""
    start_time: float | None = None
    aspect_ratio: float | None = None
    user_agent: str | None = None
    http_header_fields: tuple[str, ...] = ()
    audio_tracks: tuple[AudioTrack, ...] = ()
    subtitle_tracks: tuple[SubtitleTrack, ...] = ()
    chapters: tuple[Chapter, ...] = ()
    bitrate_hint_kbps: float | None = None
    rtmp_params: tuple[tuple[str, str], ...] = ()

    def rtmp_options(self) -> str:
        """Render RTMP parameters as ``key="value"`` pairs joined by commas."""
        return ",".join(f'{key}="{value}"' for key, value in self.rtmp_params)


@dataclass(frozen=True)
class MultiArcPlan(PlaybackPlan):
    """Plan for one logical video stitched from consecutive playlist entries."""

    segment_count: int = 0


@dataclass(frozen=True)
class DeferredEntry:
    """Playlist entry handed back to the host for later re-resolution."""

    url: str
    title: str | None = None


@dataclass(frozen=True)
class DeferredPlaylist:
    """Genuine multi-title playlist; each entry is resolved when played."""

    entries: tuple[DeferredEntry, ...] = field(default_factory=tuple)

    def to_m3u(self) -> str:
        lines = ["#EXTM3U"]
        for entry in self.entries:
            if entry.title is not None:
                lines.append(f"#EXTINF:0,{entry.title}")
            lines.append(entry.url)
        return "\n".join(lines)

    @property
    def memory_url(self) -> str:
        """Address of the rendered playlist as an in-memory resource."""
        return "memory://" + self.to_m3u()


Resolution = Union[PlaybackPlan, MultiArcPlan, DeferredPlaylist]
