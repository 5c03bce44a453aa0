"""Domain entities describing a media-extraction result.

Pure value objects: no framework dependencies, no I/O.  Instances are built
once by the info parser from the extractor's JSON output and are treated as
immutable input for a single resolution call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ResultKind(str, Enum):
    """Classification tag derived once from the raw extractor output."""

    DIRECT = "direct"
    SINGLE = "single"
    SPLIT_TRACKS = "split-tracks"
    PLAYLIST = "playlist"
    MULTI_VIDEO = "multi-video"


class StreamProtocol(str, Enum):
    """Closed set of delivery protocols the resolver distinguishes."""

    DASH_SEGMENTS = "http_dash_segments"  # segmented-adaptive
    HLS_NATIVE = "m3u8_native"  # segmented HTTP, fragments fetched natively
    HLS = "m3u8"
    RTMP = "rtmp"  # push-style streaming
    HTTP = "http"
    OTHER = "other"

    @classmethod
    def from_raw(cls, raw: str | None) -> StreamProtocol | None:
        """Map the extractor's raw protocol string onto the enum.

        ``None`` and empty strings map to ``None``; unknown values map to
        ``OTHER``.
        """
        if not raw:
            return None
        value = raw.strip().lower()
        if value in ("http", "https"):
            return cls.HTTP
        for member in cls:
            if member.value == value:
                return member
        return cls.OTHER


def codec_present(codec: str | None) -> bool:
    """Return True when a codec field names an actual codec."""
    return bool(codec) and codec != "none"


@dataclass(frozen=True)
class Fragment:
    """One addressable piece of a segmented stream."""

    path: str | None = None  # relative to a fragment base url
    url: str | None = None  # full url
    duration: float | None = None  # seconds


@dataclass(frozen=True)
class Track:
    """A requested format (one half of a split audio/video download)."""

    url: str | None = None
    manifest_url: str | None = None
    fragments: tuple[Fragment, ...] = ()
    fragment_base_url: str | None = None
    protocol: StreamProtocol | None = None
    acodec: str | None = None
    vcodec: str | None = None
    bitrate: float | None = None  # kbit/s ("tbr")
    format_note: str | None = None

    @property
    def has_audio(self) -> bool:
        return codec_present(self.acodec)

    @property
    def has_video(self) -> bool:
        return codec_present(self.vcodec)


@dataclass(frozen=True)
class SubtitleSource:
    """A subtitle offered by the extractor: inline data or a remote url."""

    language: str
    ext: str | None = None
    data: str | None = None
    url: str | None = None


@dataclass(frozen=True)
class RawChapter:
    """Chapter record as reported by the extractor."""

    start_time: float
    title: str | None = None


@dataclass(frozen=True)
class ExtractionResult:
    """The extractor's output for one logical item."""

    kind: ResultKind = ResultKind.SINGLE
    result_type: str | None = None  # raw "_type"
    url: str | None = None
    protocol: StreamProtocol | None = None
    protocol_raw: str | None = None
    manifest_url: str | None = None
    fragments: tuple[Fragment, ...] = ()
    fragment_base_url: str | None = None
    requested_formats: tuple[Track, ...] = ()
    requested_subtitles: dict[str, SubtitleSource] = field(default_factory=dict)
    chapters: tuple[RawChapter, ...] | None = None
    description: str | None = None
    duration: float | None = None
    start_time: float | None = None
    stretched_ratio: float | None = None
    http_headers: dict[str, str] = field(default_factory=dict)
    title: str | None = None
    webpage_url: str | None = None
    is_live: bool = False
    bitrate: float | None = None  # kbit/s ("tbr")
    entries: tuple[ExtractionResult, ...] = ()

    # RTMP
    page_url: str | None = None
    play_path: str | None = None
    player_url: str | None = None
    app: str | None = None

    @property
    def is_url_transparent(self) -> bool:
        """True when this is an unresolved reference, not a resolved video."""
        return self.result_type == "url_transparent"

    @property
    def is_playlist(self) -> bool:
        return self.kind in (ResultKind.PLAYLIST, ResultKind.MULTI_VIDEO)

    @property
    def first_format_protocol(self) -> StreamProtocol | None:
        if not self.requested_formats:
            return None
        return self.requested_formats[0].protocol
