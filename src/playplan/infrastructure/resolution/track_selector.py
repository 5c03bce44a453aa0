"""Track selection: one extraction result -> one PlaybackPlan.

Three mutually exclusive strategies, tried in order:

1. native adaptive manifest (host demuxes DASH itself),
2. split tracks (separate requested audio/video formats),
3. single track (one url, or fragments joined into an EDL).

Each strategy yields the primary stream url; finalization then applies the
hints common to all of them (title, start, aspect, RTMP parameters,
subtitles, chapters).  Hints inferred from the result never override an
option the caller set explicitly.
"""

from __future__ import annotations

from typing import Mapping, Sequence

import structlog

from playplan.domain.entities.extraction import (
    ExtractionResult,
    Fragment,
    ResultKind,
    StreamProtocol,
    SubtitleSource,
)
from playplan.domain.entities.plan import (
    OPTION_HLS_BITRATE,
    OPTION_HTTP_HEADER_FIELDS,
    OPTION_START,
    OPTION_USER_AGENT,
    OPTION_VIDEO_ASPECT,
    AudioTrack,
    CallerOptions,
    Chapter,
    HostCapabilities,
    PlaybackPlan,
    SubtitleTrack,
)
from playplan.domain.exceptions import (
    MissingDataError,
    UnsafeUrlError,
    UnsupportedCombinationError,
)
from playplan.infrastructure.resolution import chapters as chapter_extractor
from playplan.infrastructure.resolution import edl
from playplan.infrastructure.resolution.safety import is_safe, require_safe

log = structlog.get_logger(__name__)

# Extra request headers forwarded to the host besides User-Agent.
FORWARDED_HEADERS: tuple[str, ...] = ("Cookie", "Referer", "X-Forwarded-For")

MEMORY_PREFIX = "memory://"


def _header(headers: Mapping[str, str], name: str) -> str | None:
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted and value:
            return value
    return None


class TrackSelector:
    """Resolves a single (non-playlist) extraction result."""

    def __init__(
        self,
        capabilities: HostCapabilities | None = None,
        caller_options: CallerOptions | None = None,
    ) -> None:
        self._capabilities = capabilities or HostCapabilities()
        self._caller = caller_options or CallerOptions()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve_one(self, result: ExtractionResult) -> PlaybackPlan:
        """Build the plan for *result*.

        Raises ``MissingDataError`` when no playable url exists and
        ``UnsafeUrlError`` when the primary stream fails the safety filter.
        """
        audio_tracks: tuple[AudioTrack, ...] = ()
        bitrate_hint: float | None = None
        user_agent: str | None = None
        header_fields: tuple[str, ...] = ()

        if self._capabilities.native_dash and self._is_dash(result):
            stream_url, bitrate_hint = self._from_manifest(result)
        elif result.kind is ResultKind.SPLIT_TRACKS:
            stream_url, audio_tracks = self._from_split_tracks(result)
        elif result.kind is ResultKind.SINGLE and (result.url or result.fragments):
            stream_url = self._from_single_track(result)
            user_agent, header_fields = self.http_header_hints(result.http_headers)
        else:
            log.error("no_playable_url", title=result.title, kind=result.kind.value)
            raise MissingDataError("no playable URL found")

        if not stream_url:
            log.error("no_playable_url", title=result.title, kind=result.kind.value)
            raise MissingDataError("no playable URL found")

        log.debug(
            "stream_url_selected",
            stream_url=stream_url,
            kind=result.kind.value,
            protocol=result.protocol_raw,
        )

        start_time = None
        if result.start_time is not None and not self._caller.is_set(OPTION_START):
            log.debug("start_time_set", seconds=result.start_time)
            start_time = result.start_time

        aspect_ratio = None
        if result.stretched_ratio is not None and not self._caller.is_set(
            OPTION_VIDEO_ASPECT
        ):
            aspect_ratio = result.stretched_ratio

        rtmp_params: tuple[tuple[str, str], ...] = ()
        if result.protocol is StreamProtocol.RTMP:
            rtmp_params = self._rtmp_params(result, stream_url)

        return PlaybackPlan(
            stream_url=stream_url,
            title=result.title or "",
            start_time=start_time,
            aspect_ratio=aspect_ratio,
            user_agent=user_agent,
            http_header_fields=header_fields,
            audio_tracks=audio_tracks,
            subtitle_tracks=self.subtitle_tracks(result.requested_subtitles),
            chapters=tuple(self.chapters_for(result)),
            bitrate_hint_kbps=bitrate_hint,
            rtmp_params=rtmp_params,
        )

    def http_header_hints(
        self, headers: Mapping[str, str]
    ) -> tuple[str | None, tuple[str, ...]]:
        """Return ``(user_agent, header_fields)`` the caller has not pinned."""
        if not headers:
            return None, ()

        user_agent = None
        if not self._caller.is_set(OPTION_USER_AGENT):
            user_agent = _header(headers, "User-Agent")

        fields: tuple[str, ...] = ()
        if not self._caller.is_set(OPTION_HTTP_HEADER_FIELDS):
            fields = tuple(
                f"{name}: {value}"
                for name in FORWARDED_HEADERS
                if (value := _header(headers, name)) is not None
            )
        return user_agent, fields

    def subtitle_tracks(
        self, subtitles: Mapping[str, SubtitleSource]
    ) -> tuple[SubtitleTrack, ...]:
        tracks: list[SubtitleTrack] = []
        for language, sub in subtitles.items():
            log.debug("subtitle_adding", language=language)
            if sub.data is not None:
                source = MEMORY_PREFIX + sub.data
            elif sub.url is not None:
                if not is_safe(sub.url):
                    continue
                source = sub.url
            else:
                log.debug("subtitle_without_source", language=language)
                continue
            tracks.append(SubtitleTrack(source=source, language=language, ext=sub.ext))
        return tuple(tracks)

    def chapters_for(self, result: ExtractionResult) -> list[Chapter]:
        if result.chapters is not None:
            return chapter_extractor.from_records(result.chapters)
        if result.description is not None and result.duration is not None:
            return chapter_extractor.extract(result.description, result.duration)
        return []

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    @staticmethod
    def _is_dash(result: ExtractionResult) -> bool:
        return (
            result.first_format_protocol is StreamProtocol.DASH_SEGMENTS
            or result.protocol is StreamProtocol.DASH_SEGMENTS
        )

    def _from_manifest(self, result: ExtractionResult) -> tuple[str, float | None]:
        manifest_url = None
        if result.requested_formats:
            manifest_url = result.requested_formats[0].manifest_url
        manifest_url = manifest_url or result.manifest_url
        if not manifest_url:
            log.error("manifest_url_missing", title=result.title)
            raise MissingDataError("no manifest URL found")
        require_safe(manifest_url)

        if result.requested_formats:
            max_bitrate = max(track.bitrate or 0.0 for track in result.requested_formats)
        else:
            max_bitrate = result.bitrate or 0.0

        hint = None
        if max_bitrate > 0 and not self._caller.is_set(OPTION_HLS_BITRATE):
            hint = max_bitrate
        return manifest_url, hint

    def _from_split_tracks(
        self, result: ExtractionResult
    ) -> tuple[str, tuple[AudioTrack, ...]]:
        stream_url = ""
        audio_tracks: list[AudioTrack] = []

        for track in result.requested_formats:
            url = self._try_edl(
                track.fragments, track.protocol, result.is_live, track.fragment_base_url
            )
            if url is None:
                if not track.url:
                    log.error("requested_format_without_url", format_note=track.format_note)
                    raise MissingDataError("requested format has no URL")
                url = require_safe(track.url)

            if track.has_video:
                # Later video tracks replace earlier ones.
                stream_url = url
            elif track.has_audio:
                audio_tracks.append(AudioTrack(url=url, label=track.format_note or ""))
            else:
                log.debug("requested_format_without_codecs", url=url)

        return stream_url, tuple(audio_tracks)

    def _from_single_track(self, result: ExtractionResult) -> str:
        url = self._try_edl(
            result.fragments, result.protocol, result.is_live, result.fragment_base_url
        )
        if url is not None:
            return url
        if not result.url:
            raise MissingDataError("no playable URL found")
        return require_safe(result.url)

    @staticmethod
    def _try_edl(
        fragments: Sequence[Fragment],
        protocol: StreamProtocol | None,
        is_live: bool,
        base_url: str | None,
    ) -> str | None:
        """EDL for *fragments*, or None so the caller falls back to the direct url."""
        try:
            return edl.join(fragments, protocol, is_live, base_url)
        except (UnsupportedCombinationError, UnsafeUrlError) as exc:
            log.warning("edl_synthesis_failed", error=str(exc))
            return None

    @staticmethod
    def _rtmp_params(
        result: ExtractionResult, stream_url: str
    ) -> tuple[tuple[str, str], ...]:
        candidates = (
            ("rtmp_tcurl", stream_url),
            ("rtmp_pageurl", result.page_url),
            ("rtmp_playpath", result.play_path),
            ("rtmp_swfverify", result.player_url),
            ("rtmp_swfurl", result.player_url),
            ("rtmp_app", result.app),
        )
        return tuple((key, value) for key, value in candidates if key and value)
