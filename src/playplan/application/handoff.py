"""Two-phase delivery of a resolution to the player host.

Phase one (``apply``) runs during load and sets the stream and every
per-item option.  Chapters can only be written once the stream is open, so
they are held until the host calls ``on_stream_opened``.
"""

from __future__ import annotations

import structlog

from playplan.domain.entities.plan import (
    Chapter,
    DeferredPlaylist,
    PlaybackPlan,
    Resolution,
)
from playplan.domain.ports.player_host import PlayerHostPort

log = structlog.get_logger(__name__)

AUTO_SELECT = "auto"


class PlanHandoff:
    def __init__(self, host: PlayerHostPort) -> None:
        self._host = host
        self._pending_chapters: tuple[Chapter, ...] = ()

    @property
    def pending_chapters(self) -> tuple[Chapter, ...]:
        return self._pending_chapters

    def apply(self, resolution: Resolution) -> None:
        """Phase one: stream, tracks and hints."""
        if isinstance(resolution, DeferredPlaylist):
            self._host.set_stream_url(resolution.memory_url)
            self._pending_chapters = ()
            return
        self._apply_plan(resolution)

    def on_stream_opened(self) -> None:
        """Phase two: chapters, delivered at most once."""
        if not self._pending_chapters:
            return
        log.debug("chapters_setting", count=len(self._pending_chapters))
        self._host.set_chapters(self._pending_chapters)
        self._pending_chapters = ()

    def _apply_plan(self, plan: PlaybackPlan) -> None:
        host = self._host
        host.set_stream_url(plan.stream_url)
        if plan.user_agent:
            host.set_user_agent(plan.user_agent)
        if plan.http_header_fields:
            host.set_http_header_fields(plan.http_header_fields)
        host.set_media_title(plan.title)
        if plan.bitrate_hint_kbps:
            host.set_hls_bitrate(int(plan.bitrate_hint_kbps * 1000))
        if plan.start_time is not None:
            host.set_start(plan.start_time)
        if plan.aspect_ratio is not None:
            host.set_video_aspect(plan.aspect_ratio)
        if plan.rtmp_params:
            host.set_stream_lavf_options(plan.rtmp_options())
        for audio in plan.audio_tracks:
            host.add_audio_track(audio.url, AUTO_SELECT, audio.label)
        for sub in plan.subtitle_tracks:
            host.add_subtitle_track(sub.source, AUTO_SELECT, sub.ext, sub.language)
        self._pending_chapters = plan.chapters
