"""Port for the host player receiving a resolved plan."""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from playplan.domain.entities.plan import Chapter


@runtime_checkable
class PlayerHostPort(Protocol):
    """Named setters of the host player.

    ``set_chapters`` is only valid once the stream has been opened; every
    other operation belongs to the load phase.
    """

    def set_stream_url(self, url: str) -> None: ...

    def set_user_agent(self, user_agent: str) -> None: ...

    def set_http_header_fields(self, fields: Sequence[str]) -> None: ...

    def set_start(self, seconds: float) -> None: ...

    def set_video_aspect(self, ratio: float) -> None: ...

    def set_media_title(self, title: str) -> None: ...

    def set_hls_bitrate(self, bits_per_second: int) -> None: ...

    def set_stream_lavf_options(self, options: str) -> None: ...

    def add_audio_track(self, url: str, selection: str, label: str) -> None: ...

    def add_subtitle_track(
        self, source: str, selection: str, ext: str | None, language: str
    ) -> None: ...

    def set_chapters(self, chapters: Sequence[Chapter]) -> None: ...
