"""In-memory player host that records every handoff call."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from playplan.domain.entities.plan import Chapter


@dataclass
class RecordingPlayerHost:
    """Satisfies ``PlayerHostPort`` by storing what it is told.

    Used by the CLI to print a resolution, and by tests.
    """

    properties: dict[str, Any] = field(default_factory=dict)
    audio_tracks: list[dict[str, str]] = field(default_factory=list)
    subtitle_tracks: list[dict[str, str | None]] = field(default_factory=list)
    chapters: list[Chapter] = field(default_factory=list)
    calls: list[str] = field(default_factory=list)

    def _set(self, name: str, value: Any) -> None:
        self.calls.append(name)
        self.properties[name] = value

    def set_stream_url(self, url: str) -> None:
        self._set("stream-open-filename", url)

    def set_user_agent(self, user_agent: str) -> None:
        self._set("user-agent", user_agent)

    def set_http_header_fields(self, fields: Sequence[str]) -> None:
        self._set("http-header-fields", list(fields))

    def set_start(self, seconds: float) -> None:
        self._set("start", seconds)

    def set_video_aspect(self, ratio: float) -> None:
        self._set("video-aspect", ratio)

    def set_media_title(self, title: str) -> None:
        self._set("force-media-title", title)

    def set_hls_bitrate(self, bits_per_second: int) -> None:
        self._set("hls-bitrate", bits_per_second)

    def set_stream_lavf_options(self, options: str) -> None:
        self._set("stream-lavf-o", options)

    def add_audio_track(self, url: str, selection: str, label: str) -> None:
        self.calls.append("audio-add")
        self.audio_tracks.append({"url": url, "selection": selection, "label": label})

    def add_subtitle_track(
        self, source: str, selection: str, ext: str | None, language: str
    ) -> None:
        self.calls.append("sub-add")
        self.subtitle_tracks.append(
            {"source": source, "selection": selection, "ext": ext, "language": language}
        )

    def set_chapters(self, chapters: Sequence[Chapter]) -> None:
        self.calls.append("chapter-list")
        self.chapters = list(chapters)

    def to_dict(self) -> dict[str, Any]:
        return {
            "properties": dict(self.properties),
            "audio_tracks": list(self.audio_tracks),
            "subtitle_tracks": list(self.subtitle_tracks),
            "chapters": [{"time": c.time, "title": c.title} for c in self.chapters],
        }
