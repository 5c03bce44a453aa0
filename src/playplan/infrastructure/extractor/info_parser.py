"""Convert youtube-dl's ``-J`` info dict into an ``ExtractionResult``.

The raw JSON is loosely typed and almost every field is optional; this
module is the only place that looks at raw keys.  Everything downstream
works on the typed entities and the ``kind`` tag computed here.
"""

from __future__ import annotations

from typing import Any, Mapping

from playplan.domain.entities.extraction import (
    ExtractionResult,
    Fragment,
    RawChapter,
    ResultKind,
    StreamProtocol,
    SubtitleSource,
    Track,
)


def to_float(raw: Any) -> float | None:
    """Convert a JSON number (or numeric string) to float.

    Returns None for missing, boolean or non-numeric values.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        try:
            return float(raw.strip())
        except ValueError:
            return None
    return None


def to_str(raw: Any) -> str | None:
    if raw is None:
        return None
    return raw if isinstance(raw, str) else str(raw)


def _mapping(raw: Any) -> Mapping[str, Any]:
    return raw if isinstance(raw, Mapping) else {}


def _list(raw: Any) -> list[Any]:
    return raw if isinstance(raw, list) else []


def parse_fragment(raw: Mapping[str, Any]) -> Fragment:
    return Fragment(
        path=to_str(raw.get("path")),
        url=to_str(raw.get("url")),
        duration=to_float(raw.get("duration")),
    )


def parse_fragments(raw: Any) -> tuple[Fragment, ...]:
    return tuple(parse_fragment(item) for item in _list(raw) if isinstance(item, Mapping))


def parse_track(raw: Mapping[str, Any]) -> Track:
    return Track(
        url=to_str(raw.get("url")),
        manifest_url=to_str(raw.get("manifest_url")),
        fragments=parse_fragments(raw.get("fragments")),
        fragment_base_url=to_str(raw.get("fragment_base_url")),
        protocol=StreamProtocol.from_raw(to_str(raw.get("protocol"))),
        acodec=to_str(raw.get("acodec")),
        vcodec=to_str(raw.get("vcodec")),
        bitrate=to_float(raw.get("tbr")),
        format_note=to_str(raw.get("format_note")),
    )


def parse_subtitles(raw: Any) -> dict[str, SubtitleSource]:
    subtitles: dict[str, SubtitleSource] = {}
    for language, info in _mapping(raw).items():
        if not isinstance(info, Mapping):
            continue
        subtitles[str(language)] = SubtitleSource(
            language=str(language),
            ext=to_str(info.get("ext")),
            data=to_str(info.get("data")),
            url=to_str(info.get("url")),
        )
    return subtitles


def parse_chapters(raw: Any) -> tuple[RawChapter, ...] | None:
    if not isinstance(raw, list):
        return None
    chapters: list[RawChapter] = []
    for item in raw:
        if not isinstance(item, Mapping):
            continue
        start = to_float(item.get("start_time"))
        chapters.append(
            RawChapter(
                start_time=start if start is not None else 0.0,
                title=to_str(item.get("title")),
            )
        )
    return tuple(chapters)


def classify(raw: Mapping[str, Any]) -> ResultKind:
    """Derive the classification tag for one raw info dict."""
    if raw.get("direct") is True:
        return ResultKind.DIRECT
    result_type = raw.get("_type")
    if result_type == "playlist":
        return ResultKind.PLAYLIST
    if result_type == "multi_video":
        return ResultKind.MULTI_VIDEO
    if _list(raw.get("requested_formats")):
        return ResultKind.SPLIT_TRACKS
    return ResultKind.SINGLE


def parse_info(raw: Mapping[str, Any]) -> ExtractionResult:
    """Build an ``ExtractionResult`` (recursively, for playlist entries)."""
    protocol_raw = to_str(raw.get("protocol"))
    headers = {
        str(name): str(value)
        for name, value in _mapping(raw.get("http_headers")).items()
        if value is not None
    }
    entries = tuple(
        parse_info(entry) for entry in _list(raw.get("entries")) if isinstance(entry, Mapping)
    )
    return ExtractionResult(
        kind=classify(raw),
        result_type=to_str(raw.get("_type")),
        url=to_str(raw.get("url")),
        protocol=StreamProtocol.from_raw(protocol_raw),
        protocol_raw=protocol_raw,
        manifest_url=to_str(raw.get("manifest_url")),
        fragments=parse_fragments(raw.get("fragments")),
        fragment_base_url=to_str(raw.get("fragment_base_url")),
        requested_formats=tuple(
            parse_track(item)
            for item in _list(raw.get("requested_formats"))
            if isinstance(item, Mapping)
        ),
        requested_subtitles=parse_subtitles(raw.get("requested_subtitles")),
        chapters=parse_chapters(raw.get("chapters")),
        description=to_str(raw.get("description")),
        duration=to_float(raw.get("duration")),
        start_time=to_float(raw.get("start_time")),
        stretched_ratio=to_float(raw.get("stretched_ratio")),
        http_headers=headers,
        title=to_str(raw.get("title")),
        webpage_url=to_str(raw.get("webpage_url")),
        is_live=bool(raw.get("is_live")),
        bitrate=to_float(raw.get("tbr")),
        entries=entries,
        page_url=to_str(raw.get("page_url")),
        play_path=to_str(raw.get("play_path")),
        player_url=to_str(raw.get("player_url")),
        app=to_str(raw.get("app")),
    )
