"""EDL synthesis: stitch fragments into one ``edl://`` pseudo-playlist.

Wire format::

    edl://[!mp4_dash,init=<escaped>;]<escaped>[,length=<seconds>];...;

where ``<escaped>`` is ``%<utf-8 byte length>%<raw url>``.  The length
prefix lets a reader skip over ``;``, ``,`` and ``%`` inside the url
without any quoting, so the envelope must be decoded by byte count, never
by scanning for the next delimiter.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import structlog

from playplan.domain.entities.extraction import Fragment, StreamProtocol
from playplan.domain.exceptions import UnsupportedCombinationError
from playplan.infrastructure.resolution.safety import require_safe
from playplan.infrastructure.resolution.urls import join_fragment_url

log = structlog.get_logger(__name__)

EDL_PREFIX = "edl://"
DASH_INIT_HEADER = "!mp4_dash"


def format_seconds(value: float) -> str:
    """Render a duration the way the EDL reader expects (``5``, ``5.5``)."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def escape(url: str) -> str:
    return f"%{len(url.encode('utf-8'))}%{url}"


def join(
    fragments: Sequence[Fragment],
    protocol: StreamProtocol | None = None,
    is_live: bool = False,
    base_url: str | None = None,
) -> str | None:
    """Join *fragments* into one EDL string.

    Returns ``None`` when there is nothing to join.  Raises
    ``UnsupportedCombinationError`` for DASH segments lacking durations and
    ``UnsafeUrlError`` when any fragment url fails the safety filter; no
    partial output is produced in either case.
    """
    if not fragments:
        log.debug("edl_no_fragments")
        return None

    parts: list[str] = []
    offset = 0

    if (
        protocol is StreamProtocol.DASH_SEGMENTS
        and fragments[0].duration is None
        and not is_live
    ):
        # First fragment is an MP4 DASH initialization segment.
        init_url = require_safe(join_fragment_url(base_url, fragments[0]))
        parts.append(f"{DASH_INIT_HEADER},init={escape(init_url)}")
        offset = 1

        if any(fragment.duration is None for fragment in fragments[offset:]):
            log.error("edl_dash_fragments_without_duration")
            raise UnsupportedCombinationError(
                "segments without duration unsupported for this protocol"
            )

    for fragment in fragments[offset:]:
        url = require_safe(join_fragment_url(base_url, fragment))
        part = escape(url)
        if fragment.duration is not None:
            part += f",length={format_seconds(fragment.duration)}"
        parts.append(part)

    return EDL_PREFIX + ";".join(parts) + ";"


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EdlSegment:
    url: str
    length: float | None = None


@dataclass(frozen=True)
class EdlDocument:
    segments: tuple[EdlSegment, ...]
    init_url: str | None = None


class EdlParseError(ValueError):
    """Raised when a string is not a well-formed EDL."""


class _Reader:
    """Byte cursor over the EDL body."""

    def __init__(self, data: bytes) -> None:
        self.data = data
        self.pos = 0

    def at_end(self) -> bool:
        return self.pos >= len(self.data)

    def peek(self) -> bytes:
        return self.data[self.pos : self.pos + 1]

    def read_until(self, stops: bytes) -> bytes:
        start = self.pos
        while not self.at_end() and self.data[self.pos] not in stops:
            self.pos += 1
        return self.data[start : self.pos]

    def expect(self, char: bytes) -> None:
        if self.peek() != char:
            raise EdlParseError(f"expected {char!r} at byte {self.pos}")
        self.pos += 1

    def read_value(self) -> str:
        if self.peek() != b"%":
            return self.read_until(b",;").decode("utf-8")
        self.pos += 1
        digits = self.read_until(b"%")
        if not digits.isdigit():
            raise EdlParseError(f"bad length prefix at byte {self.pos}")
        self.expect(b"%")
        size = int(digits)
        end = self.pos + size
        if end > len(self.data):
            raise EdlParseError("escaped value runs past end of input")
        value = self.data[self.pos : end]
        self.pos = end
        return value.decode("utf-8")


def _read_entry(reader: _Reader) -> tuple[str, dict[str, str]]:
    first = reader.read_value()
    params: dict[str, str] = {}
    while reader.peek() == b",":
        reader.pos += 1
        key = reader.read_until(b"=,;").decode("utf-8")
        reader.expect(b"=")
        params[key] = reader.read_value()
    if not reader.at_end():
        reader.expect(b";")
    return first, params


def parse(edl: str) -> EdlDocument:
    """Decode an EDL string produced by :func:`join`."""
    if not edl.startswith(EDL_PREFIX):
        raise EdlParseError("missing edl:// prefix")

    reader = _Reader(edl[len(EDL_PREFIX) :].encode("utf-8"))
    init_url: str | None = None
    segments: list[EdlSegment] = []

    while not reader.at_end():
        first, params = _read_entry(reader)
        if first == DASH_INIT_HEADER:
            init_url = params.get("init")
            continue
        length = params.get("length")
        segments.append(
            EdlSegment(url=first, length=float(length) if length else None)
        )

    return EdlDocument(segments=tuple(segments), init_url=init_url)
