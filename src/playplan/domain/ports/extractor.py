"""Port for the external media-extraction tool."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from playplan.domain.entities.extraction import ExtractionResult


@runtime_checkable
class ExtractorPort(Protocol):
    """Turns a page url into a parsed extraction result.

    Implementations raise ``UpstreamError`` when the tool is missing, is
    killed, exits non-zero, or prints output that cannot be parsed.
    """

    def extract(self, url: str) -> ExtractionResult: ...
