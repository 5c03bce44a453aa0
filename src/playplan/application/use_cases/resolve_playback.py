"""Playback resolution use case.

Input url -> exclusion check -> extractor -> dispatch on result kind
-> PlaybackPlan / MultiArcPlan / DeferredPlaylist.
"""

from __future__ import annotations

import re
import time
from typing import Protocol

import structlog

from playplan.domain.entities.extraction import ExtractionResult, ResultKind
from playplan.domain.entities.plan import PlaybackPlan, Resolution
from playplan.domain.ports.extractor import ExtractorPort

# ---------------------------------------------------------------------------
# Protocols: what this use case needs from its collaborators.
# ---------------------------------------------------------------------------


class _Selector(Protocol):
    def resolve_one(self, result: ExtractionResult) -> PlaybackPlan: ...


class _Flattener(Protocol):
    def flatten(self, result: ExtractionResult) -> Resolution: ...


class _Exclusions(Protocol):
    def matches(self, url: str) -> bool: ...


log = structlog.get_logger(__name__)

YTDL_PREFIX = "ytdl://"
_HTTP_RE = re.compile(r"^https?://")


class ResolvePlaybackUseCase:
    """Resolves one input url into something the host can play.

    Returns ``None`` when the url is not ours to resolve (unsupported scheme,
    excluded, or the extractor reports a direct media url).  Failures raise
    ``ResolutionError``; the host then keeps its original input.
    """

    def __init__(
        self,
        *,
        extractor: ExtractorPort,
        selector: _Selector,
        flattener: _Flattener,
        exclusions: _Exclusions,
    ) -> None:
        self._extractor = extractor
        self._selector = selector
        self._flattener = flattener
        self._exclusions = exclusions

    def accepts(self, url: str) -> bool:
        if url.startswith(YTDL_PREFIX):
            return True
        return bool(_HTTP_RE.match(url)) and not self._exclusions.matches(url)

    def execute(self, url: str) -> Resolution | None:
        if not self.accepts(url):
            log.debug("url_not_handled", url=url)
            return None

        started = time.perf_counter()
        target = url[len(YTDL_PREFIX) :] if url.startswith(YTDL_PREFIX) else url

        result = self._extractor.extract(target)
        resolution = self.resolve(result)

        log.info(
            "playback_resolved",
            url=url,
            kind=result.kind.value,
            resolution=type(resolution).__name__ if resolution else None,
            duration_ms=round((time.perf_counter() - started) * 1000),
        )
        return resolution

    def resolve(self, result: ExtractionResult) -> Resolution | None:
        """Dispatch an already extracted result."""
        if result.kind is ResultKind.DIRECT:
            log.info("direct_url", url=result.url)
            return None
        if result.is_playlist:
            return self._flattener.flatten(result)
        return self._selector.resolve_one(result)
