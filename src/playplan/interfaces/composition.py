"""Composition root: wire config into the resolution use case."""

from __future__ import annotations

import structlog

from playplan.application.use_cases.resolve_playback import ResolvePlaybackUseCase
from playplan.domain.entities.plan import CallerOptions, HostCapabilities
from playplan.domain.ports.extractor import ExtractorPort
from playplan.infrastructure.config.schema import AppConfig
from playplan.infrastructure.exclusion import ExclusionList
from playplan.infrastructure.extractor.ytdl_runner import YtdlRunner
from playplan.infrastructure.resolution.playlist_flattener import PlaylistFlattener
from playplan.infrastructure.resolution.track_selector import TrackSelector

log = structlog.get_logger(__name__)


def build_extractor(config: AppConfig) -> YtdlRunner:
    return YtdlRunner(
        path=config.ytdl_path,
        format=config.ytdl_format,
        raw_options=config.ytdl_raw_options,
        timeout_seconds=config.ytdl_timeout_seconds,
        video_disabled=config.video_disabled,
    )


def build_use_case(
    config: AppConfig,
    extractor: ExtractorPort | None = None,
) -> ResolvePlaybackUseCase:
    """Build the use case; the exclusion list is compiled here, once."""
    selector = TrackSelector(
        capabilities=HostCapabilities(native_dash=config.native_dash),
        caller_options=CallerOptions(explicit=frozenset(config.explicit_options)),
    )
    exclusions = ExclusionList.from_config(config.exclude)
    log.debug(
        "use_case_built",
        native_dash=config.native_dash,
        exclusions=len(exclusions.patterns),
    )
    return ResolvePlaybackUseCase(
        extractor=extractor or build_extractor(config),
        selector=selector,
        flattener=PlaylistFlattener(selector),
        exclusions=exclusions,
    )
