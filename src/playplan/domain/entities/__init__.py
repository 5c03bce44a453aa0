from .extraction import (
    ExtractionResult,
    Fragment,
    RawChapter,
    ResultKind,
    StreamProtocol,
    SubtitleSource,
    Track,
)
from .plan import (
    AudioTrack,
    CallerOptions,
    Chapter,
    DeferredEntry,
    DeferredPlaylist,
    HostCapabilities,
    MultiArcPlan,
    PlaybackPlan,
    Resolution,
    SubtitleTrack,
)

__all__ = [
    "AudioTrack",
    "CallerOptions",
    "Chapter",
    "DeferredEntry",
    "DeferredPlaylist",
    "ExtractionResult",
    "Fragment",
    "HostCapabilities",
    "MultiArcPlan",
    "PlaybackPlan",
    "RawChapter",
    "Resolution",
    "ResultKind",
    "StreamProtocol",
    "SubtitleSource",
    "SubtitleTrack",
    "Track",
]
