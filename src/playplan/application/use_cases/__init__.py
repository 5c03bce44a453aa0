from .resolve_playback import ResolvePlaybackUseCase

__all__ = ["ResolvePlaybackUseCase"]
