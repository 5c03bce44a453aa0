from .extractor import ExtractorPort
from .player_host import PlayerHostPort

__all__ = ["ExtractorPort", "PlayerHostPort"]
