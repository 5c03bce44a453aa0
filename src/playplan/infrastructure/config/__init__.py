"""Configuration: pydantic models, built-in defaults and the layered loader."""

from __future__ import annotations

from .defaults import DEFAULT_CONFIG
from .load import load_config
from .schema import KNOWN_EXPLICIT_OPTIONS, AppConfig

__all__ = ["DEFAULT_CONFIG", "KNOWN_EXPLICIT_OPTIONS", "AppConfig", "load_config"]
