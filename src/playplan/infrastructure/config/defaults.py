"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "playplan",
    "environment": "dev",
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "ytdl": {
        "path": "youtube-dl",
        "format": "",
        "raw_options": {},
        "timeout_seconds": None,
    },
    "player": {
        "exclude": [],
        "native_dash": True,
        "video_disabled": False,
        "explicit_options": [],
    },
}
