"""Layered configuration loading.

Layers, lowest precedence first: built-in defaults, the YAML file, ``PLAYPLAN_*``
environment variables (optionally seeded from a .env file), CLI overrides.
YAML is written in sections (``ytdl.path``); ENV and CLI use flat names
(``ytdl_path``).  Every layer is folded into the sectioned shape before
merging, and ``AppConfig`` validates the result once.
"""

from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, EnvOverrides

_TOP_LEVEL_KEYS = ("app_name", "environment")

# flat name -> (section, key)
_FLAT_KEYS: dict[str, tuple[str, str]] = {
    "log_level": ("logging", "level"),
    "log_format": ("logging", "format"),
    "ytdl_path": ("ytdl", "path"),
    "ytdl_format": ("ytdl", "format"),
    "ytdl_raw_options": ("ytdl", "raw_options"),
    "ytdl_timeout_seconds": ("ytdl", "timeout_seconds"),
    "exclude": ("player", "exclude"),
    "native_dash": ("player", "native_dash"),
    "video_disabled": ("player", "video_disabled"),
    "explicit_options": ("player", "explicit_options"),
}

_SECTIONS = frozenset(section for section, _ in _FLAT_KEYS.values())


def _merge_into(base: dict[str, Any], layer: Mapping[str, Any]) -> None:
    """Merge *layer* into *base*; nested mappings merge, anything else replaces."""
    for key, value in layer.items():
        current = base.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _merge_into(current, value)
        else:
            base[key] = value


def _sectioned(layer: Mapping[str, Any]) -> dict[str, Any]:
    """Fold flat keys of *layer* into their sections; unknown keys are dropped."""
    out: dict[str, Any] = {
        key: layer[key] for key in _TOP_LEVEL_KEYS if key in layer
    }
    for section in _SECTIONS:
        block = layer.get(section)
        if isinstance(block, Mapping):
            out[section] = dict(block)
    for flat_key, (section, key) in _FLAT_KEYS.items():
        if flat_key in layer:
            out.setdefault(section, {})[key] = layer[flat_key]
    return out


def _yaml_layer(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"Config YAML must be a mapping, got: {type(parsed)!r}")
    return parsed


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> AppConfig:
    """
    Build the validated ``AppConfig`` from all layers.

    Missing config or .env files raise ``FileNotFoundError``; invalid values
    raise pydantic's ``ValidationError``.  Nothing is written to disk.
    """
    if dotenv_path is not None:
        if not dotenv_path.exists():
            raise FileNotFoundError(dotenv_path)
        # Values already in the environment win over the .env file.
        load_dotenv(dotenv_path, override=False)

    layers: list[Mapping[str, Any]] = [deepcopy(DEFAULT_CONFIG)]
    if config_path is not None:
        layers.append(_yaml_layer(config_path))
    layers.append(EnvOverrides().to_update_dict())
    layers.append(cli_overrides or {})

    merged: dict[str, Any] = {}
    for layer in layers:
        _merge_into(merged, _sectioned(layer))
    return AppConfig.model_validate(merged)
