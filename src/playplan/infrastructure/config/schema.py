"""Pydantic configuration models with validation."""

from __future__ import annotations

import re
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]

# Host options a caller may pin; inferred plan hints never override them.
KNOWN_EXPLICIT_OPTIONS = frozenset(
    {"user-agent", "http-header-fields", "start", "video-aspect", "hls-bitrate"}
)


def _split_patterns(value: Any) -> list[str]:
    """Accept ``"a|b"`` or ``["a", "b"]`` and return a list without blanks."""
    if value is None:
        return []
    if isinstance(value, str):
        return [part for part in value.split("|") if part]
    if isinstance(value, (list, tuple)):
        return [str(part) for part in value if part]
    raise TypeError(f"Expected string or list of patterns, got: {type(value)!r}")


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (logging/ytdl/player).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="playplan", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    # Extractor (YAML section: ytdl.*)
    ytdl_path: str = Field(
        default="youtube-dl",
        validation_alias=AliasChoices(
            "ytdl_path",
            AliasPath("ytdl", "path"),
        ),
        description="Executable of youtube-dl or a compatible fork.",
    )
    ytdl_format: str = Field(
        default="",
        validation_alias=AliasChoices(
            "ytdl_format",
            AliasPath("ytdl", "format"),
        ),
        description="Format selector; empty means bestvideo+bestaudio/best.",
    )
    ytdl_raw_options: dict[str, str] = Field(
        default_factory=dict,
        validation_alias=AliasChoices(
            "ytdl_raw_options",
            AliasPath("ytdl", "raw_options"),
        ),
        description="Extra --option value pairs passed through verbatim.",
    )
    ytdl_timeout_seconds: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices(
            "ytdl_timeout_seconds",
            AliasPath("ytdl", "timeout_seconds"),
        ),
        description="Kill the extractor after this many seconds (None = wait).",
    )

    # Player (YAML section: player.*)
    exclude: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices(
            "exclude",
            AliasPath("player", "exclude"),
        ),
        description="Url patterns never handed to the extractor ('|'-joined or list).",
    )
    native_dash: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "native_dash",
            AliasPath("player", "native_dash"),
        ),
        description="Host demuxes DASH manifests natively.",
    )
    video_disabled: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "video_disabled",
            AliasPath("player", "video_disabled"),
        ),
        description="Request audio-only formats unless a format is configured.",
    )
    explicit_options: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices(
            "explicit_options",
            AliasPath("player", "explicit_options"),
        ),
        description="Host options set by the user; plan hints never override them.",
    )

    @field_validator("exclude", mode="before")
    @classmethod
    def _validate_exclude(cls, v: Any) -> list[str]:
        patterns = _split_patterns(v)
        for pattern in patterns:
            try:
                re.compile(pattern)
            except re.error as exc:
                raise ValueError(f"invalid exclude pattern {pattern!r}: {exc}") from exc
        return patterns

    @field_validator("explicit_options", mode="before")
    @classmethod
    def _validate_explicit_options(cls, v: Any) -> list[str]:
        if isinstance(v, str):
            v = [part.strip() for part in v.split(",")]
        options = [str(option) for option in v or [] if option]
        unknown = set(options) - KNOWN_EXPLICIT_OPTIONS
        if unknown:
            raise ValueError(f"unknown explicit options: {sorted(unknown)}")
        return options

    @field_validator("ytdl_timeout_seconds")
    @classmethod
    def _validate_ytdl_timeout(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError("ytdl_timeout_seconds must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read PLAYPLAN_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - PLAYPLAN_LOG_LEVEL
    - PLAYPLAN_YTDL_PATH
    - PLAYPLAN_EXCLUDE ('|'-joined)
    - PLAYPLAN_NATIVE_DASH
    """

    model_config = SettingsConfigDict(
        env_prefix="PLAYPLAN_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    ytdl_path: Optional[str] = None
    ytdl_format: Optional[str] = None
    ytdl_timeout_seconds: Optional[float] = None

    exclude: Optional[str] = None
    native_dash: Optional[bool] = None
    video_disabled: Optional[bool] = None

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
