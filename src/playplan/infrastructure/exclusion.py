"""Immutable url exclusion list built once from configuration."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

import structlog

log = structlog.get_logger(__name__)

_HTTP_PREFIX_RE = re.compile(r"^https?://")


@dataclass(frozen=True)
class ExclusionList:
    """Regex patterns matched against urls with the ``http(s)://`` prefix removed."""

    patterns: tuple[re.Pattern[str], ...] = ()

    @classmethod
    def from_config(cls, value: str | Iterable[str] | None) -> ExclusionList:
        """Build from a ``|``-joined string or an iterable of patterns."""
        if value is None:
            return cls()
        if isinstance(value, str):
            raw = value.split("|")
        else:
            raw = list(value)
        return cls(patterns=tuple(re.compile(p) for p in raw if p))

    def matches(self, url: str) -> bool:
        if not self.patterns:
            return False
        rest = _HTTP_PREFIX_RE.sub("", url, count=1)
        for pattern in self.patterns:
            if pattern.search(rest):
                log.info("url_excluded", url=url, pattern=pattern.pattern)
                return True
        return False
