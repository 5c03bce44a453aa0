"""Scheme whitelist applied to every url before it reaches a plan."""

from __future__ import annotations

import re

import structlog

from playplan.domain.exceptions import UnsafeUrlError

log = structlog.get_logger(__name__)

SAFE_SCHEMES: frozenset[str] = frozenset(
    {
        "http",
        "https",
        "ftp",
        "ftps",
        "rtmp",
        "rtmps",
        "rtmpe",
        "rtmpt",
        "rtmpts",
        "rtmpte",
        "data",
    }
)

_SCHEME_RE = re.compile(r"^([A-Za-z][A-Za-z0-9+.\-]*)://")


def url_scheme(url: object) -> str | None:
    """Return the lowercased ``scheme`` of a ``scheme://`` url, else None."""
    if not isinstance(url, str):
        return None
    match = _SCHEME_RE.match(url)
    return match.group(1).lower() if match else None


def is_safe(url: object) -> bool:
    """Check *url* against the scheme whitelist.

    Rejections are logged; the caller decides whether a rejection drops a
    single track or aborts the whole resolution.
    """
    if url_scheme(url) in SAFE_SCHEMES:
        return True
    log.warning("unsafe_url_ignored", url=url)
    return False


def require_safe(url: object) -> str:
    """Return *url* unchanged, or raise ``UnsafeUrlError``."""
    if not is_safe(url):
        raise UnsafeUrlError(str(url))
    return url  # type: ignore[return-value]
