"""Resolution exceptions.

Every failure means "no resolution possible for this item"; the host falls
back to treating its original input as unresolved.
"""

from __future__ import annotations


class ResolutionError(Exception):
    """Base class for all resolution failures."""


class MissingDataError(ResolutionError):
    """Raised when a required field (url, manifest, entries) is absent."""


class UnsafeUrlError(ResolutionError):
    """Raised when a url uses a scheme outside the whitelist."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Ignoring potentially unsafe url: {url!r}")
        self.url = url


class UnsupportedCombinationError(ResolutionError):
    """Raised when input fields combine in a way the output format cannot express."""


class UpstreamError(ResolutionError):
    """Raised when the external extraction tool fails or emits unusable output."""
