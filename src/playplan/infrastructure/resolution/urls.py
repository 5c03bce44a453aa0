"""Relative fragment reference resolution.

Plain segment-stack normalization: ``..`` pops, ``.`` is dropped, anything
else is pushed.  Percent-encoding is left untouched, and unlike
``urllib.parse.urljoin`` the base path is always treated as a directory.
"""

from __future__ import annotations

import re

from playplan.domain.entities.extraction import Fragment
from playplan.infrastructure.resolution.safety import url_scheme

_ORIGIN_RE = re.compile(r"^([A-Za-z][A-Za-z0-9+.\-]*://[^/]*)(.*)$")


def _push_segments(stack: list[str], path: str) -> None:
    for segment in path.split("/"):
        if not segment or segment == ".":
            continue
        if segment == "..":
            if stack:
                stack.pop()
            continue
        stack.append(segment)


def resolve(base: str, ref: str) -> str:
    """Resolve *ref* against *base*.

    >>> resolve("https://a.b/c/d/", "../e")
    'https://a.b/c/e'
    >>> resolve("https://a.b/c/", "https://x.y/z")
    'https://x.y/z'
    """
    if url_scheme(ref) is not None:
        return ref

    match = _ORIGIN_RE.match(base)
    if match:
        origin, base_path = match.group(1), match.group(2)
    else:
        # No scheme://host: the result stays relative and will not pass
        # the safety filter.
        origin, base_path = "", base

    stack: list[str] = []
    _push_segments(stack, base_path)
    _push_segments(stack, ref)
    if not origin:
        return "/".join(stack)
    return f"{origin}/" + "/".join(stack)


def join_fragment_url(base: str | None, fragment: Fragment) -> str:
    """Pick the effective url of *fragment*; "" when it has none."""
    if base and fragment.path:
        return resolve(base, fragment.path)
    if fragment.url:
        return fragment.url
    return ""
