"""Glob patterns used for schema associations and catalog file matches."""

from __future__ import annotations

import re
from functools import lru_cache


@lru_cache(maxsize=1024)
def compile_glob(pattern: str, *, full_match: bool) -> re.Pattern[str]:
    """Regex for ``pattern``, where ``*`` stays within one path segment.

    With ``full_match`` the whole subject must match and wildcards may be
    empty. Otherwise the regex is anchored at the end only and each wildcard
    consumes at least one character.
    """
    segment, anything = ("[^/]*", ".*") if full_match else ("[^/]+", ".+")
    parts = [
        segment.join(re.escape(piece) for piece in chunk.split("*"))
        for chunk in pattern.split("**")
    ]
    body = anything.join(parts) + "$"
    return re.compile("^" + body if full_match else body)
