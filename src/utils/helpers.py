"""Shared helpers for the trigger toggle tooling."""

from __future__ import annotations

import os
import re
from functools import lru_cache
from typing import Any, Iterable


@lru_cache(maxsize=64)
def _split_wildcard(pattern: str) -> tuple[tuple[re.Pattern[str], int], ...]:
    """Split a pattern on `*` into fixed-length segment regexes.

    Each segment matches exactly `len(segment)` characters, so segments are
    placed with a leftmost search and never backtrack across stars.
    """
    segments = []
    for segment in pattern.split("*"):
        regex = "".join("." if char == "?" else re.escape(char) for char in segment)
        segments.append((re.compile(regex, re.DOTALL), len(segment)))
    return tuple(segments)


def wildcard_match(name: str, pattern: str) -> bool:
    """Return True when `name` matches `pattern` as a whole.

    `*` matches any run of characters (including none), `?` matches exactly one
    character, everything else is literal. Matching is case-sensitive.
    """
    segments = _split_wildcard(pattern)
    if len(segments) == 1:
        return segments[0][0].fullmatch(name) is not None

    (head, head_len), *middle, (tail, tail_len) = segments
    tail_start = len(name) - tail_len
    if head_len > tail_start:
        return False
    if head.match(name) is None or tail.fullmatch(name, tail_start) is None:
        return False

    position = head_len
    for regex, length in middle:
        if not length:
            continue
        found = regex.search(name, position, tail_start)
        if found is None:
            return False
        position = found.end()
    return True


def filter_by_name(items: Iterable[dict[str, Any]], pattern: str) -> list[dict[str, Any]]:
    """Keep items whose `name` matches `pattern`, preserving order and duplicates."""
    return [
        item
        for item in items
        if isinstance(item.get("name"), str) and wildcard_match(item["name"], pattern)
    ]


def ensure_output_directory(path: str) -> None:
    """Create the parent directory of an output file if needed."""
    parent = os.path.dirname(os.path.abspath(path))
    os.makedirs(parent, exist_ok=True)
