"""Path glob matching with ``**`` support.

A ``*``, ``?`` or ``[...]`` wildcard never crosses a ``/``; a whole ``**``
segment matches zero or more path segments.
"""

import functools
import posixpath
from collections.abc import Iterable
from fnmatch import fnmatchcase
from pathlib import PurePath


def normalize_path(path: str | PurePath) -> str:
    """Return *path* with forward slashes and without ``.`` or ``..`` segments."""
    text = str(path).replace("\\", "/")
    return posixpath.normpath(text) if text else text


def _match_segments(pattern: list[str], parts: list[str], start: int) -> bool:
    @functools.cache
    def match(i: int, j: int) -> bool:
        if i == len(pattern):
            return j == len(parts)
        if pattern[i] == "**":
            return any(match(i + 1, k) for k in range(j, len(parts) + 1))
        if j == len(parts) or not fnmatchcase(parts[j], pattern[i]):
            return False
        return match(i + 1, j + 1)

    return match(0, start)


def match_path(pattern: str, path: str) -> bool:
    """Whether *path* matches the glob *pattern*.

    Without ``**`` the pattern must match the whole path, or, for a pattern of
    a single segment, the last segment of it (``*.md`` matches at any depth).
    With ``**`` the pattern may start matching at any segment of *path*, so
    ``vendor/**`` matches ``/abs/project/vendor/a.md`` too.
    """
    pattern = pattern.replace("\\", "/").removeprefix("./")
    parts = path.split("/")
    segments = pattern.split("/")
    if "**" not in pattern:
        if len(segments) == len(parts) and all(fnmatchcase(p, s) for p, s in zip(parts, segments, strict=True)):
            return True
        return len(segments) == 1 and fnmatchcase(parts[-1], pattern)
    return any(_match_segments(segments, parts, start) for start in range(len(parts)))


def matches_any(path: str | PurePath, patterns: Iterable[str]) -> bool:
    normalized = normalize_path(path)
    return any(match_path(pattern, normalized) for pattern in patterns if pattern)
