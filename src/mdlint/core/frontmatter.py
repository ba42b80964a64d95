"""Front matter detection and extraction."""

import logging
import re

logger = logging.getLogger(__name__)

_FIELD_RE = re.compile(r"^([\w-]+)\s*:\s*(.*?)\s*$")


def front_matter_end(text: str, pattern: str | None = None) -> int:
    """Return the length of the front matter block at the start of *text*.

    Without *pattern*, front matter opens with a ``---`` line and closes
    after the next line that is exactly ``---`` or ``...``. A custom
    *pattern* counts only when it matches at offset 0. Returns 0 when the
    document has no front matter.
    """
    if pattern:
        try:
            match = re.compile(pattern).match(text)
        except re.error:
            logger.debug("Ignoring invalid front matter pattern %r", pattern)
            return 0
        return match.end() if match else 0

    if not (text.startswith("---\n") or text.startswith("---\r\n")):
        return 0
    offset = text.index("\n") + 1
    while offset < len(text):
        newline = text.find("\n", offset)
        end = len(text) if newline == -1 else newline + 1
        if text[offset:end].rstrip("\r\n") in ("---", "..."):
            return end
        offset = end
    return 0


def blank_front_matter(text: str, end: int) -> str:
    """Replace the first *end* characters by their line breaks only."""
    return "".join(char for char in text[:end] if char in "\r\n") + text[end:]


def parse_front_matter(block: str) -> dict[str, str]:
    """Extract top-level ``key: value`` pairs, stripping surrounding quotes."""
    fields: dict[str, str] = {}
    for line in block.splitlines():
        match = _FIELD_RE.match(line)
        if not match:
            continue
        value = match.group(2)
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        fields[match.group(1)] = value
    return fields


def has_title(fields: dict[str, str], pattern: str | None) -> bool:
    """Whether any front matter key matches the ``front_matter_title`` pattern."""
    if not pattern:
        return False
    try:
        title_re = re.compile(pattern, re.IGNORECASE)
    except re.error:
        logger.debug("Ignoring invalid front_matter_title pattern %r", pattern)
        return False
    return any(title_re.fullmatch(key) for key, value in fields.items() if value)
