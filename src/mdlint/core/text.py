"""Line-level text primitives shared by the lexical rules."""

import re
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

CLOSED_ATX_RE = re.compile(r"^( {0,3})(#{1,6})(.+?)(#+)\s*$")
_ATX_RE = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]|$)")
_TABLE_DELIMITER_RE = re.compile(r"^\s*\|?\s*:?-+:?\s*(?:\|\s*:?-+:?\s*)*\|?\s*$")
_CELL_SPLIT_RE = re.compile(r"(?<!\\)\|")
_ANCHOR_STRIP_RE = re.compile(r"[^\w\- ]")
_BLOCK_START_RE = re.compile(r"^ {0,3}(?:[-*+>]|\d+[.)])(?:\s|$)")


@dataclass(frozen=True)
class Fence:
    opener: int
    closer: int | None
    char: str
    length: int
    info: str
    end: int  # exclusive end of the content lines

    @property
    def content(self) -> range:
        return range(self.opener + 1, self.end)


def split_lines(text: str) -> list[str]:
    """Split *text* on newlines, dropping one trailing ``\\r`` per line.

    A trailing newline yields a final empty element, so the result always has
    ``text.count("\\n") + 1`` entries.
    """
    return [line[:-1] if line.endswith("\r") else line for line in text.split("\n")]


def count_line(source: bytes, offset: int) -> int:
    """Return the 1-based line number of byte *offset* in *source*."""
    return source.count(b"\n", 0, max(0, offset)) + 1


def detect_fence(line: str) -> tuple[str, int] | None:
    trimmed = line.lstrip(" ")
    if len(trimmed) < 3 or trimmed[0] not in "`~":
        return None
    char = trimmed[0]
    length = len(trimmed) - len(trimmed.lstrip(char))
    if length < 3:
        return None
    return char, length


def closes_fence(line: str, char: str, length: int) -> bool:
    trimmed = line.lstrip(" ")
    run = len(trimmed) - len(trimmed.lstrip(char))
    return run >= length and trimmed[run:].strip() == ""


def iter_fences(lines: Sequence[str]) -> Iterator[Fence]:
    """Yield every fenced code block; an unclosed fence runs to the end."""
    i = 0
    n = len(lines)
    while i < n:
        opened = detect_fence(lines[i])
        if opened is None:
            i += 1
            continue
        char, length = opened
        info = lines[i].lstrip(" ")[length:].strip()
        closer = None
        for k in range(i + 1, n):
            if closes_fence(lines[k], char, length):
                closer = k
                break
        end = closer if closer is not None else n
        yield Fence(opener=i, closer=closer, char=char, length=length, info=info, end=end)
        i = end + 1


def fenced_code_block_mask(lines: Sequence[str]) -> list[bool]:
    """Mark lines strictly inside a fenced code block (delimiters excluded)."""
    mask = [False] * len(lines)
    for fence in iter_fences(lines):
        for i in fence.content:
            mask[i] = True
    return mask


def fenced_code_block_languages(lines: Sequence[str]) -> dict[int, str]:
    """Map each line inside a fence to the fence's language, if it has one."""
    languages: dict[int, str] = {}
    for fence in iter_fences(lines):
        if not fence.info:
            continue
        language = fence.info.split()[0]
        for i in fence.content:
            languages[i] = language
    return languages


def code_block_ranges(lines: Sequence[str]) -> list[tuple[int, int]]:
    """Return the half-open content line ranges of every fenced block."""
    return [(fence.opener + 1, fence.end) for fence in iter_fences(lines)]


def code_block_mask(lines: Sequence[str]) -> list[bool]:
    """Mark fenced blocks including their delimiters, plus indented code blocks."""
    mask = fenced_code_block_mask(lines)
    for fence in iter_fences(lines):
        mask[fence.opener] = True
        if fence.closer is not None:
            mask[fence.closer] = True
    for i, line in enumerate(lines):
        if mask[i] or not is_indented_code_line(line) or i == 0:
            continue
        previous = lines[i - 1]
        if previous.strip() == "" or (mask[i - 1] and is_indented_code_line(previous)):
            mask[i] = True
    return mask


def is_indented_code_line(line: str) -> bool:
    return line.startswith("\t") or line.startswith("    ")


def iter_code_spans(line: str) -> Iterator[tuple[int, int, int, int]]:
    """Yield ``(start, content_start, content_end, end)`` for each code span."""
    n = len(line)
    i = 0
    while i < n:
        if line[i] != "`":
            i += 1
            continue
        start = i
        while i < n and line[i] == "`":
            i += 1
        ticks = i - start
        end = i
        while end < n:
            if line[end] != "`":
                end += 1
                continue
            k = end
            while k < n and line[k] == "`":
                k += 1
            if k - end == ticks:
                yield start, i, end, k
                i = k
                break
            end = k


def blank_code_spans(line: str) -> str:
    """Replace every code span, backticks included, with spaces."""
    chars = list(line)
    for start, _, _, end in iter_code_spans(line):
        chars[start:end] = " " * (end - start)
    return "".join(chars)


def heading_level(line: str) -> int:
    """Return the ATX heading level of *line*, or 0 when it is not one."""
    match = _ATX_RE.match(line)
    return len(match.group(1)) if match else 0


def is_heading_line(line: str) -> bool:
    return heading_level(line) > 0


def is_setext_underline(line: str) -> bool:
    stripped = line.strip()
    return bool(stripped) and (stripped.strip("=") == "" or stripped.strip("-") == "")


def is_setext_text(lines: Sequence[str], index: int, mask: Sequence[bool]) -> bool:
    """Whether ``lines[index]`` is the text line of a setext heading."""
    if index + 1 >= len(lines) or mask[index] or mask[index + 1]:
        return False
    trimmed = lines[index].lstrip(" ")
    if not trimmed or trimmed[0] == "#" or _BLOCK_START_RE.match(lines[index]):
        return False
    if is_indented_code_line(lines[index]) or is_table_delimiter_row(lines[index]):
        return False
    if index > 0 and lines[index - 1].strip() != "" and not is_setext_underline(lines[index - 1]):
        return False
    return is_setext_underline(lines[index + 1])


def is_table_delimiter_row(line: str) -> bool:
    return "-" in line and bool(_TABLE_DELIMITER_RE.match(line))


def split_table_cells(line: str) -> list[str]:
    trimmed = line.strip()
    if trimmed.startswith("|"):
        trimmed = trimmed[1:]
    if trimmed.endswith("|") and not trimmed.endswith("\\|"):
        trimmed = trimmed[:-1]
    return _CELL_SPLIT_RE.split(trimmed)


def count_table_cells(line: str) -> int:
    return len(split_table_cells(line))


def find_tables(lines: Sequence[str], mask: Sequence[bool]) -> list[tuple[int, int]]:
    """Return ``(first, last)`` line ranges of pipe tables outside code blocks."""
    tables: list[tuple[int, int]] = []
    n = len(lines)
    i = 0
    while i < n - 1:
        header, delimiter = lines[i], lines[i + 1]
        if (
            mask[i]
            or mask[i + 1]
            or "|" not in header
            or "|" not in delimiter
            or not is_table_delimiter_row(delimiter)
        ):
            i += 1
            continue
        last = i + 1
        while last + 1 < n and not mask[last + 1] and "|" in lines[last + 1] and lines[last + 1].strip():
            last += 1
        tables.append((i, last))
        i = last + 1
    return tables


def heading_anchor(text: str) -> str:
    """Return the GitHub-style fragment for a heading's text."""
    return _ANCHOR_STRIP_RE.sub("", text.strip().lower()).replace(" ", "-")


def line_ending(text: str) -> str:
    """Return the newline sequence used by *text*."""
    return "\r\n" if "\r\n" in text else "\n"
