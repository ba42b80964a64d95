"""Line length, HTML, horizontal rule and proper name rules."""

import re
from dataclasses import dataclass, field

from mdlint.core.document import Document
from mdlint.core.text import (
    blank_code_spans,
    code_block_mask,
    find_tables,
    is_setext_text,
    line_ending,
    split_lines,
)
from mdlint.models import Violation
from mdlint.rules.base import RuleBase

_TAG_NAME_RE = re.compile(r"<([A-Za-z][A-Za-z0-9-]*)")
_HR_RE = re.compile(r"^ {0,3}((?:\*[ \t]*){3,}|(?:-[ \t]*){3,}|(?:_[ \t]*){3,})$")
_DEFINITION_RE = re.compile(r"^ {0,3}\[[^\]]+\]:\s")
_LINK_TARGET_RE = re.compile(r"\]\([^)\n]*\)|<[a-z][a-z0-9+.-]*:[^<>\s]*>|https?://\S+", re.IGNORECASE)
_HTML_TAG_RE = re.compile(r"<[^<>\n]*>")


def _heading_mask(lines: list[str], code: list[bool]) -> list[bool]:
    mask = [False] * len(lines)
    for i, line in enumerate(lines):
        if code[i]:
            continue
        if line.lstrip(" ").startswith("#"):
            mask[i] = True
        elif is_setext_text(lines, i, code):
            mask[i] = mask[i + 1] = True
    return mask


@dataclass(frozen=True)
class LineLength(RuleBase):
    """MD013: line length.

    Headings and code blocks may carry their own limits. Unless ``strict`` is
    set, a line is allowed when nothing past the limit is whitespace (a long
    URL, say) and link reference definitions are never checked.
    """

    id = "MD013"
    aliases = ("line-length",)
    description = "Line length"

    line_length: int = 80
    heading_line_length: int | None = None
    code_block_line_length: int | None = None
    code_blocks: bool = True
    tables: bool = True
    headings: bool = True
    strict: bool = False

    def _limit(self, i: int, code: list[bool], table: list[bool], heading: list[bool]) -> int | None:
        if code[i]:
            return (self.code_block_line_length or self.line_length) if self.code_blocks else None
        if table[i]:
            return self.line_length if self.tables else None
        if heading[i]:
            return (self.heading_line_length or self.line_length) if self.headings else None
        return self.line_length

    def check(self, doc: Document) -> list[Violation]:
        lines = doc.lines
        code = doc.code_mask
        table = [False] * len(lines)
        for first, last in find_tables(lines, code):
            table[first : last + 1] = [True] * (last - first + 1)
        heading = _heading_mask(lines, code)
        violations = []
        for i, line in enumerate(lines):
            limit = self._limit(i, code, table, heading)
            if limit is None or len(line) <= limit:
                continue
            if not self.strict and (" " not in line[limit:] or _DEFINITION_RE.match(line)):
                continue
            violations.append(
                self.violation(i + 1, f"{self.description} [Expected: {limit}; Actual: {len(line)}]", limit + 1)
            )
        return violations


@dataclass(frozen=True)
class NoInlineHtml(RuleBase):
    """MD033: inline HTML.

    HTML comments and closing tags are not reported; ``allowed_elements`` is
    compared case-insensitively.
    """

    id = "MD033"
    aliases = ("no-inline-html",)
    description = "Inline HTML"

    allowed_elements: list[str] = field(default_factory=list)

    def check(self, doc: Document) -> list[Violation]:
        allowed = {element.lower() for element in self.allowed_elements}
        violations = []
        for node in doc.nodes("html_block", "html_inline"):
            match = _TAG_NAME_RE.match(doc.slice(node).lstrip())
            if match is None:
                continue
            element = match.group(1)
            if element.lower() in allowed:
                continue
            line, column = doc.position(node.start_byte)
            if node.kind == "html_block":
                column = doc.lines[line - 1].find("<") + 1 or 1
            violations.append(self.violation(line, f"{self.description} [Element: {element}]", column))
        return violations


@dataclass(frozen=True)
class HrStyle(RuleBase):
    """MD035: horizontal rule style."""

    id = "MD035"
    aliases = ("hr-style",)
    description = "Horizontal rule style"

    style: str = "consistent"

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        lines = doc.lines
        expected = "" if self.style == "consistent" else self.style
        for i, line in enumerate(lines):
            if doc.code_mask[i] or not _HR_RE.match(line.rstrip()):
                continue
            # a dash run under paragraph text is a setext underline
            if i > 0 and line.strip().strip("-") == "" and is_setext_text(lines, i - 1, doc.code_mask):
                continue
            actual = line.strip()
            expected = expected or actual
            if actual != expected:
                violations.append(self.violation(i + 1, f"{self.description} [Expected: {expected}; Actual: {actual}]"))
        return violations


@dataclass(frozen=True)
class ProperNames(RuleBase):
    """MD044: proper names should have the correct capitalization.

    Link destinations and URLs are never checked. ``code_blocks`` covers both
    code blocks and code spans; ``html_elements`` covers text inside tags.
    """

    id = "MD044"
    aliases = ("proper-names",)
    description = "Proper names should have the correct capitalization"

    names: list[str] = field(default_factory=list)
    code_blocks: bool = True
    html_elements: bool = True

    def _patterns(self) -> list[tuple[str, re.Pattern[str]]]:
        # longer names first so "GitHub Actions" wins over "GitHub"
        names = sorted({name for name in self.names if name}, key=len, reverse=True)
        return [(name, re.compile(rf"(?<!\w){re.escape(name)}(?!\w)", re.IGNORECASE)) for name in names]

    def _searchable(self, line: str) -> str:
        patterns = [_LINK_TARGET_RE]
        if not self.html_elements:
            patterns.append(_HTML_TAG_RE)
        if not self.code_blocks:
            line = blank_code_spans(line)
        for pattern in patterns:
            line = pattern.sub(lambda m: " " * len(m.group(0)), line)
        return line

    def _findings(self, lines: list[str]) -> list[tuple[int, int, int, str]]:
        """``(line index, start, end, name)`` of each miscapitalized occurrence."""
        mask = code_block_mask(lines)
        patterns = self._patterns()
        found = []
        for i, line in enumerate(lines):
            if mask[i] and not self.code_blocks:
                continue
            searchable = self._searchable(line)
            claimed: list[tuple[int, int]] = []
            for name, pattern in patterns:
                for match in pattern.finditer(searchable):
                    start, end = match.span()
                    if any(start < e and s < end for s, e in claimed):
                        continue
                    claimed.append((start, end))
                    if line[start:end] != name:
                        found.append((i, start, end, name))
        return sorted(found)

    def check(self, doc: Document) -> list[Violation]:
        return [
            self.violation(
                i + 1,
                f"{self.description} [Expected: {name}; Actual: {doc.lines[i][start:end]}]",
                start + 1,
            )
            for i, start, end, name in self._findings(doc.lines)
        ]

    def fix(self, source: str) -> str:
        lines = split_lines(source)
        for i, start, end, name in reversed(self._findings(lines)):
            lines[i] = lines[i][:start] + name + lines[i][end:]
        return line_ending(source).join(lines)
