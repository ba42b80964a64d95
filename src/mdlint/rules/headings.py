"""Heading rules."""

import functools
import re
from dataclasses import dataclass, field

from mdlint.core.document import Document
from mdlint.core.frontmatter import has_title
from mdlint.core.text import (
    CLOSED_ATX_RE,
    fenced_code_block_mask,
    heading_level,
    is_setext_text,
    is_setext_underline,
    line_ending,
    split_lines,
)
from mdlint.models import Node, Violation
from mdlint.rules.base import RuleBase

_NO_SPACE_ATX_RE = re.compile(r"^( {0,3})(#{1,6})([^ \t#\n].*)$")
_MULTI_SPACE_ATX_RE = re.compile(r"^( {0,3})(#{1,6})( {2,})(.*)$")
_INDENTED_ATX_RE = re.compile(r"^ {1,3}#{1,6}( |$)")
_OPEN_ATX_RE = re.compile(r"^( {0,3}#{1,6}[ \t]+)(.*?)[ \t]*$")
_CLOSED_TAIL_RE = re.compile(r"[ \t]#+[ \t]*$")
_HTML_COMMENT_RE = re.compile(r"^\s*<!--.*-->\s*$")


def _closed_atx(line: str) -> re.Match[str] | None:
    match = CLOSED_ATX_RE.match(line)
    if match is None or match.group(3).endswith("\\") or not match.group(3).strip("# "):
        return None
    return match


def _heading_lines(doc: Document) -> list[tuple[int, Node]]:
    return [(doc.line_of(node), node) for node in doc.nodes("heading")]


def _blank_run(lines: list[str], start: int, step: int) -> int:
    count = 0
    i = start
    while 0 <= i < len(lines) and lines[i].strip() == "":
        count += 1
        i += step
    return count


@dataclass(frozen=True)
class HeadingIncrement(RuleBase):
    """MD001: heading levels should only increment by one level at a time."""

    id = "MD001"
    aliases = ("heading-increment",)
    description = "Heading levels should only increment by one level at a time"

    front_matter_title: str = "title"

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        previous = 1 if has_title(doc.front_matter, self.front_matter_title) else 0
        for line, heading in _heading_lines(doc):
            level = heading.level or 1
            if previous and level > previous + 1:
                violations.append(
                    self.violation(line, f"{self.description} [Expected: h{previous + 1}; Actual: h{level}]")
                )
            previous = level
        return violations


@dataclass(frozen=True)
class HeadingStyle(RuleBase):
    """MD003: all headings use one style (``atx``, ``atx_closed`` or ``setext``)."""

    id = "MD003"
    aliases = ("heading-style",)
    description = "Heading style"

    style: str = "consistent"

    @staticmethod
    def _style_of(doc: Document, line: int, heading: Node) -> str:
        if heading.marker != "#":
            return "setext"
        text = doc.lines[line - 1].strip().lstrip("#")
        return "atx_closed" if _CLOSED_TAIL_RE.search(text) else "atx"

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        first = ""
        for line, heading in _heading_lines(doc):
            actual = self._style_of(doc, line, heading)
            level = heading.level or 1
            expected = self.style
            if expected == "consistent":
                first = first or actual
                expected = first
            if expected == "setext_with_atx":
                expected = "setext" if level <= 2 else "atx"
            elif expected == "setext_with_atx_closed":
                expected = "setext" if level <= 2 else "atx_closed"
            elif expected == "setext" and level > 2:
                expected = "atx"
            if actual != expected and not (expected == "atx" and actual == "atx_closed"):
                violations.append(self.violation(line, f"Heading style [Expected: {expected}; Actual: {actual}]"))
        return violations


class _LineRegexRule(RuleBase):
    """Flags every line outside fenced code that matches ``pattern``."""

    pattern: re.Pattern[str]
    replacement: str

    def check(self, doc: Document) -> list[Violation]:
        mask = doc.fence_mask
        return [
            self.violation(i + 1, self.description)
            for i, line in enumerate(doc.lines)
            if not mask[i] and self.pattern.match(line)
        ]

    def fix(self, source: str) -> str:
        lines = split_lines(source)
        mask = fenced_code_block_mask(lines)
        for i, line in enumerate(lines):
            if not mask[i]:
                lines[i] = self.pattern.sub(self.replacement, line)
        return line_ending(source).join(lines)


@dataclass(frozen=True)
class NoMissingSpaceAtx(_LineRegexRule):
    """MD018: no space after hash on ATX style heading."""

    id = "MD018"
    aliases = ("no-missing-space-atx",)
    description = "No space after hash on ATX style heading"
    pattern = _NO_SPACE_ATX_RE
    replacement = r"\1\2 \3"


@dataclass(frozen=True)
class NoMultipleSpaceAtx(_LineRegexRule):
    """MD019: multiple spaces after hash on ATX style heading."""

    id = "MD019"
    aliases = ("no-multiple-space-atx",)
    description = "Multiple spaces after hash on ATX style heading"
    pattern = _MULTI_SPACE_ATX_RE
    replacement = r"\1\2 \4"


@dataclass(frozen=True)
class NoMissingSpaceClosedAtx(RuleBase):
    """MD020: no space inside hashes on closed ATX style heading."""

    id = "MD020"
    aliases = ("no-missing-space-closed-atx",)
    description = "No space inside hashes on closed ATX style heading"

    @staticmethod
    def _bad(middle: str) -> bool:
        return not middle.startswith(" ") or not middle.endswith(" ")

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        for i, line in enumerate(doc.lines):
            match = None if doc.fence_mask[i] else _closed_atx(line)
            if match and self._bad(match.group(3)):
                violations.append(self.violation(i + 1, self.description))
        return violations

    def fix(self, source: str) -> str:
        lines = split_lines(source)
        mask = fenced_code_block_mask(lines)
        for i, line in enumerate(lines):
            match = None if mask[i] else _closed_atx(line)
            if match and self._bad(match.group(3)):
                indent, opening, middle, closing = match.groups()
                if not middle.startswith(" "):
                    middle = " " + middle
                if not middle.endswith(" "):
                    middle += " "
                lines[i] = indent + opening + middle + closing
        return line_ending(source).join(lines)


@dataclass(frozen=True)
class NoMultipleSpaceClosedAtx(RuleBase):
    """MD021: multiple spaces inside hashes on closed ATX style heading."""

    id = "MD021"
    aliases = ("no-multiple-space-closed-atx",)
    description = "Multiple spaces inside hashes on closed ATX style heading"

    @staticmethod
    def _bad(middle: str) -> bool:
        return middle.startswith("  ") or middle.endswith("  ")

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        for i, line in enumerate(doc.lines):
            match = None if doc.fence_mask[i] else _closed_atx(line)
            if match and self._bad(match.group(3)):
                violations.append(self.violation(i + 1, self.description))
        return violations

    def fix(self, source: str) -> str:
        lines = split_lines(source)
        mask = fenced_code_block_mask(lines)
        for i, line in enumerate(lines):
            match = None if mask[i] else _closed_atx(line)
            if match and self._bad(match.group(3)):
                indent, opening, middle, closing = match.groups()
                lines[i] = f"{indent}{opening} {middle.strip()} {closing}"
        return line_ending(source).join(lines)


@dataclass(frozen=True)
class BlanksAroundHeadings(RuleBase):
    """MD022: headings should be surrounded by blank lines.

    ``lines_above`` and ``lines_below`` take either one count for every
    level or a list indexed by level; ``-1`` disables the check.
    """

    id = "MD022"
    aliases = ("blanks-around-headings",)
    description = "Headings should be surrounded by blank lines"

    lines_above: int | list[int] = 1
    lines_below: int | list[int] = 1

    @staticmethod
    def _for_level(value: int | list[int], level: int) -> int:
        if isinstance(value, int):
            return value
        return value[level - 1] if 0 < level <= len(value) else 1

    def check(self, doc: Document) -> list[Violation]:
        lines = doc.lines
        mask = doc.fence_mask
        violations = []
        n = len(lines)
        for i, line in enumerate(lines):
            if mask[i]:
                continue
            level = heading_level(line)
            last = i
            if not level and is_setext_text(lines, i, mask):
                level = 1 if lines[i + 1].strip().startswith("=") else 2
                last = i + 1
            if not level:
                continue
            above = self._for_level(self.lines_above, level)
            below = self._for_level(self.lines_below, level)
            if i > 0 and above >= 0:
                actual = _blank_run(lines, i - 1, -1)
                if actual < above and actual < i:
                    violations.append(self.violation(i + 1, f"{self.description} [Expected: {above}; Actual: {actual}; Above]"))
            if last < n - 1 and below >= 0:
                actual = _blank_run(lines, last + 1, 1)
                if actual < below and last + 1 + actual < n:
                    violations.append(self.violation(i + 1, f"{self.description} [Expected: {below}; Actual: {actual}; Below]"))
        return violations


@dataclass(frozen=True)
class HeadingStartLeft(RuleBase):
    """MD023: headings must start at the beginning of the line."""

    id = "MD023"
    aliases = ("heading-start-left",)
    description = "Headings must start at the beginning of the line"

    @staticmethod
    def _indented_setext(lines: list[str], i: int, mask: list[bool]) -> bool:
        if i + 1 >= len(lines) or mask[i + 1] or not lines[i].startswith(" "):
            return False
        trimmed = lines[i].lstrip(" ")
        return bool(trimmed) and trimmed[0] != "#" and is_setext_underline(lines[i + 1])

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        lines = doc.lines
        mask = doc.fence_mask
        for i, line in enumerate(lines):
            if mask[i]:
                continue
            if _INDENTED_ATX_RE.match(line) or (
                is_setext_text(lines, i, mask) and self._indented_setext(lines, i, mask)
            ):
                violations.append(self.violation(i + 1, self.description))
        return violations

    def fix(self, source: str) -> str:
        lines = split_lines(source)
        mask = fenced_code_block_mask(lines)
        for i, line in enumerate(lines):
            if mask[i]:
                continue
            if _INDENTED_ATX_RE.match(line):
                lines[i] = line.lstrip(" ")
            elif is_setext_text(lines, i, mask) and self._indented_setext(lines, i, mask):
                lines[i] = line.lstrip(" ")
                lines[i + 1] = lines[i + 1].lstrip(" ")
        return line_ending(source).join(lines)


@dataclass(frozen=True)
class NoDuplicateHeading(RuleBase):
    """MD024: multiple headings with the same content."""

    id = "MD024"
    aliases = ("no-duplicate-heading",)
    description = "Multiple headings with the same content"

    siblings_only: bool = False

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        seen: dict[int, set[str]] = {}
        for line, heading in _heading_lines(doc):
            text = heading.text or ""
            key = text.strip().casefold()
            level = (heading.level or 1) if self.siblings_only else 0
            if self.siblings_only:
                for deeper in [lvl for lvl in seen if lvl > level]:
                    del seen[deeper]
            bucket = seen.setdefault(level, set())
            if key in bucket:
                violations.append(self.violation(line, f'{self.description} [Context: "{text}"]'))
            bucket.add(key)
        return violations


@dataclass(frozen=True)
class SingleTitle(RuleBase):
    """MD025: multiple top-level headings in the same document."""

    id = "MD025"
    aliases = ("single-title", "single-h1")
    description = "Multiple top-level headings in the same document"

    level: int = 1
    front_matter_title: str = "title"

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        count = 1 if has_title(doc.front_matter, self.front_matter_title) else 0
        for line, heading in _heading_lines(doc):
            if heading.level != self.level:
                continue
            count += 1
            if count > 1:
                violations.append(self.violation(line, f'{self.description} [Context: "{heading.text or ""}"]'))
        return violations


@dataclass(frozen=True)
class NoTrailingPunctuation(RuleBase):
    """MD026: trailing punctuation in heading."""

    id = "MD026"
    aliases = ("no-trailing-punctuation",)
    description = "Trailing punctuation in heading"

    punctuation: str = ".,;:!。，；：！"

    def _heading_text(self, lines: list[str], i: int, mask: list[bool]) -> tuple[str, str] | None:
        """Return ``(kind, text)`` for a heading line, or ``None``."""
        line = lines[i]
        closed = _closed_atx(line)
        if closed and closed.group(3).startswith(" "):
            return "closed", closed.group(3).strip()
        if heading_level(line):
            match = _OPEN_ATX_RE.match(line)
            return ("open", match.group(2)) if match else None
        if is_setext_text(lines, i, mask):
            return "setext", line.strip()
        return None

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        if not self.punctuation:
            return violations
        for i in range(len(doc.lines)):
            if doc.fence_mask[i]:
                continue
            found = self._heading_text(doc.lines, i, doc.fence_mask)
            if found and found[1] and found[1][-1] in self.punctuation:
                violations.append(self.violation(i + 1, f"{self.description} [Punctuation: '{found[1][-1]}']"))
        return violations

    def fix(self, source: str) -> str:
        if not self.punctuation:
            return source
        lines = split_lines(source)
        mask = fenced_code_block_mask(lines)
        for i, line in enumerate(lines):
            if mask[i]:
                continue
            found = self._heading_text(lines, i, mask)
            if not found or not found[1] or found[1][-1] not in self.punctuation:
                continue
            kind, text = found
            trimmed = text.rstrip(self.punctuation)
            if kind == "closed":
                indent, opening, _, closing = CLOSED_ATX_RE.match(line).groups()  # type: ignore[union-attr]
                lines[i] = f"{indent}{opening} {trimmed} {closing}"
            elif kind == "open":
                lines[i] = _OPEN_ATX_RE.match(line).group(1) + trimmed  # type: ignore[union-attr]
            else:
                lines[i] = line[: len(line) - len(line.lstrip(" "))] + trimmed
        return line_ending(source).join(lines)


@dataclass(frozen=True)
class FirstLineHeading(RuleBase):
    """MD041: first line in a file should be a top-level heading."""

    id = "MD041"
    aliases = ("first-line-heading", "first-line-h1")
    description = "First line in a file should be a top-level heading"

    level: int = 1
    front_matter_title: str = "title"
    allow_preamble: bool = False

    def _is_heading(self, lines: list[str], i: int) -> bool:
        if lines[i].startswith("#" * self.level + " "):
            return True
        if self.level > 2 or i + 1 >= len(lines) or not lines[i][:1].strip():
            return False
        underline = lines[i + 1].strip()
        char = "=" if self.level == 1 else "-"
        return bool(underline) and underline.strip(char) == "" and not lines[i].startswith("#")

    def check(self, doc: Document) -> list[Violation]:
        lines = doc.lines
        if not lines or has_title(doc.front_matter, self.front_matter_title):
            return []
        if self.allow_preamble:
            if any(self._is_heading(lines, i) for i in range(len(lines)) if not doc.fence_mask[i]):
                return []
            return [self.violation(1, self.description)]
        for i, line in enumerate(lines):
            if not line.strip() or _HTML_COMMENT_RE.match(line):
                continue
            return [] if self._is_heading(lines, i) else [self.violation(i + 1, self.description)]
        return []


@dataclass(frozen=True)
class RequiredHeadings(RuleBase):
    """MD043: required heading structure.

    ``headings`` lists the expected headings, each written with its ``#``
    prefix, plus the wildcards ``*`` (zero or more), ``+`` (one or more)
    and ``?`` (exactly one). Matching backtracks with memoization on
    ``(pattern index, heading index)``.
    """

    id = "MD043"
    aliases = ("required-headings",)
    description = "Required heading structure"

    headings: list[str] = field(default_factory=list)
    match_case: bool = False

    def check(self, doc: Document) -> list[Violation]:
        if not self.headings:
            return []
        found = [(line, "#" * (heading.level or 1) + " " + (heading.text or "")) for line, heading in _heading_lines(doc)]
        fold = (lambda s: s) if self.match_case else str.casefold
        actual = [fold(text) for _, text in found]
        pattern = self.headings
        furthest = 0

        @functools.cache
        def match(pi: int, ai: int) -> bool:
            nonlocal furthest
            if pi == len(pattern):
                return ai == len(actual)
            token = pattern[pi]
            if token == "*":
                return any(match(pi + 1, k) for k in range(ai, len(actual) + 1))
            if token == "+":
                return any(match(pi + 1, k) for k in range(ai + 1, len(actual) + 1))
            if ai >= len(actual):
                return False
            if token == "?":
                return match(pi + 1, ai + 1)
            if actual[ai] != fold(token):
                return False
            furthest = max(furthest, ai + 1)
            return match(pi + 1, ai + 1)

        if match(0, 0):
            return []
        line = found[furthest][0] if furthest < len(found) else len(doc.lines)
        return [self.violation(line, f"{self.description} [Expected: {', '.join(pattern)}]")]
