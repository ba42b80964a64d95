"""Whitespace and blank line rules."""

import re
from dataclasses import dataclass, field

from mdlint.core.document import Document
from mdlint.core.text import (
    fenced_code_block_languages,
    fenced_code_block_mask,
    line_ending,
    split_lines,
)
from mdlint.models import Violation
from mdlint.rules.base import RuleBase

_QUOTE_SPACES_RE = re.compile(r"^( {0,3}>+) {2,}")
_QUOTED_LIST_ITEM_RE = re.compile(r"^ {0,3}>+ +(?:[-*+]|\d+[.)])(?: |$)")


@dataclass(frozen=True)
class NoTrailingSpaces(RuleBase):
    """MD009: trailing spaces.

    A run of exactly ``br_spaces`` spaces is a hard line break and allowed.
    """

    id = "MD009"
    aliases = ("no-trailing-spaces",)
    description = "Trailing spaces"

    br_spaces: int = 2

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        for i, line in enumerate(doc.lines):
            trimmed = line.rstrip(" \t")
            trailing = line[len(trimmed) :]
            if not trailing or (self.br_spaces >= 2 and trailing == " " * self.br_spaces):
                continue
            violations.append(
                self.violation(
                    i + 1,
                    f"{self.description} [Expected: 0 or {self.br_spaces}; Actual: {len(trailing)}]",
                    len(trimmed) + 1,
                )
            )
        return violations


@dataclass(frozen=True)
class NoHardTabs(RuleBase):
    """MD010: hard tabs."""

    id = "MD010"
    aliases = ("no-hard-tabs",)
    description = "Hard tabs"

    spaces_per_tab: int = 4
    code_blocks: bool = True
    ignore_code_languages: list[str] = field(default_factory=list)

    def _checked_lines(self, lines: list[str]) -> list[int]:
        mask = fenced_code_block_mask(lines)
        languages = fenced_code_block_languages(lines) if self.ignore_code_languages else {}
        ignored = {language.lower() for language in self.ignore_code_languages}
        checked = []
        for i, line in enumerate(lines):
            if "\t" not in line:
                continue
            if mask[i] and (not self.code_blocks or languages.get(i, "").lower() in ignored):
                continue
            checked.append(i)
        return checked

    def check(self, doc: Document) -> list[Violation]:
        return [
            self.violation(i + 1, self.description, doc.lines[i].index("\t") + 1)
            for i in self._checked_lines(doc.lines)
        ]

    def fix(self, source: str) -> str:
        lines = split_lines(source)
        spaces = " " * max(self.spaces_per_tab, 0)
        for i in self._checked_lines(lines):
            lines[i] = lines[i].replace("\t", spaces)
        return line_ending(source).join(lines)


@dataclass(frozen=True)
class NoMultipleBlanks(RuleBase):
    """MD012: multiple consecutive blank lines (outside code blocks)."""

    id = "MD012"
    aliases = ("no-multiple-blanks",)
    description = "Multiple consecutive blank lines"

    maximum: int = 1

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        consecutive = 0
        mask = doc.fence_mask
        # the element after a trailing newline is not a line of its own
        lines = doc.lines[:-1] if doc.lines and doc.lines[-1] == "" else doc.lines
        for i, line in enumerate(lines):
            if mask[i] or line.strip():
                consecutive = 0
                continue
            consecutive += 1
            if consecutive > self.maximum:
                violations.append(
                    self.violation(i + 1, f"{self.description} [Expected: {self.maximum}; Actual: {consecutive}]")
                )
        return violations


@dataclass(frozen=True)
class NoMultipleSpaceBlockquote(RuleBase):
    """MD027: multiple spaces after blockquote symbol."""

    id = "MD027"
    aliases = ("no-multiple-space-blockquote",)
    description = "Multiple spaces after blockquote symbol"

    list_items: bool = True

    def _matches(self, line: str) -> bool:
        if not _QUOTE_SPACES_RE.match(line):
            return False
        return self.list_items or not _QUOTED_LIST_ITEM_RE.match(line)

    def check(self, doc: Document) -> list[Violation]:
        mask = doc.fence_mask
        return [
            self.violation(i + 1, self.description)
            for i, line in enumerate(doc.lines)
            if not mask[i] and self._matches(line)
        ]

    def fix(self, source: str) -> str:
        lines = split_lines(source)
        mask = fenced_code_block_mask(lines)
        for i, line in enumerate(lines):
            if not mask[i] and self._matches(line):
                lines[i] = _QUOTE_SPACES_RE.sub(r"\1 ", line, count=1)
        return line_ending(source).join(lines)


def _is_quote_line(line: str) -> bool:
    return line.lstrip(" ").startswith(">")


@dataclass(frozen=True)
class NoBlanksBlockquote(RuleBase):
    """MD028: blank line inside blockquote."""

    id = "MD028"
    aliases = ("no-blanks-blockquote",)
    description = "Blank line inside blockquote"

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        lines = doc.lines
        mask = doc.fence_mask
        for i in range(1, len(lines) - 1):
            if mask[i] or lines[i].strip():
                continue
            if _is_quote_line(lines[i - 1]) and _is_quote_line(lines[i + 1]):
                violations.append(self.violation(i + 1, self.description))
        return violations


@dataclass(frozen=True)
class SingleTrailingNewline(RuleBase):
    """MD047: files should end with a single newline character."""

    id = "MD047"
    aliases = ("single-trailing-newline",)
    description = "Files should end with a single newline character"

    def check(self, doc: Document) -> list[Violation]:
        if not doc.source or doc.source.endswith(b"\n"):
            return []
        return [self.violation(len(doc.lines), self.description, len(doc.lines[-1]) + 1)]

    def fix(self, source: str) -> str:
        if not source or source.endswith("\n"):
            return source
        return source + line_ending(source)
