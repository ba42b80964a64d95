"""Pipe table rules."""

import re
from dataclasses import dataclass

from mdlint.core.document import Document
from mdlint.core.text import (
    blank_code_spans,
    code_block_mask,
    count_table_cells,
    find_tables,
    is_table_delimiter_row,
    line_ending,
    split_lines,
    split_table_cells,
)
from mdlint.models import Violation
from mdlint.rules.base import RuleBase

_PIPE_RE = re.compile(r"(?<!\\)\|")


def _rows(doc: Document) -> list[list[int]]:
    """Line indices of every table, grouped per table."""
    return [list(range(first, last + 1)) for first, last in find_tables(doc.lines, doc.code_mask)]


def _pipe_style(line: str) -> str:
    trimmed = line.strip()
    leading = trimmed.startswith("|")
    trailing = trimmed.endswith("|") and not trimmed.endswith("\\|")
    if leading and trailing:
        return "leading_and_trailing"
    if leading:
        return "leading_only"
    if trailing:
        return "trailing_only"
    return "no_leading_or_trailing"


@dataclass(frozen=True)
class TablePipeStyle(RuleBase):
    """MD055: table pipe style."""

    id = "MD055"
    aliases = ("table-pipe-style",)
    description = "Table pipe style"

    style: str = "consistent"

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        expected = "" if self.style == "consistent" else self.style
        for table in _rows(doc):
            for i in table:
                actual = _pipe_style(doc.lines[i])
                expected = expected or actual
                if actual != expected:
                    violations.append(
                        self.violation(i + 1, f"{self.description} [Expected: {expected}; Actual: {actual}]")
                    )
        return violations


@dataclass(frozen=True)
class TableColumnCount(RuleBase):
    """MD056: table column count."""

    id = "MD056"
    aliases = ("table-column-count",)
    description = "Table column count"

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        for table in _rows(doc):
            expected = count_table_cells(blank_code_spans(doc.lines[table[0]]))
            for i in table[1:]:
                actual = count_table_cells(blank_code_spans(doc.lines[i]))
                if actual != expected:
                    detail = (
                        "Too few cells, row will be missing data"
                        if actual < expected
                        else "Too many cells, extra data will be missing"
                    )
                    violations.append(
                        self.violation(i + 1, f"{self.description} [Expected: {expected}; Actual: {actual}; {detail}]")
                    )
        return violations


@dataclass(frozen=True)
class BlanksAroundTables(RuleBase):
    """MD058: tables should be surrounded by blank lines."""

    id = "MD058"
    aliases = ("blanks-around-tables",)
    description = "Tables should be surrounded by blank lines"

    @staticmethod
    def _findings(lines: list[str], tables: list[tuple[int, int]]) -> tuple[list[int], list[int]]:
        """Table lines needing a blank line above, and below."""
        above, below = [], []
        for first, last in tables:
            if first > 0 and lines[first - 1].strip():
                above.append(first)
            if last < len(lines) - 1 and lines[last + 1].strip():
                below.append(last)
        return above, below

    def check(self, doc: Document) -> list[Violation]:
        above, below = self._findings(doc.lines, find_tables(doc.lines, doc.code_mask))
        return [self.violation(i + 1, self.description) for i in sorted(above + below)]

    def fix(self, source: str) -> str:
        lines = split_lines(source)
        above, below = self._findings(lines, find_tables(lines, code_block_mask(lines)))
        for index in sorted(set(above) | {i + 1 for i in below}, reverse=True):
            lines.insert(index, "")
        return line_ending(source).join(lines)


def _cell_style(line: str) -> str:
    """``tight``, ``compact`` or ``other`` for the padding of a row's cells."""
    cells = split_table_cells(blank_code_spans(line))
    tight = compact = True
    for cell in cells:
        if not cell:
            compact = False
            continue
        padded_left, padded_right = cell.startswith(" "), cell.endswith(" ")
        if padded_left or padded_right:
            tight = False
        inner = cell[1:-1]
        if not (padded_left and padded_right) or inner.startswith(" ") or inner.endswith(" "):
            compact = False
    if tight:
        return "tight"
    if compact:
        return "compact"
    return "other"


def _pipe_columns(line: str) -> list[int]:
    return [m.start() for m in _PIPE_RE.finditer(blank_code_spans(line))]


@dataclass(frozen=True)
class TableColumnStyle(RuleBase):
    """MD060: table column style.

    ``compact`` wants one space of padding around every cell, ``tight`` none,
    and ``aligned`` wants every row's pipes in the header's columns.
    Delimiter rows only take part when ``aligned_delimiter`` is set.
    """

    id = "MD060"
    aliases = ("table-column-style",)
    description = "Table column style"

    style: str = "any"
    aligned_delimiter: bool = False

    def check(self, doc: Document) -> list[Violation]:
        if self.style not in ("compact", "tight", "aligned"):
            return []
        violations = []
        for table in _rows(doc):
            header = _pipe_columns(doc.lines[table[0]])
            for i in table:
                line = doc.lines[i]
                if is_table_delimiter_row(line) and not self.aligned_delimiter:
                    continue
                if self.style == "aligned":
                    actual = "aligned" if _pipe_columns(line) == header else "unaligned"
                else:
                    actual = _cell_style(line)
                if actual != self.style:
                    violations.append(
                        self.violation(i + 1, f"{self.description} [Expected: {self.style}; Actual: {actual}]")
                    )
        return violations
