"""List rules."""

import re
from dataclasses import dataclass

from mdlint.core.document import Document
from mdlint.core.text import fenced_code_block_mask, line_ending, split_lines
from mdlint.models import Node, Violation
from mdlint.rules.base import RuleBase, parse_source

_QUOTE_PREFIX_RE = re.compile(r"^(?: {0,3}> ?)+")
_ORDERED_ITEM_RE = re.compile(r"^( *)(\d+)([.)]) ")
_MARKER_SPACE_RE = re.compile(r"^( *)([-*+]|\d+[.)])( +)")


def _item_indent(line: str) -> int:
    line = _QUOTE_PREFIX_RE.sub("", line)
    return len(line) - len(line.lstrip(" "))


def _items(node: Node) -> list[Node]:
    return [child for child in node.children if child.kind == "list_item"]


@dataclass(frozen=True)
class UlStyle(RuleBase):
    """MD004: unordered list style."""

    id = "MD004"
    aliases = ("ul-style",)
    description = "Unordered list style"

    style: str = "consistent"

    _MARKERS = {"asterisk": "*", "plus": "+", "dash": "-"}

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        first = ""
        for node in doc.nodes("list"):
            if node.ordered or not node.marker:
                continue
            if self.style == "consistent":
                first = first or node.marker
                expected = first
            else:
                expected = self._MARKERS.get(self.style, "")
            if expected and node.marker != expected:
                items = _items(node)
                line = doc.line_of(items[0] if items else node)
                violations.append(self.violation(line, f"{self.description} [Expected: {expected}; Actual: {node.marker}]"))
        return violations


@dataclass(frozen=True)
class ListIndent(RuleBase):
    """MD005: inconsistent indentation for list items at the same level."""

    id = "MD005"
    aliases = ("list-indent",)
    description = "Inconsistent indentation for list items at the same level"

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        for node in doc.nodes("list"):
            expected: int | None = None
            for item in _items(node):
                line = doc.line_of(item)
                actual = _item_indent(doc.lines[line - 1])
                if expected is None:
                    expected = actual
                elif actual != expected:
                    violations.append(
                        self.violation(line, f"{self.description} [Expected: {expected}; Actual: {actual}]", actual + 1)
                    )
        return violations


@dataclass(frozen=True)
class UlIndent(RuleBase):
    """MD007: unordered list indentation.

    Only lists nested exclusively inside other unordered lists are checked;
    the expected indent of an item is ``start_indent + depth * indent``.
    """

    id = "MD007"
    aliases = ("ul-indent",)
    description = "Unordered list indentation"

    indent: int = 2
    start_indented: bool = False
    start_indent: int = 2

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        base = self.start_indent if self.start_indented else 0
        for node, ancestors in doc.walk_with_ancestors():
            if node.kind != "list" or node.ordered:
                continue
            outer = [a for a in ancestors if a.kind == "list"]
            if any(a.ordered for a in outer):
                continue
            expected = base + len(outer) * self.indent
            for item in _items(node):
                line = doc.line_of(item)
                actual = _item_indent(doc.lines[line - 1])
                if actual != expected:
                    violations.append(
                        self.violation(line, f"{self.description} [Expected: {expected}; Actual: {actual}]", actual + 1)
                    )
        return violations


@dataclass
class _Group:
    indent: int
    indices: list[int]
    numbers: list[int]


@dataclass(frozen=True)
class OlPrefix(RuleBase):
    """MD029: ordered list item prefix.

    Items are grouped by indentation rather than by the parsed tree: a stack
    holds one group per open depth, a deeper item opens a group, a shallower
    one closes the deeper groups, and any unindented non-list line closes
    them all. Each closed group is then judged against ``style``.
    """

    id = "MD029"
    aliases = ("ol-prefix",)
    description = "Ordered list item prefix"

    style: str = "one_or_ordered"

    @staticmethod
    def _groups(lines: list[str]) -> list[_Group]:
        mask = fenced_code_block_mask(lines)
        closed: list[_Group] = []
        stack: list[_Group] = []
        for i, line in enumerate(lines):
            match = None if mask[i] else _ORDERED_ITEM_RE.match(line)
            if match is None:
                if line.strip() and line[:1] not in (" ", "\t"):
                    closed.extend(reversed(stack))
                    stack = []
                continue
            indent, number = len(match.group(1)), int(match.group(2))
            while stack and stack[-1].indent > indent:
                closed.append(stack.pop())
            if stack and stack[-1].indent == indent:
                stack[-1].indices.append(i)
                stack[-1].numbers.append(number)
            else:
                stack.append(_Group(indent, [i], [number]))
        closed.extend(reversed(stack))
        return sorted(closed, key=lambda g: g.indices[0])

    def _expected(self, group: _Group) -> list[tuple[int, int, int, str]]:
        """Return ``(line index, expected, actual, shown)`` for each wrong item."""
        numbers = group.numbers
        all_one = all(n == 1 for n in numbers)
        sequential = all(n == k + 1 for k, n in enumerate(numbers))
        wrong = []
        for k, (index, number) in enumerate(zip(group.indices, numbers, strict=True)):
            if self.style == "one":
                expected, shown = 1, "1"
            elif self.style == "zero":
                expected, shown = 0, "0"
            elif self.style == "ordered":
                expected, shown = k + 1, str(k + 1)
            else:
                if all_one or sequential or number == 1:
                    continue
                expected, shown = k + 1, f"{k + 1} or 1"
            if number != expected:
                wrong.append((index, expected, number, shown))
        return wrong

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        for group in self._groups(doc.lines):
            for index, _, actual, shown in self._expected(group):
                violations.append(self.violation(index + 1, f"{self.description} [Expected: {shown}; Actual: {actual}]"))
        return violations

    def fix(self, source: str) -> str:
        lines = split_lines(source)
        for group in self._groups(lines):
            if self.style == "one_or_ordered":
                if not self._expected(group):
                    continue
                targets = [(index, k + 1) for k, index in enumerate(group.indices)]
            else:
                targets = [(index, expected) for index, expected, _, _ in self._expected(group)]
            for index, expected in targets:
                lines[index] = _ORDERED_ITEM_RE.sub(lambda m, e=expected: f"{m.group(1)}{e}{m.group(3)} ", lines[index], 1)
        return line_ending(source).join(lines)


@dataclass(frozen=True)
class ListMarkerSpace(RuleBase):
    """MD030: spaces after list markers."""

    id = "MD030"
    aliases = ("list-marker-space",)
    description = "Spaces after list markers"

    ul_single: int = 1
    ol_single: int = 1
    ul_multi: int = 1
    ol_multi: int = 1

    def _expected(self, lines: list[str], i: int, marker: str) -> int:
        following = lines[i + 1] if i + 1 < len(lines) else None
        multi = following is not None and (following.strip() == "" or following.startswith("  "))
        if marker[0].isdigit():
            return self.ol_multi if multi else self.ol_single
        return self.ul_multi if multi else self.ul_single

    def _findings(self, lines: list[str]) -> list[tuple[int, re.Match[str], int]]:
        mask = fenced_code_block_mask(lines)
        found = []
        for i, line in enumerate(lines):
            match = None if mask[i] else _MARKER_SPACE_RE.match(line)
            if match is None or (len(match.group(1)) > 3 and not _item_context(lines, i)):
                continue
            expected = self._expected(lines, i, match.group(2))
            if len(match.group(3)) != expected:
                found.append((i, match, expected))
        return found

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        for i, match, expected in self._findings(doc.lines):
            indent, marker, spaces = match.groups()
            violations.append(
                self.violation(
                    i + 1,
                    f"{self.description} [Expected: {expected}; Actual: {len(spaces)}]",
                    len(indent) + len(marker) + 1,
                )
            )
        return violations

    def fix(self, source: str) -> str:
        lines = split_lines(source)
        for i, match, expected in self._findings(lines):
            indent, marker, _ = match.groups()
            lines[i] = indent + marker + " " * expected + lines[i][match.end() :]
        return line_ending(source).join(lines)


def _item_context(lines: list[str], i: int) -> bool:
    """Whether an indented marker line continues a list rather than code."""
    for k in range(i - 1, -1, -1):
        if not lines[k].strip():
            continue
        return bool(_MARKER_SPACE_RE.match(lines[k])) or lines[k].startswith(" ")
    return False


def _list_bounds(doc: Document) -> list[tuple[int, int]]:
    """``(first, last)`` 1-based lines of every list not nested in another block."""
    bounds = []
    for node, ancestors in doc.walk_with_ancestors():
        if node.kind != "list":
            continue
        if any(a.kind in ("list_item", "blockquote") for a in ancestors):
            continue
        bounds.append((doc.line_of(node), doc.last_line_of(node)))
    return bounds


@dataclass(frozen=True)
class BlanksAroundLists(RuleBase):
    """MD032: lists should be surrounded by blank lines."""

    id = "MD032"
    aliases = ("blanks-around-lists",)
    description = "Lists should be surrounded by blank lines"

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        lines = doc.lines
        for first, last in _list_bounds(doc):
            if first > 1 and lines[first - 2].strip():
                violations.append(self.violation(first, self.description))
            if last < len(lines) and lines[last].strip():
                violations.append(self.violation(last, self.description))
        return violations

    def fix(self, source: str) -> str:
        doc = parse_source(source)
        lines = list(doc.lines)
        inserts: set[int] = set()
        for first, last in _list_bounds(doc):
            if first > 1 and lines[first - 2].strip():
                inserts.add(first - 1)
            if last < len(lines) and lines[last].strip():
                inserts.add(last)
        for index in sorted(inserts, reverse=True):
            lines.insert(index, "")
        return line_ending(source).join(lines)
