"""Emphasis and strong emphasis rules."""

import re
from dataclasses import dataclass
from typing import ClassVar

from mdlint.core.document import Document
from mdlint.core.text import blank_code_spans, code_block_mask, line_ending, split_lines
from mdlint.models import Node, Violation
from mdlint.rules.base import RuleBase, parse_source

_EMPHASIS_LINE_RE = re.compile(r"^(?:\*\*[^*\n]+\*\*|\*[^*\n]+\*|__[^_\n]+__|_[^_\n]+_)$")
_LIST_PREFIX_RE = re.compile(r"^(?:\s*>)*\s*(?:[-*+]|\d+[.)])[ \t]+")
_SPACED_EMPHASIS_RE = re.compile(
    r"(?<![*_\w\\])(\*\*\*|___|\*\*|__|\*|_)([ \t]+)?([^\s*_](?:[^*_\n]*?[^\s*_])?)([ \t]+)?\1(?![*_\w])"
)


@dataclass(frozen=True)
class NoEmphasisAsHeading(RuleBase):
    """MD036: emphasis used instead of a heading.

    Flags a paragraph made of a single emphasized line whose text does not
    end with one of the ``punctuation`` characters.
    """

    id = "MD036"
    aliases = ("no-emphasis-as-heading",)
    description = "Emphasis used instead of a heading"

    punctuation: str = ".,;:!?。，；：！？"

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        lines = doc.lines
        for i, line in enumerate(lines):
            trimmed = line.strip()
            if doc.code_mask[i] or not _EMPHASIS_LINE_RE.match(trimmed):
                continue
            if i > 0 and lines[i - 1].strip():
                continue
            if i + 1 < len(lines) and lines[i + 1].strip():
                continue
            inner = trimmed.strip("*_").strip()
            if not inner or inner[-1] in self.punctuation:
                continue
            violations.append(self.violation(i + 1, self.description))
        return violations


def _prose(line: str) -> str:
    """*line* with code spans and a leading list marker blanked out."""
    line = blank_code_spans(line)
    match = _LIST_PREFIX_RE.match(line)
    if match:
        line = " " * match.end() + line[match.end() :]
    return line


def _spaced(blanked: str) -> list[re.Match[str]]:
    return [m for m in _SPACED_EMPHASIS_RE.finditer(blanked) if m.group(2) or m.group(4)]


@dataclass(frozen=True)
class NoSpaceInEmphasis(RuleBase):
    """MD037: spaces inside emphasis markers."""

    id = "MD037"
    aliases = ("no-space-in-emphasis",)
    description = "Spaces inside emphasis markers"

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        for i, line in enumerate(doc.lines):
            if doc.code_mask[i] or ("*" not in line and "_" not in line):
                continue
            for match in _spaced(_prose(line)):
                violations.append(self.violation(i + 1, f"{self.description} [Context: {match.group(0)}]", match.start() + 1))
        return violations

    def fix(self, source: str) -> str:
        lines = split_lines(source)
        mask = code_block_mask(lines)
        for i, line in enumerate(lines):
            if mask[i]:
                continue
            for match in reversed(_spaced(_prose(line))):
                marker, body = match.group(1), match.group(3)
                line = line[: match.start()] + marker + body + marker + line[match.end() :]
            lines[i] = line
        return line_ending(source).join(lines)


def _replace_markers(source: str, edits: list[tuple[Node, str, int]]) -> str:
    """Rewrite the opening and closing markers of each node in *edits*.

    Offsets are bytes, so the edit happens on the encoded source.
    """
    data = bytearray(source.encode("utf-8", errors="surrogateescape"))
    for node, marker, width in sorted(edits, key=lambda e: e[0].start_byte, reverse=True):
        encoded = marker.encode("utf-8")
        data[node.end_byte - width : node.end_byte] = encoded
        data[node.start_byte : node.start_byte + width] = encoded
    return data.decode("utf-8", errors="surrogateescape")


def _intraword(doc: Document, node: Node) -> bool:
    before = doc.source[node.start_byte - 1 : node.start_byte] if node.start_byte else b""
    after = doc.source[node.end_byte : node.end_byte + 1]
    return before.isalnum() or after.isalnum()


@dataclass(frozen=True)
class _MarkerStyleRule(RuleBase):
    """Shared logic for rules that pin the marker of an emphasis kind."""

    style: str = "consistent"

    _KIND = ""
    _MARKERS: ClassVar[dict[str, str]] = {}
    _NAMES: ClassVar[dict[str, str]] = {}

    def _mismatches(self, doc: Document) -> list[tuple[Node, str]]:
        found = []
        first = ""
        for node in doc.nodes(self._KIND):
            actual = node.marker or ""
            if doc.code_mask[doc.line_of(node) - 1] or actual not in self._NAMES:
                continue
            if self.style == "consistent":
                first = first or actual
                expected = first
            else:
                expected = self._MARKERS.get(self.style, "")
            if expected and actual != expected:
                found.append((node, expected))
        return found

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        for node, expected in self._mismatches(doc):
            line, column = doc.position(node.start_byte)
            message = f"{self.description} [Expected: {self._NAMES[expected]}; Actual: {self._NAMES[node.marker or '']}]"
            violations.append(self.violation(line, message, column))
        return violations

    def fix(self, source: str) -> str:
        doc = parse_source(source)
        edits = [
            (node, expected, len(expected))
            for node, expected in self._mismatches(doc)
            # underscores do not open emphasis inside a word
            if not (expected.startswith("_") and _intraword(doc, node))
        ]
        return _replace_markers(source, edits) if edits else source


@dataclass(frozen=True)
class EmphasisStyle(_MarkerStyleRule):
    """MD049: emphasis style (``asterisk`` or ``underscore``)."""

    id = "MD049"
    aliases = ("emphasis-style",)
    description = "Emphasis style"

    _KIND = "emphasis"
    _MARKERS = {"asterisk": "*", "underscore": "_"}
    _NAMES = {"*": "asterisk", "_": "underscore"}


@dataclass(frozen=True)
class StrongStyle(_MarkerStyleRule):
    """MD050: strong style (``asterisk`` or ``underscore``)."""

    id = "MD050"
    aliases = ("strong-style",)
    description = "Strong style"

    _KIND = "strong"
    _MARKERS = {"asterisk": "**", "underscore": "__"}
    _NAMES = {"**": "asterisk", "__": "underscore"}
