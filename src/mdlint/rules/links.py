"""Link, image and reference rules."""

import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from urllib.parse import unquote

from mdlint.core.document import Document
from mdlint.core.text import (
    blank_code_spans,
    code_block_mask,
    heading_anchor,
    line_ending,
    split_lines,
)
from mdlint.models import Node, Violation
from mdlint.rules.base import RuleBase, compile_pattern

_REVERSED_LINK_RE = re.compile(r"\(([^)\n]+)\)\[([^\]\n^][^\]\n]*)\]")
_BARE_URL_RE = re.compile(r"https?://[^\s<>()\[\]{}'\"]+")
_ANGLE_RE = re.compile(r"<[^<>\n]*>")
_INLINE_LINK_RE = re.compile(r"!?\[[^\]\n]*\]\([^)\n]*\)")
_LINK_TEXT_SPACES_RE = re.compile(r"(?<!!)\[(\s[^\]\n]*|[^\]\n]*\s)\]\(")
_FRAGMENT_RE = re.compile(r"\[([^\]]*)\]\(#([^)\s]*)\)")
_HTML_ANCHOR_RE = re.compile(r"""\b(?:id|name)\s*=\s*["']([^"']+)["']""", re.IGNORECASE)
_LINE_FRAGMENT_RE = re.compile(r"^L\d+(?:C\d+)?(?:-L\d+(?:C\d+)?)?$")

_DEFINITION_RE = re.compile(r"^ {0,3}\[([^\]]+)\]:\s*\S")
_FULL_REFERENCE_RE = re.compile(r"!?\[[^\]\n]*\]\[([^\]\n]+)\]")
_COLLAPSED_REFERENCE_RE = re.compile(r"!?\[([^\]\n]+)\]\[\]")
_SHORTCUT_REFERENCE_RE = re.compile(r"!?\[([^\]\n]+)\](?![(\[{:])")


def _normalize_label(label: str) -> str:
    return " ".join(label.split()).casefold()


def _scan_lines(lines: list[str]) -> Iterator[tuple[int, str]]:
    """Yield ``(index, line)`` for prose lines with code spans blanked out."""
    mask = code_block_mask(lines)
    for i, line in enumerate(lines):
        if not mask[i]:
            yield i, blank_code_spans(line)


def _blank(line: str, match: re.Match[str]) -> str:
    return line[: match.start()] + " " * (match.end() - match.start()) + line[match.end() :]


def _outside_code(blanked: str, match: re.Match[str]) -> bool:
    return blanked[match.start() : match.end()] == match.group(0)


@dataclass(frozen=True)
class _Definition:
    index: int
    label: str


@dataclass(frozen=True)
class _Reference:
    index: int
    column: int
    label: str
    shortcut: bool


def _definitions(lines: list[str]) -> list[_Definition]:
    return [
        _Definition(i, match.group(1))
        for i, line in _scan_lines(lines)
        if (match := _DEFINITION_RE.match(line)) is not None
    ]


def _references(lines: list[str]) -> list[_Reference]:
    """Every full, collapsed and shortcut reference outside code and definitions."""
    found = []
    for i, line in _scan_lines(lines):
        if _DEFINITION_RE.match(line):
            continue
        for match in _INLINE_LINK_RE.finditer(line):
            line = _blank(line, match)
        for pattern in (_FULL_REFERENCE_RE, _COLLAPSED_REFERENCE_RE):
            for match in pattern.finditer(line):
                found.append(_Reference(i, match.start() + 1, match.group(1), shortcut=False))
                line = _blank(line, match)
        for match in _SHORTCUT_REFERENCE_RE.finditer(line):
            found.append(_Reference(i, match.start() + 1, match.group(1), shortcut=True))
    return sorted(found, key=lambda r: (r.index, r.column))


@dataclass(frozen=True)
class NoReversedLinks(RuleBase):
    """MD011: reversed link syntax ``(text)[url]``."""

    id = "MD011"
    aliases = ("no-reversed-links",)
    description = "Reversed link syntax"

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        for i, line in _scan_lines(doc.lines):
            for match in _REVERSED_LINK_RE.finditer(line):
                violations.append(self.violation(i + 1, f"{self.description} [{match.group(0)}]", match.start() + 1))
        return violations

    def fix(self, source: str) -> str:
        lines = split_lines(source)
        for i, blanked in _scan_lines(lines):
            lines[i] = _REVERSED_LINK_RE.sub(
                lambda m, b=blanked: f"[{m.group(1)}]({m.group(2)})" if _outside_code(b, m) else m.group(0),
                lines[i],
            )
        return line_ending(source).join(lines)


@dataclass(frozen=True)
class NoBareUrls(RuleBase):
    """MD034: bare URL used."""

    id = "MD034"
    aliases = ("no-bare-urls",)
    description = "Bare URL used"

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        for i, line in _scan_lines(doc.lines):
            if _DEFINITION_RE.match(line) or "://" not in line:
                continue
            for pattern in (_ANGLE_RE, _INLINE_LINK_RE):
                for match in pattern.finditer(line):
                    line = _blank(line, match)
            for match in _BARE_URL_RE.finditer(line):
                url = match.group(0).rstrip(".,;:!?")
                violations.append(self.violation(i + 1, f"{self.description} [Context: {url}]", match.start() + 1))
        return violations


@dataclass(frozen=True)
class NoSpaceInLinks(RuleBase):
    """MD039: spaces inside link text."""

    id = "MD039"
    aliases = ("no-space-in-links",)
    description = "Spaces inside link text"

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        for i, line in _scan_lines(doc.lines):
            for match in _LINK_TEXT_SPACES_RE.finditer(line):
                if match.group(1).strip():
                    violations.append(self.violation(i + 1, self.description, match.start() + 1))
        return violations

    def fix(self, source: str) -> str:
        lines = split_lines(source)

        def trim(match: re.Match[str], blanked: str) -> str:
            if not match.group(1).strip() or not _outside_code(blanked, match):
                return match.group(0)
            return f"[{match.group(1).strip()}]("

        for i, blanked in _scan_lines(lines):
            lines[i] = _LINK_TEXT_SPACES_RE.sub(lambda m, b=blanked: trim(m, b), lines[i])
        return line_ending(source).join(lines)


@dataclass(frozen=True)
class NoEmptyLinks(RuleBase):
    """MD042: no empty links."""

    id = "MD042"
    aliases = ("no-empty-links",)
    description = "No empty links"

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        for node in doc.nodes("link"):
            if node.style != "inline":
                continue
            destination = (node.destination or "").strip()
            if destination in ("", "#") or not (node.text or "").strip():
                line, column = doc.position(node.start_byte)
                violations.append(self.violation(line, self.description, column))
        return violations


@dataclass(frozen=True)
class NoAltText(RuleBase):
    """MD045: images should have alternate text."""

    id = "MD045"
    aliases = ("no-alt-text",)
    description = "Images should have alternate text (alt text)"

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        for node in doc.nodes("image"):
            if not (node.text or "").strip():
                line, column = doc.position(node.start_byte)
                violations.append(self.violation(line, self.description, column))
        return violations


def _document_anchors(doc: Document) -> set[str]:
    """Fragments that resolve inside *doc*: heading slugs and HTML ids."""
    anchors: set[str] = set()
    seen: dict[str, int] = {}
    for heading in doc.nodes("heading"):
        slug = heading_anchor(heading.text or "")
        count = seen.get(slug, 0)
        seen[slug] = count + 1
        anchors.add(slug if count == 0 else f"{slug}-{count}")
    for i, line in enumerate(doc.lines):
        if not doc.code_mask[i] and "<" in line:
            anchors.update(_HTML_ANCHOR_RE.findall(line))
    return anchors


@dataclass(frozen=True)
class LinkFragments(RuleBase):
    """MD051: link fragments should be valid.

    A ``#fragment`` must match a heading in the same document (with GitHub's
    ``-1``, ``-2`` suffixes for repeated headings) or an HTML ``id`` or
    ``name`` attribute. ``#top`` and GitHub line anchors are always valid.
    """

    id = "MD051"
    aliases = ("link-fragments",)
    description = "Link fragments should be valid"

    ignore_case: bool = False
    ignored_pattern: str = ""

    def check(self, doc: Document) -> list[Violation]:
        anchors = _document_anchors(doc)
        if self.ignore_case:
            anchors = {anchor.lower() for anchor in anchors}
        ignored = compile_pattern(self.ignored_pattern)
        violations = []
        for i, line in _scan_lines(doc.lines):
            for match in _FRAGMENT_RE.finditer(line):
                fragment = unquote(match.group(2))
                if not fragment or fragment == "top" or _LINE_FRAGMENT_RE.match(fragment):
                    continue
                if ignored is not None and ignored.search(fragment):
                    continue
                if (fragment.lower() if self.ignore_case else fragment) in anchors:
                    continue
                violations.append(
                    self.violation(i + 1, f"{self.description} [Fragment: #{match.group(2)}]", match.start() + 1)
                )
        return violations


@dataclass(frozen=True)
class ReferenceLinksImages(RuleBase):
    """MD052: reference links and images should use a label that is defined.

    An empty ``ignored_labels`` falls back to ``["x"]`` so task list
    checkboxes stay ignored.
    """

    id = "MD052"
    aliases = ("reference-links-images",)
    description = "Reference links and images should use a label that is defined"

    shortcut_syntax: bool = False
    ignored_labels: list[str] = field(default_factory=lambda: ["x"])

    def check(self, doc: Document) -> list[Violation]:
        defined = {_normalize_label(d.label) for d in _definitions(doc.lines)}
        ignored = {_normalize_label(label) for label in self.ignored_labels or ["x"]}
        violations = []
        for reference in _references(doc.lines):
            if reference.shortcut and not self.shortcut_syntax:
                continue
            label = _normalize_label(reference.label)
            if label in defined or label in ignored:
                continue
            violations.append(
                self.violation(
                    reference.index + 1, f"{self.description} [Label: {reference.label}]", reference.column
                )
            )
        return violations


@dataclass(frozen=True)
class LinkImageReferenceDefinitions(RuleBase):
    """MD053: link and image reference definitions should be needed.

    Reports definitions no reference uses, and repeats of a label already
    defined earlier. The fix removes both.
    """

    id = "MD053"
    aliases = ("link-image-reference-definitions",)
    description = "Link and image reference definitions should be needed"

    ignored_definitions: list[str] = field(default_factory=lambda: ["//"])

    def _unneeded(self, lines: list[str]) -> list[tuple[_Definition, str]]:
        used = {_normalize_label(r.label) for r in _references(lines)}
        ignored = {_normalize_label(label) for label in self.ignored_definitions}
        found = []
        seen: set[str] = set()
        for definition in _definitions(lines):
            label = _normalize_label(definition.label)
            if label in ignored:
                continue
            if label in seen:
                found.append((definition, "Duplicate link or image reference definition"))
            elif label not in used:
                found.append((definition, self.description))
            seen.add(label)
        return found

    def check(self, doc: Document) -> list[Violation]:
        return [
            self.violation(definition.index + 1, f"{message} [Label: {definition.label}]")
            for definition, message in self._unneeded(doc.lines)
        ]

    def fix(self, source: str) -> str:
        lines = split_lines(source)
        for definition, _ in reversed(self._unneeded(lines)):
            del lines[definition.index]
        return line_ending(source).join(lines)


_STYLE_NAMES = {
    "autolink": "Autolink",
    "inline": "Inline link",
    "full": "Full reference",
    "collapsed": "Collapsed reference",
    "shortcut": "Shortcut reference",
}


@dataclass(frozen=True)
class LinkImageStyle(RuleBase):
    """MD054: link and image style.

    Each option allows or prohibits one way of writing a link. ``url_inline``
    covers inline links whose text is their own destination, which could be
    written as autolinks. Reference styles only count when the label is
    defined, since an undefined ``[label]`` is plain text.
    """

    id = "MD054"
    aliases = ("link-image-style",)
    description = "Link and image style"

    autolink: bool = True
    inline: bool = True
    full: bool = True
    collapsed: bool = True
    shortcut: bool = True
    url_inline: bool = True

    def _allowed(self, style: str) -> bool:
        return bool(getattr(self, style, True))

    def _is_defined(self, node: Node, defined: set[str]) -> bool:
        return _normalize_label(node.info or node.text or "") in defined

    def check(self, doc: Document) -> list[Violation]:
        defined = {_normalize_label(d.label) for d in _definitions(doc.lines)}
        defined.update(_normalize_label(n.text or "") for n in doc.nodes("link_reference_definition"))
        violations = []
        for node in doc.nodes("link", "image", "autolink"):
            style = node.style or ""
            if style not in _STYLE_NAMES:
                continue
            if style in ("full", "collapsed", "shortcut") and not self._is_defined(node, defined):
                continue
            if doc.code_mask[doc.line_of(node) - 1]:
                continue
            line, column = doc.position(node.start_byte)
            raw = doc.slice(node)
            if not self._allowed(style):
                suffix = "" if style == "shortcut" else f": {raw}"
                violations.append(
                    self.violation(line, f"{self.description} [{_STYLE_NAMES[style]} not allowed{suffix}]", column)
                )
            elif (
                style == "inline"
                and node.kind == "link"
                and not self.url_inline
                and node.text
                and node.text == node.destination
            ):
                violations.append(self.violation(line, f"{self.description} [URL inline not allowed: {raw}]", column))
        return violations


@dataclass(frozen=True)
class DescriptiveLinkText(RuleBase):
    """MD059: link text should be descriptive."""

    id = "MD059"
    aliases = ("descriptive-link-text",)
    description = "Link text should be descriptive"

    prohibited_texts: list[str] = field(default_factory=lambda: ["click here", "here", "link", "more"])

    def check(self, doc: Document) -> list[Violation]:
        prohibited = {_normalize_text(text) for text in self.prohibited_texts}
        violations = []
        for node in doc.nodes("link"):
            text = (node.text or "").strip()
            if text and _normalize_text(text) in prohibited:
                line, column = doc.position(node.start_byte)
                violations.append(self.violation(line, f"{self.description} [Text: {text}]", column))
        return violations


def _normalize_text(text: str) -> str:
    return " ".join(re.sub(r"[^\w\s]", " ", text).split()).lower()
