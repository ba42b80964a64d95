"""Code block and code span rules."""

import re
from dataclasses import dataclass, field

from mdlint.core.document import Document
from mdlint.core.text import (
    Fence,
    code_block_mask,
    iter_code_spans,
    iter_fences,
    line_ending,
    split_lines,
)
from mdlint.models import Violation
from mdlint.rules.base import RuleBase

_LIST_MARKER_RE = re.compile(r"^ *(?:[-*+]|\d+[.)]) ")


def _dollar_lines(lines: list[str], fence: Fence) -> list[int]:
    """Content lines of *fence* when every non-blank one starts with ``$``."""
    found = []
    for i in fence.content:
        content = lines[i].lstrip(" \t")
        if not content:
            continue
        if content != "$" and not content.startswith("$ "):
            return []
        found.append(i)
    return found


@dataclass(frozen=True)
class CommandsShowOutput(RuleBase):
    """MD014: dollar signs used before commands without showing output."""

    id = "MD014"
    aliases = ("commands-show-output",)
    description = "Dollar signs used before commands without showing output"

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        for fence in iter_fences(doc.lines):
            violations.extend(self.violation(i + 1, self.description) for i in _dollar_lines(doc.lines, fence))
        return violations

    def fix(self, source: str) -> str:
        lines = split_lines(source)
        for fence in iter_fences(lines):
            for i in _dollar_lines(lines, fence):
                line = lines[i]
                indent = line[: len(line) - len(line.lstrip(" \t"))]
                lines[i] = indent + line[len(indent) + 1 :].removeprefix(" ")
        return line_ending(source).join(lines)


def _inside_list_item(lines: list[str], index: int) -> bool:
    for k in range(index - 1, -1, -1):
        line = lines[k]
        if not line.strip():
            continue
        if _LIST_MARKER_RE.match(line):
            return True
        if not line.startswith((" ", "\t")):
            return False
    return False


@dataclass(frozen=True)
class BlanksAroundFences(RuleBase):
    """MD031: fenced code blocks should be surrounded by blank lines."""

    id = "MD031"
    aliases = ("blanks-around-fences",)
    description = "Fenced code blocks should be surrounded by blank lines"

    list_items: bool = True

    def _findings(self, lines: list[str]) -> tuple[list[int], list[int]]:
        """Line indices that need a blank line before and after them."""
        before, after = [], []
        for fence in iter_fences(lines):
            if not self.list_items and _inside_list_item(lines, fence.opener):
                continue
            if fence.opener > 0 and lines[fence.opener - 1].strip():
                before.append(fence.opener)
            closer = fence.closer
            if closer is not None and closer < len(lines) - 1 and lines[closer + 1].strip():
                after.append(closer)
        return before, after

    def check(self, doc: Document) -> list[Violation]:
        before, after = self._findings(doc.lines)
        return [self.violation(i + 1, self.description) for i in sorted(before + after)]

    def fix(self, source: str) -> str:
        lines = split_lines(source)
        before, after = self._findings(lines)
        positions = set(before) | {i + 1 for i in after}
        for index in sorted(positions, reverse=True):
            lines.insert(index, "")
        return line_ending(source).join(lines)


def _padded(content: str) -> bool:
    stripped = content.strip(" ")
    if not stripped or stripped == content:
        return False
    # one space on each side is how a span starting or ending with a backtick is written
    if content == f" {stripped} " and (stripped.startswith("`") or stripped.endswith("`")):
        return False
    return True


@dataclass(frozen=True)
class NoSpaceInCode(RuleBase):
    """MD038: spaces inside code span elements."""

    id = "MD038"
    aliases = ("no-space-in-code",)
    description = "Spaces inside code span elements"

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        for i, line in enumerate(doc.lines):
            if doc.code_mask[i] or "`" not in line:
                continue
            for start, content_start, content_end, _ in iter_code_spans(line):
                if _padded(line[content_start:content_end]):
                    violations.append(self.violation(i + 1, self.description, start + 1))
        return violations

    def fix(self, source: str) -> str:
        lines = split_lines(source)
        mask = code_block_mask(lines)
        for i, line in enumerate(lines):
            if mask[i] or "`" not in line:
                continue
            for _, content_start, content_end, _ in reversed(list(iter_code_spans(line))):
                content = line[content_start:content_end]
                if _padded(content):
                    line = line[:content_start] + content.strip(" ") + line[content_end:]
            lines[i] = line
        return line_ending(source).join(lines)


@dataclass(frozen=True)
class FencedCodeLanguage(RuleBase):
    """MD040: fenced code blocks should have a language specified."""

    id = "MD040"
    aliases = ("fenced-code-language",)
    description = "Fenced code blocks should have a language specified"

    allowed_languages: list[str] = field(default_factory=list)
    language_only: bool = False

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        for fence in iter_fences(doc.lines):
            line = fence.opener + 1
            if not fence.info:
                violations.append(self.violation(line, self.description))
                continue
            language = fence.info.split()[0]
            if self.allowed_languages and language not in self.allowed_languages:
                violations.append(self.violation(line, "Fenced code blocks should use an allowed language"))
            if self.language_only and language != fence.info:
                violations.append(self.violation(line, "Fenced code blocks should only contain a language identifier"))
        return violations


@dataclass(frozen=True)
class CodeBlockStyle(RuleBase):
    """MD046: code block style (``fenced`` or ``indented``)."""

    id = "MD046"
    aliases = ("code-block-style",)
    description = "Code block style"

    style: str = "consistent"

    def check(self, doc: Document) -> list[Violation]:
        violations = []
        first = ""
        for node in doc.nodes("fenced_code", "code_block"):
            actual = "fenced" if node.kind == "fenced_code" else "indented"
            expected = self.style
            if expected == "consistent":
                first = first or actual
                expected = first
            if actual != expected:
                violations.append(
                    self.violation(doc.line_of(node), f"{self.description} [Expected: {expected}; Actual: {actual}]")
                )
        return violations


_FENCE_NAMES = {"`": "backtick", "~": "tilde"}


@dataclass(frozen=True)
class CodeFenceStyle(RuleBase):
    """MD048: code fence style (``backtick`` or ``tilde``)."""

    id = "MD048"
    aliases = ("code-fence-style",)
    description = "Code fence style"

    style: str = "consistent"

    def _mismatches(self, lines: list[str]) -> list[tuple[Fence, str]]:
        found = []
        first = ""
        for fence in iter_fences(lines):
            if self.style == "consistent":
                first = first or fence.char
                expected = first
            else:
                expected = {"backtick": "`", "tilde": "~"}.get(self.style, "")
            if expected and fence.char != expected:
                found.append((fence, expected))
        return found

    def check(self, doc: Document) -> list[Violation]:
        return [
            self.violation(
                fence.opener + 1,
                f"{self.description} [Expected: {_FENCE_NAMES[expected]}; Actual: {_FENCE_NAMES[fence.char]}]",
            )
            for fence, expected in self._mismatches(doc.lines)
        ]

    def fix(self, source: str) -> str:
        lines = split_lines(source)
        for fence, expected in self._mismatches(lines):
            for index in (fence.opener, fence.closer):
                if index is None:
                    continue
                line = lines[index]
                indent = len(line) - len(line.lstrip(" "))
                run = len(line[indent:]) - len(line[indent:].lstrip(fence.char))
                lines[index] = line[:indent] + expected * run + line[indent + run :]
        return line_ending(source).join(lines)
