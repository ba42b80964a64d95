from collections.abc import Iterator
from dataclasses import dataclass, field
from functools import cached_property

from mdlint.core.text import code_block_mask, count_line, fenced_code_block_mask
from mdlint.models import Node


@dataclass(frozen=True)
class Document:
    """Immutable view of one Markdown source handed to every rule.

    ``source`` is the text actually parsed, with any front matter already
    reduced to its line breaks, so ``lines`` and node spans agree.
    """

    source: bytes
    lines: list[str]
    tree: Node
    front_matter: dict[str, str] = field(default_factory=dict)

    @cached_property
    def fence_mask(self) -> list[bool]:
        return fenced_code_block_mask(self.lines)

    @cached_property
    def code_mask(self) -> list[bool]:
        return code_block_mask(self.lines)

    def nodes(self, *kinds: str) -> Iterator[Node]:
        """Yield tree nodes of the given kinds in document order."""
        for node in self.tree.walk():
            if node.kind in kinds:
                yield node

    def walk_with_ancestors(
        self, node: Node | None = None, ancestors: tuple[Node, ...] = ()
    ) -> Iterator[tuple[Node, tuple[Node, ...]]]:
        """Yield every node together with the chain of its enclosing nodes."""
        node = node or self.tree
        yield node, ancestors
        for child in node.children:
            yield from self.walk_with_ancestors(child, (*ancestors, node))

    def line_of(self, node: Node) -> int:
        return count_line(self.source, node.start_byte)

    def last_line_of(self, node: Node) -> int:
        """Line of the last non-blank character inside *node*."""
        content = self.source[node.start_byte : node.end_byte].rstrip()
        return count_line(self.source, node.start_byte + max(len(content) - 1, 0))

    def position(self, offset: int) -> tuple[int, int]:
        """Return the 1-based ``(line, column)`` of a byte offset."""
        line_start = self.source.rfind(b"\n", 0, offset) + 1
        column = len(self.source[line_start:offset].decode("utf-8", errors="replace")) + 1
        return count_line(self.source, offset), column

    def slice(self, node: Node) -> str:
        return self.source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")
