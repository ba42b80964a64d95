"""Tree-sitter backed Markdown parser producing :class:`mdlint.models.Node` trees.

The block grammar (``markdown``) yields the document structure; every
``inline`` span and table cell is then parsed again with the
``markdown_inline`` grammar and its nodes are shifted back to document byte
offsets.
"""

import re
from typing import cast

from tree_sitter import Node as TSNode
from tree_sitter import Parser
from tree_sitter_language_pack import SupportedLanguage, get_parser

from mdlint.models import Node

_CLOSING_HASHES_RE = re.compile(r"\s+#+\s*$")

_BLOCK_KINDS = {
    "document": "document",
    "paragraph": "paragraph",
    "list": "list",
    "list_item": "list_item",
    "fenced_code_block": "fenced_code",
    "indented_code_block": "code_block",
    "html_block": "html_block",
    "block_quote": "blockquote",
    "thematic_break": "thematic_break",
    "pipe_table": "table",
    "link_reference_definition": "link_reference_definition",
}

_REFERENCE_STYLES = {
    "full_reference_link": "full",
    "collapsed_reference_link": "collapsed",
    "shortcut_link": "shortcut",
}


def _parser(language: str) -> Parser:
    return get_parser(cast(SupportedLanguage, language))


def _text(source: bytes, node: TSNode | None) -> str:
    if node is None:
        return ""
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def _child(node: TSNode, *types: str) -> TSNode | None:
    for child in node.children:
        if child.type in types:
            return child
    return None


class TreeSitterMarkdownParser:
    """Implements the ``MarkdownParserPort`` protocol.

    A fresh tree-sitter parser is created per call so one instance can be
    shared by concurrent lint workers.
    """

    def parse(self, source: bytes) -> Node:
        block_tree = _parser("markdown").parse(source)
        converter = _Converter(source, _parser("markdown_inline"))
        return converter.block(block_tree.root_node)[0]


class _Converter:
    def __init__(self, source: bytes, inline_parser: Parser) -> None:
        self._source = source
        self._inline_parser = inline_parser

    def block(self, node: TSNode) -> list[Node]:
        kind = node.type
        if kind == "atx_heading":
            return [self._atx_heading(node)]
        if kind == "setext_heading":
            return [self._setext_heading(node)]
        if kind in ("inline", "pipe_table_cell"):
            return self.inline(node)
        if kind not in _BLOCK_KINDS:
            # sections, table rows and other wrappers are flattened
            return self._children(node)

        result = Node(kind=_BLOCK_KINDS[kind], start_byte=node.start_byte, end_byte=node.end_byte)
        if kind == "list":
            first_item = _child(node, "list_item")
            marker = self._marker(first_item) if first_item is not None else ""
            result.ordered = marker[-1:] in (".", ")")
            result.marker = marker[-1:]
        elif kind == "list_item":
            marker = self._marker(node)
            result.ordered = marker[-1:] in (".", ")")
            result.marker = marker
        elif kind == "fenced_code_block":
            result.info = _text(self._source, _child(node, "info_string")).strip()
        elif kind == "link_reference_definition":
            result.text = _text(self._source, _child(node, "link_label")).strip("[]")
            result.destination = _text(self._source, _child(node, "link_destination")).strip("<>")
        result.children = self._children(node)
        return [result]

    def _children(self, node: TSNode) -> list[Node]:
        children: list[Node] = []
        for child in node.children:
            children.extend(self.block(child))
        return children

    def _marker(self, item: TSNode) -> str:
        for child in item.children:
            if child.type.startswith("list_marker"):
                return _text(self._source, child).strip()
        return ""

    def _atx_heading(self, node: TSNode) -> Node:
        level = 1
        for child in node.children:
            if child.type.startswith("atx_h") and child.type.endswith("_marker"):
                level = int(child.type[len("atx_h")])
        content = _child(node, "inline")
        text = _CLOSING_HASHES_RE.sub("", " " + _text(self._source, content)).strip()
        heading = Node(
            kind="heading",
            start_byte=node.start_byte,
            end_byte=node.end_byte,
            level=level,
            marker="#",
            text=text,
        )
        if content is not None:
            heading.children = self.inline(content)
        return heading

    def _setext_heading(self, node: TSNode) -> Node:
        underline = _child(node, "setext_h1_underline", "setext_h2_underline")
        level = 2 if underline is not None and underline.type == "setext_h2_underline" else 1
        paragraph = _child(node, "paragraph")
        heading = Node(
            kind="heading",
            start_byte=node.start_byte,
            end_byte=node.end_byte,
            level=level,
            marker="=" if level == 1 else "-",
            text=" ".join(_text(self._source, paragraph).split()),
        )
        if paragraph is not None:
            heading.children = self._children(paragraph)
        return heading

    def inline(self, node: TSNode) -> list[Node]:
        offset = node.start_byte
        segment = self._source[node.start_byte : node.end_byte]
        tree = self._inline_parser.parse(segment)
        return self._inline_children(tree.root_node, segment, offset)

    def _inline_children(self, node: TSNode, segment: bytes, offset: int) -> list[Node]:
        children: list[Node] = []
        for child in node.children:
            children.extend(self._inline(child, segment, offset))
        return children

    def _inline(self, node: TSNode, segment: bytes, offset: int) -> list[Node]:
        kind = node.type
        start, end = node.start_byte + offset, node.end_byte + offset
        raw = _text(segment, node)
        if kind == "inline_link":
            return [
                Node(
                    kind="link",
                    start_byte=start,
                    end_byte=end,
                    style="inline",
                    text=_text(segment, _child(node, "link_text")),
                    destination=_text(segment, _child(node, "link_destination")).strip("<>"),
                    children=self._inline_children(node, segment, offset),
                )
            ]
        if kind in _REFERENCE_STYLES:
            link_text = _text(segment, _child(node, "link_text"))
            label = _text(segment, _child(node, "link_label")).strip("[]") or link_text
            return [
                Node(
                    kind="link",
                    start_byte=start,
                    end_byte=end,
                    style=_REFERENCE_STYLES[kind],
                    text=link_text,
                    info=label,
                )
            ]
        if kind == "image":
            destination = _child(node, "link_destination")
            label = _child(node, "link_label")
            return [
                Node(
                    kind="image",
                    start_byte=start,
                    end_byte=end,
                    style="inline" if destination is not None else ("full" if label is not None else "shortcut"),
                    text=_text(segment, _child(node, "image_description")),
                    destination=_text(segment, destination).strip("<>") if destination is not None else None,
                    info=_text(segment, label).strip("[]") if label is not None else None,
                )
            ]
        if kind in ("uri_autolink", "email_autolink"):
            return [
                Node(
                    kind="autolink",
                    start_byte=start,
                    end_byte=end,
                    style="autolink",
                    destination=raw.strip("<>"),
                    text=raw.strip("<>"),
                )
            ]
        if kind == "html_tag":
            return [Node(kind="html_inline", start_byte=start, end_byte=end, text=raw)]
        if kind == "code_span":
            return [Node(kind="code_span", start_byte=start, end_byte=end, text=raw)]
        if kind in ("emphasis", "strong_emphasis"):
            return [
                Node(
                    kind="emphasis" if kind == "emphasis" else "strong",
                    start_byte=start,
                    end_byte=end,
                    marker=raw[:1] if kind == "emphasis" else raw[:2],
                    children=self._inline_children(node, segment, offset),
                )
            ]
        return self._inline_children(node, segment, offset)
