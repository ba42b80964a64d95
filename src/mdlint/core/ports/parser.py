from typing import Protocol

from mdlint.models import Node


class MarkdownParserPort(Protocol):
    def parse(self, source: bytes) -> Node: ...
