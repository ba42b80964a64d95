from collections.abc import Iterator
from typing import Literal

from pydantic import BaseModel, ConfigDict

Severity = Literal["error", "warning"]


class Violation(BaseModel):
    model_config = ConfigDict(frozen=True)

    rule: str
    line: int
    column: int
    message: str
    severity: Severity = "error"


class FileViolations(BaseModel):
    """Violations reported for one input, identified by path or ``stdin``."""

    file: str
    violations: list[Violation]


class Node(BaseModel):
    """A block or inline element of a parsed Markdown document.

    Spans are byte offsets into the document source. Only the attributes
    relevant to ``kind`` are set: ``level`` and ``text`` for headings,
    ``ordered`` and ``marker`` for lists and list items, ``destination`` for
    links and images (with ``style`` naming the link form), ``info`` for
    fenced code blocks.
    """

    kind: str
    start_byte: int
    end_byte: int
    level: int | None = None
    ordered: bool | None = None
    marker: str | None = None
    destination: str | None = None
    info: str | None = None
    style: str | None = None
    text: str | None = None
    children: list["Node"] = []

    def walk(self) -> Iterator["Node"]:
        yield self
        for child in self.children:
            yield from child.walk()


Node.model_rebuild()  # necessary for recursive types
