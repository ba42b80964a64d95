"""Rule protocols and typed option binding."""

from __future__ import annotations

import dataclasses
import functools
import logging
import re
import typing
from collections.abc import Mapping
from typing import Any, ClassVar, Protocol, TypeVar, runtime_checkable

from pydantic import TypeAdapter, ValidationError

from mdlint.core.document import Document
from mdlint.core.parser import TreeSitterMarkdownParser
from mdlint.core.text import split_lines
from mdlint.models import Violation

logger = logging.getLogger(__name__)

R = TypeVar("R")


@runtime_checkable
class Rule(Protocol):
    """Protocol for a single Markdown rule.

    ``check`` is a pure function of the document and the rule's bound
    options; it never mutates the document.
    """

    id: ClassVar[str]
    aliases: ClassVar[tuple[str, ...]]
    description: ClassVar[str]

    def check(self, doc: Document) -> list[Violation]: ...


@runtime_checkable
class FixableRule(Rule, Protocol):
    """A rule that can also rewrite a source to resolve its violations."""

    def fix(self, source: str) -> str: ...


class RuleBase:
    """Shared helpers for the built-in rules."""

    id: ClassVar[str] = ""
    aliases: ClassVar[tuple[str, ...]] = ()
    description: ClassVar[str] = ""

    def violation(self, line: int, message: str, column: int = 1) -> Violation:
        return Violation(rule=self.id, line=line, column=column, message=message)


def option_names(rule_cls: type) -> list[str]:
    """External option names accepted by *rule_cls*, in declaration order."""
    return [f.name for f in dataclasses.fields(rule_cls)] if dataclasses.is_dataclass(rule_cls) else []


def option_defaults(rule_cls: type) -> dict[str, Any]:
    if not dataclasses.is_dataclass(rule_cls):
        return {}
    defaults: dict[str, Any] = {}
    for f in dataclasses.fields(rule_cls):
        if f.default is not dataclasses.MISSING:
            defaults[f.name] = f.default
        elif f.default_factory is not dataclasses.MISSING:
            defaults[f.name] = f.default_factory()
    return defaults


@functools.cache
def _adapter(annotation: Any) -> TypeAdapter[Any]:
    return TypeAdapter(annotation)


def bind_rule(rule_cls: type[R], options: Mapping[str, Any] | None = None) -> R:
    """Instantiate *rule_cls* with the recognised values of *options*.

    Each option is validated strictly against the field's annotation.
    Unknown names and values of the wrong type are dropped so the field
    keeps its default.
    """
    if not options or not dataclasses.is_dataclass(rule_cls):
        return rule_cls()
    hints = typing.get_type_hints(rule_cls)
    values: dict[str, Any] = {}
    for f in dataclasses.fields(rule_cls):
        if f.name not in options:
            continue
        try:
            values[f.name] = _adapter(hints[f.name]).validate_python(options[f.name], strict=True)
        except ValidationError:
            logger.debug("%s: ignoring invalid value %r for %s", rule_cls.__name__, options[f.name], f.name)
    known = set(option_names(rule_cls))
    for name in options:
        if name not in known:
            logger.debug("%s: ignoring unknown option %s", rule_cls.__name__, name)
    return rule_cls(**values)


def compile_pattern(pattern: str, flags: int = 0) -> re.Pattern[str] | None:
    """Compile a user supplied pattern, returning ``None`` when it is invalid."""
    if not pattern:
        return None
    try:
        return re.compile(pattern, flags)
    except re.error:
        logger.debug("Ignoring invalid pattern %r", pattern)
        return None


def parse_source(source: str) -> Document:
    """Parse *source* for fixes that need the block structure."""
    data = source.encode("utf-8", errors="surrogateescape")
    return Document(source=data, lines=split_lines(source), tree=TreeSitterMarkdownParser().parse(data))
