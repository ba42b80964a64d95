import logging
from collections.abc import Mapping, Sequence

from mdlint.core.document import Document
from mdlint.core.frontmatter import blank_front_matter, front_matter_end, parse_front_matter
from mdlint.core.inline_config import parse_inline_config
from mdlint.core.parser import TreeSitterMarkdownParser
from mdlint.core.ports.parser import MarkdownParserPort
from mdlint.core.text import split_lines
from mdlint.models import Severity, Violation
from mdlint.rules import resolve_rule_id
from mdlint.rules.base import FixableRule, Rule

logger = logging.getLogger(__name__)


class Linter:
    """Runs a fixed, ordered set of bound rules over Markdown sources.

    A linter holds no per-document state, so one instance may lint many
    files, including from several threads at once.
    """

    def __init__(
        self,
        rules: Sequence[Rule],
        *,
        severities: Mapping[str, Severity] | None = None,
        no_inline_config: bool = False,
        front_matter: str | None = None,
        parser: MarkdownParserPort | None = None,
    ) -> None:
        self._rules = tuple(rules)
        self._severities = dict(severities or {})
        self._no_inline_config = no_inline_config
        self._front_matter = front_matter
        self._parser = parser or TreeSitterMarkdownParser()

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    def resolve_rule_id(self, name: str) -> str:
        """Map a rule id or alias, in any case, to its canonical id."""
        lowered = name.lower()
        for rule in self._rules:
            if rule.id.lower() == lowered or lowered in (alias.lower() for alias in rule.aliases):
                return rule.id
        return resolve_rule_id(name) or name.upper()

    def document(self, source: bytes) -> Document:
        text = source.decode("utf-8", errors="replace")
        end = front_matter_end(text, self._front_matter)
        fields = parse_front_matter(text[:end]) if end else {}
        body = blank_front_matter(text, end) if end else text
        data = body.encode("utf-8")
        return Document(source=data, lines=split_lines(body), tree=self._parser.parse(data), front_matter=fields)

    def lint(self, source: bytes) -> list[Violation]:
        """Check *source* with every rule and return violations by line, then rule id."""
        doc = self.document(source)
        inline = None
        if not self._no_inline_config:
            inline = parse_inline_config(doc.lines, doc.code_mask, self.resolve_rule_id)

        violations: list[Violation] = []
        for rule in self._rules:
            if inline is not None and inline.is_file_disabled(rule.id):
                continue
            severity = self._severities.get(rule.id, "error")
            for violation in rule.check(doc):
                if inline is not None and inline.is_suppressed(rule.id, violation.line):
                    continue
                if violation.severity != severity:
                    violation = violation.model_copy(update={"severity": severity})
                violations.append(violation)
        violations.sort(key=lambda v: (v.line, v.rule))
        return violations

    def fix(self, source: bytes) -> bytes:
        """Apply every fixable rule in order; front matter is left untouched.

        Undecodable bytes survive the round trip, and *source* is returned
        as is when no rule changes anything.
        """
        text = source.decode("utf-8", errors="surrogateescape")
        end = front_matter_end(text, self._front_matter)
        head, body = text[:end], text[end:]
        changed = False
        for rule in self._rules:
            if isinstance(rule, FixableRule):
                fixed = rule.fix(body)
                if fixed != body:
                    logger.debug("%s rewrote the document", rule.id)
                    changed = True
                body = fixed
        if not changed:
            return source
        return (head + body).encode("utf-8", errors="surrogateescape")
