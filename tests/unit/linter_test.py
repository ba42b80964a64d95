from mdlint.core.linter import Linter
from mdlint.rules import default_rules, resolve_rule_id
from mdlint.rules.headings import FirstLineHeading, NoMissingSpaceAtx
from mdlint.rules.whitespace import NoHardTabs, NoTrailingSpaces, SingleTrailingNewline

MESSY = "Intro   \n#Heading\n\ttabbed\n\n\n\n* item\n+ other\nend"


class TestLint:
    def test_first_line_heading_end_to_end(self) -> None:
        violations = Linter([FirstLineHeading()]).lint(b"Not a heading\n")
        assert len(violations) == 1
        violation = violations[0]
        assert violation.rule == "MD041"
        assert (violation.line, violation.column) == (1, 1)
        assert "top-level heading" in violation.message

    def test_violations_sorted_by_line_then_rule(self) -> None:
        violations = Linter(default_rules()).lint(MESSY.encode())
        keys = [(v.line, v.rule) for v in violations]
        assert keys == sorted(keys)
        assert len(violations) > 3

    def test_lint_is_deterministic(self) -> None:
        linter = Linter(default_rules())
        assert linter.lint(MESSY.encode()) == linter.lint(MESSY.encode())

    def test_rule_order_does_not_change_result(self) -> None:
        rules = [NoTrailingSpaces(), NoHardTabs(), FirstLineHeading()]
        forward = Linter(rules).lint(MESSY.encode())
        backward = Linter(list(reversed(rules))).lint(MESSY.encode())
        assert forward == backward

    def test_severity_is_stamped(self) -> None:
        linter = Linter([NoTrailingSpaces()], severities={"MD009": "warning"})
        violations = linter.lint(b"x   \n")
        assert [v.severity for v in violations] == ["warning"]

    def test_default_severity_is_error(self) -> None:
        violations = Linter([NoTrailingSpaces()]).lint(b"x   \n")
        assert [v.severity for v in violations] == ["error"]

    def test_empty_document(self) -> None:
        assert Linter(default_rules()).lint(b"") == []


class TestFix:
    def test_applies_fixable_rules(self) -> None:
        linter = Linter([NoMissingSpaceAtx(), SingleTrailingNewline()])
        assert linter.fix(b"#Title") == b"# Title\n"

    def test_front_matter_is_left_alone(self) -> None:
        linter = Linter([NoMissingSpaceAtx()])
        source = b"---\n#not: heading\n---\n#Title\n"
        assert linter.fix(source) == b"---\n#not: heading\n---\n# Title\n"

    def test_non_fixable_rules_are_skipped(self) -> None:
        linter = Linter([FirstLineHeading()])
        assert linter.fix(b"text\n") == b"text\n"

    def test_invalid_utf8_is_returned_unchanged(self) -> None:
        source = b"# Caf\xe9\n\nNo tabs here.\n"
        assert Linter([NoHardTabs()]).fix(source) == source

    def test_invalid_utf8_survives_a_rewrite(self) -> None:
        assert Linter([NoHardTabs()]).fix(b"# Caf\xe9\n\na\tb\n") == b"# Caf\xe9\n\na    b\n"


class TestRuleNames:
    def test_resolve_alias_any_case(self) -> None:
        assert resolve_rule_id("No-Trailing-Spaces") == "MD009"
        assert resolve_rule_id("md041") == "MD041"
        assert resolve_rule_id("first-line-h1") == "MD041"
        assert resolve_rule_id("unknown") is None

    def test_linter_resolves_names(self) -> None:
        linter = Linter([NoTrailingSpaces()])
        assert linter.resolve_rule_id("no-trailing-spaces") == "MD009"
        assert linter.resolve_rule_id("ul-style") == "MD004"

    def test_catalog_is_complete(self) -> None:
        ids = [rule.id for rule in default_rules()]
        assert len(ids) == 53
        assert ids == sorted(ids)
        assert len(set(ids)) == 53
