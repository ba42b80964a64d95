from collections.abc import Callable

from mdlint.models import Violation
from mdlint.rules.emphasis import EmphasisStyle, NoEmphasisAsHeading, NoSpaceInEmphasis, StrongStyle
from mdlint.rules.style import HrStyle, LineLength, NoInlineHtml, ProperNames

LintWith = Callable[..., list[Violation]]


class TestNoEmphasisAsHeading:
    def test_emphasized_paragraph(self, lint_with: LintWith) -> None:
        assert [v.line for v in lint_with("**Bold line**\n\nText\n", NoEmphasisAsHeading())] == [1]

    def test_trailing_punctuation_is_fine(self, lint_with: LintWith) -> None:
        assert lint_with("**Note:**\n\nText\n", NoEmphasisAsHeading()) == []

    def test_emphasis_inside_paragraph(self, lint_with: LintWith) -> None:
        assert lint_with("Some **bold** text\n", NoEmphasisAsHeading()) == []


class TestNoSpaceInEmphasis:
    def test_spaced_markers(self, lint_with: LintWith) -> None:
        violations = lint_with("Some * spaced * text\n", NoSpaceInEmphasis())
        assert [(v.line, v.column) for v in violations] == [(1, 6)]

    def test_list_marker_is_not_emphasis(self, lint_with: LintWith) -> None:
        assert lint_with("* item with *emphasis*\n", NoSpaceInEmphasis()) == []

    def test_fix(self) -> None:
        assert NoSpaceInEmphasis().fix("Some ** strong ** text\n") == "Some **strong** text\n"


class TestEmphasisStyles:
    def test_consistent_emphasis(self, lint_with: LintWith) -> None:
        violations = lint_with("*a* and _b_\n", EmphasisStyle())
        assert [(v.line, v.column) for v in violations] == [(1, 9)]
        assert "[Expected: asterisk; Actual: underscore]" in violations[0].message

    def test_emphasis_fix(self) -> None:
        assert EmphasisStyle(style="asterisk").fix("_a_ and _b_\n") == "*a* and *b*\n"

    def test_intraword_emphasis_keeps_asterisks(self) -> None:
        assert EmphasisStyle(style="underscore").fix("snake*case*word\n") == "snake*case*word\n"

    def test_consistent_strong(self, lint_with: LintWith) -> None:
        violations = lint_with("**a** and __b__\n", StrongStyle())
        assert [(v.line, v.column) for v in violations] == [(1, 11)]

    def test_strong_fix(self) -> None:
        assert StrongStyle(style="underscore").fix("**a**\n") == "__a__\n"


class TestLineLength:
    def test_long_line(self, lint_with: LintWith) -> None:
        violations = lint_with("short\nthis line is too long\n", LineLength(line_length=10))
        assert [(v.line, v.column) for v in violations] == [(2, 11)]
        assert violations[0].message.endswith("[Expected: 10; Actual: 21]")

    def test_long_word_is_allowed_unless_strict(self, lint_with: LintWith) -> None:
        source = "a " + "x" * 20 + "\n"
        assert lint_with(source, LineLength(line_length=10)) == []
        assert len(lint_with(source, LineLength(line_length=10, strict=True))) == 1

    def test_heading_limit(self, lint_with: LintWith) -> None:
        source = "# A heading of some length\n"
        assert len(lint_with(source, LineLength(line_length=10))) == 1
        assert lint_with(source, LineLength(line_length=10, heading_line_length=40)) == []
        assert lint_with(source, LineLength(line_length=10, headings=False)) == []

    def test_code_blocks_option(self, lint_with: LintWith) -> None:
        source = "```\nsome code that is long\n```\n"
        assert len(lint_with(source, LineLength(line_length=10))) == 1
        assert lint_with(source, LineLength(line_length=10, code_blocks=False)) == []


class TestNoInlineHtml:
    def test_inline_element(self, lint_with: LintWith) -> None:
        violations = lint_with("Text <b>bold</b>\n", NoInlineHtml())
        assert [(v.line, v.column) for v in violations] == [(1, 6)]
        assert violations[0].message.endswith("[Element: b]")

    def test_allowed_elements(self, lint_with: LintWith) -> None:
        assert lint_with("Text <B>bold</B>\n", NoInlineHtml(allowed_elements=["b"])) == []

    def test_comments_are_not_html(self, lint_with: LintWith) -> None:
        assert lint_with("<!-- note -->\n", NoInlineHtml()) == []


class TestHrStyle:
    def test_consistent(self, lint_with: LintWith) -> None:
        violations = lint_with("Text\n\n---\n\n***\n", HrStyle())
        assert [v.line for v in violations] == [5]
        assert "[Expected: ---; Actual: ***]" in violations[0].message

    def test_setext_underline_is_not_a_rule(self, lint_with: LintWith) -> None:
        assert lint_with("Title\n---\n\n***\n", HrStyle()) == []


class TestProperNames:
    RULE = ProperNames(names=["JavaScript", "GitHub Actions", "GitHub"])

    def test_wrong_capitalization(self, lint_with: LintWith) -> None:
        violations = lint_with("I like javascript.\n", self.RULE)
        assert [(v.line, v.column) for v in violations] == [(1, 8)]
        assert violations[0].message.endswith("[Expected: JavaScript; Actual: javascript]")

    def test_urls_are_ignored(self, lint_with: LintWith) -> None:
        assert lint_with("See https://javascript.info and [site](https://github.com)\n", self.RULE) == []

    def test_longest_name_wins(self, lint_with: LintWith) -> None:
        violations = lint_with("Use github actions\n", self.RULE)
        assert [v.message.split("Expected: ")[1] for v in violations] == ["GitHub Actions; Actual: github actions]"]

    def test_code_blocks_option(self, lint_with: LintWith) -> None:
        rule = ProperNames(names=["JavaScript"], code_blocks=False)
        assert lint_with("`javascript`\n\n```\njavascript\n```\n", rule) == []

    def test_fix(self) -> None:
        assert self.RULE.fix("javascript on github\n") == "JavaScript on GitHub\n"
