from collections.abc import Callable

from mdlint.models import Violation
from mdlint.rules.headings import (
    BlanksAroundHeadings,
    FirstLineHeading,
    HeadingIncrement,
    HeadingStartLeft,
    HeadingStyle,
    NoDuplicateHeading,
    NoMissingSpaceAtx,
    NoMissingSpaceClosedAtx,
    NoMultipleSpaceAtx,
    NoMultipleSpaceClosedAtx,
    NoTrailingPunctuation,
    RequiredHeadings,
    SingleTitle,
)

LintWith = Callable[..., list[Violation]]


class TestHeadingIncrement:
    def test_skipped_level(self, lint_with: LintWith) -> None:
        violations = lint_with("# A\n\n### C\n", HeadingIncrement())
        assert [v.line for v in violations] == [3]
        assert violations[0].message.endswith("[Expected: h2; Actual: h3]")

    def test_decrease_is_fine(self, lint_with: LintWith) -> None:
        assert lint_with("# A\n\n## B\n\n### C\n\n## D\n", HeadingIncrement()) == []


class TestHeadingStyle:
    def test_consistent_follows_first_heading(self, lint_with: LintWith) -> None:
        violations = lint_with("# A\n\nB\n-\n", HeadingStyle())
        assert [v.line for v in violations] == [3]
        assert "[Expected: atx; Actual: setext]" in violations[0].message

    def test_closed_atx(self, lint_with: LintWith) -> None:
        assert lint_with("# A #\n\n## B ##\n", HeadingStyle(style="atx_closed")) == []


class TestAtxSpacing:
    def test_missing_space(self, lint_with: LintWith) -> None:
        assert [v.line for v in lint_with("#Title\n\n#!shebang-ish\n", NoMissingSpaceAtx())] == [1, 3]

    def test_missing_space_fix(self) -> None:
        assert NoMissingSpaceAtx().fix("#Title\n") == "# Title\n"

    def test_hashes_in_code_are_ignored(self, lint_with: LintWith) -> None:
        assert lint_with("```\n#include <x>\n```\n", NoMissingSpaceAtx()) == []

    def test_multiple_spaces_fix(self) -> None:
        assert NoMultipleSpaceAtx().fix("##   Title\n") == "## Title\n"


class TestClosedAtxSpacing:
    def test_missing_space_inside_closing_hashes(self, lint_with: LintWith) -> None:
        violations = lint_with("# Closed#\n", NoMissingSpaceClosedAtx())
        assert [v.line for v in violations] == [1]
        assert violations[0].message == NoMissingSpaceClosedAtx.description

    def test_missing_space_fix(self) -> None:
        assert NoMissingSpaceClosedAtx().fix("#Closed#\n") == "# Closed #\n"

    def test_spaced_closed_heading_is_fine(self, lint_with: LintWith) -> None:
        assert lint_with("# Fine #\n", NoMissingSpaceClosedAtx(), NoMultipleSpaceClosedAtx()) == []

    def test_escaped_closing_hash_is_text(self, lint_with: LintWith) -> None:
        assert lint_with("# Escaped\\#\n", NoMissingSpaceClosedAtx()) == []

    def test_multiple_spaces(self, lint_with: LintWith) -> None:
        assert [v.line for v in lint_with("#  Two  #\n", NoMultipleSpaceClosedAtx())] == [1]
        assert lint_with("#  Two  #\n", NoMissingSpaceClosedAtx()) == []

    def test_multiple_spaces_fix(self) -> None:
        assert NoMultipleSpaceClosedAtx().fix("#  Two  #\n") == "# Two #\n"

    def test_closed_headings_in_code_are_ignored(self, lint_with: LintWith) -> None:
        source = "```\n#x#\n#  y  #\n```\n"
        assert lint_with(source, NoMissingSpaceClosedAtx(), NoMultipleSpaceClosedAtx()) == []


class TestBlanksAroundHeadings:
    def test_text_directly_below(self, lint_with: LintWith) -> None:
        violations = lint_with("# A\nText\n", BlanksAroundHeadings())
        assert [v.line for v in violations] == [1]
        assert "Below" in violations[0].message

    def test_text_directly_above(self, lint_with: LintWith) -> None:
        violations = lint_with("Text\n\n## B\nMore\n", BlanksAroundHeadings())
        assert [v.line for v in violations] == [3]


class TestHeadingStartLeft:
    def test_indented_heading(self, lint_with: LintWith) -> None:
        assert [v.line for v in lint_with("  # A\n", HeadingStartLeft())] == [1]

    def test_fix(self) -> None:
        assert HeadingStartLeft().fix("  # A\n") == "# A\n"


class TestDuplicatesAndTitles:
    def test_duplicate_heading(self, lint_with: LintWith) -> None:
        violations = lint_with("# A\n\n## B\n\n## B\n", NoDuplicateHeading())
        assert [v.line for v in violations] == [5]

    def test_siblings_only(self, lint_with: LintWith) -> None:
        source = "# A\n\n## Notes\n\n# B\n\n## Notes\n"
        assert lint_with(source, NoDuplicateHeading(siblings_only=True)) == []

    def test_single_title(self, lint_with: LintWith) -> None:
        assert [v.line for v in lint_with("# A\n\n# B\n", SingleTitle())] == [3]


class TestTrailingPunctuation:
    def test_period(self, lint_with: LintWith) -> None:
        violations = lint_with("# Title.\n", NoTrailingPunctuation())
        assert [v.line for v in violations] == [1]

    def test_fix(self) -> None:
        assert NoTrailingPunctuation().fix("# Title:\n") == "# Title\n"

    def test_question_mark_allowed_by_default(self, lint_with: LintWith) -> None:
        assert lint_with("# Why?\n", NoTrailingPunctuation()) == []


class TestFirstLineHeading:
    def test_heading_first(self, lint_with: LintWith) -> None:
        assert lint_with("# Title\n", FirstLineHeading()) == []

    def test_leading_comment_is_skipped(self, lint_with: LintWith) -> None:
        assert lint_with("<!-- note -->\n# Title\n", FirstLineHeading()) == []

    def test_wrong_level(self, lint_with: LintWith) -> None:
        assert [v.line for v in lint_with("## Sub\n", FirstLineHeading())] == [1]

    def test_setext_title(self, lint_with: LintWith) -> None:
        assert lint_with("Title\n=====\n", FirstLineHeading()) == []

    def test_allow_preamble(self, lint_with: LintWith) -> None:
        assert lint_with("Preamble\n\n# Title\n", FirstLineHeading(allow_preamble=True)) == []


class TestRequiredHeadings:
    RULE = RequiredHeadings(headings=["# Title", "## Intro", "*"])

    def test_matching_structure(self, lint_with: LintWith) -> None:
        assert lint_with("# Title\n\n## Intro\n\n### Deep\n\n## More\n", self.RULE) == []

    def test_mismatch_reports_first_unmatched_heading(self, lint_with: LintWith) -> None:
        violations = lint_with("# Title\n\n## Other\n", self.RULE)
        assert [v.line for v in violations] == [3]
        assert violations[0].message.endswith("[Expected: # Title, ## Intro, *]")

    def test_case_insensitive_by_default(self, lint_with: LintWith) -> None:
        assert lint_with("# title\n\n## INTRO\n", self.RULE) == []

    def test_match_case(self, lint_with: LintWith) -> None:
        rule = RequiredHeadings(headings=["# Title"], match_case=True)
        assert [v.line for v in lint_with("# title\n", rule)] == [1]

    def test_plus_requires_at_least_one(self, lint_with: LintWith) -> None:
        rule = RequiredHeadings(headings=["# Title", "+"])
        assert len(lint_with("# Title\n", rule)) == 1
        assert lint_with("# Title\n\n## Any\n", rule) == []

    def test_question_mark_matches_exactly_one(self, lint_with: LintWith) -> None:
        rule = RequiredHeadings(headings=["?", "## Usage"])
        assert lint_with("# Anything\n\n## Usage\n", rule) == []
        assert len(lint_with("## Usage\n", rule)) == 1

    def test_disabled_without_headings(self, lint_with: LintWith) -> None:
        assert lint_with("## Anything\n", RequiredHeadings()) == []
