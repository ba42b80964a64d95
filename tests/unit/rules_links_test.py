from collections.abc import Callable

from mdlint.models import Violation
from mdlint.rules.links import (
    DescriptiveLinkText,
    LinkFragments,
    LinkImageReferenceDefinitions,
    LinkImageStyle,
    NoAltText,
    NoBareUrls,
    NoEmptyLinks,
    NoReversedLinks,
    NoSpaceInLinks,
    ReferenceLinksImages,
)

REFERENCES = (
    "# Doc\n"
    "\n"
    "See [one][used] and [two][missing].\n"
    "\n"
    "[used]: https://example.com/a\n"
    "[unused]: https://example.com/b\n"
    "[used]: https://example.com/c\n"
)

LintWith = Callable[..., list[Violation]]


class TestReferenceLinksImages:
    def test_undefined_label(self, lint_with: LintWith) -> None:
        violations = lint_with(REFERENCES, ReferenceLinksImages())
        assert [(v.line, v.column) for v in violations] == [(3, 21)]
        assert violations[0].message.endswith("[Label: missing]")

    def test_labels_are_case_and_space_insensitive(self, lint_with: LintWith) -> None:
        source = "[a][Some   Label]\n\n[some label]: https://x.y\n"
        assert lint_with(source, ReferenceLinksImages()) == []

    def test_ignored_label(self, lint_with: LintWith) -> None:
        assert lint_with("[a][x]\n", ReferenceLinksImages()) == []

    def test_empty_ignored_labels_fall_back_to_x(self, lint_with: LintWith) -> None:
        assert lint_with("[a][x]\n", ReferenceLinksImages(ignored_labels=[])) == []

    def test_configured_labels_replace_the_default(self, lint_with: LintWith) -> None:
        assert [v.line for v in lint_with("[a][x]\n", ReferenceLinksImages(ignored_labels=["y"]))] == [1]

    def test_shortcut_syntax(self, lint_with: LintWith) -> None:
        assert lint_with("A [shortcut] here\n", ReferenceLinksImages()) == []
        assert len(lint_with("A [shortcut] here\n", ReferenceLinksImages(shortcut_syntax=True))) == 1

    def test_code_is_ignored(self, lint_with: LintWith) -> None:
        assert lint_with("`[a][missing]`\n\n```\n[b][gone]\n```\n", ReferenceLinksImages()) == []


class TestLinkImageReferenceDefinitions:
    def test_unused_and_duplicate(self, lint_with: LintWith) -> None:
        violations = lint_with(REFERENCES, LinkImageReferenceDefinitions())
        assert [v.line for v in violations] == [6, 7]
        assert violations[0].message.endswith("[Label: unused]")
        assert violations[1].message.startswith("Duplicate link or image reference definition")

    def test_ignored_definition(self, lint_with: LintWith) -> None:
        assert lint_with("[//]: # (comment)\n", LinkImageReferenceDefinitions()) == []

    def test_fix_removes_unneeded_definitions(self, lint_with: LintWith) -> None:
        fixed = LinkImageReferenceDefinitions().fix(REFERENCES)
        assert "[unused]" not in fixed
        assert fixed.count("[used]:") == 1
        assert lint_with(fixed, LinkImageReferenceDefinitions()) == []


class TestInlineLinks:
    def test_reversed_link(self, lint_with: LintWith) -> None:
        violations = lint_with("A (text)[https://x.y] link\n", NoReversedLinks())
        assert [(v.line, v.column) for v in violations] == [(1, 3)]

    def test_reversed_link_fix(self) -> None:
        assert NoReversedLinks().fix("A (text)[https://x.y]\n") == "A [text](https://x.y)\n"

    def test_bare_url(self, lint_with: LintWith) -> None:
        violations = lint_with("Visit https://example.com today\n", NoBareUrls())
        assert [(v.line, v.column) for v in violations] == [(1, 7)]

    def test_wrapped_urls_are_fine(self, lint_with: LintWith) -> None:
        source = "Visit <https://example.com> or [site](https://example.com) or `https://x.y`\n"
        assert lint_with(source, NoBareUrls()) == []

    def test_space_in_link_text(self, lint_with: LintWith) -> None:
        assert len(lint_with("[ text ](https://x.y)\n", NoSpaceInLinks())) == 1

    def test_space_in_link_text_fix(self) -> None:
        assert NoSpaceInLinks().fix("[ text ](https://x.y)\n") == "[text](https://x.y)\n"

    def test_empty_link(self, lint_with: LintWith) -> None:
        assert len(lint_with("[empty]()\n\n[hash](#)\n", NoEmptyLinks())) == 2

    def test_image_without_alt_text(self, lint_with: LintWith) -> None:
        violations = lint_with("![](image.png)\n\n![logo](logo.png)\n", NoAltText())
        assert [v.line for v in violations] == [1]


class TestLinkFragments:
    def test_existing_heading(self, lint_with: LintWith) -> None:
        assert lint_with("# My Title\n\n[go](#my-title)\n", LinkFragments()) == []

    def test_missing_fragment(self, lint_with: LintWith) -> None:
        violations = lint_with("# My Title\n\n[go](#nowhere)\n", LinkFragments())
        assert [v.line for v in violations] == [3]
        assert "#nowhere" in violations[0].message

    def test_duplicate_heading_suffix(self, lint_with: LintWith) -> None:
        source = "# A\n\n## Notes\n\n## Notes\n\n[second](#notes-1)\n"
        assert lint_with(source, LinkFragments()) == []

    def test_html_anchor(self, lint_with: LintWith) -> None:
        assert lint_with('<a id="custom"></a>\n\n[go](#custom)\n', LinkFragments()) == []


class TestLinkImageStyle:
    def test_disallow_inline(self, lint_with: LintWith) -> None:
        violations = lint_with("[a](https://x.y)\n", LinkImageStyle(inline=False))
        assert len(violations) == 1

    def test_defaults_allow_everything(self, lint_with: LintWith) -> None:
        source = "[a](https://x.y) <https://x.y> [b][c]\n\n[c]: https://x.y\n"
        assert lint_with(source, LinkImageStyle()) == []


class TestDescriptiveLinkText:
    def test_generic_text(self, lint_with: LintWith) -> None:
        violations = lint_with("For details [click here](https://x.y).\n", DescriptiveLinkText())
        assert len(violations) == 1
        assert "click here" in violations[0].message

    def test_descriptive_text(self, lint_with: LintWith) -> None:
        assert lint_with("Read [the install guide](https://x.y).\n", DescriptiveLinkText()) == []
