from mdlint.rules.base import FixableRule, Rule, RuleBase, bind_rule, option_defaults, option_names
from mdlint.rules.code import (
    BlanksAroundFences,
    CodeBlockStyle,
    CodeFenceStyle,
    CommandsShowOutput,
    FencedCodeLanguage,
    NoSpaceInCode,
)
from mdlint.rules.emphasis import EmphasisStyle, NoEmphasisAsHeading, NoSpaceInEmphasis, StrongStyle
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
from mdlint.rules.lists import BlanksAroundLists, ListIndent, ListMarkerSpace, OlPrefix, UlIndent, UlStyle
from mdlint.rules.style import HrStyle, LineLength, NoInlineHtml, ProperNames
from mdlint.rules.tables import BlanksAroundTables, TableColumnCount, TableColumnStyle, TablePipeStyle
from mdlint.rules.whitespace import (
    NoBlanksBlockquote,
    NoHardTabs,
    NoMultipleBlanks,
    NoMultipleSpaceBlockquote,
    NoTrailingSpaces,
    SingleTrailingNewline,
)

RULES: tuple[type[RuleBase], ...] = tuple(
    sorted(
        (
            HeadingIncrement,
            HeadingStyle,
            UlStyle,
            ListIndent,
            UlIndent,
            NoTrailingSpaces,
            NoHardTabs,
            NoReversedLinks,
            NoMultipleBlanks,
            LineLength,
            CommandsShowOutput,
            NoMissingSpaceAtx,
            NoMultipleSpaceAtx,
            NoMissingSpaceClosedAtx,
            NoMultipleSpaceClosedAtx,
            BlanksAroundHeadings,
            HeadingStartLeft,
            NoDuplicateHeading,
            SingleTitle,
            NoTrailingPunctuation,
            NoMultipleSpaceBlockquote,
            NoBlanksBlockquote,
            OlPrefix,
            ListMarkerSpace,
            BlanksAroundFences,
            BlanksAroundLists,
            NoInlineHtml,
            NoBareUrls,
            HrStyle,
            NoEmphasisAsHeading,
            NoSpaceInEmphasis,
            NoSpaceInCode,
            NoSpaceInLinks,
            FencedCodeLanguage,
            FirstLineHeading,
            NoEmptyLinks,
            RequiredHeadings,
            ProperNames,
            NoAltText,
            CodeBlockStyle,
            SingleTrailingNewline,
            CodeFenceStyle,
            EmphasisStyle,
            StrongStyle,
            LinkFragments,
            ReferenceLinksImages,
            LinkImageReferenceDefinitions,
            LinkImageStyle,
            TablePipeStyle,
            TableColumnCount,
            BlanksAroundTables,
            DescriptiveLinkText,
            TableColumnStyle,
        ),
        key=lambda cls: cls.id,
    )
)

RULES_BY_ID: dict[str, type[RuleBase]] = {cls.id: cls for cls in RULES}

_NAMES: dict[str, str] = {
    name.lower(): cls.id for cls in RULES for name in (cls.id, *cls.aliases)
}


def resolve_rule_id(name: str) -> str | None:
    """Return the id of the built-in rule called *name* (id or alias, any case)."""
    return _NAMES.get(name.strip().lower())


def default_rules() -> list[RuleBase]:
    """Every built-in rule with its default options."""
    return [cls() for cls in RULES]


__all__ = [
    "RULES",
    "RULES_BY_ID",
    "FixableRule",
    "Rule",
    "RuleBase",
    "bind_rule",
    "default_rules",
    "option_defaults",
    "option_names",
    "resolve_rule_id",
]
