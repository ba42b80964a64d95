from mdlint.core.linter import Linter
from mdlint.rules.whitespace import NoHardTabs, NoTrailingSpaces


def _lines(source: str, *, no_inline_config: bool = False) -> list[int]:
    linter = Linter([NoTrailingSpaces(), NoHardTabs()], no_inline_config=no_inline_config)
    return [v.line for v in linter.lint(source.encode("utf-8"))]


class TestDisableEnable:
    def test_disable_and_enable_by_id_and_alias(self) -> None:
        source = (
            "trailing   \n"
            "<!-- markdownlint-disable MD009 -->\n"
            "more   \n"
            "<!-- markdownlint-enable No-Trailing-Spaces -->\n"
            "last   \n"
        )
        assert _lines(source) == [1, 5]

    def test_disable_without_names_disables_everything(self) -> None:
        source = "<!-- markdownlint-disable -->\na   \n\tb\n"
        assert _lines(source) == []

    def test_disable_only_affects_named_rule(self) -> None:
        source = "<!-- markdownlint-disable MD009 -->\na   \n\tb\n"
        assert _lines(source) == [3]


class TestLineScoped:
    def test_disable_line(self) -> None:
        source = "a\tb <!-- markdownlint-disable-line MD010 -->\nc\td\n"
        assert _lines(source) == [2]

    def test_disable_next_line(self) -> None:
        source = "<!-- markdownlint-disable-next-line MD009 -->\nx   \ny   \n"
        assert _lines(source) == [3]


class TestFileScoped:
    def test_disable_file(self) -> None:
        source = "x   \n<!-- markdownlint-disable-file no-trailing-spaces -->\n"
        assert _lines(source) == []

    def test_enable_file_reverts_disable_file(self) -> None:
        source = "<!-- markdownlint-disable-file MD009 -->\n<!-- markdownlint-enable-file MD009 -->\nx   \n"
        assert _lines(source) == [3]

    def test_configure_file_false_disables_rule(self) -> None:
        source = '<!-- markdownlint-configure-file { "no-trailing-spaces": false } -->\nx   \n'
        assert _lines(source) == []


class TestCaptureRestore:
    def test_restore_returns_to_captured_state(self) -> None:
        source = (
            "<!-- markdownlint-disable -->\n"
            "<!-- markdownlint-capture -->\n"
            "<!-- markdownlint-enable -->\n"
            "a   \n"
            "<!-- markdownlint-restore -->\n"
            "b   \n"
        )
        assert _lines(source) == [4]


class TestIgnoredComments:
    def test_comments_inside_code_blocks_are_ignored(self) -> None:
        source = "```\n<!-- markdownlint-disable -->\n```\nx   \n"
        assert _lines(source) == [4]

    def test_configure_file_inside_code_block_is_ignored(self) -> None:
        source = '```\n<!-- markdownlint-configure-file { "MD009": false } -->\n```\nx   \n'
        assert _lines(source) == [4]

    def test_no_inline_config(self) -> None:
        source = "<!-- markdownlint-disable -->\nx   \n"
        assert _lines(source, no_inline_config=True) == [2]
