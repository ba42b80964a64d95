from collections.abc import Callable
from pathlib import Path

from mdlint.config import ConfigFile
from mdlint.core.runner import STDIN_NAME, FileResult, LintRunner, exit_code
from mdlint.models import Violation


def _violation(severity: str = "error") -> Violation:
    return Violation(rule="MD009", line=1, column=1, message="Trailing spaces", severity=severity)


class TestExpand:
    def test_recursive_glob_with_ignores(self, in_tmp_cwd: Path, write_file: Callable[[str, str], Path]) -> None:
        for name in ("a.md", "docs/b.md", "vendor/c.md", "notes.txt"):
            write_file(name, "# Title\n")
        runner = LintRunner(ConfigFile(ignores=["vendor/**"]))
        assert runner.expand(["**/*.md"]) == ["a.md", "docs/b.md"]

    def test_input_order_without_duplicates(self, in_tmp_cwd: Path, write_file: Callable[[str, str], Path]) -> None:
        write_file("a.md", "# A\n")
        write_file("docs/b.md", "# B\n")
        runner = LintRunner(ConfigFile())
        assert runner.expand(["docs/b.md", "a.md", "*.md", "-"]) == ["docs/b.md", "a.md"]

    def test_unmatched_pattern_is_kept(self, in_tmp_cwd: Path) -> None:
        assert LintRunner(ConfigFile()).expand(["missing.md"]) == ["missing.md"]

    def test_extra_ignores(self, in_tmp_cwd: Path, write_file: Callable[[str, str], Path]) -> None:
        write_file("build/out.md", "# Out\n")
        write_file("keep.md", "# Keep\n")
        runner = LintRunner(ConfigFile(), ignores=["build", "build/**"])
        assert runner.expand(["**/*.md"]) == ["keep.md"]


class TestLintFile:
    def test_unreadable_file_reports_error(self, tmp_path: Path) -> None:
        result = LintRunner(ConfigFile()).lint_file(str(tmp_path / "missing.md"))
        assert result.error
        assert result.violations == []
        assert exit_code([result]) == 2

    def test_overrides_apply_per_file(self, tmp_path: Path, write_file: Callable[[str, str], Path]) -> None:
        docs = write_file("docs/a.md", "text\n")
        other = write_file("other/a.md", "text\n")
        config = ConfigFile(config={"MD041": False}, overrides=[{"files": ["docs/**"], "config": {"MD041": True}}])
        runner = LintRunner(config)
        assert [v.rule for v in runner.lint_file(str(docs)).violations] == ["MD041"]
        assert runner.lint_file(str(other)).violations == []

    def test_fix_mode_rewrites_file(self, write_file: Callable[[str, str], Path]) -> None:
        path = write_file("doc.md", "# Title")
        result = LintRunner(ConfigFile(), fix=True).lint_file(str(path))
        assert path.read_text(encoding="utf-8") == "# Title\n"
        assert result.violations == []

    def test_fix_mode_keeps_undecodable_bytes(self, tmp_path: Path) -> None:
        path = tmp_path / "doc.md"
        source = b"# Caf\xe9\n\nNo tabs here.\n"
        path.write_bytes(source)
        LintRunner(ConfigFile(config={"default": False, "MD010": True}), fix=True).lint_file(str(path))
        assert path.read_bytes() == source

    def test_lint_source_defaults_to_stdin_name(self) -> None:
        result = LintRunner(ConfigFile()).lint_source(b"# Title\n")
        assert result.file == STDIN_NAME
        assert result.violations == []

    async def test_run_keeps_input_order(self, write_file: Callable[[str, str], Path]) -> None:
        files = [str(write_file(f"doc{i}.md", "# Title\n" if i % 2 else "text\n")) for i in range(6)]
        results = await LintRunner(ConfigFile(), max_workers=2).run(files)
        assert [r.file for r in results] == files
        assert [bool(r.violations) for r in results] == [True, False, True, False, True, False]


class TestExitCode:
    def test_clean(self) -> None:
        assert exit_code([FileResult(file="a.md")]) == 0

    def test_errors_fail(self) -> None:
        assert exit_code([FileResult(file="a.md", violations=[_violation()])]) == 1

    def test_warnings_pass_unless_requested(self) -> None:
        results = [FileResult(file="a.md", violations=[_violation("warning")])]
        assert exit_code(results) == 0
        assert exit_code(results, fail_on_warning=True) == 1

    def test_processing_error_wins(self) -> None:
        results = [FileResult(file="a.md", violations=[_violation()]), FileResult(file="b.md", error="boom")]
        assert exit_code(results) == 2
