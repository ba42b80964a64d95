"""Shared fixtures and helpers for tests."""

import subprocess
from collections.abc import Callable
from pathlib import Path

import pytest

from mdlint.core.linter import Linter
from mdlint.models import Violation
from mdlint.rules import RuleBase

_REPO_ROOT = Path(__file__).parent.parent


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


def _run_git(args: list[str], cwd: Path) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        check=True,
        capture_output=True,
        text=True,
    )
    return result.stdout.strip()


def _commit_all(path: Path, message: str) -> None:
    _run_git(["add", "-A"], path)
    _run_git(["-c", "user.name=Test Author", "-c", "user.email=author@example.com", "commit", "-m", message], path)


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def write_file(tmp_path: Path) -> Callable[[str, str], Path]:
    """Return a helper writing text files below ``tmp_path``."""

    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def in_tmp_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run the test with ``tmp_path`` as the working directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def lint_with() -> Callable[..., list[Violation]]:
    """Return a helper linting a string with only the given rules enabled."""

    def _lint(source: str, *rules: RuleBase) -> list[Violation]:
        return Linter(list(rules)).lint(source.encode("utf-8"))

    return _lint


@pytest.fixture
def run_git() -> Callable[[list[str], Path], str]:
    return _run_git


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """Initialise a git repository in ``tmp_path``."""
    _run_git(["init"], tmp_path)
    _run_git(["config", "user.name", "Test Author"], tmp_path)
    _run_git(["config", "user.email", "author@example.com"], tmp_path)
    return tmp_path


@pytest.fixture
def commit_all() -> Callable[[Path, str], None]:
    return _commit_all
