import subprocess
from pathlib import Path

MARKDOWN_SUFFIXES: frozenset[str] = frozenset({".md", ".markdown"})


class GitError(RuntimeError):
    """Raised when a git command needed for ``--since`` fails."""


def get_git_repo_root(start_dir: Path) -> Path | None:
    result = subprocess.run(
        ["git", "-C", str(start_dir), "rev-parse", "--show-toplevel"],
        check=False,
        capture_output=True,
        text=True,
    )
    if result.returncode != 0:
        return None
    root = result.stdout.strip()
    if not root:
        return None
    return Path(root)


def get_changed_files(ref: str, cwd: Path) -> list[Path]:
    """Return absolute paths of files changed relative to *ref*, staged changes included."""
    repo_root = get_git_repo_root(cwd)
    if repo_root is None:
        raise GitError(f"{cwd} is not inside a git repository")
    seen: set[Path] = set()
    files: list[Path] = []
    for extra in ([], ["--cached"]):
        result = subprocess.run(
            ["git", "-C", str(cwd), "diff", "--name-only", *extra, ref],
            check=False,
            capture_output=True,
            text=True,
        )
        if result.returncode != 0:
            raise GitError(result.stderr.strip() or f"git diff {ref} failed")
        for line in result.stdout.splitlines():
            if not line.strip():
                continue
            path = repo_root / line.strip()
            if path not in seen:
                seen.add(path)
                files.append(path)
    return files


def get_changed_markdown_files(ref: str, cwd: Path) -> list[Path]:
    """Changed Markdown files that still exist in the working tree."""
    return [p for p in get_changed_files(ref, cwd) if p.suffix.lower() in MARKDOWN_SUFFIXES and p.is_file()]
