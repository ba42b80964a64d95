"""Linting many files with per-file configuration, caching and bounded concurrency."""

from __future__ import annotations

import asyncio
import glob
import logging
import os
import threading
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from mdlint.cache import LintCache, config_digest, hash_content
from mdlint.config import ConfigFile, build_linter, effective_config_for_file, matches_any
from mdlint.core.linter import Linter
from mdlint.models import FileViolations, Violation

logger = logging.getLogger(__name__)

STDIN = "-"
STDIN_NAME = "stdin"


@dataclass(frozen=True)
class FileResult:
    """Outcome for one input: its violations, or the error that prevented linting."""

    file: str
    violations: list[Violation] = field(default_factory=list)
    error: str | None = None

    def to_file_violations(self) -> FileViolations:
        return FileViolations(file=self.file, violations=self.violations)


def exit_code(results: Sequence[FileResult], *, fail_on_warning: bool = False) -> int:
    """0 when clean or warnings only, 1 for failing violations, 2 when an input could not be processed."""
    if any(result.error for result in results):
        return 2
    for result in results:
        for violation in result.violations:
            if violation.severity == "error" or fail_on_warning:
                return 1
    return 0


class LintRunner:
    """Lints files under one resolved configuration.

    Linters are built once per distinct effective configuration and shared
    between files, since a linter holds no per-document state.
    """

    def __init__(
        self,
        config: ConfigFile,
        *,
        ignores: Sequence[str] = (),
        fix: bool = False,
        cache: LintCache | None = None,
        max_workers: int | None = None,
    ) -> None:
        self._config = config
        self._ignores = [*config.ignores, *ignores]
        self._fix = fix
        self._cache = cache
        self._max_workers = max_workers or os.cpu_count() or 1
        self._linters: dict[str, Linter] = {}
        self._lock = threading.Lock()

    @property
    def cache(self) -> LintCache | None:
        return self._cache

    def is_ignored(self, path: str | Path) -> bool:
        return matches_any(path, self._ignores)

    def expand(self, patterns: Iterable[str]) -> list[str]:
        """Resolve input globs to files, in input order, without duplicates or ignored files.

        A pattern that matches nothing is kept as is so reading it reports the error.
        """
        files: list[str] = []
        seen: set[str] = set()
        for pattern in patterns:
            if pattern == STDIN:
                continue
            matches = sorted(p for p in glob.glob(pattern, recursive=True) if os.path.isfile(p)) or [pattern]
            for match in matches:
                if match in seen or self.is_ignored(match):
                    continue
                seen.add(match)
                files.append(match)
        return files

    def linter_for(self, path: str | Path) -> tuple[Linter, str]:
        """The linter for *path* and the digest of its effective configuration."""
        effective: dict[str, Any] = effective_config_for_file(self._config.config, self._config.overrides, path)
        digest = config_digest(effective)
        with self._lock:
            linter = self._linters.get(digest)
            if linter is None:
                linter = build_linter(
                    effective,
                    no_inline_config=self._config.no_inline_config,
                    front_matter=self._config.front_matter,
                )
                self._linters[digest] = linter
        return linter, digest

    def lint_source(self, source: bytes, file: str = STDIN_NAME) -> FileResult:
        linter, _ = self.linter_for(file)
        return FileResult(file=file, violations=linter.lint(source))

    def lint_file(self, file: str) -> FileResult:
        """Lint one file, serving an unchanged file from the cache and applying fixes in fix mode."""
        try:
            source = Path(file).read_bytes()
        except OSError as exc:
            logger.debug("Cannot read %s", file, exc_info=True)
            return FileResult(file=file, error=exc.strerror or str(exc))

        linter, digest = self.linter_for(file)
        key = str(Path(file).resolve())
        content_hash = hash_content(source)
        if self._cache is not None and not self._fix:
            cached = self._cache.get(key, content_hash, digest)
            if cached is not None:
                return FileResult(file=file, violations=cached)

        if self._fix:
            fixed = linter.fix(source)
            if fixed != source:
                try:
                    Path(file).write_bytes(fixed)
                except OSError as exc:
                    return FileResult(file=file, error=exc.strerror or str(exc))
                logger.info("Fixed %s", file)
                source = fixed

        violations = linter.lint(source)
        if self._cache is not None and not self._fix:
            self._cache.put(key, content_hash, digest, violations)
        return FileResult(file=file, violations=violations)

    async def run(self, files: Sequence[str]) -> list[FileResult]:
        """Lint *files* in worker threads; results keep the order of *files*."""
        semaphore = asyncio.Semaphore(self._max_workers)

        async def _one(file: str) -> FileResult:
            async with semaphore:
                return await asyncio.to_thread(self.lint_file, file)

        return list(await asyncio.gather(*(_one(file) for file in files)))
