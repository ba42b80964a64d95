"""File system watching for ``mdlint lint --watch``."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Coroutine
from pathlib import Path
from typing import Any

from watchfiles import Change, DefaultFilter, awatch

from mdlint.core.git import MARKDOWN_SUFFIXES

logger = logging.getLogger(__name__)


def _is_markdown_file(path: Path) -> bool:
    return path.suffix.lower() in MARKDOWN_SUFFIXES


class MarkdownFilter(DefaultFilter):
    """Accept added or modified Markdown files outside VCS and cache directories."""

    def __call__(self, change: Change, path: str) -> bool:
        if change == Change.deleted or not _is_markdown_file(Path(path)):
            return False
        return super().__call__(change, path)


class WatchfilesWatcher:
    """Calls ``on_change`` with the set of Markdown files that changed below ``directory``.

    Implements the ``FileWatcherPort`` protocol. Events are debounced by
    watchfiles, so a burst of saves arrives as one call.
    """

    def __init__(
        self,
        directory: str | Path,
        on_change: Callable[[set[Path]], Coroutine[Any, Any, None]],
        *,
        debounce_ms: int = 200,
    ) -> None:
        self._directory = Path(directory)
        self._on_change = on_change
        self._debounce_ms = debounce_ms
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        if self._task is not None:
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._watch(), name="mdlint-watch")
        logger.info("Watching %s for Markdown changes", self._directory)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._stop_event.set()
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Stopped watching %s", self._directory)

    async def wait(self) -> None:
        """Block until the watch loop ends or is cancelled."""
        if self._task is None:
            return
        with contextlib.suppress(asyncio.CancelledError):
            await self._task

    async def _watch(self) -> None:
        async for changes in awatch(
            self._directory,
            watch_filter=MarkdownFilter(),
            debounce=self._debounce_ms,
            stop_event=self._stop_event,
        ):
            paths = {Path(p) for _, p in changes if Path(p).is_file()}
            if not paths:
                continue
            logger.info("%d Markdown file(s) changed", len(paths))
            try:
                await self._on_change(paths)
            except Exception:
                logger.exception("Re-linting changed files failed")
