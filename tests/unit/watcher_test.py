"""Tests for the watchfiles watcher adapter."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, patch

from watchfiles import Change

from mdlint.watcher.watchfiles_adapter import MarkdownFilter, WatchfilesWatcher, _is_markdown_file


class TestIsMarkdownFile:
    def test_md_file(self) -> None:
        assert _is_markdown_file(Path("README.md")) is True

    def test_markdown_file(self) -> None:
        assert _is_markdown_file(Path("notes.markdown")) is True

    def test_upper_case_suffix(self) -> None:
        assert _is_markdown_file(Path("CHANGELOG.MD")) is True

    def test_text_file(self) -> None:
        assert _is_markdown_file(Path("readme.txt")) is False

    def test_no_extension(self) -> None:
        assert _is_markdown_file(Path("Makefile")) is False


class TestMarkdownFilter:
    def test_accepts_modified_markdown(self) -> None:
        assert MarkdownFilter()(Change.modified, "/repo/docs/a.md") is True
        assert MarkdownFilter()(Change.added, "/repo/b.markdown") is True

    def test_rejects_deleted_files(self) -> None:
        assert MarkdownFilter()(Change.deleted, "/repo/a.md") is False

    def test_rejects_other_files(self) -> None:
        assert MarkdownFilter()(Change.modified, "/repo/a.py") is False

    def test_rejects_ignored_directories(self) -> None:
        assert MarkdownFilter()(Change.modified, "/repo/.git/a.md") is False
        assert MarkdownFilter()(Change.modified, "/repo/node_modules/pkg/README.md") is False


class TestWatchfilesWatcher:
    def test_implements_protocol(self, tmp_path: Path) -> None:
        from mdlint.core.ports.watcher import FileWatcherPort

        watcher: FileWatcherPort = WatchfilesWatcher(tmp_path, AsyncMock())
        assert hasattr(watcher, "start")
        assert hasattr(watcher, "stop")
        assert hasattr(watcher, "wait")

    async def test_start_creates_task(self, tmp_path: Path) -> None:
        watcher = WatchfilesWatcher(tmp_path, AsyncMock())

        with patch("mdlint.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _empty_async_iter()
            await watcher.start()
            assert watcher._task is not None
            await watcher.stop()
            assert watcher._task is None

    async def test_stop_without_start_is_noop(self, tmp_path: Path) -> None:
        await WatchfilesWatcher(tmp_path, AsyncMock()).stop()

    async def test_wait_without_start_returns(self, tmp_path: Path) -> None:
        await WatchfilesWatcher(tmp_path, AsyncMock()).wait()

    async def test_double_start_is_noop(self, tmp_path: Path) -> None:
        watcher = WatchfilesWatcher(tmp_path, AsyncMock())

        with patch("mdlint.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _empty_async_iter()
            await watcher.start()
            task1 = watcher._task
            await watcher.start()
            assert watcher._task is task1
            await watcher.stop()

    async def test_callback_receives_existing_files(self, tmp_path: Path) -> None:
        callback = AsyncMock()
        watcher = WatchfilesWatcher(tmp_path, callback, debounce_ms=50)
        for name in ("a.md", "c.markdown"):
            (tmp_path / name).write_text("x\n", encoding="utf-8")
        changes = {
            (1, str(tmp_path / "a.md")),
            (2, str(tmp_path / "c.markdown")),
            (2, str(tmp_path / "gone.md")),
        }

        with patch("mdlint.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _single_change_iter(changes)
            await watcher.start()
            await asyncio.sleep(0.05)
            await watcher.stop()

        callback.assert_called_once()
        assert callback.call_args[0][0] == {tmp_path / "a.md", tmp_path / "c.markdown"}
        _, kwargs = mock_awatch.call_args
        assert isinstance(kwargs["watch_filter"], MarkdownFilter)
        assert kwargs["debounce"] == 50

    async def test_callback_not_called_when_files_are_gone(self, tmp_path: Path) -> None:
        callback = AsyncMock()
        watcher = WatchfilesWatcher(tmp_path, callback)

        with patch("mdlint.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _single_change_iter({(2, str(tmp_path / "gone.md"))})
            await watcher.start()
            await asyncio.sleep(0.05)
            await watcher.stop()

        callback.assert_not_called()

    async def test_callback_error_keeps_watching(self, tmp_path: Path) -> None:
        callback = AsyncMock(side_effect=RuntimeError("boom"))
        watcher = WatchfilesWatcher(tmp_path, callback)
        (tmp_path / "a.md").write_text("x\n", encoding="utf-8")

        with patch("mdlint.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _single_change_iter({(2, str(tmp_path / "a.md"))})
            await watcher.start()
            await asyncio.sleep(0.05)
            assert watcher._task is not None
            assert not watcher._task.done()
            await watcher.stop()

        callback.assert_called_once()


async def _empty_async_iter() -> AsyncIterator[Any]:
    """Async iterator that never yields, just blocks until cancelled."""
    try:
        await asyncio.sleep(3600)
    except asyncio.CancelledError:
        return
    yield  # make it an async generator  # pragma: no cover


async def _single_change_iter(changes: set[tuple[int, str]]) -> AsyncIterator[set[tuple[int, str]]]:
    """Async iterator that yields one set of changes then blocks."""
    yield changes
    try:
        await asyncio.sleep(3600)
    except asyncio.CancelledError:
        return
