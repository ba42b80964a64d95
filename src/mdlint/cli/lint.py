import asyncio
import contextlib
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from mdlint.cache import LintCache
from mdlint.config import ConfigFile, collect_gitignore_patterns, resolve_config
from mdlint.core.git import GitError, get_changed_markdown_files
from mdlint.core.runner import STDIN, STDIN_NAME, FileResult, LintRunner, exit_code
from mdlint.errors import ConfigError
from mdlint.formatters import FORMATTERS, format_default_text, format_summary, parse_output_formatters
from mdlint.logging import configure_logging
from mdlint.watcher.watchfiles_adapter import WatchfilesWatcher

logger = logging.getLogger(__name__)

console = Console(stderr=True, soft_wrap=True)


def _error(message: str) -> None:
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)


def _fail(message: str) -> typer.Exit:
    _error(message)
    return typer.Exit(code=2)


def _load_settings(config: Path | None, cwd: Path) -> ConfigFile:
    try:
        return resolve_config(config, cwd)
    except ConfigError as exc:
        raise _fail(str(exc)) from exc


def _gitignore_patterns(settings: ConfigFile, cwd: Path) -> list[str]:
    if not settings.gitignore:
        return []
    glob = settings.gitignore if isinstance(settings.gitignore, str) else None
    return collect_gitignore_patterns(cwd, glob)


def _select_files(runner: LintRunner, patterns: list[str], since: str | None, cwd: Path) -> list[str]:
    files = runner.expand(patterns)
    if since is None:
        return files
    try:
        changed = get_changed_markdown_files(since, cwd)
    except GitError as exc:
        raise _fail(str(exc)) from exc
    selected = [p for p in changed if not runner.is_ignored(p.relative_to(cwd) if p.is_relative_to(cwd) else p)]
    if not patterns:
        return [str(p) for p in selected]
    requested = {Path(f).resolve() for f in files}
    return [str(p) for p in selected if p in requested]


def _write_reports(results: list[FileResult], output_format: str | None, settings: ConfigFile) -> int:
    reportable = [r.to_file_violations() for r in results if r.error is None]
    if output_format is not None:
        specs: list[tuple[str, str | None]] = [(output_format, None)]
    else:
        specs = parse_output_formatters(settings.output_formatters) or [("default", None)]
    code = 0
    for name, outfile in specs:
        if outfile is not None:
            try:
                Path(outfile).write_text(FORMATTERS[name](reportable), encoding="utf-8")
            except OSError as exc:
                _error(f"cannot write {outfile}: {exc.strerror or exc}")
                code = 2
        elif name == "default":
            console.print(format_default_text(reportable), end="", highlight=False)
        else:
            typer.echo(FORMATTERS[name](reportable), nl=False)
    return code


async def _watch(runner: LintRunner, files: list[str], cwd: Path) -> None:
    watched = {Path(f).resolve(): f for f in files}

    async def _on_change(paths: set[Path]) -> None:
        changed = sorted(watched[p] for p in (path.resolve() for path in paths) if p in watched)
        if not changed:
            return
        results = await runner.run(changed)
        for result in results:
            if result.error is not None:
                _error(f"{result.file}: {result.error}")
        reportable = [r.to_file_violations() for r in results if r.error is None]
        console.print(format_default_text(reportable), end="", highlight=False)

    watcher = WatchfilesWatcher(cwd, _on_change)
    await watcher.start()
    console.print(f"[green]Watching[/green] {len(watched)} file(s), press Ctrl+C to stop", highlight=False)
    try:
        await watcher.wait()
    finally:
        await watcher.stop()


def lint(
    globs: Annotated[
        list[str] | None, typer.Argument(help="Files or glob patterns to lint; '-' reads from stdin.")
    ] = None,
    config: Annotated[
        Path | None, typer.Option("--config", "-c", help="Config file to use instead of auto-discovery.")
    ] = None,
    fix: Annotated[bool, typer.Option("--fix", help="Update files to resolve fixable violations.")] = False,
    no_cache: Annotated[bool, typer.Option("--no-cache", help="Neither read nor write the cache file.")] = False,
    no_globs: Annotated[bool, typer.Option("--no-globs", help="Ignore the globs configuration key.")] = False,
    output_format: Annotated[
        str | None,
        typer.Option("--output-format", "-o", help=f"Report format: {', '.join(FORMATTERS)}."),
    ] = None,
    fail_on_warning: Annotated[
        bool, typer.Option("--fail-on-warning", help="Exit with code 1 when only warnings are reported.")
    ] = False,
    summary: Annotated[bool, typer.Option("--summary", help="Print a violation count per rule.")] = False,
    watch: Annotated[bool, typer.Option("--watch", help="Re-lint files whenever they change.")] = False,
    since: Annotated[
        str | None, typer.Option("--since", help="Only lint Markdown files changed relative to this git ref.")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
) -> None:
    """Lint Markdown files."""
    configure_logging(verbose)
    if output_format is not None and output_format not in FORMATTERS:
        raise _fail(f"unknown output format {output_format!r}")

    cwd = Path.cwd()
    settings = _load_settings(config, cwd)
    patterns = list(globs or [])
    if not patterns and not no_globs:
        patterns = list(settings.globs)
    if not patterns and since is None:
        raise _fail("no input files; pass files, glob patterns or '-'")

    effective_fix = fix or settings.fix
    cache = LintCache.load(cwd) if not (no_cache or effective_fix or watch) else None
    runner = LintRunner(settings, ignores=_gitignore_patterns(settings, cwd), fix=effective_fix, cache=cache)
    files = _select_files(runner, patterns, since, cwd)
    logger.debug("Linting %d file(s)", len(files))

    results: list[FileResult] = []
    if STDIN in patterns:
        source = typer.get_binary_stream("stdin").read()
        results.append(runner.lint_source(source, STDIN_NAME))
    results.extend(asyncio.run(runner.run(files)))

    for result in results:
        if result.error is not None:
            _error(f"{result.file}: {result.error}")
    code = max(exit_code(results, fail_on_warning=fail_on_warning), _write_reports(results, output_format, settings))
    if summary:
        console.print(format_summary([r.to_file_violations() for r in results]), end="", highlight=False)
    if cache is not None:
        cache.save()

    if watch:
        with contextlib.suppress(KeyboardInterrupt):
            asyncio.run(_watch(runner, files, cwd))
        raise typer.Exit(code=0)
    raise typer.Exit(code=code)
