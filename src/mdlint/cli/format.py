from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from mdlint.config import build_linter, effective_config_for_file, resolve_config
from mdlint.core.runner import STDIN_NAME
from mdlint.errors import ConfigError
from mdlint.logging import configure_logging

console = Console(stderr=True, soft_wrap=True)


def format_command(
    config: Annotated[
        Path | None, typer.Option("--config", "-c", help="Config file to use instead of auto-discovery.")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
) -> None:
    """Read Markdown from stdin, apply every fix and write the result to stdout."""
    configure_logging(verbose)
    try:
        settings = resolve_config(config, Path.cwd())
    except ConfigError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}", highlight=False)
        raise typer.Exit(code=2) from exc

    linter = build_linter(
        effective_config_for_file(settings.config, settings.overrides, STDIN_NAME),
        no_inline_config=settings.no_inline_config,
        front_matter=settings.front_matter,
    )
    source = typer.get_binary_stream("stdin").read()
    stdout = typer.get_binary_stream("stdout")
    stdout.write(linter.fix(source))
    stdout.flush()
