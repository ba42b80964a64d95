import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from mdlint.config import resolve_config, rule_infos
from mdlint.errors import ConfigError

console = Console()


def rules(
    config: Annotated[
        Path | None, typer.Option("--config", "-c", help="Config file to use instead of auto-discovery.")
    ] = None,
) -> None:
    """List every rule with its aliases, enabled state and options."""
    try:
        settings = resolve_config(config, Path.cwd())
    except ConfigError as exc:
        Console(stderr=True).print(f"[red]Error:[/red] {escape(str(exc))}", highlight=False)
        raise typer.Exit(code=2) from exc

    table = Table(title="Rules")
    table.add_column("Rule", style="cyan", no_wrap=True)
    table.add_column("Aliases")
    table.add_column("Enabled", no_wrap=True)
    table.add_column("Fixable", no_wrap=True)
    table.add_column("Options")
    for info in rule_infos(settings.config):
        enabled = f"[green]{info.severity}[/green]" if info.enabled else "[dim]off[/dim]"
        options = ", ".join(f"{name}={json.dumps(value)}" for name, value in info.options.items())
        table.add_row(
            info.id,
            ", ".join(info.aliases),
            enabled,
            "yes" if info.fixable else "",
            escape(options) if options else "[dim]-[/dim]",
        )
    console.print(table)
