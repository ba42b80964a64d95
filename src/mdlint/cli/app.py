from typing import Annotated

import typer

from mdlint.cli.format import format_command
from mdlint.cli.lint import lint
from mdlint.cli.rules import rules
from mdlint.formatters import TOOL_NAME, TOOL_VERSION

app = typer.Typer(
    name=TOOL_NAME,
    help="mdlint: lint and fix Markdown files.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _print_version(value: bool) -> None:
    if value:
        typer.echo(f"{TOOL_NAME} {TOOL_VERSION}")
        raise typer.Exit()


@app.callback()
def root(
    version: Annotated[
        bool,
        typer.Option("--version", callback=_print_version, is_eager=True, help="Show the version and exit."),
    ] = False,
) -> None:
    pass


app.command("lint")(lint)
app.command("format")(format_command)
app.command("rules")(rules)


def main() -> None:
    app()
