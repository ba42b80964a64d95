"""Logging setup for the command line.

Library modules only create ``logging.getLogger(__name__)`` loggers; handlers
are installed here, once per CLI invocation.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(verbose: bool = False) -> None:
    """Route all log records to stderr through rich, at DEBUG when *verbose* else WARNING."""
    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        markup=False,
        show_time=verbose,
        show_level=True,
        show_path=verbose,
    )
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
