"""Exception hierarchy for mdlint."""

from __future__ import annotations

from pathlib import Path


class MdlintError(Exception):
    """Base exception for all mdlint errors."""


class ConfigError(MdlintError):
    """Raised when a configuration file cannot be found, parsed or resolved.

    Configuration errors are fatal: they abort the run before any file is
    linted.
    """

    def __init__(self, path: str | Path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = Path(path)
        self.reason = reason
