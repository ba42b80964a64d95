"""Discovery, parsing and ``extends`` resolution of configuration files."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from mdlint.config.glob import match_path
from mdlint.config.merge import canonical_rule_keys, deep_merge
from mdlint.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAMES: tuple[str, ...] = (
    ".markdownlint-cli2.yaml",
    ".markdownlint-cli2.yml",
    ".markdownlint-cli2.jsonc",
    ".markdownlint-cli2.json",
    ".markdownlint.yaml",
    ".markdownlint.yml",
    ".markdownlint.jsonc",
    ".markdownlint.json",
)

_YAML_SUFFIXES = (".yaml", ".yml")
_JSON_SUFFIXES = (".json", ".jsonc")


class GlobOverride(BaseModel):
    """Rule options applied only to files matching one of ``files``."""

    files: list[str] = Field(default_factory=list)
    config: dict[str, Any] = Field(default_factory=dict)


class ConfigFile(BaseModel):
    """One configuration file, or the flattened result of an ``extends`` chain."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    extends: str | None = None
    config: dict[str, Any] = Field(default_factory=dict)
    ignores: list[str] = Field(default_factory=list)
    overrides: list[GlobOverride] = Field(default_factory=list)
    output_formatters: list[Any] = Field(default_factory=list, alias="outputFormatters")
    no_inline_config: bool = Field(default=False, alias="noInlineConfig")
    globs: list[str] = Field(default_factory=list)
    fix: bool = False
    front_matter: str | None = Field(default=None, alias="frontMatter")
    gitignore: bool | str = False


def find_config_file(directory: str | Path) -> Path | None:
    """Return the first well-known config file in *directory* or its ancestors."""
    current = Path(directory).resolve()
    for candidate_dir in (current, *current.parents):
        for name in CONFIG_FILE_NAMES:
            candidate = candidate_dir / name
            if candidate.is_file():
                logger.debug("Found config file %s", candidate)
                return candidate
    return None


def strip_json_comments(text: str) -> str:
    """Remove ``//`` and ``/* */`` comments outside of JSON string literals."""
    result: list[str] = []
    i, n = 0, len(text)
    in_string = False
    while i < n:
        char = text[i]
        if in_string:
            if char == "\\" and i + 1 < n:
                result.append(text[i : i + 2])
                i += 2
                continue
            if char == '"':
                in_string = False
            result.append(char)
            i += 1
            continue
        if char == '"':
            in_string = True
        elif text.startswith("//", i):
            end = text.find("\n", i)
            i = n if end == -1 else end
            continue
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            i = n if end == -1 else end + 2
            continue
        result.append(char)
        i += 1
    return "".join(result)


def is_rule_only_format(path: Path) -> bool:
    """``.markdownlint.*`` files hold the rule mapping itself, with no ``config`` key."""
    return path.name.startswith(".markdownlint.")


def _read_mapping(path: Path) -> dict[str, Any]:
    suffix = path.suffix.lower()
    if suffix not in _YAML_SUFFIXES + _JSON_SUFFIXES:
        raise ConfigError(path, f"unsupported config file format {suffix or '(none)'}")
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigError(path, "file not found") from None
    except OSError as exc:
        raise ConfigError(path, f"cannot read file: {exc.strerror or exc}") from exc
    try:
        if suffix in _YAML_SUFFIXES:
            data = yaml.safe_load(text)
        else:
            data = json.loads(strip_json_comments(text)) if text.strip() else None
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigError(path, f"invalid syntax: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(path, "top level must be a mapping")
    return data


def merge_config_files(base: ConfigFile, child: ConfigFile) -> ConfigFile:
    """Flatten *child* onto the already resolved *base* it extends."""
    return ConfigFile(
        config=deep_merge(base.config, child.config),
        ignores=[*base.ignores, *child.ignores],
        overrides=[*base.overrides, *child.overrides],
        output_formatters=child.output_formatters or base.output_formatters,
        no_inline_config=child.no_inline_config or base.no_inline_config,
        globs=child.globs or base.globs,
        fix=base.fix or child.fix,
        front_matter=child.front_matter or base.front_matter,
        gitignore=child.gitignore if child.gitignore else base.gitignore,
    )


def _load(path: Path, visited: set[Path]) -> ConfigFile:
    path = path.resolve()
    if path in visited:
        raise ConfigError(path, "circular extends reference")
    visited.add(path)

    data = _read_mapping(path)
    if is_rule_only_format(path):
        return ConfigFile(config=canonical_rule_keys(data))
    try:
        loaded = ConfigFile.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(path, f"invalid configuration: {exc.errors()[0]['msg']}") from exc
    loaded.config = canonical_rule_keys(loaded.config)
    for override in loaded.overrides:
        override.config = canonical_rule_keys(override.config)

    if not loaded.extends:
        return loaded
    target = Path(loaded.extends)
    if not target.is_absolute():
        target = path.parent / target
    logger.debug("%s extends %s", path, target)
    return merge_config_files(_load(target, visited), loaded.model_copy(update={"extends": None}))


def load_config(path: str | Path) -> ConfigFile:
    """Load *path* and flatten its ``extends`` chain.

    Raises:
        ConfigError: The file, or a file it extends, is missing, unparsable,
            has an unsupported extension, or the chain is circular.
    """
    config = _load(Path(path), set())
    logger.info("Loaded configuration from %s", path)
    return config


def find_git_root(directory: Path) -> Path | None:
    current = directory.resolve()
    for candidate in (current, *current.parents):
        if (candidate / ".git").exists():
            return candidate
    return None


def parse_gitignore(path: Path) -> list[str]:
    """Patterns of a ``.gitignore`` file; comments and negations are skipped.

    A directory entry such as ``build/`` also yields ``build/**`` so the files
    below it match.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError:
        return []
    patterns = []
    for line in text.splitlines():
        line = line.rstrip()
        if not line or line.startswith(("#", "!")):
            continue
        entry = line.strip("/")
        patterns.extend((entry, f"{entry}/**"))
    return patterns


def collect_gitignore_patterns(cwd: str | Path, glob: str | None = None) -> list[str]:
    """Ignore patterns from ``.gitignore`` files.

    With *glob*, every file under *cwd* matching it is read; otherwise the
    ``.gitignore`` files from *cwd* up to the repository root are.
    """
    root = Path(cwd).resolve()
    if glob:
        files = [p for p in sorted(root.rglob("*")) if p.is_file() and match_path(glob, p.relative_to(root).as_posix())]
    else:
        git_root = find_git_root(root)
        files = []
        for directory in (root, *root.parents):
            files.append(directory / ".gitignore")
            if git_root is None or directory == git_root:
                break
    patterns: list[str] = []
    for file in files:
        patterns.extend(parse_gitignore(file))
    return patterns


def resolve_config(path: str | Path | None, cwd: str | Path) -> ConfigFile:
    """Load the explicit *path*, else the config discovered from *cwd*, else defaults."""
    if path is not None:
        return load_config(path)
    found = find_config_file(cwd)
    if found is None:
        logger.debug("No config file found from %s, using defaults", cwd)
        return ConfigFile()
    return load_config(found)
