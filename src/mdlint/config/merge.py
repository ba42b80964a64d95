"""Deep merging of option mappings and per-file effective configuration."""

from collections.abc import Mapping, Sequence
from pathlib import PurePath
from typing import Any, Protocol

from mdlint.config.glob import matches_any
from mdlint.rules import resolve_rule_id


class _Override(Protocol):
    files: list[str]
    config: dict[str, Any]


def deep_merge(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of *base* with *overlay* merged on top.

    Nested mappings present on both sides are merged recursively; any other
    overlay value, lists included, replaces the base value outright.
    """
    merged = dict(base)
    for key, value in overlay.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def canonical_rule_keys(config: Mapping[str, Any]) -> dict[str, Any]:
    """Rewrite rule aliases used as keys to rule ids.

    Keys that name no rule (``default``, for one) are kept as they are. When
    an id and one of its aliases both appear, the later entry is merged onto
    the earlier one.
    """
    result: dict[str, Any] = {}
    for key, value in config.items():
        name = resolve_rule_id(key) or key
        if name in result:
            result[name] = deep_merge({name: result[name]}, {name: value})[name]
        else:
            result[name] = value
    return result


def effective_config_for_file(
    base: Mapping[str, Any], overrides: Sequence[_Override], path: str | PurePath
) -> dict[str, Any]:
    """Fold every override whose ``files`` match *path* onto *base*, in order."""
    config = dict(base)
    for override in overrides:
        if matches_any(path, override.files):
            config = deep_merge(config, override.config)
    return config
