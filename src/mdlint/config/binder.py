"""Turning an effective option mapping into bound rules and a linter."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from mdlint.core.linter import Linter
from mdlint.models import Severity
from mdlint.rules import RULES, RuleBase, bind_rule, option_defaults


def is_rule_enabled(rule_id: str, config: Mapping[str, Any]) -> bool:
    """Whether *rule_id* runs under *config*.

    ``false`` disables; ``true``, a severity string or an option mapping
    enables. Anything else falls back to the boolean ``default`` key, and
    without one every rule is enabled.
    """
    value = config.get(rule_id)
    if isinstance(value, bool):
        return value
    if isinstance(value, str | Mapping):
        return True
    default = config.get("default")
    return default if isinstance(default, bool) else True


def rule_severity(rule_id: str, config: Mapping[str, Any]) -> Severity:
    value = config.get(rule_id)
    if isinstance(value, str) and value.strip().lower() == "warning":
        return "warning"
    return "error"


def build_rules(config: Mapping[str, Any]) -> list[RuleBase]:
    """Instantiate every enabled rule, in id order, with its configured options."""
    rules = []
    for rule_cls in RULES:
        if not is_rule_enabled(rule_cls.id, config):
            continue
        options = config.get(rule_cls.id)
        rules.append(bind_rule(rule_cls, options if isinstance(options, Mapping) else None))
    return rules


def build_linter(
    config: Mapping[str, Any],
    *,
    no_inline_config: bool = False,
    front_matter: str | None = None,
) -> Linter:
    rules = build_rules(config)
    severities = {rule.id: rule_severity(rule.id, config) for rule in rules}
    return Linter(rules, severities=severities, no_inline_config=no_inline_config, front_matter=front_matter)


@dataclass(frozen=True)
class RuleInfo:
    id: str
    aliases: tuple[str, ...]
    description: str
    enabled: bool
    severity: Severity
    fixable: bool
    options: dict[str, Any]


def rule_infos(config: Mapping[str, Any]) -> list[RuleInfo]:
    """Describe every built-in rule as *config* would run it."""
    infos = []
    for rule_cls in RULES:
        configured = config.get(rule_cls.id)
        options = option_defaults(rule_cls)
        if isinstance(configured, Mapping):
            bound = bind_rule(rule_cls, configured)
            options = {name: getattr(bound, name) for name in options}
        infos.append(
            RuleInfo(
                id=rule_cls.id,
                aliases=rule_cls.aliases,
                description=rule_cls.description,
                enabled=is_rule_enabled(rule_cls.id, config),
                severity=rule_severity(rule_cls.id, config),
                fixable=callable(getattr(rule_cls, "fix", None)),
                options=options,
            )
        )
    return infos
