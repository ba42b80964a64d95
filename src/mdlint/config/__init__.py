from mdlint.config.binder import (
    RuleInfo,
    build_linter,
    build_rules,
    is_rule_enabled,
    rule_infos,
    rule_severity,
)
from mdlint.config.glob import match_path, matches_any, normalize_path
from mdlint.config.loader import (
    CONFIG_FILE_NAMES,
    ConfigFile,
    GlobOverride,
    collect_gitignore_patterns,
    find_config_file,
    load_config,
    resolve_config,
    strip_json_comments,
)
from mdlint.config.merge import canonical_rule_keys, deep_merge, effective_config_for_file

__all__ = [
    "CONFIG_FILE_NAMES",
    "ConfigFile",
    "GlobOverride",
    "RuleInfo",
    "build_linter",
    "build_rules",
    "canonical_rule_keys",
    "collect_gitignore_patterns",
    "deep_merge",
    "effective_config_for_file",
    "find_config_file",
    "is_rule_enabled",
    "load_config",
    "match_path",
    "matches_any",
    "normalize_path",
    "resolve_config",
    "rule_infos",
    "rule_severity",
    "strip_json_comments",
]
