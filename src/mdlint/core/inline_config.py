"""``<!-- markdownlint-... -->`` comments that switch rules on and off inside a document."""

import json
import logging
import re
from collections.abc import Callable, Sequence
from typing import Any

logger = logging.getLogger(__name__)

ALL_RULES = "*"

_COMMENT_RE = re.compile(
    r"<!--\s*markdownlint-(disable-next-line|disable-line|disable-file|enable-file|disable|enable|capture|restore)"
    r"((?:\s+[\w-]+)*)\s*-->"
)
_CONFIGURE_FILE_RE = re.compile(r"<!--\s*markdownlint-configure-file\s*(\{.*?\})\s*-->", re.DOTALL)


class _State:
    """Enabled state of every rule: a default plus per-rule exceptions."""

    def __init__(self, default: bool = True, exceptions: dict[str, bool] | None = None) -> None:
        self.default = default
        self.exceptions = dict(exceptions or {})

    def copy(self) -> "_State":
        return _State(self.default, self.exceptions)

    def apply(self, names: frozenset[str], enabled: bool) -> None:
        if ALL_RULES in names:
            self.default = enabled
            self.exceptions.clear()
            return
        for name in names:
            self.exceptions[name] = enabled

    def enabled(self, rule_id: str) -> bool:
        return self.exceptions.get(rule_id, self.default)


class InlineConfig:
    """Per-line suppression state computed from a document's comments."""

    def __init__(
        self,
        file_disabled: set[str],
        line_states: list[_State],
        line_disabled: dict[int, set[str]],
        file_config: dict[str, Any],
    ) -> None:
        self._file_disabled = file_disabled
        self._line_states = line_states
        self._line_disabled = line_disabled
        self.file_config = file_config

    def is_file_disabled(self, rule_id: str) -> bool:
        if ALL_RULES in self._file_disabled or rule_id in self._file_disabled:
            return True
        return self.file_config.get(rule_id) is False

    def is_suppressed(self, rule_id: str, line: int) -> bool:
        """Whether a violation of *rule_id* on 1-based *line* is hidden."""
        if self.is_file_disabled(rule_id):
            return True
        extra = self._line_disabled.get(line, set())
        if ALL_RULES in extra or rule_id in extra:
            return True
        if 1 <= line <= len(self._line_states):
            return not self._line_states[line - 1].enabled(rule_id)
        return False


def _names(raw: str, resolve: Callable[[str], str]) -> frozenset[str]:
    names = raw.split()
    if not names:
        return frozenset({ALL_RULES})
    return frozenset(resolve(name) for name in names)


def parse_configure_file(text: str, resolve: Callable[[str], str]) -> dict[str, Any]:
    config: dict[str, Any] = {}
    for match in _CONFIGURE_FILE_RE.finditer(text):
        try:
            value = json.loads(match.group(1))
        except json.JSONDecodeError:
            logger.debug("Ignoring malformed markdownlint-configure-file comment")
            continue
        if isinstance(value, dict):
            config.update({resolve(key): item for key, item in value.items()})
    return config


def parse_inline_config(
    lines: Sequence[str],
    code_mask: Sequence[bool],
    resolve: Callable[[str], str],
) -> InlineConfig:
    """Scan *lines* for control comments, ignoring those inside code blocks.

    *resolve* maps a rule name or alias to its canonical id.
    """
    file_disabled: set[str] = set()
    line_disabled: dict[int, set[str]] = {}
    line_states: list[_State] = []
    state = _State()
    captured: list[_State] = []

    for index, line in enumerate(lines):
        if code_mask[index] or "markdownlint-" not in line:
            line_states.append(state.copy())
            continue
        for match in _COMMENT_RE.finditer(line):
            action = match.group(1)
            names = _names(match.group(2), resolve)
            if action == "disable":
                state.apply(names, False)
            elif action == "enable":
                state.apply(names, True)
            elif action == "disable-file":
                file_disabled |= names
            elif action == "enable-file":
                if ALL_RULES in names:
                    file_disabled.clear()
                else:
                    file_disabled -= names
            elif action == "disable-line":
                line_disabled.setdefault(index + 1, set()).update(names)
            elif action == "disable-next-line":
                line_disabled.setdefault(index + 2, set()).update(names)
            elif action == "capture":
                captured.append(state.copy())
            elif action == "restore":
                state = captured.pop() if captured else _State()
        line_states.append(state.copy())

    prose = "\n".join("" if code_mask[index] else line for index, line in enumerate(lines))
    file_config = parse_configure_file(prose, resolve)
    return InlineConfig(file_disabled, line_states, line_disabled, file_config)
