"""Renderers turning per-file violations into report text."""

from __future__ import annotations

import json
import xml.etree.ElementTree as ET
from collections import Counter
from collections.abc import Callable, Sequence
from typing import Any

from rich.text import Text

from mdlint.models import FileViolations

TOOL_NAME = "mdlint"
TOOL_VERSION = "0.1.0"

_FORMATTER_PACKAGES = {
    "markdownlint-cli2-formatter-default": "default",
    "markdownlint-cli2-formatter-json": "json",
    "markdownlint-cli2-formatter-junit": "junit",
    "markdownlint-cli2-formatter-tap": "tap",
    "markdownlint-cli2-formatter-sarif": "sarif",
    "markdownlint-cli2-formatter-github": "github",
}


def rule_url(rule_id: str) -> str:
    return f"https://github.com/DavidAnson/markdownlint/blob/main/doc/{rule_id.lower()}.md"


def format_default_text(results: Sequence[FileViolations]) -> Text:
    """``file:line:column RULE message`` lines, styled for a terminal."""
    text = Text()
    for result in results:
        for v in result.violations:
            text.append(result.file, style="bold")
            text.append(":")
            text.append(f"{v.line}:{v.column}", style="cyan")
            text.append(" ")
            text.append(v.rule, style="yellow" if v.severity == "warning" else "red")
            text.append(f" {v.message}\n")
    return text


def format_default(results: Sequence[FileViolations]) -> str:
    return format_default_text(results).plain


def format_json(results: Sequence[FileViolations]) -> str:
    records = [
        {
            "fileName": result.file,
            "lineNumber": v.line,
            "columnNumber": v.column,
            "ruleNames": [v.rule],
            "ruleDescription": v.message,
            "ruleInformation": rule_url(v.rule),
            "errorDetail": None,
            "errorContext": None,
            "errorRange": None,
            "severity": v.severity,
        }
        for result in results
        for v in result.violations
    ]
    return json.dumps(records, indent=2) + "\n"


def format_junit(results: Sequence[FileViolations]) -> str:
    suites = ET.Element("testsuites")
    suite = ET.SubElement(
        suites,
        "testsuite",
        name=TOOL_NAME,
        tests=str(len(results)),
        failures=str(sum(len(r.violations) for r in results)),
        errors="0",
    )
    for result in results:
        case = ET.SubElement(suite, "testcase", name=result.file, classname=TOOL_NAME, time="0")
        for v in result.violations:
            message = f"{v.line}:{v.column} {v.rule} {v.message}"
            failure = ET.SubElement(case, "failure", message=message, type=v.rule)
            failure.text = message
    ET.indent(suites, space="  ")
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(suites, encoding="unicode") + "\n"


def format_tap(results: Sequence[FileViolations]) -> str:
    entries = [(result.file, v) for result in results for v in result.violations]
    lines = ["TAP version 13", f"1..{len(entries)}"]
    for i, (file, v) in enumerate(entries, start=1):
        lines.append(f"not ok {i} - {file}:{v.line}:{v.column} {v.rule} {v.message}")
    return "\n".join(lines) + "\n"


def format_sarif(results: Sequence[FileViolations]) -> str:
    rules: dict[str, dict[str, Any]] = {}
    findings = []
    for result in results:
        for v in result.violations:
            rules.setdefault(
                v.rule,
                {"id": v.rule, "shortDescription": {"text": v.message}, "helpUri": rule_url(v.rule)},
            )
            findings.append(
                {
                    "ruleId": v.rule,
                    "level": v.severity,
                    "message": {"text": v.message},
                    "locations": [
                        {
                            "physicalLocation": {
                                "artifactLocation": {"uri": result.file, "uriBaseId": "%SRCROOT%"},
                                "region": {"startLine": v.line, "startColumn": v.column},
                            }
                        }
                    ],
                }
            )
    log = {
        "$schema": "https://json.schemastore.org/sarif-2.1.0.json",
        "version": "2.1.0",
        "runs": [
            {
                "tool": {
                    "driver": {
                        "name": TOOL_NAME,
                        "version": TOOL_VERSION,
                        "informationUri": "https://github.com/DavidAnson/markdownlint",
                        "rules": list(rules.values()),
                    }
                },
                "results": findings,
            }
        ],
    }
    return json.dumps(log, indent=2) + "\n"


def format_github(results: Sequence[FileViolations]) -> str:
    """GitHub Actions workflow commands, one annotation per violation."""
    return "".join(
        f"::{v.severity} file={result.file},line={v.line},col={v.column}::{v.rule} {v.message}\n"
        for result in results
        for v in result.violations
    )


def format_summary(results: Sequence[FileViolations]) -> str:
    """Violation count per rule, most frequent first."""
    counts = Counter(v.rule for result in results for v in result.violations)
    if not counts:
        return ""
    ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return "Summary:\n" + "".join(f"  {rule}: {count}\n" for rule, count in ordered)


FORMATTERS: dict[str, Callable[[Sequence[FileViolations]], str]] = {
    "default": format_default,
    "json": format_json,
    "junit": format_junit,
    "tap": format_tap,
    "sarif": format_sarif,
    "github": format_github,
}


def formatter_name(name: str) -> str:
    """Map a markdownlint-cli2 formatter package name to a built-in formatter."""
    return _FORMATTER_PACKAGES.get(name, name)


def parse_output_formatters(raw: Sequence[Any]) -> list[tuple[str, str | None]]:
    """``(format, outfile)`` pairs from an ``outputFormatters`` config value.

    Entries that are not ``[name]`` or ``[name, {"outfile": ...}]`` lists, or
    that name an unknown formatter, are skipped.
    """
    specs = []
    for item in raw:
        if not isinstance(item, list) or not item or not isinstance(item[0], str):
            continue
        name = formatter_name(item[0])
        if name not in FORMATTERS:
            continue
        outfile = None
        if len(item) > 1 and isinstance(item[1], dict) and isinstance(item[1].get("outfile"), str):
            outfile = item[1]["outfile"]
        specs.append((name, outfile))
    return specs
