# src/ilerpgcheck/reporter.py
from __future__ import annotations

import json
import os
from typing import Dict, List, Union

from ilerpgcheck.message_tables import load_messages, spec_label
from ilerpgcheck.models.check_result import CheckResult
from ilerpgcheck.models.classified_line import ALL_SPEC_TYPES
from ilerpgcheck.models.issue import SEVERITY_ERROR, SEVERITY_INFO, SEVERITY_WARNING, Issue

REPORT_FORMATS = ("text", "json", "markdown")

BANNER = "=" * 80

SEVERITY_ICONS: Dict[str, str] = {
    SEVERITY_ERROR: "✗",
    SEVERITY_WARNING: "⚠",
    SEVERITY_INFO: "ℹ",
}

ANSI_COLORS: Dict[str, str] = {
    SEVERITY_ERROR: "\x1b[31m",    # 赤
    SEVERITY_WARNING: "\x1b[33m",  # 黄
    SEVERITY_INFO: "\x1b[36m",     # シアン
}
ANSI_RESET = "\x1b[0m"


def _status(result: CheckResult, msg: Dict[str, str]) -> str:
    return f"✓ {msg['passed']}" if result.valid else f"✗ {msg['failed']}"


def _location(issue: Issue, msg: Dict[str, str]) -> str:
    if issue.column is not None:
        return f"{msg['line']}{issue.line}:{issue.column}"
    return f"{msg['line']}{issue.line}"


def _severity_icon(severity: str, msg: Dict[str, str], color: bool) -> str:
    icon = f"{SEVERITY_ICONS.get(severity, '')} [{msg.get(severity, severity)}]".strip()
    if color and severity in ANSI_COLORS:
        return f"{ANSI_COLORS[severity]}{icon}{ANSI_RESET}"
    return icon


# ─────────────────────────────────────────────
# テキスト
# ─────────────────────────────────────────────
def format_text(
    result: CheckResult,
    verbose: bool = False,
    color: bool = False,
    language: str = "en",
) -> str:
    msg = load_messages(language)
    summary = result.summary
    lines: List[str] = [BANNER, msg["check_result"], BANNER, ""]

    if result.file_path:
        lines += [f"{msg['file']}: {result.file_path}", ""]

    lines += [
        f"【{msg['summary']}】",
        f"{msg['total_issues']}: {summary.total_issues}",
        f"  {msg['errors']}: {summary.errors}",
        f"  {msg['warnings']}: {summary.warnings}",
        f"  {msg['infos']}: {summary.infos}",
        f"{msg['checked_lines']}: {summary.checked_lines}",
        "",
    ]

    if verbose:
        lines.append(f"【{msg['spec_stats']}】")
        for spec in ALL_SPEC_TYPES:
            count = summary.specification_counts.get(spec, 0)
            if count > 0:
                lines.append(f"  {spec_label(spec, language)}: {count}{msg['lines']}")
        lines.append("")

    if result.issues:
        lines += [f"【{msg['detected_issues']}】", ""]
        for issue in result.issues:
            lines.append(_format_issue_text(issue, msg, verbose, color))
            lines.append("")
    else:
        lines += [msg["no_issues"], ""]

    lines += [BANNER, f"{msg['judgment']}: {_status(result, msg)}", BANNER]
    return "\n".join(lines)


def _format_issue_text(issue: Issue, msg: Dict[str, str], verbose: bool, color: bool) -> str:
    lines = [f"{_severity_icon(issue.severity, msg, color)} {_location(issue, msg)} - {issue.message}"]

    if verbose:
        lines.append(f"  {msg['rule']}: {issue.rule}")
        if issue.rule_description:
            lines.append(f"  {msg['description']}: {issue.rule_description}")
    if issue.suggestion:
        lines.append(f"  {msg['suggestion']}: {issue.suggestion}")
    if verbose and issue.code_snippet:
        lines.append(f"  {msg['code']}: {issue.code_snippet}")
    if verbose and issue.corrected_code:
        lines.append(f"  {msg['before']}: {issue.code_snippet or ''}")
        lines.append(f"  {msg['after']}: {issue.corrected_code}")

    return "\n".join(lines)


# ─────────────────────────────────────────────
# JSON
# ─────────────────────────────────────────────
def format_json(result: Union[CheckResult, List[CheckResult]], pretty: bool = True) -> str:
    """キーは camelCase。複数ファイル分のリストも受け付ける。"""
    if isinstance(result, list):
        data = [r.to_dict() for r in result]
    else:
        data = result.to_dict()
    return json.dumps(data, ensure_ascii=False, indent=2 if pretty else None)


# ─────────────────────────────────────────────
# Markdown
# ─────────────────────────────────────────────
def format_markdown(result: CheckResult, verbose: bool = False, language: str = "en") -> str:
    msg = load_messages(language)
    summary = result.summary
    lines: List[str] = [f"# {msg['check_result']}", ""]

    if result.file_path:
        lines += [f"**{msg['file']}:** `{result.file_path}`", ""]

    lines += [
        f"## {msg['summary']}",
        "",
        f"| {msg['item']} | {msg['value']} |",
        "|------|---:|",
        f"| {msg['total_issues']} | {summary.total_issues} |",
        f"| {msg['errors']} | {summary.errors} |",
        f"| {msg['warnings']} | {summary.warnings} |",
        f"| {msg['infos']} | {summary.infos} |",
        f"| {msg['checked_lines']} | {summary.checked_lines} |",
        "",
    ]

    if result.valid:
        badge = f"![{msg['passed']}](https://img.shields.io/badge/{msg['judgment']}-{msg['passed']}-success)"
    else:
        badge = f"![{msg['failed']}](https://img.shields.io/badge/{msg['judgment']}-{msg['failed']}-critical)"
    lines += [f"**{msg['judgment']}:** {badge} {_status(result, msg)}", ""]

    if not result.issues:
        lines += [f"## {msg['judgment']}", "", f"✓ {msg['no_issues']}", ""]
        return "\n".join(lines)

    lines += [f"## {msg['detected_issues']}", ""]
    for severity, heading in (
        (SEVERITY_ERROR, msg["errors"]),
        (SEVERITY_WARNING, msg["warnings"]),
        (SEVERITY_INFO, msg["infos"]),
    ):
        grouped = [issue for issue in result.issues if issue.severity == severity]
        if not grouped:
            continue
        lines += [f"### {heading}", ""]
        for issue in grouped:
            lines.append(_format_issue_markdown(issue, msg, verbose))

    return "\n".join(lines)


def _format_issue_markdown(issue: Issue, msg: Dict[str, str], verbose: bool) -> str:
    lines = [f"- **{_location(issue, msg)}** - {issue.message}"]

    if verbose:
        lines.append(f"  - **{msg['rule']}:** `{issue.rule}`")
        if issue.rule_description:
            lines.append(f"  - **{msg['description']}:** {issue.rule_description}")
    if issue.suggestion:
        lines.append(f"  - **{msg['suggestion']}:** {issue.suggestion}")
    if verbose and issue.code_snippet:
        lines.append(f"  - **{msg['code']}:** `{issue.code_snippet}`")
    if verbose and issue.corrected_code:
        lines.append(f"  - **{msg['before']}:** `{issue.code_snippet or ''}`")
        lines.append(f"  - **{msg['after']}:** `{issue.corrected_code}`")

    lines.append("")
    return "\n".join(lines)


def format_summary(result: CheckResult, language: str = "en") -> str:
    msg = load_messages(language)
    s = result.summary
    return (
        f"{_status(result, msg)} - {msg['errors']}: {s.errors}, "
        f"{msg['warnings']}: {s.warnings}, {msg['infos']}: {s.infos}"
    )


def format_report(result: CheckResult, fmt: str = "text", verbose: bool = False, language: str = "en") -> str:
    if fmt == "text":
        return format_text(result, verbose=verbose, language=language)
    if fmt == "json":
        return format_json(result)
    if fmt == "markdown":
        return format_markdown(result, verbose=verbose, language=language)
    raise ValueError(f"Unknown report format: {fmt}")


# 保存先の拡張子 → 出力形式
_SUFFIX_FORMATS: Dict[str, str] = {
    ".json": "json",
    ".md": "markdown",
    ".markdown": "markdown",
}


def format_for_path(path: str) -> str:
    """保存ファイル名から出力形式を決める。不明な拡張子はテキスト。"""
    return _SUFFIX_FORMATS.get(os.path.splitext(path)[1].lower(), "text")
