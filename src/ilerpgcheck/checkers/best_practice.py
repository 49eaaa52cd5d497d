# src/ilerpgcheck/checkers/best_practice.py
from __future__ import annotations

from typing import List, Optional

from ilerpgcheck.custom_rules import CustomRulesManager
from ilerpgcheck.logic.line_statistics import (
    INDICATOR_PATTERN,
    find_deprecated_opcodes,
    find_indicator_usage,
)
from ilerpgcheck.models.check_level import LEVEL_STANDARD, LEVEL_STRICT, at_least
from ilerpgcheck.models.classified_line import FREE, ClassifiedLine
from ilerpgcheck.models.issue import (
    CATEGORY_BEST_PRACTICE,
    CATEGORY_DEPRECATED,
    SEVERITY_ERROR,
    SEVERITY_INFO,
    SEVERITY_WARNING,
    Issue,
)


def check_best_practices(
    lines: List[ClassifiedLine],
    level: str = LEVEL_STANDARD,
    custom_rules: Optional[CustomRulesManager] = None,
) -> List[Issue]:
    issues: List[Issue] = []
    issues.extend(check_deprecated_opcodes(lines))
    if at_least(level, LEVEL_STANDARD):
        issues.extend(check_indicator_usage(lines))
    if at_least(level, LEVEL_STRICT):
        issues.extend(recommend_fully_free(lines))
    if at_least(level, LEVEL_STANDARD):
        issues.extend(check_no_goto(lines))
    if custom_rules is not None:
        issues.extend(custom_rules.check_lines(lines))
    return issues


def check_deprecated_opcodes(lines: List[ClassifiedLine]) -> List[Issue]:
    return [
        Issue(
            severity=SEVERITY_WARNING,
            category=CATEGORY_DEPRECATED,
            line=usage.line.line_number,
            column=26,
            end_column=35,
            message=f"非推奨命令 '{usage.opcode}' が使用されています。{usage.entry.reason}。",
            rule="DEPRECATED_OPCODE",
            rule_description=f"{usage.entry.code}命令は非推奨です。",
            suggestion=usage.entry.alternative,
            code_snippet=usage.line.raw_content,
        )
        for usage in find_deprecated_opcodes(lines)
    ]


def check_indicator_usage(lines: List[ClassifiedLine]) -> List[Issue]:
    """*INnn の出現ごとに1件。"""
    issues: List[Issue] = []
    for line in find_indicator_usage(lines):
        if line.is_comment:
            continue
        for m in INDICATOR_PATTERN.finditer(line.raw_content):
            issues.append(Issue(
                severity=SEVERITY_WARNING,
                category=CATEGORY_BEST_PRACTICE,
                line=line.line_number,
                column=m.start() + 1,
                end_column=m.end(),
                message=f"数字付き標識 '{m.group(0)}' の使用は避けるべきです。",
                rule="INDICATOR_USAGE",
                rule_description="数字付き標識（*IN01-*IN99）は可読性を低下させます。",
                suggestion="名前付き標識（論理変数）を使用してください（例: isValid, hasError）。",
                code_snippet=line.raw_content,
            ))
    return issues


def recommend_fully_free(lines: List[ClassifiedLine]) -> List[Issue]:
    has_fully_free = any(line.spec_type == FREE for line in lines)
    has_fixed = any(line.is_fixed_form and not line.is_comment for line in lines)
    if has_fully_free or not has_fixed:
        return []
    return [Issue(
        severity=SEVERITY_INFO,
        category=CATEGORY_BEST_PRACTICE,
        line=1,
        message="完全自由形式（**FREE）の使用を推奨します。",
        rule="RECOMMEND_FULLY_FREE",
        rule_description="**FREE形式は、より読みやすく、保守しやすいコードを実現します。",
        suggestion="ファイルの先頭に**FREEを追加し、コードを自由形式に変換してください。",
    )]


def check_no_goto(lines: List[ClassifiedLine]) -> List[Issue]:
    return [
        Issue(
            severity=SEVERITY_ERROR,
            category=CATEGORY_BEST_PRACTICE,
            line=usage.line.line_number,
            column=26,
            end_column=35,
            message="GOTO命令は構造化プログラミングに反します。",
            rule="NO_GOTO",
            rule_description="GOTO命令はコードの流れを複雑にし、保守性を低下させます。",
            suggestion="IF/ELSE、DO/ENDDO、SELECT/WHENなどの構造化命令を使用してください。",
            code_snippet=usage.line.raw_content,
        )
        for usage in find_deprecated_opcodes(lines)
        if usage.opcode == "GOTO"
    ]
