# src/ilerpgcheck/checkers/naming_checker.py
from __future__ import annotations

import re
from typing import List, Optional

from ilerpgcheck.models.check_level import LEVEL_STANDARD, LEVEL_STRICT, at_least
from ilerpgcheck.models.classified_line import (
    SPEC_D,
    SPEC_F,
    SPEC_P,
    ClassifiedLine,
    DSpecFields,
    FSpecFields,
    PSpecFields,
)
from ilerpgcheck.models.issue import CATEGORY_NAMING, SEVERITY_ERROR, SEVERITY_INFO, SEVERITY_WARNING, Issue
from ilerpgcheck.parser.columns import char_at, name_before_marker

INVALID_NAME_CHARS = re.compile(r"[^A-Za-z0-9_#@$]")

LOOP_VARIABLES = frozenset("IJKXYZ")

RESERVED_WORDS = frozenset({
    "IF", "ELSE", "ENDIF", "DO", "ENDDO", "FOR", "ENDFOR",
    "SELECT", "WHEN", "OTHER", "ENDSL", "DOU", "DOW",
})

GENERIC_NAME = re.compile(r"^(temp|tmp|var|data|value|x|y|z)\d*$", re.IGNORECASE)

MAX_RECOMMENDED_LENGTH = 15

VERB_PREFIXES = (
    "get", "set", "calc", "calculate", "check", "validate",
    "process", "update", "delete", "create", "read", "write",
    "load", "save", "init", "initialize", "open", "close",
    "add", "remove", "find", "search", "format", "parse",
    "build", "generate", "convert", "transform",
)

CASE_STYLES = (
    re.compile(r"^[a-z][a-zA-Z0-9]*$"),  # camelCase
    re.compile(r"^[A-Z][a-zA-Z0-9]*$"),  # PascalCase
    re.compile(r"^[a-z][a-z0-9_]*$"),    # snake_case
    re.compile(r"^[A-Z][A-Z0-9_]*$"),    # UPPER_SNAKE
)


def check_naming(lines: List[ClassifiedLine], level: str = LEVEL_STANDARD) -> List[Issue]:
    issues: List[Issue] = []
    issues.extend(check_variable_names(lines, level))
    if at_least(level, LEVEL_STANDARD):
        issues.extend(check_procedure_names(lines, level))
    if at_least(level, LEVEL_STRICT):
        issues.extend(check_file_names(lines))
    return issues


def _naming_issue(line_number: int, rule: str, message: str, severity: str, end_column: int = 21, **kwargs) -> Issue:
    return Issue(
        severity=severity,
        category=CATEGORY_NAMING,
        line=line_number,
        column=7,
        end_column=end_column,
        message=message,
        rule=rule,
        **kwargs,
    )


# ─────────────────────────────────────────────
# 変数名（D仕様書）
# ─────────────────────────────────────────────
def declared_name(line: ClassifiedLine) -> Optional[str]:
    """D/P 仕様書の名前。名前継続行（'...'）は '...' の手前まで。"""
    continued = name_before_marker(line.raw_content)
    if continued:
        return continued
    data = line.column_data
    if isinstance(data, (DSpecFields, PSpecFields)):
        return data.name
    return None


def check_variable_names(lines: List[ClassifiedLine], level: str) -> List[Issue]:
    issues: List[Issue] = []
    for line in lines:
        if line.spec_type != SPEC_D or line.is_comment:
            continue
        name = declared_name(line)
        if name:
            issues.extend(validate_variable_name(name, line.line_number, level))
    return issues


def validate_variable_name(name: str, line_number: int, level: str) -> List[Issue]:
    issues: List[Issue] = []

    if len(name) == 1 and name.upper() not in LOOP_VARIABLES:
        issues.append(_naming_issue(
            line_number,
            "VAR_NAME_TOO_SHORT",
            f"変数名 '{name}' は短すぎます。より説明的な名前を使用してください。",
            SEVERITY_WARNING,
            rule_description="変数名は1文字ではなく、その目的を表す説明的な名前を使用すべきです。",
            suggestion="変数の目的を表す、より長い名前を使用してください（例: counter, index, total）。",
        ))

    if INVALID_NAME_CHARS.search(name):
        issues.append(_naming_issue(
            line_number,
            "VAR_NAME_INVALID_CHARS",
            f"変数名 '{name}' に使用できない文字が含まれています。",
            SEVERITY_ERROR,
            rule_description="変数名には英数字、アンダースコア（_）、#、@、$ のみ使用できます。",
            suggestion="使用できない文字を削除または置換してください。",
        ))

    if name[0].isdigit():
        issues.append(_naming_issue(
            line_number,
            "VAR_NAME_STARTS_WITH_DIGIT",
            f"変数名 '{name}' は数字で始まっています。",
            SEVERITY_ERROR,
            rule_description="変数名は英字、アンダースコア、#、@、$ で始める必要があります。",
            suggestion="変数名を英字で始めてください（例: var1, item1）。",
        ))

    if at_least(level, LEVEL_STRICT) and name.upper() in RESERVED_WORDS:
        issues.append(_naming_issue(
            line_number,
            "VAR_NAME_RESERVED",
            f"変数名 '{name}' は予約語です。",
            SEVERITY_ERROR,
            rule_description="RPGの予約語を変数名として使用することはできません。",
            suggestion="別の名前を使用してください。",
        ))

    if at_least(level, LEVEL_STANDARD) and GENERIC_NAME.match(name):
        issues.append(_naming_issue(
            line_number,
            "VAR_NAME_GENERIC",
            f"変数名 '{name}' は汎用的すぎます。より具体的な名前を推奨します。",
            SEVERITY_INFO,
            rule_description="変数名は、その変数が何を表すのかを明確に示すべきです。",
            suggestion="変数の用途や内容を表す具体的な名前を使用してください（例: customerName, orderTotal）。",
        ))

    if at_least(level, LEVEL_STRICT) and len(name) > MAX_RECOMMENDED_LENGTH:
        issues.append(_naming_issue(
            line_number,
            "VAR_NAME_TOO_LONG",
            f"変数名 '{name}' は長すぎる可能性があります（{len(name)}文字）。",
            SEVERITY_INFO,
            rule_description=f"変数名は{MAX_RECOMMENDED_LENGTH}文字以内に収めることを推奨します。",
            suggestion="より短く、かつ意味が明確な名前を検討してください。",
        ))

    return issues


# ─────────────────────────────────────────────
# プロシージャ名（P仕様書の開始行）
# ─────────────────────────────────────────────
def check_procedure_names(lines: List[ClassifiedLine], level: str) -> List[Issue]:
    issues: List[Issue] = []
    # "P longProcName..." の次の B 行で使う名前
    pending: Optional[str] = None

    for line in lines:
        if line.spec_type != SPEC_P or line.is_comment:
            continue

        continued = name_before_marker(line.raw_content)
        if continued:
            pending = continued
            continue

        if char_at(line.raw_content, 23).upper() != "B":
            pending = None
            continue

        name = declared_name(line) or pending
        pending = None
        if name:
            issues.extend(validate_procedure_name(name, line.line_number, level))

    return issues


def validate_procedure_name(name: str, line_number: int, level: str) -> List[Issue]:
    issues: List[Issue] = []

    if INVALID_NAME_CHARS.search(name):
        issues.append(_naming_issue(
            line_number,
            "PROC_NAME_INVALID_CHARS",
            f"プロシージャ名 '{name}' に使用できない文字が含まれています。",
            SEVERITY_ERROR,
            rule_description="プロシージャ名には英数字、アンダースコア、#、@、$ のみ使用できます。",
        ))

    if name[0].isdigit():
        issues.append(_naming_issue(
            line_number,
            "PROC_NAME_STARTS_WITH_DIGIT",
            f"プロシージャ名 '{name}' は数字で始まっています。",
            SEVERITY_ERROR,
            rule_description="プロシージャ名は数字で始めることができません。",
        ))

    if len(name) > 3 and not name.lower().startswith(VERB_PREFIXES):
        issues.append(_naming_issue(
            line_number,
            "PROC_NAME_VERB_PREFIX",
            f"プロシージャ名 '{name}' は動詞で始めることを推奨します。",
            SEVERITY_INFO,
            rule_description="プロシージャ名は、その処理内容を表す動詞で始めることで、可読性が向上します。",
            suggestion="get, set, calc, check, validate, process などの動詞で始めてください。",
        ))

    if at_least(level, LEVEL_STRICT) and len(name) > 1:
        if not any(style.match(name) for style in CASE_STYLES):
            issues.append(_naming_issue(
                line_number,
                "PROC_NAME_CASE_STYLE",
                f"プロシージャ名 '{name}' は一貫した命名規則に従うことを推奨します。",
                SEVERITY_INFO,
                rule_description="camelCase、PascalCase、snake_case のいずれかを使用してください。",
                suggestion="例: getUserData, GetUserData, get_user_data",
            ))

    return issues


# ─────────────────────────────────────────────
# ファイル名（F仕様書）
# ─────────────────────────────────────────────
def check_file_names(lines: List[ClassifiedLine]) -> List[Issue]:
    issues: List[Issue] = []
    for line in lines:
        if line.spec_type != SPEC_F or line.is_comment:
            continue
        data = line.column_data
        if not isinstance(data, FSpecFields) or not data.file_name:
            continue
        if INVALID_NAME_CHARS.search(data.file_name):
            issues.append(_naming_issue(
                line.line_number,
                "FILE_NAME_INVALID_CHARS",
                f"ファイル名 '{data.file_name}' に使用できない文字が含まれています。",
                SEVERITY_ERROR,
                end_column=16,
                rule_description="ファイル名には英数字、アンダースコア、#、@、$ のみ使用できます。",
            ))
    return issues
