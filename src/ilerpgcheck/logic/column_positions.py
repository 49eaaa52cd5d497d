# src/ilerpgcheck/logic/column_positions.py
from __future__ import annotations

from typing import Callable, Dict, List, Optional

from ilerpgcheck.logic.column_shift_detector import check_col6, detect_column_shift
from ilerpgcheck.models.check_level import LEVEL_STANDARD, LEVEL_STRICT, at_least
from ilerpgcheck.models.classified_line import SPEC_C, SPEC_D, SPEC_F, SPEC_H, SPEC_P, ClassifiedLine
from ilerpgcheck.models.issue import CATEGORY_STRUCTURE, SEVERITY_ERROR, SEVERITY_WARNING, Issue
from ilerpgcheck.parser import dbcs
from ilerpgcheck.parser.columns import char_at, extract_column, is_name_continuation

MAX_LINE_LENGTH = 100

VALID_FILE_TYPES = frozenset("IOUC")
VALID_DEVICES = ("DISK", "PRINTER", "WORKSTN", "SPECIAL")
VALID_BEGIN_END = frozenset("BE")


def _issue(line: ClassifiedLine, rule: str, message: str, **kwargs) -> Issue:
    kwargs.setdefault("severity", SEVERITY_ERROR)
    kwargs.setdefault("category", CATEGORY_STRUCTURE)
    return Issue(
        line=line.line_number,
        message=message,
        rule=rule,
        code_snippet=line.raw_content,
        **kwargs,
    )


# ─────────────────────────────────────────────
# H 仕様書
# ─────────────────────────────────────────────
def check_h_spec(line: ClassifiedLine, level: str) -> List[Issue]:
    issues: List[Issue] = []
    col6 = check_col6(line)
    if col6:
        issues.append(col6)
    if line.is_comment:
        return issues

    if at_least(level, LEVEL_STRICT) and extract_column(line.raw_content, 6, 80) is None:
        issues.append(_issue(
            line,
            "H_SPEC_KEYWORD",
            "H仕様書にキーワードがありません。",
            severity=SEVERITY_WARNING,
            column=7,
            rule_description="H仕様書は7桁目以降に制御キーワードを記述します。",
            suggestion="不要な行であれば削除してください。",
        ))
    return issues


# ─────────────────────────────────────────────
# F 仕様書
# ─────────────────────────────────────────────
def check_f_spec(line: ClassifiedLine, level: str) -> List[Issue]:
    issues: List[Issue] = []
    col6 = check_col6(line)
    if col6:
        issues.append(col6)
    if line.is_comment or line.is_continuation or not at_least(level, LEVEL_STANDARD):
        return issues

    raw = line.raw_content
    file_type = char_at(raw, 16)
    if file_type != " " and file_type.upper() not in VALID_FILE_TYPES:
        issues.append(_issue(
            line,
            "F_SPEC_FILE_TYPE",
            f"F仕様書のファイルタイプ（17桁）が不正です: '{file_type}'",
            column=17,
            rule_description="有効なファイルタイプ: I（入力）, O（出力）, U（更新）, C（結合）",
            suggestion="17桁目のファイルタイプを確認してください。",
        ))

    device = extract_column(raw, 35, 42)
    if device and not device.upper().startswith(VALID_DEVICES):
        issues.append(_issue(
            line,
            "F_SPEC_DEVICE",
            f"F仕様書の装置名（36-42桁）が不明です: '{device}'",
            severity=SEVERITY_WARNING,
            column=36,
            end_column=42,
            rule_description="有効な装置: DISK, PRINTER, WORKSTN, SPECIAL",
            suggestion="36-42桁目の装置名を確認してください。",
        ))
    return issues


# ─────────────────────────────────────────────
# P 仕様書
# ─────────────────────────────────────────────
def check_p_spec(line: ClassifiedLine, level: str) -> List[Issue]:
    issues: List[Issue] = []
    col6 = check_col6(line)
    if col6:
        issues.append(col6)
    if line.is_comment or not at_least(level, LEVEL_STANDARD):
        return issues

    raw = line.raw_content
    if is_name_continuation(raw):
        return issues

    begin_end = char_at(raw, 23)
    if begin_end != " " and begin_end.upper() not in VALID_BEGIN_END:
        issues.append(_issue(
            line,
            "P_SPEC_BEGIN_END",
            f"P仕様書の開始/終了（24桁）が不正です: '{begin_end}'",
            column=24,
            rule_description="24桁目は B（開始）または E（終了）です。",
            suggestion="24桁目を B または E にしてください。",
        ))
    return issues


# ─────────────────────────────────────────────
# C 仕様書
# ─────────────────────────────────────────────
def check_c_spec(line: ClassifiedLine, level: str) -> List[Issue]:
    col6 = check_col6(line)
    return [col6] if col6 else []


_TYPE_CHECKS: Dict[str, Callable[[ClassifiedLine, str], List[Issue]]] = {
    SPEC_H: check_h_spec,
    SPEC_F: check_f_spec,
    SPEC_P: check_p_spec,
    SPEC_C: check_c_spec,
}


# ─────────────────────────────────────────────
# 行長
# ─────────────────────────────────────────────
def check_line_length(line: ClassifiedLine, consider_dbcs: bool = False) -> Optional[Issue]:
    raw = line.raw_content
    length = dbcs.byte_length(raw) if consider_dbcs else len(raw)
    if length <= MAX_LINE_LENGTH:
        return None

    message = f"行の長さが{MAX_LINE_LENGTH}文字を超えています（{length}文字）。"
    if consider_dbcs and dbcs.contains_dbcs(raw):
        analysis = dbcs.analyze_string(raw)
        message += (
            f" DBCS文字: {analysis.dbcs_count}文字、"
            f"シフト文字: {analysis.shift_characters}バイト"
        )

    return _issue(
        line,
        "LINE_LENGTH",
        message,
        column=MAX_LINE_LENGTH + 1,
        rule_description=f"ソース行は{MAX_LINE_LENGTH}桁以内に収める必要があります。",
        suggestion="行を分割するか、継続行を使用してください。",
    )


def check_column_positions(
    lines: List[ClassifiedLine],
    level: str = LEVEL_STANDARD,
    consider_dbcs: bool = False,
) -> List[Issue]:
    """仕様書タイプごとの桁位置チェックと行長チェックをまとめて実行する。"""
    issues: List[Issue] = []
    # 直前の（コメント・空行以外の）行が D の名前継続行
    name_continued = False
    for line in lines:
        if line.spec_type == SPEC_D:
            issues.extend(detect_column_shift(line, level, name_continued))
        else:
            checker = _TYPE_CHECKS.get(line.spec_type)
            if checker is not None:
                issues.extend(checker(line, level))

        if not line.is_comment and line.raw_content.strip():
            name_continued = line.spec_type == SPEC_D and is_name_continuation(line.raw_content)

        too_long = check_line_length(line, consider_dbcs)
        if too_long:
            issues.append(too_long)
    return issues
