# src/ilerpgcheck/logic/column_shift_detector.py
"""
D仕様書の桁ずれ検出。

RPG IV 固定形式 D 仕様書の桁位置（1始まり）:
  桁6:     仕様書種別 'D'
  桁7-21:  名前フィールド（15桁）
  桁22:    外部記述（E/空白）
  桁23:    データ構造タイプ
  桁24-25: 宣言型（PR/PI/DS/S/C/E/空白）
  桁26-32: From 位置（7桁）
  桁33-39: To 位置 / 内部長（7桁、右詰め）
  桁40:    データ型
  桁41-42: 小数桁（右詰め）
  桁43-80: キーワード

典型的な桁ずれ:
  - 名前が 15 桁を超えて後続の欄が右にずれ、キーワードがサイズ欄に入り込む
  - "10I" のようにサイズとデータ型がくっついてサイズ欄に入る
  - 宣言型 DS/PR/PI が 1 欄手前（22-23桁）に書かれる
"""
from __future__ import annotations

import re
from typing import Callable, List, Optional, Tuple

from ilerpgcheck.models.check_level import LEVEL_BASIC, LEVEL_STANDARD, LEVEL_STRICT, at_least
from ilerpgcheck.models.classified_line import SPEC_D, ClassifiedLine
from ilerpgcheck.models.issue import (
    CATEGORY_STRUCTURE,
    CATEGORY_SYNTAX,
    SEVERITY_ERROR,
    SEVERITY_WARNING,
    Issue,
)
from ilerpgcheck.parser.columns import (
    char_at,
    extract_column,
    is_name_continuation,
    name_before_marker,
    raw_slice,
)
from ilerpgcheck.parser.line_classifier import is_keyword_continuation

DECLARATION_TYPES: Tuple[str, ...] = ("PR", "PI", "DS", "S", "C", "E")

VALID_DATA_TYPES = frozenset("ABCDFGINOPSTUZ* ")

# 名前なしでも正常な行（TEMPLATE 単独行、キーワード行など）
NAMELESS_KEYWORDS = re.compile(r"^(TEMPLATE|LIKEDS|LIKE|EXTPROC|EXTPGM|BASED|QUALIFIED)")

# サイズ欄に入り込んでいたら桁ずれとみなすキーワード（先頭 7 文字で照合）
BLEED_KEYWORDS: Tuple[str, ...] = (
    "LIKEDS", "LIKE", "CONST", "VARYING", "VALUE", "INZ",
    "DIM", "EXTPROC", "EXTPGM", "OVERLAY", "BASED", "TEMPLATE",
    "QUALIFIED", "NOOPT", "STATIC", "DTAARA", "PREFIX", "EXPORT",
    "IMPORT", "ALIGN", "OPTIONS", "ASCEND", "DESCEND", "CTDATA",
)
BLEED_PREFIX_LENGTH = 7

# サイズ+データ型の融合トークン（例: "10I", "65535A", "16*"）
FUSED_SIZE_TYPE = re.compile(r"^(\d+)([A-Z*])$", re.IGNORECASE)

MAX_DECIMAL_POSITIONS = 63

Check = Callable[[ClassifiedLine], Optional[Issue]]


def _is_digits(text: str) -> bool:
    return text.isascii() and text.isdigit()


def _issue(
    line: ClassifiedLine,
    rule: str,
    message: str,
    *,
    column: int,
    end_column: Optional[int] = None,
    severity: str = SEVERITY_ERROR,
    category: str = CATEGORY_STRUCTURE,
    rule_description: Optional[str] = None,
    suggestion: Optional[str] = None,
    corrected_code: Optional[str] = None,
) -> Issue:
    return Issue(
        severity=severity,
        category=category,
        line=line.line_number,
        column=column,
        end_column=end_column,
        message=message,
        rule=rule,
        rule_description=rule_description,
        suggestion=suggestion,
        code_snippet=line.raw_content,
        corrected_code=corrected_code,
    )


def has_declaration_type(raw: str) -> bool:
    return raw_slice(raw, 23, 25).strip().upper() in DECLARATION_TYPES


# ─────────────────────────────────────────────
# 個別チェック（1行につき 0 or 1 件）
# ─────────────────────────────────────────────

def check_col6(line: ClassifiedLine) -> Optional[Issue]:
    raw = line.raw_content
    if len(raw) < 6 or raw[5].upper() == line.spec_type:
        return None
    return _issue(
        line,
        f"{line.spec_type}_SPEC_COL6",
        f"{line.spec_type}仕様書の6桁目は'{line.spec_type}'である必要があります。",
        column=6,
    )


def check_missing_name(line: ClassifiedLine) -> Optional[Issue]:
    raw = line.raw_content
    name = raw_slice(raw, 6, 21).strip()
    if name or not raw[21:].strip():
        return None

    if has_declaration_type(raw):
        return None
    keywords = raw[42:].strip().upper()
    if NAMELESS_KEYWORDS.match(keywords):
        return None

    return _issue(
        line,
        "D_SPEC_MISSING_NAME",
        "D仕様書の名前フィールド（7-21桁）が空ですが、他のフィールドに値があります。",
        column=7,
        end_column=21,
        rule_description=(
            "D仕様書で定義を行う場合、名前フィールドは必須です。"
            "宣言型のある行や TEMPLATE/LIKEDS 等のキーワード行では名前なしが許容されます。"
        ),
        suggestion="7-21桁目に変数名またはデータ構造名を記述してください。",
    )


def check_position_order(line: ClassifiedLine) -> Optional[Issue]:
    raw = line.raw_content
    from_pos = extract_column(raw, 25, 32)
    to_pos = extract_column(raw, 32, 39)
    if not from_pos or not to_pos:
        return None
    if not (_is_digits(from_pos) and _is_digits(to_pos)):
        return None

    from_num, to_num = int(from_pos), int(to_pos)
    if from_num <= to_num:
        return None

    return _issue(
        line,
        "D_SPEC_POSITION_ERROR",
        f"開始位置（{from_num}）が終了位置（{to_num}）より大きくなっています。",
        column=26,
        end_column=39,
        rule_description="開始位置（26-32桁）は終了位置（33-39桁）以下である必要があります。",
        suggestion="開始位置と終了位置の値を確認してください。",
    )


def check_declaration_type(line: ClassifiedLine) -> Optional[Issue]:
    raw = line.raw_content
    decl = extract_column(raw, 23, 25)
    if decl is None or decl.upper() in DECLARATION_TYPES:
        return None

    return _issue(
        line,
        "D_SPEC_DECL_TYPE",
        f"D仕様書の宣言型（24-25桁）が不正です: '{raw_slice(raw, 23, 25)}'",
        column=24,
        end_column=25,
        rule_description="有効な宣言型: PR, PI, DS, S, C, E, または空白",
        suggestion="24-25桁目の宣言型を確認してください。桁ずれの可能性があります。",
    )


def check_declaration_misplaced(line: ClassifiedLine) -> Optional[Issue]:
    raw = line.raw_content
    if len(raw) < 22:
        return None

    early = raw_slice(raw, 21, 23).strip().upper()
    if early in ("DS", "PR", "PI") and not raw_slice(raw, 23, 25).strip():
        return _issue(
            line,
            "D_SPEC_DECL_TYPE_MISPLACED",
            f"D仕様書の宣言型'{early}'が22-23桁に配置されています。正しくは24-25桁です。",
            column=22,
            end_column=25,
            rule_description="宣言型は24-25桁に配置します。22桁は外部記述、23桁はデータ構造タイプです。",
            suggestion=f"'{early}'を24-25桁に移動してください。名前フィールドの長さを確認してください。",
        )

    # 1文字の宣言型（S/C）が22桁にある場合。22桁の E は外部記述なので正常
    col22 = raw[21].upper()
    if col22 in ("S", "C") and char_at(raw, 22) == " " and char_at(raw, 23) == " ":
        return _issue(
            line,
            "D_SPEC_DECL_TYPE_MISPLACED",
            f"D仕様書の宣言型'{col22}'が22桁に配置されています。正しくは24桁です。",
            column=22,
            end_column=25,
            rule_description="1文字の宣言型（S/C）は24桁に配置します。22桁は外部記述フィールドです。",
            suggestion=f"'{col22}'を24桁に移動してください。",
        )

    return None


def check_trailing_period(line: ClassifiedLine) -> Optional[Issue]:
    name_field = raw_slice(line.raw_content, 6, 21).rstrip()
    if not name_field.endswith(".") or name_field.endswith("..."):
        return None
    return _trailing_period_issue(line, name_field.strip())


def check_continued_name_period(line: ClassifiedLine) -> Optional[Issue]:
    """名前継続行で、'...' の直前の名前自体がピリオドで終わっている場合。"""
    name = name_before_marker(line.raw_content)
    if not name or not name.endswith("."):
        return None
    return _trailing_period_issue(line, name)


def _trailing_period_issue(line: ClassifiedLine, name: str) -> Issue:
    return _issue(
        line,
        "D_SPEC_TRAILING_PERIOD",
        f"D仕様書の名前'{name}'の末尾にピリオドがあります。コンパイラは修飾名として解釈します。",
        column=7,
        end_column=21,
        category=CATEGORY_SYNTAX,
        rule_description=(
            "名前末尾の単独のピリオドは修飾名の区切りとして解釈されます。"
            "名前の継続には'...'を使用します。"
        ),
        suggestion="ピリオドを除去してください。サイズやキーワードが次行にある場合は1行に統合してください。",
    )


def check_data_type(line: ClassifiedLine) -> Optional[Issue]:
    raw = line.raw_content
    if len(raw) < 40:
        return None
    data_type = raw[39]
    if data_type.upper() in VALID_DATA_TYPES:
        return None

    return _issue(
        line,
        "D_SPEC_DATATYPE",
        f"D仕様書のデータ型（40桁）が不正です: '{data_type}'",
        column=40,
        rule_description="有効なデータ型: A, B, C, D, F, G, I, N, O, P, S, T, U, Z, *, または空白",
        suggestion="40桁目のデータ型を確認してください。桁ずれの可能性があります。",
    )


def check_size_field(line: ClassifiedLine) -> Optional[Issue]:
    raw = line.raw_content
    size = extract_column(raw, 32, 39)
    if size is None or _is_digits(size):
        return None

    if size == "*":
        # '*' が39桁にある = データ型（40桁）のポインタが1桁手前にずれている
        if char_at(raw, 38) != "*":
            return None
        return _issue(
            line,
            "D_SPEC_POINTER_POSITION",
            "D仕様書のサイズフィールド（33-39桁）にポインタ型'*'があります。ポインタ型は40桁に配置してください。",
            column=33,
            end_column=39,
            rule_description="ポインタ型(*)はデータ型フィールド（40桁）に配置します。",
            suggestion="'*'を40桁に移動してください。",
        )

    return _issue(
        line,
        "D_SPEC_SIZE_FIELD",
        f"D仕様書のサイズフィールド（33-39桁）に非数値が含まれています: '{size}'",
        column=33,
        end_column=39,
        rule_description="サイズフィールド（33-39桁）には数値のみ記述できます。非数値がある場合は桁ずれの可能性があります。",
        suggestion="サイズは33-39桁に右詰めで記述してください。",
    )


def check_decimal_field(line: ClassifiedLine) -> Optional[Issue]:
    decimals = extract_column(line.raw_content, 40, 42)
    if decimals is None:
        return None

    if not _is_digits(decimals):
        return _issue(
            line,
            "D_SPEC_DECIMAL",
            f"D仕様書の小数桁（41-42桁）に非数値が含まれています: '{decimals}'",
            column=41,
            end_column=42,
            severity=SEVERITY_WARNING,
            rule_description="小数桁フィールド（41-42桁）には数値のみ記述できます。",
            suggestion="小数桁は41-42桁に右詰めで記述してください。",
        )

    value = int(decimals)
    if value > MAX_DECIMAL_POSITIONS:
        return _issue(
            line,
            "D_SPEC_DECIMAL",
            f"D仕様書の小数桁（41-42桁）が有効範囲外です: {value}",
            column=41,
            end_column=42,
            severity=SEVERITY_WARNING,
            rule_description=f"小数桁の有効範囲は0-{MAX_DECIMAL_POSITIONS}です。",
            suggestion="小数桁の値を確認してください。",
        )
    return None


def check_keyword_bleed(line: ClassifiedLine) -> Optional[Issue]:
    size_field = raw_slice(line.raw_content, 32, 39).upper()
    if not size_field.strip():
        return None

    for keyword in BLEED_KEYWORDS:
        if keyword[:BLEED_PREFIX_LENGTH] in size_field:
            return _issue(
                line,
                "D_SPEC_COLUMN_SHIFT",
                f"D仕様書の桁位置がずれています。サイズフィールド（33-39桁）にキーワード'{keyword}'の一部が検出されました。",
                column=33,
                end_column=42,
                rule_description="キーワードは43桁以降に記述します。サイズ欄にキーワードがある場合、名前フィールドが15桁を超えている可能性があります。",
                suggestion="名前フィールド（7-21桁）の長さを確認してください。宣言名は7桁、サブフィールドは8桁から開始します。",
            )
    return None


def check_fused_size_type(line: ClassifiedLine) -> Optional[Issue]:
    raw = line.raw_content
    size = extract_column(raw, 32, 39)
    if size is None:
        return None
    m = FUSED_SIZE_TYPE.match(size)
    if m is None:
        return None

    digits, data_type = m.group(1), m.group(2).upper()
    return _issue(
        line,
        "D_SPEC_COLUMN_SHIFT",
        f"D仕様書の桁位置がずれている可能性があります。サイズフィールド（33-39桁）に'{size}'（サイズ+データ型）が検出されました。",
        column=33,
        end_column=40,
        rule_description=f"サイズ'{digits}'を33-39桁に右詰め、データ型'{data_type}'を40桁に配置します。",
        suggestion=f"正しくは: サイズ'{digits}'（33-39桁、右詰め）+ データ型'{data_type}'（40桁）。",
        corrected_code=realign_size_and_type(raw, digits, data_type),
    )


def realign_size_and_type(raw: str, digits: str, data_type: str) -> str:
    """33-40桁だけを「右詰めサイズ7桁 + データ型1桁」に置き換えた行。他の桁はそのまま。"""
    padded = raw.ljust(42)
    return padded[:32] + digits.rjust(7) + data_type.upper() + padded[40:]


def check_name_position(line: ClassifiedLine) -> Optional[Issue]:
    raw = line.raw_content
    if len(raw) < 25:
        return None
    name_field = raw_slice(raw, 6, 21)
    name = name_field.strip()
    if not name:
        return None

    if has_declaration_type(raw):
        if name_field[0] != " ":
            return None
        return _issue(
            line,
            "D_SPEC_NAME_POSITION",
            f"D仕様書の宣言名'{name}'は7桁から開始する必要があります（先頭にスペースがあります）。",
            column=7,
            end_column=21,
            severity=SEVERITY_WARNING,
            rule_description="DS/PR/PI/S/C 等の宣言名は7桁から開始します。",
            suggestion=f"'{name}'の前のスペースを削除してください。",
        )

    if name_field[0] == " ":
        return None
    return _issue(
        line,
        "D_SPEC_NAME_POSITION",
        f"D仕様書のサブフィールド'{name}'は8桁から開始する必要があります（7桁は空白）。",
        column=7,
        end_column=21,
        severity=SEVERITY_WARNING,
        rule_description="宣言型のないサブフィールドは8桁から開始し、宣言名と区別します。",
        suggestion=f"'{name}'の前にスペースを1つ追加してください。",
    )


# チェックレベルごとのチェック群
_LEVEL_CHECKS: Tuple[Tuple[str, Tuple[Check, ...]], ...] = (
    (LEVEL_BASIC, (
        check_missing_name,
        check_position_order,
        check_fused_size_type,
    )),
    (LEVEL_STANDARD, (
        check_declaration_type,
        check_declaration_misplaced,
        check_trailing_period,
        check_data_type,
        check_size_field,
        check_decimal_field,
        check_keyword_bleed,
    )),
    (LEVEL_STRICT, (
        check_name_position,
    )),
)


def detect_column_shift(
    line: ClassifiedLine,
    level: str = LEVEL_STANDARD,
    name_continued: bool = False,
) -> List[Issue]:
    """
    D 仕様書 1 行の桁位置を検査する。

    コメント行・キーワード継続行は 6 桁目の確認のみ。
    名前継続行（'...'）は名前末尾ピリオドの確認のみ。
    name_continued: 直前の D 行が名前継続行。名前欄の空白は名前の続きなので許容する。
    """
    if line.spec_type != SPEC_D:
        return []

    issues: List[Issue] = []
    col6 = check_col6(line)
    if col6 is not None:
        issues.append(col6)

    if line.is_comment or is_keyword_continuation(line):
        return issues

    if is_name_continuation(line.raw_content):
        if at_least(level, LEVEL_STANDARD):
            continued = check_continued_name_period(line)
            if continued is not None:
                issues.append(continued)
        return issues

    for minimum, checks in _LEVEL_CHECKS:
        if not at_least(level, minimum):
            break
        for check in checks:
            if name_continued and check is check_missing_name:
                continue
            issue = check(line)
            if issue is not None:
                issues.append(issue)

    return issues
