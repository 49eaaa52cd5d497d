# src/ilerpgcheck/checkers/common_errors.py
"""
RPG でよくある記述ミスの検出。

- F仕様書: 10桁のファイル名とファイルタイプがくっついている
- 継続行の直後の空行
- 桁固定コードの後ろの /FREE
- 括弧・クォートの対応（継続行をまとめて数える）
"""
from __future__ import annotations

from typing import List

from ilerpgcheck.checkers.syntax_checker import is_commentary, strip_literals
from ilerpgcheck.logic.line_statistics import FREE_DIRECTIVE
from ilerpgcheck.models.check_level import LEVEL_STANDARD, at_least
from ilerpgcheck.models.classified_line import SPEC_C, SPEC_F, SPEC_I, SPEC_O, ClassifiedLine
from ilerpgcheck.models.issue import (
    CATEGORY_BEST_PRACTICE,
    CATEGORY_STRUCTURE,
    CATEGORY_SYNTAX,
    SEVERITY_ERROR,
    SEVERITY_INFO,
    SEVERITY_WARNING,
    Issue,
)
from ilerpgcheck.parser.line_classifier import is_keyword_continuation

FILE_NAME_WIDTH = 10
FILE_TYPES = frozenset("IOUC")


def check_common_errors(lines: List[ClassifiedLine], level: str = LEVEL_STANDARD) -> List[Issue]:
    issues: List[Issue] = []
    issues.extend(check_f_spec_spacing(lines))
    issues.extend(check_continuation_followed_by_blank(lines))
    issues.extend(check_free_after_fixed(lines))
    if at_least(level, LEVEL_STANDARD):
        issues.extend(check_parentheses(lines))
        issues.extend(check_quotes(lines))
    return issues


def check_f_spec_spacing(lines: List[ClassifiedLine]) -> List[Issue]:
    issues: List[Issue] = []

    for line in lines:
        if line.spec_type != SPEC_F or line.is_comment:
            continue
        raw = line.raw_content
        if len(raw) < 17:
            continue

        file_name = raw[6:16]
        next_char = raw[16]
        # 10桁使い切ったファイル名の直後にファイルタイプ以外の文字 = 名前が17桁目まではみ出している
        if len(file_name.strip()) != FILE_NAME_WIDTH:
            continue
        if next_char == " " or next_char.upper() in FILE_TYPES:
            continue

        issues.append(Issue(
            severity=SEVERITY_ERROR,
            category=CATEGORY_STRUCTURE,
            line=line.line_number,
            column=17,
            message="F仕様書のファイル名フィールドの後にスペースが必要です。",
            rule="F_SPEC_SPACING",
            rule_description="ファイル名は7-16桁の10桁以内です。17桁目はファイルタイプ（I/O/U/C）です。",
            suggestion="17桁目にスペースを挿入してください。",
            code_snippet=raw,
            corrected_code=raw[:16] + " " + raw[16:],
        ))

    return issues


def check_continuation_followed_by_blank(lines: List[ClassifiedLine]) -> List[Issue]:
    issues: List[Issue] = []
    for line, following in zip(lines, lines[1:]):
        if not is_keyword_continuation(line) or following.trimmed_content:
            continue
        issues.append(Issue(
            severity=SEVERITY_WARNING,
            category=CATEGORY_SYNTAX,
            line=line.line_number,
            message="継続行の後に空行があります。継続が途切れる可能性があります。",
            rule="CONTINUATION_FOLLOWED_BY_BLANK",
            suggestion="空行を削除するか、継続行マーカーを確認してください。",
            code_snippet=line.raw_content,
        ))
    return issues


def check_free_after_fixed(lines: List[ClassifiedLine]) -> List[Issue]:
    issues: List[Issue] = []
    seen_fixed_code = False

    for line in lines:
        if line.trimmed_content.upper().startswith(FREE_DIRECTIVE):
            if seen_fixed_code:
                issues.append(Issue(
                    severity=SEVERITY_INFO,
                    category=CATEGORY_BEST_PRACTICE,
                    line=line.line_number,
                    message="/FREEの前に桁固定形式のコードがあります。",
                    rule="FREE_AFTER_FIXED",
                    rule_description="/FREEは通常、ファイルの先頭付近に配置します。",
                    suggestion="可能であれば、全体を**FREE形式に統一することを検討してください。",
                    code_snippet=line.raw_content,
                ))
        elif line.spec_type in (SPEC_C, SPEC_I, SPEC_O) and not line.is_comment:
            seen_fixed_code = True

    return issues


# ─────────────────────────────────────────────
# 括弧・クォートの対応
# ─────────────────────────────────────────────
def _is_statement_start(line: ClassifiedLine) -> bool:
    return line.is_fixed_form and not is_commentary(line) and not is_keyword_continuation(line)


def combined_statement(lines: List[ClassifiedLine], index: int) -> str:
    """index の行に、後続の同じ仕様書タイプの継続行を連結した文字列。間のコメント行は読み飛ばす。"""
    head = lines[index]
    parts = [head.raw_content]
    for line in lines[index + 1:]:
        if is_commentary(line):
            continue
        if not is_keyword_continuation(line) or line.spec_type != head.spec_type:
            break
        parts.append(line.raw_content)
    return "".join(parts)


def check_parentheses(lines: List[ClassifiedLine]) -> List[Issue]:
    issues: List[Issue] = []

    for idx, line in enumerate(lines):
        if not _is_statement_start(line):
            continue

        text = strip_literals(combined_statement(lines, idx))
        opened, closed = text.count("("), text.count(")")
        if opened == closed:
            continue

        issues.append(Issue(
            severity=SEVERITY_WARNING,
            category=CATEGORY_SYNTAX,
            line=line.line_number,
            message=f"括弧の対応が取れていません（開き括弧: {opened}、閉じ括弧: {closed}）。",
            rule="UNMATCHED_PARENTHESES",
            rule_description="開き括弧と閉じ括弧の数は一致する必要があります。",
            suggestion="括弧の数を確認し、不足している括弧を追加してください。継続行で閉じている場合は問題ありません。",
            code_snippet=line.raw_content,
        ))

    return issues


def check_quotes(lines: List[ClassifiedLine]) -> List[Issue]:
    issues: List[Issue] = []

    for idx, line in enumerate(lines):
        if not _is_statement_start(line):
            continue
        # 行末の - / + は文字列定数の継続
        if line.raw_content.rstrip().endswith(("-", "+")):
            continue

        if combined_statement(lines, idx).count("'") % 2 == 0:
            continue

        issues.append(Issue(
            severity=SEVERITY_WARNING,
            category=CATEGORY_SYNTAX,
            line=line.line_number,
            message="シングルクォート（'）の対応が取れていません。",
            rule="UNMATCHED_QUOTES",
            rule_description="文字列リテラルは開始と終了のクォートが必要です。",
            suggestion="不足しているクォートを追加してください。継続行で閉じている場合は問題ありません。",
            code_snippet=line.raw_content,
        ))

    return issues
