# src/ilerpgcheck/checkers/syntax_checker.py
from __future__ import annotations

import re
from typing import List, Optional

from ilerpgcheck.logic.line_statistics import END_FREE_DIRECTIVE, FREE_DIRECTIVE
from ilerpgcheck.models.check_level import LEVEL_STANDARD, at_least
from ilerpgcheck.models.classified_line import COMMENT, SPEC_C, ClassifiedLine
from ilerpgcheck.models.issue import CATEGORY_SYNTAX, SEVERITY_ERROR, Issue
from ilerpgcheck.parser.line_classifier import is_keyword_continuation

STRING_LITERAL = re.compile(r"'[^']*'")


def is_commentary(line: ClassifiedLine) -> bool:
    return line.is_comment or line.spec_type == COMMENT


def strip_literals(text: str) -> str:
    return STRING_LITERAL.sub("", text)


def _issue(line: ClassifiedLine, rule: str, message: str, **kwargs) -> Issue:
    return Issue(
        severity=SEVERITY_ERROR,
        category=CATEGORY_SYNTAX,
        line=line.line_number,
        message=message,
        rule=rule,
        code_snippet=line.raw_content,
        **kwargs,
    )


def check_syntax(lines: List[ClassifiedLine], level: str = LEVEL_STANDARD) -> List[Issue]:
    issues: List[Issue] = []
    issues.extend(check_line_continuation(lines))
    if at_least(level, LEVEL_STANDARD):
        issues.extend(check_multiple_statements(lines))
    issues.extend(check_free_form_matching(lines))
    return issues


# ─────────────────────────────────────────────
# 継続行
# ─────────────────────────────────────────────
def _previous_code_line(lines: List[ClassifiedLine], index: int) -> Optional[ClassifiedLine]:
    for prev in reversed(lines[:index]):
        if not is_commentary(prev):
            return prev
    return None


def check_line_continuation(lines: List[ClassifiedLine]) -> List[Issue]:
    """継続行の前に、同じ仕様書タイプの継続元の行があるか。"""
    issues: List[Issue] = []

    for idx, line in enumerate(lines):
        if not is_keyword_continuation(line):
            continue

        if idx == 0:
            issues.append(_issue(
                line,
                "CONTINUATION_NO_PREVIOUS",
                "継続行の前に継続元の行がありません。",
                column=7,
                rule_description="継続行は、前の行の続きとして記述する必要があります。",
                suggestion="継続行マーカー（-または+）を削除するか、前の行を追加してください。",
            ))
            continue

        prev = _previous_code_line(lines, idx)
        if prev is None:
            issues.append(_issue(
                line,
                "CONTINUATION_AFTER_COMMENT",
                "継続行の前にコメント行のみがあります。",
                column=7,
                suggestion="コメント行の後に継続行を配置することはできません。",
            ))
            continue

        # 空行や不明な行の後ろは判定しない
        if prev.is_fixed_form and prev.spec_type != line.spec_type:
            issues.append(_issue(
                line,
                "CONTINUATION_TYPE_MISMATCH",
                f"継続行の仕様書タイプ（{line.spec_type}）が前の行（{prev.spec_type}）と一致しません。",
                column=7,
                rule_description="継続行は前の行と同じ仕様書タイプである必要があります。",
            ))

    return issues


# ─────────────────────────────────────────────
# 1行に複数の命令
# ─────────────────────────────────────────────
def check_multiple_statements(lines: List[ClassifiedLine]) -> List[Issue]:
    """
    C仕様書（自由形式の計算）および /FREE ブロック内で
    1行に複数の文（セミコロン2個以上）を書いていないか（RNF5508）。
    文字列リテラル内のセミコロンは数えない。
    """
    issues: List[Issue] = []
    in_free_block = False

    for line in lines:
        directive = line.trimmed_content.upper()
        if directive.startswith(FREE_DIRECTIVE):
            in_free_block = True
            continue
        if directive.startswith(END_FREE_DIRECTIVE):
            in_free_block = False
            continue
        if is_commentary(line):
            continue

        semicolons = strip_literals(line.raw_content).count(";")
        if semicolons <= 1:
            continue

        if in_free_block:
            where = "/FREEブロック内では"
        elif line.spec_type == SPEC_C:
            where = "RPGでは"
        else:
            continue

        issues.append(_issue(
            line,
            "MULTIPLE_STATEMENTS",
            f"1行に複数の命令が記述されています（セミコロン{semicolons}個）。{where}1行に1文のみ記述可能です。",
            rule_description="自由形式の計算では、1行に1つの命令のみ記述できます（RNF5508）。",
            suggestion="各命令を別々の行に分割してください。",
        ))

    return issues


# ─────────────────────────────────────────────
# /FREE と /END-FREE の対応
# ─────────────────────────────────────────────
def check_free_form_matching(lines: List[ClassifiedLine]) -> List[Issue]:
    issues: List[Issue] = []
    open_blocks: List[ClassifiedLine] = []

    for line in lines:
        directive = line.trimmed_content.upper()
        if directive.startswith(FREE_DIRECTIVE):
            open_blocks.append(line)
        elif directive.startswith(END_FREE_DIRECTIVE):
            if open_blocks:
                open_blocks.pop()
                continue
            issues.append(_issue(
                line,
                "UNMATCHED_END_FREE",
                "対応する/FREEがない/END-FREEが見つかりました。",
                rule_description="/END-FREEには対応する/FREEが必要です。",
                suggestion="対応する/FREEを追加するか、この/END-FREEを削除してください。",
            ))

    for line in open_blocks:
        issues.append(_issue(
            line,
            "UNMATCHED_FREE",
            "/FREEに対応する/END-FREEがありません。",
            rule_description="/FREEには対応する/END-FREEが必要です。",
            suggestion="対応する/END-FREEを追加してください。",
        ))

    return issues
