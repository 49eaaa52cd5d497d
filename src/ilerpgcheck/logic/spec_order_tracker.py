# src/ilerpgcheck/logic/spec_order_tracker.py
"""
仕様書の記述順序（H→F→D→P→I→C→O）の検査。

P仕様書の B〜E ブロック内の D/C 仕様書はローカル定義として順序判定の対象外。
状態は不変のタプルで持ち、行ごとに新しい状態を返す畳み込みで処理する。
"""
from __future__ import annotations

from functools import reduce
from typing import Iterable, List, NamedTuple, Optional, Tuple

from ilerpgcheck.models.classified_line import (
    CANONICAL_ORDER,
    SPEC_C,
    SPEC_D,
    SPEC_P,
    ClassifiedLine,
)
from ilerpgcheck.models.issue import CATEGORY_STRUCTURE, SEVERITY_ERROR, Issue
from ilerpgcheck.parser.columns import char_at, is_name_continuation


class OrderState(NamedTuple):
    last_index: int = -1          # 直前に受理した仕様書の CANONICAL_ORDER 上の位置（-1 = H より前）
    in_procedure: bool = False    # P...B 〜 P...E の内側
    issues: Tuple[Issue, ...] = ()


def is_order_relevant(line: ClassifiedLine) -> bool:
    return line.is_fixed_form and not line.is_comment


def procedure_flag(line: ClassifiedLine, current: bool) -> bool:
    """P仕様書の 24 桁目（B/E）に応じてプロシージャ内フラグを更新する。名前継続行は無視。"""
    if line.spec_type != SPEC_P or is_name_continuation(line.raw_content):
        return current
    begin_end = char_at(line.raw_content, 23).upper()
    if begin_end == "B":
        return True
    if begin_end == "E":
        return False
    return current


def _order_issue(line: ClassifiedLine, previous: str) -> Issue:
    current = line.spec_type
    return Issue(
        severity=SEVERITY_ERROR,
        category=CATEGORY_STRUCTURE,
        line=line.line_number,
        column=6,
        message=f"仕様書の順序が不正です。{current}仕様書は{previous}仕様書の後に配置できません。",
        rule="SPEC_ORDER",
        rule_description=(
            "仕様書は H→F→D→P→I→C→O の順序で記述する必要があります"
            "（P...B/P...E内のD/C仕様書はローカル定義として許容）。"
        ),
        suggestion=f"{current}仕様書を適切な位置に移動してください。",
        code_snippet=line.raw_content,
    )


def advance(state: OrderState, line: ClassifiedLine) -> OrderState:
    """1行分の状態遷移。"""
    if not is_order_relevant(line):
        return state

    in_procedure = procedure_flag(line, state.in_procedure)
    if in_procedure and line.spec_type in (SPEC_D, SPEC_C):
        return state._replace(in_procedure=in_procedure)

    index = CANONICAL_ORDER.index(line.spec_type)
    issues = state.issues
    if index < state.last_index:
        issues = issues + (_order_issue(line, CANONICAL_ORDER[state.last_index]),)

    return OrderState(last_index=index, in_procedure=in_procedure, issues=issues)


def track_specification_order(lines: Iterable[ClassifiedLine]) -> List[Issue]:
    final = reduce(advance, lines, OrderState())
    return list(final.issues)


def check_d_after_c(lines: Iterable[ClassifiedLine]) -> List[Issue]:
    """メインセクションで最初の C 仕様書より後に現れた最初の D 仕様書を報告する。"""
    in_procedure = False
    first_c: Optional[int] = None

    for line in lines:
        if not is_order_relevant(line):
            continue
        in_procedure = procedure_flag(line, in_procedure)
        if in_procedure:
            continue

        if line.spec_type == SPEC_C and first_c is None:
            first_c = line.line_number
        elif line.spec_type == SPEC_D and first_c is not None:
            return [Issue(
                severity=SEVERITY_ERROR,
                category=CATEGORY_STRUCTURE,
                line=line.line_number,
                message="D仕様書がC仕様書の後に配置されています。",
                rule="D_AFTER_C",
                rule_description=(
                    "メインセクションのD仕様書（定義）はC仕様書（演算）の前に配置する必要があります。"
                    "サブプロシージャ内のD仕様書は別です。"
                ),
                suggestion=f"D仕様書を行{first_c}より前に移動してください。",
                code_snippet=line.raw_content,
            )]

    return []
