# src/ilerpgcheck/logic/line_statistics.py
from __future__ import annotations

import re
from typing import Iterable, List, NamedTuple, Optional, Tuple

from ilerpgcheck.models.check_result import LineStatistics, empty_spec_counts
from ilerpgcheck.models.classified_line import COMMENT, SPEC_C, UNKNOWN, ClassifiedLine, CSpecFields

INDICATOR_PATTERN = re.compile(r"\*IN(\d{2})", re.IGNORECASE)

FREE_DIRECTIVE = "/FREE"
END_FREE_DIRECTIVE = "/END-FREE"

# 命令コード拡張子 "(E)" "(H)" 等
_OPCODE_EXTENDER = re.compile(r"\(.*\)$")


class DeprecatedOpcode(NamedTuple):
    code: str
    pattern: "re.Pattern[str]"
    reason: str
    alternative: str


def _entry(code: str, reason: str, alternative: str, pattern: Optional[str] = None) -> DeprecatedOpcode:
    return DeprecatedOpcode(code, re.compile(pattern or re.escape(code)), reason, alternative)


# 非推奨命令。CABxx / CASxx の xx は比較条件（EQ, NE, GT ...）
DEPRECATED_OPCODES: Tuple[DeprecatedOpcode, ...] = (
    _entry("GOTO", "構造化プログラミングに反する", "IF/ELSE、DO/ENDDOなどの構造化命令を使用"),
    _entry("TAG", "GOTOと共に使用される非推奨機能", "構造化命令を使用"),
    _entry("CABxx", "古い比較命令", "IF文を使用", r"CAB\w\w"),
    _entry("CASxx", "古い比較命令", "SELECT/WHENを使用", r"CAS\w\w"),
    _entry("COMP", "古い比較命令", "IF文を使用"),
    _entry("LOKUP", "古い検索命令", "%LOOKUPまたは%SCANを使用"),
    _entry("XFOOT", "古い集計命令", "%XFOOTまたはDOループと加算を使用"),
    _entry("Z-ADD", "古い代入命令", "EVAL文を使用"),
    _entry("Z-SUB", "古い減算命令", "EVAL文を使用"),
    _entry("MOVE", "古い移動命令", "EVAL文を使用"),
    _entry("MOVEL", "古い移動命令", "EVAL文を使用"),
    _entry("MHHZO", "古い移動命令", "EVAL文を使用"),
    _entry("MHLZO", "古い移動命令", "EVAL文を使用"),
    _entry("MLHZO", "古い移動命令", "EVAL文を使用"),
    _entry("MLLZO", "古い移動命令", "EVAL文を使用"),
)


class DeprecatedUsage(NamedTuple):
    line: ClassifiedLine
    opcode: str
    entry: DeprecatedOpcode


def collect_statistics(lines: List[ClassifiedLine]) -> LineStatistics:
    """行の統計。コード行 = 総行数 - コメント行 - 空行。"""
    counts = empty_spec_counts()
    comment_lines = 0
    continuation_lines = 0
    empty_lines = 0

    for line in lines:
        counts[line.spec_type] = counts.get(line.spec_type, 0) + 1
        if line.is_comment:
            comment_lines += 1
        if line.is_continuation:
            continuation_lines += 1
        if not line.trimmed_content:
            empty_lines += 1

    return LineStatistics(
        total_lines=len(lines),
        comment_lines=comment_lines,
        code_lines=len(lines) - comment_lines - empty_lines,
        continuation_lines=continuation_lines,
        empty_lines=empty_lines,
        specification_counts=counts,
    )


def specification_order(lines: Iterable[ClassifiedLine]) -> List[str]:
    """仕様書タイプの初出順（重複なし、コメント・UNKNOWN は除外）。"""
    order: List[str] = []
    for line in lines:
        if line.is_comment or line.spec_type in (UNKNOWN, COMMENT):
            continue
        if line.spec_type not in order:
            order.append(line.spec_type)
    return order


def find_free_blocks(lines: Iterable[ClassifiedLine]) -> List[Tuple[int, Optional[int]]]:
    """
    /FREE 〜 /END-FREE ブロックの (開始行, 終了行) の一覧。

    閉じられていないブロックは終了行 None。
    閉じる前に次の /FREE が来た場合、前のブロックは未終了として扱う。
    """
    blocks: List[Tuple[int, Optional[int]]] = []
    start: Optional[int] = None

    for line in lines:
        text = line.trimmed_content.upper()
        if text.startswith(FREE_DIRECTIVE):
            if start is not None:
                blocks.append((start, None))
            start = line.line_number
        elif text.startswith(END_FREE_DIRECTIVE) and start is not None:
            blocks.append((start, line.line_number))
            start = None

    if start is not None:
        blocks.append((start, None))
    return blocks


def base_opcode(line: ClassifiedLine) -> Optional[str]:
    """C仕様書の命令コード（拡張子を除いた大文字）。"""
    if line.spec_type != SPEC_C or not isinstance(line.column_data, CSpecFields):
        return None
    opcode = line.column_data.opcode
    if not opcode:
        return None
    return _OPCODE_EXTENDER.sub("", opcode).strip().upper()


def match_deprecated(opcode: str) -> Optional[DeprecatedOpcode]:
    for entry in DEPRECATED_OPCODES:
        if entry.pattern.fullmatch(opcode):
            return entry
    return None


def find_deprecated_opcodes(lines: Iterable[ClassifiedLine]) -> List[DeprecatedUsage]:
    usages: List[DeprecatedUsage] = []
    for line in lines:
        if line.is_comment:
            continue
        opcode = base_opcode(line)
        if not opcode:
            continue
        entry = match_deprecated(opcode)
        if entry is not None:
            usages.append(DeprecatedUsage(line, opcode, entry))
    return usages


def find_indicator_usage(lines: Iterable[ClassifiedLine]) -> List[ClassifiedLine]:
    """*INnn 形式の数字付き標識を含む行。"""
    return [line for line in lines if INDICATOR_PATTERN.search(line.raw_content)]
