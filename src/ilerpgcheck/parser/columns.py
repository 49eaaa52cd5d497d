# src/ilerpgcheck/parser/columns.py
from __future__ import annotations

from typing import Optional

# 81桁目以降はコメント領域
CODE_AREA_WIDTH = 80

NAME_CONTINUATION_MARKER = "..."


def extract_column(line: str, start: int, end: int) -> Optional[str]:
    """
    指定された桁範囲の文字列をトリムして返す。

    - start / end は 0 始まりのインデックス（end は含まない）
    - 行が start まで届かない場合、または範囲が空白のみの場合は None
      （空文字列は返さない。呼び出し側は None と空白を同一視する）
    """
    if len(line) <= start:
        return None

    trimmed = line[start:end].strip()
    return trimmed or None


def raw_slice(line: str, start: int, end: int) -> str:
    """トリムしない桁範囲。行が短い場合は届いた分だけ返す。"""
    return line[start:end]


def char_at(line: str, index: int, default: str = " ") -> str:
    """指定インデックスの1文字。行が短い場合は default（空白扱い）。"""
    if index < len(line):
        return line[index]
    return default


def code_area(line: str) -> str:
    """1-80桁（コード領域）を右トリムしたもの。"""
    return line[:CODE_AREA_WIDTH].rstrip()


def is_name_continuation(line: str) -> bool:
    """
    名前継続行（コード領域が '...' で終わる行）かどうか。

    例:
        D pdfWriteTrailer...
        D                 PR
    """
    return code_area(line).endswith(NAME_CONTINUATION_MARKER)


def name_before_marker(line: str) -> Optional[str]:
    """名前継続行の 7 桁目以降、'...' より前の名前部分。"""
    if not is_name_continuation(line):
        return None
    body = code_area(line)[6:]
    name = body[: -len(NAME_CONTINUATION_MARKER)].strip()
    return name or None
