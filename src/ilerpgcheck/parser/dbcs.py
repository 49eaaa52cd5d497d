# src/ilerpgcheck/parser/dbcs.py
"""
DBCS（2バイト文字）を含む行の実バイト長計算。

RPG の固定桁ソースでは DBCS 文字列は SO（シフトアウト）と SI（シフトイン）で
囲まれ、それぞれ 1 バイトを占める。DBCS 文字は 1 文字 2 バイト。
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

# DBCS とみなすコードポイント範囲
DBCS_RANGES: Tuple[Tuple[int, int], ...] = (
    (0x3040, 0x309F),  # ひらがな
    (0x30A0, 0x30FF),  # カタカナ
    (0x4E00, 0x9FFF),  # CJK 統合漢字
    (0xF900, 0xFAFF),  # CJK 互換漢字
    (0xAC00, 0xD7AF),  # ハングル
    (0xFF00, 0xFFEF),  # 全角英数・半角カナ
)


@dataclass(frozen=True)
class DbcsAnalysis:
    total_length: int
    byte_length: int
    dbcs_count: int
    sbcs_count: int
    shift_characters: int
    contains_dbcs: bool


def is_dbcs(ch: str) -> bool:
    if not ch:
        return False
    code = ord(ch[0])
    return any(lo <= code <= hi for lo, hi in DBCS_RANGES)


def byte_length(text: str) -> int:
    """SO/SI を含めた実バイト長。DBCS 区間の入口と出口でそれぞれ +1。"""
    length = 0
    in_dbcs = False

    for ch in text:
        if is_dbcs(ch):
            if not in_dbcs:
                length += 1  # SO
                in_dbcs = True
            length += 2
        else:
            if in_dbcs:
                length += 1  # SI
                in_dbcs = False
            length += 1

    # DBCS のまま行末に達した場合の SI
    if in_dbcs:
        length += 1

    return length


def count_dbcs(text: str) -> int:
    return sum(1 for ch in text if is_dbcs(ch))


def contains_dbcs(text: str) -> bool:
    return any(is_dbcs(ch) for ch in text)


def shift_characters(text: str) -> int:
    """必要なシフト文字数（DBCS 区間 1 つにつき SO + SI の 2）。"""
    count = 0
    in_dbcs = False
    for ch in text:
        current = is_dbcs(ch)
        if current and not in_dbcs:
            count += 2
        in_dbcs = current
    return count


def analyze_string(text: str) -> DbcsAnalysis:
    dbcs_count = count_dbcs(text)
    return DbcsAnalysis(
        total_length=len(text),
        byte_length=byte_length(text),
        dbcs_count=dbcs_count,
        sbcs_count=len(text) - dbcs_count,
        shift_characters=shift_characters(text),
        contains_dbcs=dbcs_count > 0,
    )
