# src/ilerpgcheck/models/classified_line.py

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import Optional, Tuple, Union

# 仕様書タイプ
SPEC_H = "H"
SPEC_F = "F"
SPEC_D = "D"
SPEC_P = "P"
SPEC_I = "I"
SPEC_C = "C"
SPEC_O = "O"
FREE = "FREE"
COMMENT = "COMMENT"
UNKNOWN = "UNKNOWN"

# 桁固定形式の正しい記述順序 H→F→D→P→I→C→O
CANONICAL_ORDER: Tuple[str, ...] = (SPEC_H, SPEC_F, SPEC_D, SPEC_P, SPEC_I, SPEC_C, SPEC_O)

ALL_SPEC_TYPES: Tuple[str, ...] = CANONICAL_ORDER + (FREE, COMMENT, UNKNOWN)


@dataclass(frozen=True)
class HSpecFields:
    """H仕様書（制御仕様書）の桁データ。"""
    keyword: Optional[str] = None        # 7-80桁


@dataclass(frozen=True)
class FSpecFields:
    """F仕様書（ファイル記述仕様書）の桁データ。"""
    file_name: Optional[str] = None            # 7-16桁
    file_type: Optional[str] = None            # 17桁
    file_designation: Optional[str] = None     # 18桁
    end_of_file: Optional[str] = None          # 19桁
    file_addition: Optional[str] = None        # 20桁
    sequence: Optional[str] = None             # 21桁
    file_format: Optional[str] = None          # 22桁
    record_length: Optional[str] = None        # 23-27桁
    limits: Optional[str] = None               # 28桁
    length_of_key: Optional[str] = None        # 29-33桁
    record_address_type: Optional[str] = None  # 34桁
    file_organization: Optional[str] = None    # 35桁
    device: Optional[str] = None               # 36-42桁
    keywords: Optional[str] = None             # 44-80桁


@dataclass(frozen=True)
class DSpecFields:
    """
    D仕様書（定義仕様書）の桁データ。

    - name: 7-21桁（15桁固定）
    - declaration_type: 24-25桁（PR/PI/DS/S/C/E）
    - to_length: 33-39桁（内部長、右詰め）
    """
    name: Optional[str] = None                  # 7-21桁
    external_description: Optional[str] = None  # 22桁
    data_structure_type: Optional[str] = None   # 23桁
    declaration_type: Optional[str] = None      # 24-25桁
    from_position: Optional[str] = None         # 26-32桁
    to_length: Optional[str] = None             # 33-39桁
    data_type: Optional[str] = None             # 40桁
    decimal_positions: Optional[str] = None     # 41-42桁
    keywords: Optional[str] = None              # 43-80桁


@dataclass(frozen=True)
class PSpecFields:
    """P仕様書（プロシージャ仕様書）の桁データ。"""
    name: Optional[str] = None        # 7-21桁
    begin_end: Optional[str] = None   # 24桁
    keywords: Optional[str] = None    # 44-80桁


@dataclass(frozen=True)
class CSpecFields:
    """C仕様書（演算仕様書）の桁データ。"""
    control_level: Optional[str] = None      # 7-8桁
    indicators: Optional[str] = None         # 9-17桁
    factor1: Optional[str] = None            # 12-25桁
    opcode: Optional[str] = None             # 26-35桁
    factor2: Optional[str] = None            # 36-49桁
    result: Optional[str] = None             # 50-63桁
    result_indicators: Optional[str] = None  # 71-76桁


ColumnData = Union[HSpecFields, FSpecFields, DSpecFields, PSpecFields, CSpecFields]


@dataclass(frozen=True)
class ClassifiedLine:
    """
    RPG ソースの1物理行を表すモデル。

    - line_number: 元ファイル上の行番号（1始まり）
    - raw_content: 1行丸ごとの生テキスト（改行なし）
    - spec_type: 6桁目から判定した仕様書タイプ（**FREE が優先）
    - is_comment: 7桁目が '*' の行
    - is_continuation: 継続行マーカー、または名前/キー欄が空白の行
    - column_data: 仕様書タイプごとの桁データ（I/O/FREE/COMMENT/UNKNOWN は None）
    """
    line_number: int
    raw_content: str
    spec_type: str
    is_comment: bool
    is_continuation: bool
    column_data: Optional[ColumnData] = None

    @cached_property
    def trimmed_content(self) -> str:
        return self.raw_content.strip()

    @property
    def has_continuation_marker(self) -> bool:
        """7桁目に継続行マーカー（- / +）があるか。"""
        return len(self.raw_content) >= 7 and self.raw_content[6] in "-+"

    @property
    def is_fixed_form(self) -> bool:
        return self.spec_type in CANONICAL_ORDER
