# src/ilerpgcheck/parser/line_classifier.py
from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from ilerpgcheck.models.classified_line import (
    CANONICAL_ORDER,
    COMMENT,
    FREE,
    SPEC_C,
    SPEC_D,
    SPEC_F,
    SPEC_H,
    SPEC_I,
    SPEC_O,
    SPEC_P,
    UNKNOWN,
    ClassifiedLine,
    ColumnData,
    CSpecFields,
    DSpecFields,
    FSpecFields,
    HSpecFields,
    PSpecFields,
)
from ilerpgcheck.parser.columns import extract_column

FULLY_FREE_SENTINEL = "**FREE"

# 名前/キー欄が空白なら継続行とみなす欄（0始まり、end は含まない）
# C 仕様書は Factor 1 の空白で近似している
CONTINUATION_FIELDS: Dict[str, Tuple[int, int]] = {
    SPEC_F: (6, 16),
    SPEC_O: (6, 16),
    SPEC_D: (6, 21),
    SPEC_P: (6, 21),
    SPEC_I: (6, 16),
    SPEC_C: (11, 25),
}


def classify(source_text: str) -> List[ClassifiedLine]:
    """
    RPG ソース全体を行単位に分割し、ClassifiedLine のリストに変換する。

    空行も含めて 1 行 = 1 要素（行の欠落・並べ替えはしない）。
    CRLF の場合は行末の '\\r' を落とす。
    """
    lines: List[ClassifiedLine] = []

    for idx, segment in enumerate(source_text.split("\n"), start=1):
        raw = segment[:-1] if segment.endswith("\r") else segment
        lines.append(classify_line(raw, idx))

    return lines


def classify_line(raw: str, line_number: int) -> ClassifiedLine:
    spec_type = detect_spec_type(raw)
    return ClassifiedLine(
        line_number=line_number,
        raw_content=raw,
        spec_type=spec_type,
        is_comment=is_comment_line(raw),
        is_continuation=is_continuation_line(raw, spec_type),
        column_data=extract_column_data(raw, spec_type),
    )


def detect_spec_type(raw: str) -> str:
    """
    仕様書タイプを判定する。

    1) トリム後に **FREE で始まれば FREE（長さに関係なく最優先）
    2) 6桁未満は UNKNOWN
    3) 6桁目: '*' → COMMENT、H/F/D/P/I/C/O（大小無視）→ その仕様書、それ以外 → UNKNOWN
    """
    if raw.strip().startswith(FULLY_FREE_SENTINEL):
        return FREE

    if len(raw) < 6:
        return UNKNOWN

    col6 = raw[5]
    if col6 == "*":
        return COMMENT

    upper = col6.upper()
    if upper in CANONICAL_ORDER:
        return upper
    return UNKNOWN


def is_comment_line(raw: str) -> bool:
    """7桁目が '*' の行はコメント（仕様書タイプとは独立）。"""
    return len(raw) >= 7 and raw[6] == "*"


def is_continuation_line(raw: str, spec_type: str) -> bool:
    """
    継続行かどうか。

    - 7桁目の '-' / '+' マーカーを先に見る
    - 続いて仕様書タイプごとの名前/キー欄が空白かどうか（欄に届く長さの行のみ）
    FREE / UNKNOWN では常に False。
    """
    if spec_type in (FREE, UNKNOWN):
        return False

    if len(raw) >= 7 and raw[6] in "-+":
        return True

    span = CONTINUATION_FIELDS.get(spec_type)
    if span is None:
        return False

    start, end = span
    if len(raw) < end:
        return False
    return not raw[start:end].strip()


def extract_column_data(raw: str, spec_type: str) -> Optional[ColumnData]:
    extractor = _EXTRACTORS.get(spec_type)
    if extractor is None:
        return None
    return extractor(raw)


def _extract_h(raw: str) -> HSpecFields:
    return HSpecFields(keyword=extract_column(raw, 6, 80))


def _extract_f(raw: str) -> FSpecFields:
    return FSpecFields(
        file_name=extract_column(raw, 6, 16),
        file_type=extract_column(raw, 16, 17),
        file_designation=extract_column(raw, 17, 18),
        end_of_file=extract_column(raw, 18, 19),
        file_addition=extract_column(raw, 19, 20),
        sequence=extract_column(raw, 20, 21),
        file_format=extract_column(raw, 21, 22),
        record_length=extract_column(raw, 22, 27),
        limits=extract_column(raw, 27, 28),
        length_of_key=extract_column(raw, 28, 33),
        record_address_type=extract_column(raw, 33, 34),
        file_organization=extract_column(raw, 34, 35),
        device=extract_column(raw, 35, 42),
        keywords=extract_column(raw, 43, 80),
    )


def _extract_d(raw: str) -> DSpecFields:
    return DSpecFields(
        name=extract_column(raw, 6, 21),
        external_description=extract_column(raw, 21, 22),
        data_structure_type=extract_column(raw, 22, 23),
        declaration_type=extract_column(raw, 23, 25),
        from_position=extract_column(raw, 25, 32),
        to_length=extract_column(raw, 32, 39),
        data_type=extract_column(raw, 39, 40),
        decimal_positions=extract_column(raw, 40, 42),
        keywords=extract_column(raw, 42, 80),
    )


def _extract_p(raw: str) -> PSpecFields:
    return PSpecFields(
        name=extract_column(raw, 6, 21),
        begin_end=extract_column(raw, 23, 24),
        keywords=extract_column(raw, 43, 80),
    )


def _extract_c(raw: str) -> CSpecFields:
    return CSpecFields(
        control_level=extract_column(raw, 6, 8),
        indicators=extract_column(raw, 8, 17),
        factor1=extract_column(raw, 11, 25),
        opcode=extract_column(raw, 25, 35),
        factor2=extract_column(raw, 35, 49),
        result=extract_column(raw, 49, 63),
        result_indicators=extract_column(raw, 70, 76),
    )


_EXTRACTORS = {
    SPEC_H: _extract_h,
    SPEC_F: _extract_f,
    SPEC_D: _extract_d,
    SPEC_P: _extract_p,
    SPEC_C: _extract_c,
}


# 名前欄からキーワード欄の手前まで（0始まり、end は含まない）
KEYWORD_CONTINUATION_SPANS: Dict[str, Tuple[int, int]] = {
    SPEC_F: (6, 43),
    SPEC_D: (6, 42),
    SPEC_P: (6, 42),
}


def is_keyword_continuation(line: ClassifiedLine) -> bool:
    """
    前の行の続きとして扱う継続行かどうか。

    7桁目のマーカー付き、または F/D/P で名前欄から固定欄まですべて空白の行
    （キーワードだけが続く行）。名前欄が空白でも宣言型や B/E などの固定欄に
    値がある行は、それ自体が1つの定義なので含めない。
    C 仕様書の Factor 1 空白による近似も含めない。
    """
    if not line.is_continuation:
        return False
    if line.has_continuation_marker:
        return True

    span = KEYWORD_CONTINUATION_SPANS.get(line.spec_type)
    if span is None:
        return False
    start, end = span
    return not line.raw_content[start:end].strip()
