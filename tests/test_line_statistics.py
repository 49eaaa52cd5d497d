# tests/test_line_statistics.py
from __future__ import annotations

import pytest

from conftest import build_c, build_d, source
from ilerpgcheck.logic.line_statistics import (
    base_opcode,
    collect_statistics,
    find_deprecated_opcodes,
    find_free_blocks,
    find_indicator_usage,
    match_deprecated,
    specification_order,
)
from ilerpgcheck.parser.line_classifier import classify, classify_line


def test_collect_statistics(sample_program):
    text = source(sample_program, "     C* comment", "", build_d("", keywords="CONST"))
    stats = collect_statistics(classify(text))

    assert stats.total_lines == 6
    assert stats.comment_lines == 1
    assert stats.empty_lines == 1
    assert stats.code_lines == 4
    # C 行（Factor 1 空白）と キーワード行
    assert stats.continuation_lines == 2
    assert stats.specification_counts["D"] == 2
    assert stats.specification_counts["C"] == 2
    assert stats.specification_counts["UNKNOWN"] == 1
    assert stats.specification_counts["O"] == 0


def test_statistics_to_dict_uses_camel_case(sample_program):
    data = collect_statistics(classify(sample_program)).to_dict()
    assert data["totalLines"] == 3
    assert data["specificationCounts"]["H"] == 1


def test_specification_order_is_first_appearance():
    text = source("     H", "     C* x", "     D", "     C", "     D", "junk", "     F")
    assert specification_order(classify(text)) == ["H", "D", "C", "F"]


def test_free_blocks():
    text = source(
        "      /FREE",
        "         x = 1;",
        "      /END-FREE",
        "      /free",
        "         y = 2;",
    )
    assert find_free_blocks(classify(text)) == [(1, 3), (4, None)]


def test_free_block_reopened_before_end():
    text = source("      /FREE", "      /FREE", "      /END-FREE")
    assert find_free_blocks(classify(text)) == [(1, None), (2, 3)]


@pytest.mark.parametrize(
    "opcode, expected",
    [
        ("MOVEL(P)", "MOVEL"),
        ("eval(h)", "EVAL"),
        ("Z-ADD", "Z-ADD"),
    ],
)
def test_base_opcode_strips_extender(opcode, expected):
    assert base_opcode(classify_line(build_c("", opcode, "A", "B"), 1)) == expected


def test_base_opcode_only_for_c_lines():
    assert base_opcode(classify_line(build_d("counter", "S", "10", "I", "0"), 1)) is None
    assert base_opcode(classify_line(build_c("KEY"), 1)) is None


@pytest.mark.parametrize("opcode, code", [("CABEQ", "CABxx"), ("CASGT", "CASxx"), ("MOVE", "MOVE"), ("GOTO", "GOTO")])
def test_match_deprecated(opcode, code):
    assert match_deprecated(opcode).code == code


def test_match_deprecated_requires_whole_opcode():
    assert match_deprecated("MOVEA") is None
    assert match_deprecated("EVAL") is None
    assert match_deprecated("XCABEQ") is None


def test_find_deprecated_opcodes_skips_comments():
    text = source(
        build_c("", "MOVEL(P)", "'ABC'", "FIELD"),
        "     C*                  MOVE      A             B",
        build_c("", "EVAL", "x = 1"),
        build_c("LOOP", "TAG"),
    )
    usages = find_deprecated_opcodes(classify(text))
    assert [(u.line.line_number, u.opcode) for u in usages] == [(1, "MOVEL"), (4, "TAG")]


def test_find_indicator_usage():
    text = source(build_c("", "EVAL", "*IN03 = *on"), build_c("", "EVAL", "*INLR = *on"))
    assert [line.line_number for line in find_indicator_usage(classify(text))] == [1]
