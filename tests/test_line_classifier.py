# tests/test_line_classifier.py
from __future__ import annotations

import pytest

from conftest import build_c, build_d, build_f, build_p, source
from ilerpgcheck.models.classified_line import (
    COMMENT,
    FREE,
    UNKNOWN,
    CSpecFields,
    DSpecFields,
    FSpecFields,
    PSpecFields,
)
from ilerpgcheck.parser.line_classifier import (
    classify,
    classify_line,
    detect_spec_type,
    is_keyword_continuation,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("     H DFTACTGRP(*NO)", "H"),
        ("     F", "F"),
        ("     d counter", "D"),
        ("     P", "P"),
        ("     I", "I"),
        ("     C", "C"),
        ("     O", "O"),
        ("     *  old style comment", COMMENT),
        ("     X", UNKNOWN),
        ("abc", UNKNOWN),
        ("", UNKNOWN),
        ("**FREE", FREE),
        ("   **FREE", FREE),
    ],
)
def test_detect_spec_type(raw, expected):
    assert detect_spec_type(raw) == expected


def test_classify_keeps_every_line_including_blank():
    lines = classify(source("     H", "", "     C"))
    assert [line.line_number for line in lines] == [1, 2, 3]
    assert [line.spec_type for line in lines] == ["H", UNKNOWN, "C"]


def test_classify_strips_carriage_return():
    lines = classify("     H NOMAIN\r\n     D")
    assert lines[0].raw_content == "     H NOMAIN"
    assert lines[1].raw_content == "     D"


def test_comment_flag_is_independent_of_spec_type():
    line = classify_line("     D* LIKEDS comment text", 1)
    assert line.spec_type == "D"
    assert line.is_comment


def test_classify_is_idempotent(sample_program):
    text = source(
        sample_program,
        "     C*  comment",
        build_d("", keywords="CONST"),
        "",
        "garbage",
        "**FREE",
    )
    first = classify(text)
    second = classify("\n".join(line.raw_content for line in first))
    assert first == second


def test_blank_name_field_marks_d_line_as_continuation():
    line = classify_line(build_d("", keywords="CONST"), 1)
    assert line.is_continuation


def test_named_d_line_is_not_continuation():
    line = classify_line(build_d("counter", "S", "10", "I", "0"), 1)
    assert not line.is_continuation


def test_continuation_marker_in_column_7():
    line = classify_line("     D-", 1)
    assert line.is_continuation
    assert line.has_continuation_marker


def test_short_d_line_is_not_continuation():
    # 名前欄（21桁）まで届かない行は空白判定しない
    assert not classify_line("     D", 1).is_continuation


def test_free_and_unknown_lines_are_never_continuation():
    assert not classify_line("**FREE", 1).is_continuation
    assert not classify_line("     X                     x", 1).is_continuation


def test_c_line_with_blank_factor1_counts_as_continuation():
    line = classify_line(build_c("", "eval", "x = 1;"), 1)
    assert line.is_continuation
    assert not is_keyword_continuation(line)


def test_d_field_extraction(d_line):
    data = classify_line(d_line("counter", "S", "10", "I", "0", keywords="INZ(0)"), 1).column_data
    assert isinstance(data, DSpecFields)
    assert data.name == "counter"
    assert data.declaration_type == "S"
    assert data.to_length == "10"
    assert data.data_type == "I"
    assert data.decimal_positions == "0"
    assert data.keywords == "INZ(0)"
    assert data.from_position is None


def test_f_field_extraction(f_line):
    data = classify_line(f_line("CUSTMAST", "I", "F", "DISK", "KEYED", file_format="E"), 1).column_data
    assert isinstance(data, FSpecFields)
    assert data.file_name == "CUSTMAST"
    assert data.file_type == "I"
    assert data.file_designation == "F"
    assert data.file_format == "E"
    assert data.device == "DISK"
    assert data.keywords == "KEYED"


def test_p_and_c_field_extraction(p_line, c_line):
    p = classify_line(p_line("calcTotal", "B", "EXPORT"), 1).column_data
    assert isinstance(p, PSpecFields)
    assert (p.name, p.begin_end, p.keywords) == ("calcTotal", "B", "EXPORT")

    c = classify_line(c_line("KEY", "CHAIN", "CUSTMAST"), 2).column_data
    assert isinstance(c, CSpecFields)
    assert (c.factor1, c.opcode, c.factor2) == ("KEY", "CHAIN", "CUSTMAST")


def test_no_column_data_for_input_output_and_comment_lines():
    assert classify_line("     I", 1).column_data is None
    assert classify_line("     O", 1).column_data is None
    assert classify_line("     * note", 1).column_data is None


def test_keyword_only_line_continues_previous_definition(d_line):
    assert is_keyword_continuation(classify_line(d_line("", keywords="CONST"), 1))


def test_blank_name_with_declaration_type_does_not_chain(d_line, p_line):
    assert not is_keyword_continuation(classify_line(d_line("", "PI", "10", "A"), 1))
    assert not is_keyword_continuation(classify_line(p_line("", "E"), 1))


def test_marker_line_always_chains():
    assert is_keyword_continuation(classify_line("     D-         more", 1))
