# tests/test_spec_order_tracker.py
from __future__ import annotations

from conftest import build_c, build_d, build_f, build_p, source
from ilerpgcheck.logic.spec_order_tracker import (
    OrderState,
    advance,
    check_d_after_c,
    track_specification_order,
)
from ilerpgcheck.parser.line_classifier import classify, classify_line

H = "     H DFTACTGRP(*NO)"
F = build_f("CUSTMAST", "I", "F", "DISK")
D = build_d("counter", "S", "10", "I", "0")
C = build_c("", "eval", "counter = 1;")


def test_canonical_order_has_no_issues():
    assert track_specification_order(classify(source(H, F, D, C))) == []


def test_single_regression_is_reported_once():
    issues = track_specification_order(classify(source(H, F, D, C, D)))
    assert len(issues) == 1
    issue = issues[0]
    assert issue.rule == "SPEC_ORDER"
    assert issue.line == 5
    assert issue.column == 6
    assert "D仕様書はC仕様書の後" in issue.message


def test_violating_line_becomes_the_new_reference():
    # C → D（違反）→ F（違反）: F は C ではなく直前の D と比較される
    issues = track_specification_order(classify(source(C, D, F)))
    assert [i.line for i in issues] == [2, 3]
    assert "F仕様書はD仕様書の後" in issues[1].message


def test_local_definitions_inside_procedure_are_exempt():
    text = source(
        H,
        D,
        build_p("calcTotal", "B"),
        build_d("total", "S", "10", "I", "0"),
        C,
        build_p("calcTotal", "E"),
        C,
    )
    assert track_specification_order(classify(text)) == []


def test_d_after_procedure_end_is_checked_again():
    text = source(H, build_p("calcTotal", "B"), C, build_p("calcTotal", "E"), D)
    issues = track_specification_order(classify(text))
    assert [i.line for i in issues] == [5]


def test_long_procedure_name_continuation_does_not_toggle_block():
    text = source(
        "     P calculateCustomerTotal...",
        build_p("", "B"),
        D,
        build_p("", "E"),
    )
    assert track_specification_order(classify(text)) == []


def test_comments_unknown_and_blank_lines_are_ignored():
    text = source(H, "     C* comment", "", "garbage line", "     * old comment", F)
    assert track_specification_order(classify(text)) == []


def test_advance_does_not_mutate_previous_state():
    start = OrderState()
    after_c = advance(start, classify_line(C, 1))
    after_d = advance(after_c, classify_line(D, 2))

    assert start == OrderState()
    assert after_c.issues == ()
    assert len(after_d.issues) == 1


def test_d_after_c_in_main_section():
    issues = check_d_after_c(classify(source(H, D, C, D, D)))
    assert len(issues) == 1
    assert issues[0].rule == "D_AFTER_C"
    assert issues[0].line == 4
    assert "行3" in issues[0].suggestion


def test_d_after_c_ignores_procedure_bodies():
    text = source(C, build_p("calcTotal", "B"), D, build_p("calcTotal", "E"))
    assert check_d_after_c(classify(text)) == []
