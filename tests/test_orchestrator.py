# tests/test_orchestrator.py
from __future__ import annotations

import pytest

from conftest import build_c, build_d, source
from ilerpgcheck.custom_rules import CustomRule, CustomRulesManager
from ilerpgcheck.models.check_level import LEVEL_BASIC, LEVEL_STRICT
from ilerpgcheck.models.issue import SEVERITY_ORDER, Issue
from ilerpgcheck.orchestrator import RpgCodeChecker, sort_issues
from ilerpgcheck.parser.line_classifier import classify
from ilerpgcheck.settings import CheckOptions


@pytest.fixture
def checker() -> RpgCodeChecker:
    return RpgCodeChecker()


def test_three_line_program(checker, sample_program):
    assert [line.spec_type for line in classify(sample_program)] == ["H", "D", "C"]

    result = checker.check_code(sample_program)
    rules = [i.rule for i in result.issues]
    assert "SPEC_ORDER" not in rules
    assert not [i for i in result.issues if i.line == 2 and i.rule.startswith("D_SPEC_")]
    assert result.valid
    assert result.summary.checked_lines == 3
    assert result.summary.specification_counts["D"] == 1


def test_fully_free_source_is_rejected(checker):
    result = checker.check_code(source("**FREE", "dcl-s counter int(10);"), file_path="PGM.rpgle")

    assert not result.valid
    assert [i.rule for i in result.issues] == ["UNSUPPORTED_FREE_FORMAT"]
    issue = result.issues[0]
    assert (issue.line, issue.column, issue.severity) == (1, 1, "error")
    assert result.summary.total_issues == 1
    assert result.summary.errors == 1
    assert result.summary.checked_lines == 0
    assert result.file_path == "PGM.rpgle"


def test_fully_free_after_leading_comment(checker):
    result = checker.check_code(source("", "   **FREE"))
    assert result.issues[0].line == 2


def test_issues_are_sorted_by_line_then_severity(checker):
    text = source(
        "     H",
        build_c("", "MOVE", "A", "B"),
        build_d("counter", "S", "10", "I", "0"),
        build_d("total", "S", "10", "Q", keywords="DIM(3"),
    )
    result = checker.check_code(text, LEVEL_STRICT)
    keys = [(i.line, SEVERITY_ORDER[i.severity]) for i in result.issues]
    assert keys == sorted(keys)
    assert "SPEC_ORDER" in [i.rule for i in result.issues]


def test_sort_is_stable_for_equal_keys():
    def issue(rule: str, line: int, severity: str) -> Issue:
        return Issue(severity=severity, category="structure", line=line, message=rule, rule=rule)

    issues = [
        issue("B", 2, "error"),
        issue("C", 1, "info"),
        issue("D", 1, "error"),
        issue("E", 1, "error"),
        issue("A", 1, "warning"),
    ]
    assert [i.rule for i in sort_issues(issues)] == ["D", "E", "A", "C", "B"]


def test_valid_means_no_errors(checker):
    # 警告・情報だけなら valid
    result = checker.check_code(source("     H DFTACTGRP(*NO)", build_d("temp", "S", "10", "I", "0")))
    assert result.summary.errors == 0
    assert result.summary.infos >= 1
    assert result.valid

    bad = checker.check_code(build_d("total", "S", "10", "Q"))
    assert not bad.valid
    assert bad.summary.errors == 1


def test_level_argument_overrides_options():
    checker = RpgCodeChecker(CheckOptions(check_level=LEVEL_BASIC))
    raw = build_d("total", "S", "10", "Q")
    assert checker.check_code(raw).valid
    assert not checker.check_code(raw, "standard").valid


def test_unknown_level_is_rejected(checker):
    with pytest.raises(ValueError):
        checker.check_code("     H", "pedantic")
    with pytest.raises(ValueError):
        RpgCodeChecker(CheckOptions(check_level="pedantic"))


def test_check_file(tmp_path, checker, sample_program):
    path = tmp_path / "PGM001.rpgle"
    path.write_bytes(source("     C* 顧客マスタの更新処理", sample_program).encode("cp932"))

    result = checker.check_file(path)
    assert result.file_path == str(path)
    assert result.summary.checked_lines == 4
    assert result.valid


def test_custom_rules_from_options(tmp_path, sample_program):
    rules_file = tmp_path / "rules.json"
    CustomRulesManager(rules_file).add_rule(CustomRule(
        id="NO_DFTACTGRP",
        name="DFTACTGRP",
        pattern="DFTACTGRP",
        message="Use a named activation group",
        severity="error",
    ))
    checker = RpgCodeChecker(CheckOptions(custom_rules_path=str(rules_file)))
    result = checker.check_code(sample_program)
    assert [i.rule for i in result.issues if i.rule == "NO_DFTACTGRP"] == ["NO_DFTACTGRP"]
    assert not result.valid


def test_specification_order_partial_check(checker, sample_program):
    assert checker.check_specification_order(sample_program).valid

    result = checker.check_specification_order(source(build_c("", "eval", "x = 1;"), "     H"))
    assert not result.valid
    assert [i.rule for i in result.issues] == ["SPEC_ORDER"]


def test_column_partial_check_keeps_column_rules_only(checker):
    text = source(
        build_d("total", "S", "10", "Q"),
        build_d("a", "S", "1", "A"),
        "     FCUSTMASTERXIF   E           K DISK",
        "     C" + "x" * 100,
    )
    result = checker.check_column_positions(text)
    assert sorted({i.rule for i in result.issues}) == [
        "D_SPEC_DATATYPE",
        "F_SPEC_FILE_TYPE",
        "F_SPEC_SPACING",
        "LINE_LENGTH",
    ]
    assert not result.valid


def test_naming_and_best_practice_partial_checks(checker):
    naming = checker.check_naming_conventions(build_d("a", "S", "1", "A"))
    assert [i.rule for i in naming.issues] == ["VAR_NAME_TOO_SHORT"]
    assert naming.valid

    practices = checker.check_best_practices(build_c("", "GOTO", "ENDPGM"))
    assert sorted(i.rule for i in practices.issues) == ["DEPRECATED_OPCODE", "NO_GOTO"]
    assert not practices.valid


def test_partial_checks_reject_fully_free(checker):
    result = checker.check_naming_conventions("**FREE")
    assert not result.valid
    assert result.issues[0].rule == "UNSUPPORTED_FREE_FORMAT"


def test_query_helpers(checker, sample_program):
    text = source(sample_program, "      /FREE", "        *IN03 = *ON;", build_c("", "MOVE", "A", "B"))
    assert checker.get_statistics(text).total_lines == 6
    assert checker.get_specification_order(text) == ["H", "D", "C"]
    assert checker.find_free_blocks(text) == [(4, None)]
    assert [u.opcode for u in checker.find_deprecated_opcodes(text)] == ["MOVE"]
    assert [line.line_number for line in checker.find_indicator_usage(text)] == [5]
