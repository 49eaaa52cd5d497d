# tests/test_best_practice.py
from __future__ import annotations

from conftest import build_c, build_d, source
from ilerpgcheck.checkers.best_practice import (
    check_best_practices,
    check_deprecated_opcodes,
    check_indicator_usage,
    check_no_goto,
    recommend_fully_free,
)
from ilerpgcheck.custom_rules import CustomRule, CustomRulesManager
from ilerpgcheck.models.check_level import LEVEL_BASIC, LEVEL_STANDARD, LEVEL_STRICT
from ilerpgcheck.models.issue import SEVERITY_ERROR, SEVERITY_WARNING
from ilerpgcheck.parser.line_classifier import classify


def test_deprecated_opcode():
    issues = check_deprecated_opcodes(classify(build_c("", "Z-ADD", "0", "TOTAL")))
    assert len(issues) == 1
    issue = issues[0]
    assert issue.rule == "DEPRECATED_OPCODE"
    assert issue.severity == SEVERITY_WARNING
    assert issue.category == "deprecated"
    assert (issue.column, issue.end_column) == (26, 35)
    assert issue.suggestion == "EVAL文を使用"


def test_goto_is_reported_twice_at_standard():
    text = build_c("", "GOTO", "ENDPGM")
    issues = check_best_practices(classify(text), LEVEL_STANDARD)
    assert sorted(i.rule for i in issues) == ["DEPRECATED_OPCODE", "NO_GOTO"]
    assert [i.severity for i in check_no_goto(classify(text))] == [SEVERITY_ERROR]


def test_goto_only_deprecated_at_basic():
    issues = check_best_practices(classify(build_c("", "GOTO", "ENDPGM")), LEVEL_BASIC)
    assert [i.rule for i in issues] == ["DEPRECATED_OPCODE"]


def test_each_indicator_is_reported_with_its_columns():
    raw = build_c("", "EVAL", "*IN01 = *IN99")
    issues = check_indicator_usage(classify(raw))
    assert [i.message for i in issues] == [
        "数字付き標識 '*IN01' の使用は避けるべきです。",
        "数字付き標識 '*IN99' の使用は避けるべきです。",
    ]
    first = raw.index("*IN01")
    assert (issues[0].column, issues[0].end_column) == (first + 1, first + 5)


def test_indicators_in_comments_are_ignored():
    assert check_indicator_usage(classify("     C*  set *IN03 on exit")) == []


def test_recommend_fully_free_at_strict():
    text = source("     H", build_d("x1", "S", "1", "A"))
    assert [i.rule for i in recommend_fully_free(classify(text))] == ["RECOMMEND_FULLY_FREE"]
    assert "RECOMMEND_FULLY_FREE" not in [i.rule for i in check_best_practices(classify(text), LEVEL_STANDARD)]
    assert "RECOMMEND_FULLY_FREE" in [i.rule for i in check_best_practices(classify(text), LEVEL_STRICT)]


def test_recommend_fully_free_needs_fixed_code():
    assert recommend_fully_free(classify("     C* only a comment")) == []


def test_custom_rules_are_applied(tmp_path):
    manager = CustomRulesManager(tmp_path / "rules.json")
    manager.add_rule(CustomRule(
        id="NO_DSPLY",
        name="No DSPLY",
        pattern=r"\bdsply\b",
        message="DSPLY is for debugging only",
    ))
    text = source(build_c("", "DSPLY", "'hello'"), "     C*  DSPLY in a comment")
    issues = check_best_practices(classify(text), LEVEL_BASIC, manager)
    assert [(i.rule, i.line) for i in issues] == [("NO_DSPLY", 1)]
