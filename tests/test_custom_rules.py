# tests/test_custom_rules.py
from __future__ import annotations

import json

import pytest

from ilerpgcheck.custom_rules import (
    CONFIG_VERSION,
    CustomRule,
    CustomRuleError,
    CustomRulesManager,
    apply_rule,
    compile_pattern,
)
from ilerpgcheck.parser.line_classifier import classify_line


def make_rule(rule_id: str = "NO_DSPLY", pattern: str = r"\bDSPLY\b", **kwargs) -> CustomRule:
    return CustomRule(id=rule_id, name=rule_id.title(), pattern=pattern, message=f"{rule_id} hit", **kwargs)


@pytest.fixture
def rules_path(tmp_path):
    return tmp_path / "rpg-custom-rules.json"


def test_missing_file_means_no_rules(rules_path):
    manager = CustomRulesManager(rules_path)
    assert manager.rules == []
    assert not rules_path.exists()


def test_add_rule_persists_immediately(rules_path):
    CustomRulesManager(rules_path).add_rule(make_rule(suggestion="Remove it"))

    data = json.loads(rules_path.read_text(encoding="utf-8"))
    assert data["version"] == CONFIG_VERSION
    assert data["rules"][0]["id"] == "NO_DSPLY"
    assert data["rules"][0]["suggestion"] == "Remove it"

    reloaded = CustomRulesManager(rules_path)
    assert reloaded.get_rule("NO_DSPLY") == make_rule(suggestion="Remove it")


def test_optional_suggestion_is_omitted_from_json():
    assert "suggestion" not in make_rule().to_dict()


def test_duplicate_id_is_rejected(rules_path):
    manager = CustomRulesManager(rules_path)
    manager.add_rule(make_rule())
    with pytest.raises(CustomRuleError, match="already exists"):
        manager.add_rule(make_rule())


def test_update_enable_disable_remove(rules_path):
    manager = CustomRulesManager(rules_path)
    manager.add_rule(make_rule())

    updated = manager.update_rule("NO_DSPLY", message="changed", severity="error")
    assert (updated.message, updated.severity) == ("changed", "error")

    manager.disable_rule("NO_DSPLY")
    assert manager.enabled_rules() == []
    manager.enable_rule("NO_DSPLY")
    assert [r.id for r in manager.enabled_rules()] == ["NO_DSPLY"]

    manager.remove_rule("NO_DSPLY")
    assert CustomRulesManager(rules_path).rules == []


def test_rule_id_cannot_change(rules_path):
    manager = CustomRulesManager(rules_path)
    manager.add_rule(make_rule())
    with pytest.raises(CustomRuleError, match="Cannot change rule ID"):
        manager.update_rule("NO_DSPLY", id="OTHER")


def test_unknown_rule_id(rules_path):
    with pytest.raises(CustomRuleError, match="not found"):
        CustomRulesManager(rules_path).remove_rule("MISSING")


def test_invalid_severity_is_rejected():
    with pytest.raises(CustomRuleError, match="Invalid severity"):
        CustomRule.from_dict({"id": "X", "name": "X", "pattern": "X", "message": "X", "severity": "fatal"})


def test_missing_required_fields():
    with pytest.raises(CustomRuleError, match="pattern, message"):
        CustomRule.from_dict({"id": "X", "name": "X"})


def test_invalid_pattern_becomes_diagnostic(rules_path):
    manager = CustomRulesManager(rules_path)
    manager.add_rule(make_rule("BROKEN", pattern="("))
    manager.add_rule(make_rule())

    assert [d.rule_id for d in manager.diagnostics] == ["BROKEN"]
    line = classify_line("     C                   DSPLY", 1)
    assert [i.rule for i in manager.check_line(line)] == ["NO_DSPLY"]


def test_corrupt_file_is_treated_as_empty(rules_path):
    rules_path.write_text("{not json", encoding="utf-8")
    assert CustomRulesManager(rules_path).rules == []

    rules_path.write_text(json.dumps({"rules": "nope"}), encoding="utf-8")
    assert CustomRulesManager(rules_path).rules == []


def test_import_replaces_or_merges(rules_path):
    manager = CustomRulesManager(rules_path)
    manager.add_rule(make_rule("KEEP"))
    incoming = json.dumps({
        "version": "2.0.0",
        "rules": [make_rule("NEW").to_dict(), make_rule("KEEP", pattern="X").to_dict()],
    })

    manager.import_rules(incoming, merge=True)
    assert [r.id for r in manager.rules] == ["KEEP", "NEW"]
    assert manager.get_rule("KEEP").pattern == "X"
    assert manager.version == CONFIG_VERSION

    manager.import_rules(json.dumps({"version": "2.0.0", "rules": [make_rule("ONLY").to_dict()]}))
    assert [r.id for r in manager.rules] == ["ONLY"]
    assert manager.version == "2.0.0"


def test_import_rejects_bad_json(rules_path):
    with pytest.raises(CustomRuleError, match="Failed to import"):
        CustomRulesManager(rules_path).import_rules("[")


def test_export_contains_all_rules(rules_path):
    manager = CustomRulesManager(rules_path)
    manager.add_rule(make_rule("A1"))
    manager.add_rule(make_rule("B2", enabled=False))
    data = json.loads(manager.export_rules())
    assert [(r["id"], r["enabled"]) for r in data["rules"]] == [("A1", True), ("B2", False)]


def test_reset(rules_path):
    manager = CustomRulesManager(rules_path)
    manager.add_rule(make_rule())
    manager.reset()
    assert json.loads(rules_path.read_text(encoding="utf-8"))["rules"] == []


def test_apply_rule_is_case_insensitive_and_skips_comments():
    rule = make_rule(severity="error", category="naming", description="desc")
    compiled = compile_pattern(rule.pattern)

    issue = apply_rule(rule, compiled, classify_line("     C                   dsply", 4))
    assert (issue.rule, issue.line, issue.severity, issue.category) == ("NO_DSPLY", 4, "error", "naming")
    assert issue.rule_description == "desc"

    assert apply_rule(rule, compiled, classify_line("     C* dsply", 5)) is None
    assert apply_rule(rule, compiled, classify_line("     C                   EVAL", 6)) is None


def test_wrongly_typed_fields_are_rejected():
    with pytest.raises(CustomRuleError, match="wrong type: pattern"):
        CustomRule.from_dict({"id": "R1", "name": "n", "pattern": 5, "message": "m"})
    with pytest.raises(CustomRuleError, match="wrong type: enabled"):
        CustomRule.from_dict({"id": "R1", "name": "n", "pattern": "X", "message": "m", "enabled": "yes"})
    assert CustomRule.from_dict({"id": "R1", "name": "n", "pattern": "X", "message": "m", "suggestion": None})


def test_file_with_non_string_pattern_is_treated_as_empty(rules_path):
    rules_path.write_text(
        json.dumps({"rules": [{"id": "R1", "name": "n", "pattern": 5, "message": "m"}]}),
        encoding="utf-8",
    )
    manager = CustomRulesManager(rules_path)
    assert manager.rules == []
    assert manager.diagnostics == []


def test_failed_save_keeps_previous_rules(tmp_path):
    manager = CustomRulesManager(tmp_path / "rules.json")
    manager.add_rule(make_rule("KEEP", pattern="KEEP"))

    # ディレクトリには書き込めない
    manager.config_path = tmp_path / "as-dir"
    manager.config_path.mkdir()

    with pytest.raises(CustomRuleError, match="Failed to save"):
        manager.add_rule(make_rule("NEW"))
    with pytest.raises(CustomRuleError, match="Failed to save"):
        manager.remove_rule("KEEP")
    with pytest.raises(CustomRuleError, match="Failed to save"):
        manager.disable_rule("KEEP")
    with pytest.raises(CustomRuleError, match="Failed to save"):
        manager.import_rules(json.dumps({"version": "2.0.0", "rules": []}))

    assert [r.id for r in manager.rules] == ["KEEP"]
    assert manager.get_rule("KEEP").enabled
    assert manager.version == CONFIG_VERSION
    line = classify_line("     C                   KEEP", 1)
    assert [i.rule for i in manager.check_line(line)] == ["KEEP"]
