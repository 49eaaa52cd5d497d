# src/ilerpgcheck/custom_rules.py
"""
ユーザー定義ルール（正規表現ベース）の管理。

設定ファイル（既定: カレントディレクトリの rpg-custom-rules.json）:
    {"version": "1.0.0", "rules": [{"id": ..., "pattern": ..., ...}]}

ルールの追加・削除・有効化などの変更はすべて即座にファイルへ保存する。
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Pattern, Tuple, Union

from ilerpgcheck.models.classified_line import ClassifiedLine
from ilerpgcheck.models.issue import CATEGORY_BEST_PRACTICE, SEVERITY_ORDER, SEVERITY_WARNING, Issue

logger = logging.getLogger(__name__)

DEFAULT_RULES_FILE = "rpg-custom-rules.json"
CONFIG_VERSION = "1.0.0"


class CustomRuleError(Exception):
    """ルールの追加・更新・取込・保存の失敗。"""


# JSON 上の各項目の型
_FIELD_TYPES: Dict[str, type] = {
    "id": str,
    "name": str,
    "pattern": str,
    "message": str,
    "description": str,
    "category": str,
    "severity": str,
    "enabled": bool,
    "suggestion": str,
}


@dataclass
class CustomRule:
    id: str
    name: str
    pattern: str
    message: str
    description: str = ""
    category: str = CATEGORY_BEST_PRACTICE
    severity: str = SEVERITY_WARNING
    enabled: bool = True
    suggestion: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CustomRule":
        if not isinstance(data, dict):
            raise CustomRuleError(f"Invalid rule entry: {data!r}")
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        missing = [k for k in ("id", "name", "pattern", "message") if not values.get(k)]
        if missing:
            raise CustomRuleError(f"Rule is missing required fields: {', '.join(missing)}")
        wrong_type = [
            k for k, v in values.items()
            if not isinstance(v, _FIELD_TYPES[k]) and not (k == "suggestion" and v is None)
        ]
        if wrong_type:
            raise CustomRuleError(f"Rule has fields of the wrong type: {', '.join(wrong_type)}")
        rule = cls(**values)
        if rule.severity not in SEVERITY_ORDER:
            raise CustomRuleError(f"Invalid severity '{rule.severity}' in rule '{rule.id}'")
        return rule

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if data["suggestion"] is None:
            del data["suggestion"]
        return data


@dataclass(frozen=True)
class RuleDiagnostic:
    """パターンのコンパイルに失敗したルール。"""
    rule_id: str
    pattern: str
    error: str


def compile_pattern(pattern: str) -> Pattern[str]:
    return re.compile(pattern, re.IGNORECASE)


def apply_rule(rule: CustomRule, compiled: Pattern[str], line: ClassifiedLine) -> Optional[Issue]:
    """1ルールを1行に適用する。コメント行には適用しない。"""
    if line.is_comment:
        return None
    if not compiled.search(line.raw_content):
        return None
    return Issue(
        severity=rule.severity,
        category=rule.category,
        line=line.line_number,
        message=rule.message,
        rule=rule.id,
        rule_description=rule.description or None,
        suggestion=rule.suggestion,
        code_snippet=line.raw_content,
    )


class CustomRulesManager:
    def __init__(self, config_path: Union[str, Path, None] = None) -> None:
        self.config_path = Path(config_path) if config_path else Path.cwd() / DEFAULT_RULES_FILE
        self.version = CONFIG_VERSION
        self._rules: List[CustomRule] = []
        self._compiled: Dict[str, Pattern[str]] = {}
        self.diagnostics: List[RuleDiagnostic] = []
        self._load()

    # ─────────────────────────────────────────
    # 読み込み・保存
    # ─────────────────────────────────────────
    def _load(self) -> None:
        if not self.config_path.exists():
            return
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                data = json.load(f)
            self.version, self._rules = self._parse_config(data)
        except (OSError, ValueError, CustomRuleError) as e:
            # 壊れた設定は空として扱う
            logger.warning("Failed to load custom rules from %s: %s", self.config_path, e)
            self._rules = []
        self._recompile()

    @staticmethod
    def _parse_config(data: Any) -> Tuple[str, List[CustomRule]]:
        if not isinstance(data, dict) or not isinstance(data.get("rules"), list):
            raise CustomRuleError("Invalid rules format")
        rules = [CustomRule.from_dict(entry) for entry in data["rules"]]
        return str(data.get("version", CONFIG_VERSION)), rules

    def _save(self) -> None:
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with self.config_path.open("w", encoding="utf-8") as f:
                f.write(self.export_rules())
        except OSError as e:
            raise CustomRuleError(f"Failed to save custom rules: {e}") from e

    def _recompile(self) -> None:
        self._compiled = {}
        self.diagnostics = []
        for rule in self._rules:
            try:
                self._compiled[rule.id] = compile_pattern(rule.pattern)
            except re.error as e:
                logger.warning("Invalid regex pattern in rule '%s': %s", rule.id, e)
                self.diagnostics.append(RuleDiagnostic(rule.id, rule.pattern, str(e)))

    def _snapshot(self) -> Tuple[str, List[CustomRule]]:
        return self.version, list(self._rules)

    def _changed(self, previous: Tuple[str, List[CustomRule]]) -> None:
        """変更を保存する。保存に失敗したら変更前の状態に戻す。"""
        self._recompile()
        try:
            self._save()
        except CustomRuleError:
            self.version, self._rules = previous
            self._recompile()
            raise

    # ─────────────────────────────────────────
    # 参照
    # ─────────────────────────────────────────
    @property
    def rules(self) -> List[CustomRule]:
        return list(self._rules)

    def enabled_rules(self) -> List[CustomRule]:
        return [rule for rule in self._rules if rule.enabled]

    def get_rule(self, rule_id: str) -> Optional[CustomRule]:
        for rule in self._rules:
            if rule.id == rule_id:
                return rule
        return None

    def _require(self, rule_id: str) -> int:
        for idx, rule in enumerate(self._rules):
            if rule.id == rule_id:
                return idx
        raise CustomRuleError(f"Rule with ID '{rule_id}' not found")

    # ─────────────────────────────────────────
    # 変更（すべて保存まで行う）
    # ─────────────────────────────────────────
    def add_rule(self, rule: CustomRule) -> None:
        if self.get_rule(rule.id) is not None:
            raise CustomRuleError(f"Rule with ID '{rule.id}' already exists")
        previous = self._snapshot()
        self._rules.append(rule)
        self._changed(previous)

    def update_rule(self, rule_id: str, **changes: Any) -> CustomRule:
        idx = self._require(rule_id)
        if "id" in changes and changes["id"] != rule_id:
            raise CustomRuleError("Cannot change rule ID")

        merged = {**self._rules[idx].to_dict(), **changes}
        updated = CustomRule.from_dict(merged)
        previous = self._snapshot()
        self._rules[idx] = updated
        self._changed(previous)
        return self._rules[idx]

    def remove_rule(self, rule_id: str) -> None:
        idx = self._require(rule_id)
        previous = self._snapshot()
        del self._rules[idx]
        self._changed(previous)

    def enable_rule(self, rule_id: str) -> None:
        self.update_rule(rule_id, enabled=True)

    def disable_rule(self, rule_id: str) -> None:
        self.update_rule(rule_id, enabled=False)

    def export_rules(self) -> str:
        return json.dumps(
            {"version": self.version, "rules": [rule.to_dict() for rule in self._rules]},
            ensure_ascii=False,
            indent=2,
        )

    def import_rules(self, json_text: str, merge: bool = False) -> None:
        """
        JSON 文字列からルールを取り込む。

        merge=True の場合は同じ ID を上書きし、新しい ID を追加する。
        merge=False の場合は全置換。
        """
        try:
            version, imported = self._parse_config(json.loads(json_text))
        except ValueError as e:
            raise CustomRuleError(f"Failed to import rules: {e}") from e

        previous = self._snapshot()
        if not merge:
            self.version = version
            self._rules = imported
        else:
            for rule in imported:
                existing = self.get_rule(rule.id)
                if existing is None:
                    self._rules.append(rule)
                else:
                    self._rules[self._rules.index(existing)] = rule
        self._changed(previous)

    def reset(self) -> None:
        previous = self._snapshot()
        self.version = CONFIG_VERSION
        self._rules = []
        self._changed(previous)

    # ─────────────────────────────────────────
    # 適用
    # ─────────────────────────────────────────
    def check_line(self, line: ClassifiedLine) -> List[Issue]:
        issues: List[Issue] = []
        for rule in self.enabled_rules():
            compiled = self._compiled.get(rule.id)
            if compiled is None:
                continue
            issue = apply_rule(rule, compiled, line)
            if issue is not None:
                issues.append(issue)
        return issues

    def check_lines(self, lines: List[ClassifiedLine]) -> List[Issue]:
        issues: List[Issue] = []
        for line in lines:
            issues.extend(self.check_line(line))
        return issues
