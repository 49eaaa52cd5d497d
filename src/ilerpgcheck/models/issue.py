# src/ilerpgcheck/models/issue.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"
SEVERITY_INFO = "info"

# ソート用の重要度順
SEVERITY_ORDER: Dict[str, int] = {
    SEVERITY_ERROR: 0,
    SEVERITY_WARNING: 1,
    SEVERITY_INFO: 2,
}

CATEGORY_STRUCTURE = "structure"
CATEGORY_SYNTAX = "syntax"
CATEGORY_NAMING = "naming"
CATEGORY_BEST_PRACTICE = "best-practice"
CATEGORY_DEPRECATED = "deprecated"


@dataclass
class Issue:
    """
    チェックで検出された1件の問題。

    桁番号（column / end_column）は RPG のソースリストに合わせて 1 始まり。
    corrected_code は修正案を合成できるチェックのみが設定する。
    """
    severity: str
    category: str
    line: int
    message: str
    rule: str
    column: Optional[int] = None
    end_column: Optional[int] = None
    rule_description: Optional[str] = None
    suggestion: Optional[str] = None
    code_snippet: Optional[str] = None
    corrected_code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """JSON 出力用の dict（キーは camelCase、None の項目は出力しない）。"""
        data: Dict[str, Any] = {
            "severity": self.severity,
            "category": self.category,
            "line": self.line,
        }
        optional = {
            "column": self.column,
            "endColumn": self.end_column,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        data["message"] = self.message
        data["rule"] = self.rule
        trailing = {
            "ruleDescription": self.rule_description,
            "suggestion": self.suggestion,
            "codeSnippet": self.code_snippet,
            "correctedCode": self.corrected_code,
        }
        data.update({k: v for k, v in trailing.items() if v is not None})
        return data
