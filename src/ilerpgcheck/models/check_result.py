# src/ilerpgcheck/models/check_result.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ilerpgcheck.models.classified_line import ALL_SPEC_TYPES
from ilerpgcheck.models.issue import Issue


def empty_spec_counts() -> Dict[str, int]:
    """全仕様書タイプを 0 で初期化したカウント表。"""
    return {spec: 0 for spec in ALL_SPEC_TYPES}


@dataclass
class LineStatistics:
    """行の統計情報（総行数・コメント行・継続行・空行・仕様書タイプ別）。"""
    total_lines: int = 0
    comment_lines: int = 0
    code_lines: int = 0
    continuation_lines: int = 0
    empty_lines: int = 0
    specification_counts: Dict[str, int] = field(default_factory=empty_spec_counts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalLines": self.total_lines,
            "commentLines": self.comment_lines,
            "codeLines": self.code_lines,
            "continuationLines": self.continuation_lines,
            "emptyLines": self.empty_lines,
            "specificationCounts": dict(self.specification_counts),
        }


@dataclass
class Summary:
    total_issues: int = 0
    errors: int = 0
    warnings: int = 0
    infos: int = 0
    checked_lines: int = 0
    specification_counts: Dict[str, int] = field(default_factory=empty_spec_counts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalIssues": self.total_issues,
            "errors": self.errors,
            "warnings": self.warnings,
            "infos": self.infos,
            "checkedLines": self.checked_lines,
            "specificationCounts": dict(self.specification_counts),
        }


@dataclass
class CheckResult:
    """
    1ソース分のチェック結果。

    valid はエラー（severity == "error"）が1件もない場合に True。
    issues は行番号 → 重要度の順に並んでいる。
    """
    valid: bool
    issues: List[Issue]
    summary: Summary
    file_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "valid": self.valid,
            "issues": [issue.to_dict() for issue in self.issues],
            "summary": self.summary.to_dict(),
        }
        if self.file_path is not None:
            data["filePath"] = self.file_path
        return data


@dataclass
class PartialResult:
    """個別チェック（順序のみ、桁位置のみ等）の結果。"""
    valid: bool
    issues: List[Issue]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "issues": [issue.to_dict() for issue in self.issues],
        }
