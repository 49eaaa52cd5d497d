# src/ilerpgcheck/orchestrator.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

from ilerpgcheck.checkers.best_practice import check_best_practices
from ilerpgcheck.checkers.common_errors import check_common_errors
from ilerpgcheck.checkers.naming_checker import check_naming
from ilerpgcheck.checkers.syntax_checker import check_syntax
from ilerpgcheck.custom_rules import CustomRulesManager
from ilerpgcheck.logic import line_statistics
from ilerpgcheck.logic.column_positions import check_column_positions
from ilerpgcheck.logic.spec_order_tracker import check_d_after_c, track_specification_order
from ilerpgcheck.models.check_level import LEVEL_BASIC, LEVEL_STANDARD, validate_level
from ilerpgcheck.models.check_result import CheckResult, LineStatistics, PartialResult, Summary
from ilerpgcheck.models.classified_line import FREE, ClassifiedLine
from ilerpgcheck.models.issue import (
    CATEGORY_STRUCTURE,
    SEVERITY_ERROR,
    SEVERITY_INFO,
    SEVERITY_ORDER,
    SEVERITY_WARNING,
    Issue,
)
from ilerpgcheck.parser.line_classifier import classify
from ilerpgcheck.settings import CheckOptions
from ilerpgcheck.source_loader import read_source

logger = logging.getLogger(__name__)

LineCheck = Callable[[List[ClassifiedLine]], List[Issue]]


def sort_issues(issues: List[Issue]) -> List[Issue]:
    """行番号 → 重要度（error < warning < info）の順。同順位は検出順のまま。"""
    return sorted(issues, key=lambda i: (i.line, SEVERITY_ORDER.get(i.severity, len(SEVERITY_ORDER))))


def has_errors(issues: List[Issue]) -> bool:
    return any(issue.severity == SEVERITY_ERROR for issue in issues)


def find_fully_free(lines: List[ClassifiedLine]) -> Optional[ClassifiedLine]:
    for line in lines:
        if line.spec_type == FREE:
            return line
    return None


def unsupported_free_format(line: ClassifiedLine) -> Issue:
    return Issue(
        severity=SEVERITY_ERROR,
        category=CATEGORY_STRUCTURE,
        line=line.line_number,
        column=1,
        message="完全自由形式（**FREE）のRPGコードは現在サポートされていません。",
        rule="UNSUPPORTED_FREE_FORMAT",
        rule_description="このツールは固定形式および桁制限付き自由形式のRPGコードのみをサポートしています。",
        code_snippet=line.raw_content,
    )


def build_summary(stats: LineStatistics, issues: List[Issue]) -> Summary:
    return Summary(
        total_issues=len(issues),
        errors=sum(1 for i in issues if i.severity == SEVERITY_ERROR),
        warnings=sum(1 for i in issues if i.severity == SEVERITY_WARNING),
        infos=sum(1 for i in issues if i.severity == SEVERITY_INFO),
        checked_lines=stats.total_lines,
        specification_counts=dict(stats.specification_counts),
    )


class RpgCodeChecker:
    """
    全チェックの実行窓口。

    1) ソースを行単位に分類
    2) **FREE を含むソースは UNSUPPORTED_FREE_FORMAT 1件で打ち切り
    3) 桁位置・順序・文法・よくある誤り・命名・ベストプラクティスを実行
    4) 行番号 → 重要度で並べ替えて CheckResult にまとめる
    """

    def __init__(self, options: Optional[CheckOptions] = None) -> None:
        self.options = options or CheckOptions()
        validate_level(self.options.check_level)
        self.custom_rules: Optional[CustomRulesManager] = None
        if self.options.custom_rules_path:
            self.custom_rules = CustomRulesManager(self.options.custom_rules_path)

    # ─────────────────────────────────────────
    # 全体チェック
    # ─────────────────────────────────────────
    def check_code(
        self,
        code: str,
        check_level: Optional[str] = None,
        file_path: Optional[str] = None,
    ) -> CheckResult:
        level = validate_level(check_level or self.options.check_level)
        lines = classify(code)

        free_line = find_fully_free(lines)
        if free_line is not None:
            logger.info("%s: **FREE source is not supported", file_path or "<input>")
            issue = unsupported_free_format(free_line)
            return CheckResult(
                valid=False,
                issues=[issue],
                summary=Summary(total_issues=1, errors=1),
                file_path=file_path,
            )

        issues = sort_issues(self._run_all_checkers(lines, level))
        summary = build_summary(line_statistics.collect_statistics(lines), issues)
        logger.debug(
            "%s: %d issues (%d errors, %d warnings, %d infos)",
            file_path or "<input>", summary.total_issues, summary.errors, summary.warnings, summary.infos,
        )
        return CheckResult(
            valid=summary.errors == 0,
            issues=issues,
            summary=summary,
            file_path=file_path,
        )

    def check_file(self, path: Union[str, Path], check_level: Optional[str] = None) -> CheckResult:
        source = read_source(path)
        return self.check_code(source.text, check_level, str(source.path))

    def _run_all_checkers(self, lines: List[ClassifiedLine], level: str) -> List[Issue]:
        issues: List[Issue] = []
        issues.extend(check_column_positions(lines, level, self.options.consider_dbcs))
        issues.extend(track_specification_order(lines))
        issues.extend(check_d_after_c(lines))
        issues.extend(check_syntax(lines, level))
        issues.extend(check_common_errors(lines, level))
        issues.extend(check_naming(lines, level))
        issues.extend(check_best_practices(lines, level, self.custom_rules))
        return issues

    # ─────────────────────────────────────────
    # 個別チェック
    # ─────────────────────────────────────────
    def _partial(self, code: str, run: LineCheck, valid_when_empty: bool = False) -> PartialResult:
        lines = classify(code)
        free_line = find_fully_free(lines)
        if free_line is not None:
            return PartialResult(valid=False, issues=[unsupported_free_format(free_line)])

        issues = run(lines)
        valid = not issues if valid_when_empty else not has_errors(issues)
        return PartialResult(valid=valid, issues=issues)

    def check_specification_order(self, code: str) -> PartialResult:
        return self._partial(code, track_specification_order, valid_when_empty=True)

    def check_column_positions(self, code: str) -> PartialResult:
        def run(lines: List[ClassifiedLine]) -> List[Issue]:
            issues = check_column_positions(lines, LEVEL_STANDARD, self.options.consider_dbcs)
            issues += check_common_errors(lines, LEVEL_BASIC)
            return [
                issue for issue in issues
                if "_SPEC_" in issue.rule or issue.rule == "LINE_LENGTH"
            ]

        return self._partial(code, run)

    def check_naming_conventions(self, code: str) -> PartialResult:
        return self._partial(code, lambda lines: check_naming(lines, LEVEL_STANDARD))

    def check_best_practices(self, code: str) -> PartialResult:
        return self._partial(
            code,
            lambda lines: check_best_practices(lines, LEVEL_STANDARD, self.custom_rules),
        )

    # ─────────────────────────────────────────
    # 参照系
    # ─────────────────────────────────────────
    def get_statistics(self, code: str) -> LineStatistics:
        return line_statistics.collect_statistics(classify(code))

    def get_specification_order(self, code: str) -> List[str]:
        return line_statistics.specification_order(classify(code))

    def find_free_blocks(self, code: str) -> List[Tuple[int, Optional[int]]]:
        return line_statistics.find_free_blocks(classify(code))

    def find_deprecated_opcodes(self, code: str) -> List[line_statistics.DeprecatedUsage]:
        return line_statistics.find_deprecated_opcodes(classify(code))

    def find_indicator_usage(self, code: str) -> List[ClassifiedLine]:
        return line_statistics.find_indicator_usage(classify(code))
