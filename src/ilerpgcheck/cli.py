# src/ilerpgcheck/cli.py
"""
コマンドライン版の入口。

    ilerpgcheck check src/QRPGLESRC --level strict --format markdown
    ilerpgcheck order PGM001.rpgle
    ilerpgcheck rules add --id NO_DSPLY --name "No DSPLY" --pattern "\\bDSPLY\\b" --message "DSPLY is for debugging"

終了コード: 0 = 問題なし、1 = エラーのあるファイルあり、2 = 実行エラー
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from ilerpgcheck.custom_rules import (
    DEFAULT_RULES_FILE,
    CustomRule,
    CustomRuleError,
    CustomRulesManager,
)
from ilerpgcheck.message_tables import LANGUAGES
from ilerpgcheck.models.check_level import CHECK_LEVELS
from ilerpgcheck.models.check_result import CheckResult, PartialResult
from ilerpgcheck.models.issue import SEVERITY_ORDER
from ilerpgcheck.orchestrator import RpgCodeChecker
from ilerpgcheck.reporter import REPORT_FORMATS, format_json, format_markdown, format_summary, format_text
from ilerpgcheck.settings import CheckOptions, load_settings, save_settings
from ilerpgcheck.source_loader import SourceReadError, find_rpg_files, read_source

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_ERROR = 2

LOG_FORMAT = "%(levelname)s: %(message)s"


def configure_logging(verbosity: int) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT)


# ─────────────────────────────────────────────
# 引数定義
# ─────────────────────────────────────────────
def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-v", "--verbose", action="count", default=0, help="ログを詳しく出す (-vv でデバッグ)")
    common.add_argument("--settings", help="設定ファイルのパス（既定: ~/.ilerpgcheck_settings.json）")
    common.add_argument("--level", choices=CHECK_LEVELS, help="チェックレベル")
    common.add_argument("--lang", choices=LANGUAGES, help="レポートの言語")
    common.add_argument("--dbcs", action="store_true", default=None, help="行長を DBCS のバイト長で数える")
    common.add_argument("--rules", help=f"カスタムルールファイル（rules コマンドの既定: {DEFAULT_RULES_FILE}）")
    common.add_argument("--save-settings", action="store_true", help="指定したオプションを設定ファイルに保存する")

    parser = argparse.ArgumentParser(prog="ilerpgcheck", description="ILE-RPG 固定形式ソースの桁位置・コーディング標準チェッカー")
    sub = parser.add_subparsers(dest="command", required=True)

    check = sub.add_parser("check", parents=[common], help="ファイルまたはディレクトリをチェックする")
    check.add_argument("paths", nargs="+", help="ソースファイルまたはディレクトリ")
    check.add_argument("--format", choices=REPORT_FORMATS, default="text")
    check.add_argument("-r", "--recursive", action="store_true", help="ディレクトリを再帰的に探す")
    check.add_argument("--verbose-report", action="store_true", help="ルール・コード・修正案も表示する")
    check.add_argument("--color", action="store_true", help="重要度を ANSI カラーで表示する")
    check.add_argument("--summary-only", action="store_true", help="ファイルごとに1行のサマリーだけ表示する")
    check.set_defaults(handler=cmd_check)

    for name, help_text in (
        ("order", "仕様書の順序だけをチェックする"),
        ("columns", "桁位置だけをチェックする"),
        ("naming", "命名規約だけをチェックする"),
        ("practices", "ベストプラクティスだけをチェックする"),
    ):
        focused = sub.add_parser(name, parents=[common], help=help_text)
        focused.add_argument("file")
        focused.add_argument("--format", choices=("text", "json"), default="text")
        focused.set_defaults(handler=cmd_focused)

    stats = sub.add_parser("stats", parents=[common], help="行の統計を表示する")
    stats.add_argument("file")
    stats.add_argument("--format", choices=("text", "json"), default="text")
    stats.set_defaults(handler=cmd_stats)

    rules = sub.add_parser("rules", parents=[common], help="カスタムルールを管理する")
    rules_sub = rules.add_subparsers(dest="rules_command", required=True)

    rules_sub.add_parser("list", help="ルール一覧")

    add = rules_sub.add_parser("add", help="ルールを追加する")
    add.add_argument("--id", required=True)
    add.add_argument("--name", required=True)
    add.add_argument("--pattern", required=True, help="正規表現（大文字小文字は区別しない）")
    add.add_argument("--message", required=True)
    add.add_argument("--description", default="")
    add.add_argument("--category", default="best-practice")
    add.add_argument("--severity", choices=tuple(SEVERITY_ORDER), default="warning")
    add.add_argument("--suggestion")
    add.add_argument("--disabled", action="store_true")

    for name in ("remove", "enable", "disable"):
        action = rules_sub.add_parser(name)
        action.add_argument("rule_id")

    export = rules_sub.add_parser("export", help="ルールを JSON で出力する")
    export.add_argument("-o", "--output", help="出力先（省略時は標準出力）")

    imp = rules_sub.add_parser("import", help="JSON ファイルからルールを取り込む")
    imp.add_argument("file")
    imp.add_argument("--merge", action="store_true", help="既存のルールに追加・上書きする")

    rules.set_defaults(handler=cmd_rules)
    return parser


def resolve_options(args: argparse.Namespace) -> CheckOptions:
    """保存済み設定にコマンドラインの指定を重ねる。"""
    options = load_settings(args.settings)
    overrides = {}
    if args.level:
        overrides["check_level"] = args.level
    if args.lang:
        overrides["language"] = args.lang
    if args.dbcs is not None:
        overrides["consider_dbcs"] = args.dbcs
    if args.rules:
        overrides["custom_rules_path"] = args.rules
    options = replace(options, **overrides)

    if args.save_settings:
        save_settings(options, args.settings)
    return options


# ─────────────────────────────────────────────
# サブコマンド
# ─────────────────────────────────────────────
def expand_paths(paths: List[str], recursive: bool) -> List[Path]:
    files: List[Path] = []
    for p in paths:
        path = Path(p)
        if path.is_dir():
            found = find_rpg_files(path, recursive=recursive)
            if not found:
                logger.warning("No RPG sources found in %s", path)
            files.extend(found)
        else:
            files.append(path)
    return files


def cmd_check(args: argparse.Namespace, options: CheckOptions) -> int:
    checker = RpgCodeChecker(options)
    results: List[CheckResult] = [checker.check_file(path) for path in expand_paths(args.paths, args.recursive)]

    if args.format == "json":
        print(format_json(results if len(results) != 1 else results[0]))
    else:
        for result in results:
            if args.summary_only:
                print(f"{result.file_path}: {format_summary(result, options.language)}")
            elif args.format == "markdown":
                print(format_markdown(result, verbose=args.verbose_report, language=options.language))
            else:
                print(format_text(result, verbose=args.verbose_report, color=args.color, language=options.language))

    return EXIT_OK if all(r.valid for r in results) else EXIT_INVALID


def print_partial(result: PartialResult, fmt: str) -> None:
    if fmt == "json":
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
        return
    for issue in result.issues:
        column = f":{issue.column}" if issue.column is not None else ""
        print(f"{issue.line}{column} [{issue.severity}] {issue.rule}: {issue.message}")
    print("OK" if result.valid else "NG")


def cmd_focused(args: argparse.Namespace, options: CheckOptions) -> int:
    checker = RpgCodeChecker(options)
    code = read_source(args.file).text
    run = {
        "order": checker.check_specification_order,
        "columns": checker.check_column_positions,
        "naming": checker.check_naming_conventions,
        "practices": checker.check_best_practices,
    }[args.command]
    result = run(code)
    print_partial(result, args.format)
    return EXIT_OK if result.valid else EXIT_INVALID


def cmd_stats(args: argparse.Namespace, options: CheckOptions) -> int:
    checker = RpgCodeChecker(options)
    code = read_source(args.file).text
    stats = checker.get_statistics(code)
    order = checker.get_specification_order(code)

    if args.format == "json":
        data = stats.to_dict()
        data["specificationOrder"] = order
        print(json.dumps(data, ensure_ascii=False, indent=2))
        return EXIT_OK

    print(f"total:        {stats.total_lines}")
    print(f"code:         {stats.code_lines}")
    print(f"comment:      {stats.comment_lines}")
    print(f"continuation: {stats.continuation_lines}")
    print(f"empty:        {stats.empty_lines}")
    for spec, count in stats.specification_counts.items():
        if count:
            print(f"  {spec:<8} {count}")
    print(f"order:        {' '.join(order)}")
    return EXIT_OK


def cmd_rules(args: argparse.Namespace, options: CheckOptions) -> int:
    manager = CustomRulesManager(args.rules or DEFAULT_RULES_FILE)
    command = args.rules_command

    if command == "list":
        for rule in manager.rules:
            mark = "x" if rule.enabled else " "
            print(f"[{mark}] {rule.id:<20} {rule.severity:<8} {rule.name}  /{rule.pattern}/")
        for diag in manager.diagnostics:
            print(f"invalid pattern in {diag.rule_id}: {diag.error}", file=sys.stderr)
    elif command == "add":
        manager.add_rule(CustomRule(
            id=args.id,
            name=args.name,
            pattern=args.pattern,
            message=args.message,
            description=args.description,
            category=args.category,
            severity=args.severity,
            enabled=not args.disabled,
            suggestion=args.suggestion,
        ))
    elif command == "remove":
        manager.remove_rule(args.rule_id)
    elif command == "enable":
        manager.enable_rule(args.rule_id)
    elif command == "disable":
        manager.disable_rule(args.rule_id)
    elif command == "export":
        exported = manager.export_rules()
        if args.output:
            try:
                Path(args.output).write_text(exported, encoding="utf-8")
            except OSError as e:
                raise CustomRuleError(f"Cannot write {args.output}: {e}") from e
        else:
            print(exported)
    elif command == "import":
        try:
            text = Path(args.file).read_text(encoding="utf-8")
        except OSError as e:
            raise SourceReadError(f"Cannot read {args.file}: {e}") from e
        manager.import_rules(text, merge=args.merge)
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        options = resolve_options(args)
        return args.handler(args, options)
    except (SourceReadError, CustomRuleError, ValueError, KeyError) as e:
        message = e.args[0] if isinstance(e, KeyError) and e.args else e
        print(f"error: {message}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
