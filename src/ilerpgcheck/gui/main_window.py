# src/ilerpgcheck/gui/main_window.py

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QActionGroup, QBrush, QColor, QTextCursor
from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QMainWindow,
    QMessageBox,
    QPlainTextEdit,
    QPushButton,
    QSplitter,
    QStatusBar,
    QTabWidget,
    QTreeWidget,
    QTreeWidgetItem,
    QVBoxLayout,
    QWidget,
)

from ilerpgcheck.custom_rules import DEFAULT_RULES_FILE, CustomRuleError
from ilerpgcheck.gui.custom_rule_dialog import CustomRuleDialog
from ilerpgcheck.gui.issue_detail_widget import IssueDetailWidget, monospace_font
from ilerpgcheck.message_tables import LANGUAGES, load_messages, spec_label
from ilerpgcheck.models.check_level import CHECK_LEVELS
from ilerpgcheck.models.check_result import CheckResult
from ilerpgcheck.models.classified_line import ALL_SPEC_TYPES
from ilerpgcheck.models.issue import SEVERITY_ERROR, SEVERITY_INFO, SEVERITY_WARNING
from ilerpgcheck.orchestrator import RpgCodeChecker
from ilerpgcheck.reporter import format_for_path, format_report, format_summary
from ilerpgcheck.settings import load_settings, save_settings
from ilerpgcheck.source_loader import SourceFile, SourceReadError, find_rpg_files, read_source

logger = logging.getLogger(__name__)

SEVERITY_COLORS = {
    SEVERITY_ERROR: QColor(200, 0, 0),
    SEVERITY_WARNING: QColor(180, 120, 0),
    SEVERITY_INFO: QColor(0, 110, 160),
}

LANGUAGE_NAMES = {
    "en": "English",
    "ja": "日本語",
}


class MainWindow(QMainWindow):
    """
    ILE-RPG ソースチェッカーのメインウィンドウ。

    左ペインに読み込んだソースの一覧、右ペインに選択中ソースのチェック結果を表示する。
    """

    TAB_ISSUES = 0   # 問題一覧
    TAB_SOURCE = 1   # ソース
    TAB_STATS  = 2   # 統計

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("ILE-RPG Code Checker")
        self.resize(1100, 650)

        self.options = load_settings()
        self._checker = self._build_checker()

        self._files: List[Path] = []
        self._source: Optional[SourceFile] = None
        self._result: Optional[CheckResult] = None

        # UI 構築
        self._create_central_widgets()
        self._create_actions()
        self._create_menus()
        self._create_status_bar()

    def _build_checker(self) -> RpgCodeChecker:
        checker = RpgCodeChecker(self.options)
        if checker.custom_rules is not None:
            for diag in checker.custom_rules.diagnostics:
                logger.warning("Rule %s has an invalid pattern: %s", diag.rule_id, diag.error)
        return checker

    def _create_central_widgets(self) -> None:
        splitter = QSplitter(Qt.Horizontal, self)

        # 左ペイン：ファイル一覧
        self.file_list = QListWidget(splitter)
        self.file_list.setSelectionMode(QListWidget.SingleSelection)
        self.file_list.currentRowChanged.connect(self._on_file_selected)

        # 右ペイン：操作行 + タブ
        right = QWidget(splitter)
        right_layout = QVBoxLayout(right)
        right_layout.setContentsMargins(4, 4, 4, 4)
        right_layout.setSpacing(4)

        toolbar = QHBoxLayout()
        toolbar.setContentsMargins(0, 0, 0, 0)
        toolbar.setSpacing(8)

        toolbar.addWidget(QLabel("チェックレベル:", right))
        self.level_combo = QComboBox(right)
        self.level_combo.addItems(list(CHECK_LEVELS))
        self.level_combo.setCurrentText(self.options.check_level)
        self.level_combo.currentTextChanged.connect(self._on_level_changed)
        toolbar.addWidget(self.level_combo)

        self.dbcs_check = QCheckBox("DBCS を考慮", right)
        self.dbcs_check.setChecked(self.options.consider_dbcs)
        self.dbcs_check.toggled.connect(self._on_dbcs_toggled)
        toolbar.addWidget(self.dbcs_check)

        self.recheck_btn = QPushButton("再チェック", right)
        self.recheck_btn.clicked.connect(self._run_check)
        toolbar.addWidget(self.recheck_btn)

        self.summary_label = QLabel("", right)
        font = self.summary_label.font()
        font.setBold(True)
        self.summary_label.setFont(font)
        toolbar.addWidget(self.summary_label)

        toolbar.addStretch(1)
        right_layout.addLayout(toolbar)

        self.tabs = QTabWidget(right)

        # ── タブ0: 問題一覧 ─────────────────────
        issue_splitter = QSplitter(Qt.Vertical, self)

        self.issue_tree = QTreeWidget(issue_splitter)
        self.issue_tree.setColumnCount(5)
        self.issue_tree.setHeaderLabels(["行", "桁", "重要度", "ルール", "メッセージ"])
        self.issue_tree.setRootIsDecorated(False)
        self.issue_tree.currentItemChanged.connect(self._on_issue_selected)
        self.issue_tree.itemDoubleClicked.connect(self._on_issue_double_clicked)

        self.issue_detail = IssueDetailWidget(issue_splitter, language=self.options.language)

        issue_splitter.addWidget(self.issue_tree)
        issue_splitter.addWidget(self.issue_detail)
        issue_splitter.setStretchFactor(0, 3)
        issue_splitter.setStretchFactor(1, 2)
        self.tabs.addTab(issue_splitter, "問題一覧")

        # ── タブ1: ソース ─────────────────────
        self.source_view = QPlainTextEdit(self)
        self.source_view.setReadOnly(True)
        self.source_view.setLineWrapMode(QPlainTextEdit.NoWrap)
        self.source_view.setFont(monospace_font())
        self.source_view.setPlaceholderText("ソースファイルを開いてください")
        self.tabs.addTab(self.source_view, "ソース")

        # ── タブ2: 統計 ─────────────────────
        self.stats_tree = QTreeWidget(self)
        self.stats_tree.setColumnCount(2)
        self.stats_tree.setHeaderLabels(["項目", "値"])
        self.tabs.addTab(self.stats_tree, "統計")

        right_layout.addWidget(self.tabs)

        splitter.addWidget(self.file_list)
        splitter.addWidget(right)
        splitter.setStretchFactor(0, 1)
        splitter.setStretchFactor(1, 4)

        self.setCentralWidget(splitter)

    def _create_actions(self) -> None:
        # ファイルを開く
        self.open_action = QAction("開く(&O)...", self)
        self.open_action.setShortcut("Ctrl+O")
        self.open_action.triggered.connect(self._on_open_file)

        self.open_folder_action = QAction("フォルダを開く(&D)...", self)
        self.open_folder_action.setShortcut("Ctrl+Shift+O")
        self.open_folder_action.triggered.connect(self._on_open_folder)

        self.save_report_action = QAction("レポートを保存(&S)...", self)
        self.save_report_action.setShortcut("Ctrl+S")
        self.save_report_action.triggered.connect(self._on_save_report)

        # 終了
        self.exit_action = QAction("終了(&Q)", self)
        self.exit_action.setShortcut("Ctrl+Q")
        self.exit_action.triggered.connect(self.close)

        # チェック
        self.recheck_action = QAction("再チェック(&R)", self)
        self.recheck_action.setShortcut("F5")
        self.recheck_action.triggered.connect(self._run_check)

        self.load_rules_action = QAction("ルールファイル読込(&L)...", self)
        self.load_rules_action.triggered.connect(self._on_load_rules)

        self.add_rule_action = QAction("ルール追加(&A)...", self)
        self.add_rule_action.triggered.connect(self._on_add_rule)

        # 表示言語（レポート・詳細欄）
        self.language_group = QActionGroup(self)
        self.language_group.setExclusive(True)
        self.language_actions: List[QAction] = []
        for lang in LANGUAGES:
            act = QAction(LANGUAGE_NAMES.get(lang, lang), self)
            act.setCheckable(True)
            act.setChecked(lang == self.options.language)
            act.setData(lang)
            act.triggered.connect(lambda checked, lang=lang: self._on_language_changed(lang))
            self.language_group.addAction(act)
            self.language_actions.append(act)

    def _create_menus(self) -> None:
        menubar = self.menuBar()

        file_menu = menubar.addMenu("ファイル(&F)")
        file_menu.addAction(self.open_action)
        file_menu.addAction(self.open_folder_action)
        file_menu.addSeparator()
        file_menu.addAction(self.save_report_action)
        file_menu.addSeparator()
        file_menu.addAction(self.exit_action)

        check_menu = menubar.addMenu("チェック(&C)")
        check_menu.addAction(self.recheck_action)
        check_menu.addSeparator()
        check_menu.addAction(self.load_rules_action)
        check_menu.addAction(self.add_rule_action)

        language_menu = menubar.addMenu("言語(&L)")
        for act in self.language_actions:
            language_menu.addAction(act)

    def _create_status_bar(self) -> None:
        status = QStatusBar(self)
        self.setStatusBar(status)
        self.statusBar().showMessage("RPG ソースを開いてください (Ctrl+O)")

    # ─────────────────────────────
    # ファイル読み込み
    # ─────────────────────────────
    def open_paths(self, paths: List[Path]) -> None:
        """ファイル・フォルダをまとめて一覧に追加する（コマンドライン引数用）。"""
        files: List[Path] = []
        for path in paths:
            if path.is_dir():
                try:
                    files.extend(find_rpg_files(path, recursive=True))
                except SourceReadError as e:
                    QMessageBox.warning(self, "フォルダ読込", str(e))
            else:
                files.append(path)
        self._set_files(files)

    def _on_open_file(self) -> None:
        path_strs, _ = QFileDialog.getOpenFileNames(
            self,
            "RPG ソースを開く",
            "",
            "RPG ソース (*.rpgle *.rpg *.sqlrpgle);;すべてのファイル (*.*)",
        )
        if not path_strs:
            return
        self._set_files([Path(p) for p in path_strs])

    def _on_open_folder(self) -> None:
        dir_str = QFileDialog.getExistingDirectory(self, "フォルダを開く")
        if not dir_str:
            return
        try:
            files = find_rpg_files(dir_str, recursive=True)
        except SourceReadError as e:
            QMessageBox.warning(self, "フォルダ読込", str(e))
            return
        if not files:
            QMessageBox.information(self, "フォルダ読込", "RPG ソースが見つかりませんでした。")
            return
        self._set_files(files)

    def _set_files(self, files: List[Path]) -> None:
        self._files = files
        self.file_list.clear()
        for path in files:
            self.file_list.addItem(path.name)
            self.file_list.item(self.file_list.count() - 1).setToolTip(str(path))
        if files:
            self.file_list.setCurrentRow(0)

    def _on_file_selected(self, row: int) -> None:
        if row < 0 or row >= len(self._files):
            return
        path = self._files[row]
        try:
            self._source = read_source(path)
        except SourceReadError as e:
            self._source = None
            QMessageBox.warning(self, "ファイル読込エラー", str(e))
            return

        self.source_view.setPlainText(self._source.text)
        self._run_check()

    # ─────────────────────────────
    # チェック実行・結果表示
    # ─────────────────────────────
    def _run_check(self) -> None:
        if self._source is None:
            return

        self._result = self._checker.check_code(
            self._source.text,
            self.options.check_level,
            str(self._source.path),
        )
        self._populate_issue_tree()
        self._populate_stats()
        self._update_summary()

        item = self.file_list.currentItem()
        if item is not None:
            item.setForeground(QBrush(SEVERITY_COLORS[SEVERITY_ERROR]) if not self._result.valid else QBrush())

        self.statusBar().showMessage(
            f"{self._source.path.name} をチェックしました "
            f"(エンコーディング: {self._source.encoding}, レベル: {self.options.check_level})"
        )

    def _update_summary(self) -> None:
        if self._result is None:
            self.summary_label.setText("")
            return
        self.summary_label.setText(format_summary(self._result, self.options.language))

    def _populate_issue_tree(self) -> None:
        self.issue_tree.clear()
        self.issue_detail.clear()
        if self._result is None:
            return

        msg = load_messages(self.options.language)
        self.issue_tree.setHeaderLabels(
            [msg["line"].strip(), msg["column"], msg["severity"], msg["rule"], msg["message"]]
        )
        for idx, issue in enumerate(self._result.issues):
            item = QTreeWidgetItem([
                str(issue.line),
                str(issue.column) if issue.column is not None else "",
                msg.get(issue.severity, issue.severity),
                issue.rule,
                issue.message,
            ])
            item.setData(0, Qt.UserRole, idx)
            item.setToolTip(3, msg.get(issue.category, issue.category))
            color = SEVERITY_COLORS.get(issue.severity)
            if color is not None:
                item.setForeground(2, QBrush(color))
            self.issue_tree.addTopLevelItem(item)

        for col in range(4):
            self.issue_tree.resizeColumnToContents(col)

    def _populate_stats(self) -> None:
        self.stats_tree.clear()
        if self._source is None:
            return

        code = self._source.text
        lang = self.options.language
        stats = self._checker.get_statistics(code)

        def add(parent, label: str, value: str) -> QTreeWidgetItem:
            item = QTreeWidgetItem([label, value])
            if parent is None:
                self.stats_tree.addTopLevelItem(item)
            else:
                parent.addChild(item)
            return item

        lines = add(None, "行数", str(stats.total_lines))
        add(lines, "コード行", str(stats.code_lines))
        add(lines, "コメント行", str(stats.comment_lines))
        add(lines, "継続行", str(stats.continuation_lines))
        add(lines, "空行", str(stats.empty_lines))

        specs = add(None, "仕様書タイプ別", "")
        for spec in ALL_SPEC_TYPES:
            count = stats.specification_counts.get(spec, 0)
            if count:
                add(specs, spec_label(spec, lang), str(count))

        add(None, "仕様書の出現順", " → ".join(self._checker.get_specification_order(code)))

        blocks = self._checker.find_free_blocks(code)
        free_item = add(None, "/FREE ブロック", str(len(blocks)))
        for start, end in blocks:
            add(free_item, f"{start}行目", f"{end}行目まで" if end is not None else "/END-FREE なし")

        deprecated = self._checker.find_deprecated_opcodes(code)
        dep_item = add(None, "非推奨命令", str(len(deprecated)))
        for usage in deprecated:
            add(dep_item, f"{usage.line.line_number}行目 {usage.opcode}", usage.entry.alternative)

        add(None, "標識(*INxx)使用行", str(len(self._checker.find_indicator_usage(code))))

        self.stats_tree.expandAll()
        self.stats_tree.resizeColumnToContents(0)

    def _selected_issue(self, item: Optional[QTreeWidgetItem]):
        if item is None or self._result is None:
            return None
        idx = item.data(0, Qt.UserRole)
        if idx is None or idx >= len(self._result.issues):
            return None
        return self._result.issues[idx]

    def _on_issue_selected(self, current: Optional[QTreeWidgetItem], _previous=None) -> None:
        issue = self._selected_issue(current)
        self.issue_detail.show_issue(issue)
        if issue is not None:
            self._move_source_cursor(issue.line, issue.column)

    def _on_issue_double_clicked(self, item: QTreeWidgetItem, column: int) -> None:
        issue = self._selected_issue(item)
        if issue is None:
            return
        self._move_source_cursor(issue.line, issue.column)
        self.tabs.setCurrentIndex(self.TAB_SOURCE)

    def _move_source_cursor(self, line: int, column: Optional[int]) -> None:
        block = self.source_view.document().findBlockByNumber(max(line - 1, 0))
        if not block.isValid():
            return
        cursor = QTextCursor(block)
        if column:
            offset = min(column - 1, max(block.length() - 1, 0))
            cursor.movePosition(QTextCursor.Right, QTextCursor.MoveAnchor, offset)
        self.source_view.setTextCursor(cursor)
        self.source_view.centerCursor()

    # ─────────────────────────────
    # オプション変更
    # ─────────────────────────────
    def _on_level_changed(self, level: str) -> None:
        self.options.check_level = level
        save_settings(self.options)
        self._run_check()

    def _on_dbcs_toggled(self, checked: bool) -> None:
        self.options.consider_dbcs = checked
        save_settings(self.options)
        self._run_check()

    def _on_language_changed(self, language: str) -> None:
        self.options.language = language
        save_settings(self.options)
        self.issue_detail.set_language(language)
        self._populate_issue_tree()
        self._populate_stats()
        self._update_summary()

    # ─────────────────────────────
    # カスタムルール
    # ─────────────────────────────
    def _on_load_rules(self) -> None:
        path_str, _ = QFileDialog.getOpenFileName(
            self,
            "カスタムルールファイルを開く",
            "",
            "JSON (*.json);;すべてのファイル (*.*)",
        )
        if not path_str:
            return

        self.options.custom_rules_path = path_str
        save_settings(self.options)
        self._checker = self._build_checker()
        manager = self._checker.custom_rules

        if manager is not None and manager.diagnostics:
            detail = "\n".join(f"{d.rule_id}: {d.error}" for d in manager.diagnostics)
            QMessageBox.warning(
                self,
                "カスタムルール",
                f"正規表現が不正なルールは無視されます。\n\n{detail}",
            )

        count = len(manager.rules) if manager is not None else 0
        self.statusBar().showMessage(f"カスタムルールを {count} 件読み込みました ({path_str})")
        self._run_check()

    def _on_add_rule(self) -> None:
        if self._checker.custom_rules is None:
            self.options.custom_rules_path = str(Path.cwd() / DEFAULT_RULES_FILE)
            self._checker = self._build_checker()

        rule = CustomRuleDialog.get_rule_from_user(self)
        if rule is None:
            return

        try:
            self._checker.custom_rules.add_rule(rule)
        except CustomRuleError as e:
            QMessageBox.warning(self, "カスタムルール", str(e))
            return

        self.statusBar().showMessage(f"ルール {rule.id} を追加しました ({self.options.custom_rules_path})")
        self._run_check()

    # ─────────────────────────────
    # レポート保存
    # ─────────────────────────────
    def _on_save_report(self) -> None:
        if self._result is None:
            QMessageBox.information(self, "レポート保存", "チェック結果がありません。")
            return

        default_name = (self._source.path.stem if self._source else "report") + ".txt"
        path_str, _ = QFileDialog.getSaveFileName(
            self,
            "レポートを保存",
            default_name,
            "テキスト (*.txt);;JSON (*.json);;Markdown (*.md)",
        )
        if not path_str:
            return

        fmt = format_for_path(path_str)
        report = format_report(self._result, fmt, verbose=True, language=self.options.language)
        try:
            Path(path_str).write_text(report, encoding="utf-8")
        except OSError as e:
            QMessageBox.warning(self, "レポート保存", f"保存に失敗しました: {e}")
            return

        self.statusBar().showMessage(f"レポートを保存しました: {path_str}")

    def closeEvent(self, event) -> None:
        save_settings(self.options)
        super().closeEvent(event)
