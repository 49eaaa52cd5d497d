# src/ilerpgcheck/gui/issue_detail_widget.py

from __future__ import annotations

from typing import List, Optional, Tuple

from PySide6.QtGui import QFont, QFontDatabase
from PySide6.QtWidgets import (
    QFormLayout,
    QGroupBox,
    QLabel,
    QPlainTextEdit,
    QVBoxLayout,
    QWidget,
)

from ilerpgcheck.message_tables import load_messages
from ilerpgcheck.models.issue import Issue


def issue_detail_rows(issue: Issue, language: str = "en") -> List[Tuple[str, str]]:
    """詳細欄に並べる (ラベル, 値) の一覧。値のない項目は出さない。"""
    msg = load_messages(language)
    location = str(issue.line)
    if issue.column is not None:
        location += f":{issue.column}"
        if issue.end_column is not None and issue.end_column != issue.column:
            location += f"-{issue.end_column}"

    rows = [
        (msg["line"].strip(), location),
        (msg["severity"], msg.get(issue.severity, issue.severity)),
        (msg["rule"], issue.rule),
        (msg["message"], issue.message),
    ]
    if issue.rule_description:
        rows.append((msg["description"], issue.rule_description))
    if issue.suggestion:
        rows.append((msg["suggestion"], issue.suggestion))
    return rows


def monospace_font() -> QFont:
    font = QFontDatabase.systemFont(QFontDatabase.FixedFont)
    font.setStyleHint(QFont.Monospace)
    return font


class IssueDetailWidget(QWidget):
    """
    選択中の問題1件の詳細表示。

    上段: 行・重要度・ルール・メッセージ等のフォーム
    下段: 該当行と修正案（修正案があるチェックのみ）を等幅フォントで表示
    """

    def __init__(self, parent: Optional[QWidget] = None, language: str = "en") -> None:
        super().__init__(parent)
        self._language = language
        self._issue: Optional[Issue] = None

        layout = QVBoxLayout(self)
        layout.setContentsMargins(4, 4, 4, 4)

        self.info_box = QGroupBox(self)
        self.form = QFormLayout(self.info_box)
        layout.addWidget(self.info_box)

        self.code_view = QPlainTextEdit(self)
        self.code_view.setReadOnly(True)
        self.code_view.setLineWrapMode(QPlainTextEdit.NoWrap)
        self.code_view.setFont(monospace_font())
        self.code_view.setPlaceholderText("問題を選択すると該当行が表示されます")
        layout.addWidget(self.code_view)

        self.clear()

    def set_language(self, language: str) -> None:
        self._language = language
        self.show_issue(self._issue)

    def clear(self) -> None:
        self._issue = None
        while self.form.rowCount():
            self.form.removeRow(0)
        self.info_box.setTitle("")
        self.code_view.clear()

    def show_issue(self, issue: Optional[Issue]) -> None:
        if issue is None:
            self.clear()
            return

        self.clear()
        self._issue = issue
        msg = load_messages(self._language)
        self.info_box.setTitle(issue.rule)

        for label, value in issue_detail_rows(issue, self._language):
            value_label = QLabel(value, self.info_box)
            value_label.setWordWrap(True)
            self.form.addRow(f"{label}:", value_label)

        # 桁位置を確認しやすいよう、先頭にルーラーを付ける
        lines = ["....+....1....+....2....+....3....+....4....+....5....+....6....+....7....+....8"]
        if issue.code_snippet:
            lines.append(issue.code_snippet)
        if issue.corrected_code:
            lines += ["", f"{msg['before']}:", issue.code_snippet or "", f"{msg['after']}:", issue.corrected_code]
        self.code_view.setPlainText("\n".join(lines))
