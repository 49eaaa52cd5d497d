# src/ilerpgcheck/gui/custom_rule_dialog.py

from __future__ import annotations

import re
from typing import Optional

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QLineEdit,
    QMessageBox,
    QWidget,
)

from ilerpgcheck.custom_rules import CustomRule, CustomRuleError, compile_pattern
from ilerpgcheck.models.issue import (
    CATEGORY_BEST_PRACTICE,
    CATEGORY_DEPRECATED,
    CATEGORY_NAMING,
    CATEGORY_STRUCTURE,
    CATEGORY_SYNTAX,
    SEVERITY_ORDER,
    SEVERITY_WARNING,
)

CATEGORIES = (
    CATEGORY_BEST_PRACTICE,
    CATEGORY_NAMING,
    CATEGORY_SYNTAX,
    CATEGORY_STRUCTURE,
    CATEGORY_DEPRECATED,
)


class CustomRuleDialog(QDialog):
    """
    カスタムルール1件を入力するダイアログ。

    OK 時に正規表現をコンパイルしてみて、失敗したらダイアログを閉じない。
    """

    def __init__(self, parent: Optional[QWidget] = None, rule: Optional[CustomRule] = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("カスタムルール")
        self.resize(480, 0)

        self._init_widgets()
        self._init_layout()
        if rule is not None:
            self._fill(rule)

    def _init_widgets(self) -> None:
        self.id_edit = QLineEdit(self)
        self.name_edit = QLineEdit(self)
        self.pattern_edit = QLineEdit(self)
        self.message_edit = QLineEdit(self)
        self.description_edit = QLineEdit(self)
        self.suggestion_edit = QLineEdit(self)

        self.id_edit.setPlaceholderText("例: NO_DSPLY")
        self.pattern_edit.setPlaceholderText(r"例: \bDSPLY\b（大文字小文字は区別しない）")
        self.message_edit.setPlaceholderText("例: DSPLY はデバッグ用です")

        self.category_combo = QComboBox(self)
        self.category_combo.addItems(list(CATEGORIES))

        self.severity_combo = QComboBox(self)
        self.severity_combo.addItems(list(SEVERITY_ORDER))
        self.severity_combo.setCurrentText(SEVERITY_WARNING)

        self.enabled_check = QCheckBox("有効", self)
        self.enabled_check.setChecked(True)

        self.button_box = QDialogButtonBox(
            QDialogButtonBox.Ok | QDialogButtonBox.Cancel,
            orientation=Qt.Horizontal,
            parent=self,
        )
        self.button_box.accepted.connect(self.accept)
        self.button_box.rejected.connect(self.reject)

    def _init_layout(self) -> None:
        layout = QFormLayout(self)
        layout.setFieldGrowthPolicy(QFormLayout.AllNonFixedFieldsGrow)

        layout.addRow("ID:", self.id_edit)
        layout.addRow("名前:", self.name_edit)
        layout.addRow("パターン:", self.pattern_edit)
        layout.addRow("メッセージ:", self.message_edit)
        layout.addRow("説明:", self.description_edit)
        layout.addRow("提案:", self.suggestion_edit)
        layout.addRow("カテゴリ:", self.category_combo)
        layout.addRow("重要度:", self.severity_combo)
        layout.addRow("", self.enabled_check)

        layout.addRow(self.button_box)

        self.setLayout(layout)

    def _fill(self, rule: CustomRule) -> None:
        self.id_edit.setText(rule.id)
        self.id_edit.setReadOnly(True)  # ID は変更不可
        self.name_edit.setText(rule.name)
        self.pattern_edit.setText(rule.pattern)
        self.message_edit.setText(rule.message)
        self.description_edit.setText(rule.description)
        self.suggestion_edit.setText(rule.suggestion or "")
        self.category_combo.setCurrentText(rule.category)
        self.severity_combo.setCurrentText(rule.severity)
        self.enabled_check.setChecked(rule.enabled)

    def get_rule(self) -> CustomRule:
        """入力内容から CustomRule を作る。必須項目が空なら CustomRuleError。"""
        return CustomRule.from_dict({
            "id": self.id_edit.text().strip(),
            "name": self.name_edit.text().strip(),
            "pattern": self.pattern_edit.text(),
            "message": self.message_edit.text().strip(),
            "description": self.description_edit.text().strip(),
            "category": self.category_combo.currentText(),
            "severity": self.severity_combo.currentText(),
            "enabled": self.enabled_check.isChecked(),
            "suggestion": self.suggestion_edit.text().strip() or None,
        })

    def accept(self) -> None:
        try:
            rule = self.get_rule()
            compile_pattern(rule.pattern)
        except CustomRuleError as e:
            QMessageBox.warning(self, "カスタムルール", str(e))
            return
        except re.error as e:
            QMessageBox.warning(self, "カスタムルール", f"正規表現が不正です: {e}")
            return
        super().accept()

    @staticmethod
    def get_rule_from_user(
        parent: Optional[QWidget] = None,
        rule: Optional[CustomRule] = None,
    ) -> Optional[CustomRule]:
        """
        単発で呼び出すユーティリティ。

            rule = CustomRuleDialog.get_rule_from_user(self)
            if rule is None:
                return  # キャンセル
        """
        dlg = CustomRuleDialog(parent, rule)
        if dlg.exec() != QDialog.Accepted:
            return None
        return dlg.get_rule()
