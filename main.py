# main.py
"""
ILE-RPG Code Checker（GUI 版）のエントリポイント。

- src/ を import パスに追加
- PySide6 の QApplication を立ち上げて MainWindow を表示
- 引数にファイル・フォルダを渡すと起動時に読み込む
"""

import logging
import sys
from pathlib import Path

from PySide6.QtWidgets import QApplication

# ──────────────────────────────────────────────
# src ディレクトリを import パスに追加
# ──────────────────────────────────────────────
ROOT_DIR = Path(__file__).resolve().parent
SRC_DIR = ROOT_DIR / "src"

if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from ilerpgcheck.gui.main_window import MainWindow  # noqa: E402


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    app = QApplication(sys.argv)
    win = MainWindow()
    paths = [Path(arg) for arg in app.arguments()[1:]]
    if paths:
        win.open_paths(paths)
    win.show()
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
