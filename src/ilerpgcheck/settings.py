# src/ilerpgcheck/settings.py
from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional, Union

from ilerpgcheck.message_tables import LANGUAGES
from ilerpgcheck.models.check_level import CHECK_LEVELS, LEVEL_STANDARD

logger = logging.getLogger(__name__)

# チェック設定の保存先
SETTINGS_FILE = Path(os.path.expanduser("~")) / ".ilerpgcheck_settings.json"


@dataclass
class CheckOptions:
    check_level: str = LEVEL_STANDARD
    language: str = "en"
    consider_dbcs: bool = False
    custom_rules_path: Optional[str] = None


def _from_dict(data: dict) -> CheckOptions:
    """未知のキーは無視し、不正な値は既定値のまま。"""
    options = CheckOptions()
    if data.get("check_level") in CHECK_LEVELS:
        options.check_level = data["check_level"]
    if data.get("language") in LANGUAGES:
        options.language = data["language"]
    if isinstance(data.get("consider_dbcs"), bool):
        options.consider_dbcs = data["consider_dbcs"]
    rules_path = data.get("custom_rules_path")
    if isinstance(rules_path, str) and rules_path:
        options.custom_rules_path = rules_path
    return options


def load_settings(path: Union[str, Path, None] = None) -> CheckOptions:
    """
    保存済みのチェック設定を読み込む。

    ファイルがない・壊れている場合は既定値。
    """
    settings_path = Path(path) if path else SETTINGS_FILE
    if not settings_path.exists():
        return CheckOptions()
    try:
        with settings_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable settings file %s: %s", settings_path, e)
        return CheckOptions()
    if not isinstance(data, dict):
        return CheckOptions()
    return _from_dict(data)


def save_settings(options: CheckOptions, path: Union[str, Path, None] = None) -> None:
    settings_path = Path(path) if path else SETTINGS_FILE
    try:
        with settings_path.open("w", encoding="utf-8") as f:
            json.dump(asdict(options), f, ensure_ascii=False, indent=2)
    except OSError as e:
        # 保存失敗は致命的ではない
        logger.warning("Failed to save settings to %s: %s", settings_path, e)
