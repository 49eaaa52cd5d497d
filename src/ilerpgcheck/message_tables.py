# src/ilerpgcheck/message_tables.py

from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources
from typing import Dict, Tuple

# 言語コード → dataフォルダ内のファイル名
_MESSAGE_FILES: Dict[str, str] = {
    "en": "messages_en.json",
    "ja": "messages_ja.json",
}

LANGUAGES: Tuple[str, ...] = tuple(_MESSAGE_FILES)


@lru_cache(maxsize=None)
def load_messages(language: str = "en") -> Dict[str, str]:
    """
    レポート見出しなどの表示文言を読み込み、キー→文言の dict を返す。

    - language: "en" / "ja"
    - JSON は ilerpgcheck/data/ 以下に配置
    """
    if language not in _MESSAGE_FILES:
        raise KeyError(f"Unknown language: {language}")

    filename = _MESSAGE_FILES[language]
    with resources.files("ilerpgcheck.data").joinpath(filename).open(
        "r", encoding="utf-8"
    ) as f:
        raw = json.load(f)

    if not isinstance(raw, dict):
        raise ValueError(f"Unsupported JSON format in {filename}")
    return {str(k): str(v) for k, v in raw.items()}


def message(key: str, language: str = "en") -> str:
    """キーに対応する文言。未定義のキーはキー自体を返す。"""
    return load_messages(language).get(key, key)


def spec_label(spec_type: str, language: str = "en") -> str:
    return message(f"spec_{spec_type}", language)
