# src/ilerpgcheck/source_loader.py
from __future__ import annotations

import codecs
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

import chardet

logger = logging.getLogger(__name__)

RPG_EXTENSIONS: Tuple[str, ...] = (".rpgle", ".rpg", ".sqlrpgle")

# chardet の判定をそのまま採用する信頼度の下限
MIN_CONFIDENCE = 0.8

CANDIDATE_ENCODINGS: Tuple[str, ...] = ("cp932", "euc_jp", "utf-8")
FALLBACK_ENCODING = "cp932"


class SourceReadError(Exception):
    """ソースファイル・ディレクトリが読めない。"""


@dataclass(frozen=True)
class SourceFile:
    path: Path
    text: str
    encoding: str


def _score(text: str) -> int:
    """日本語文字が多く、置換文字・制御文字が少ないほど高い。"""
    num_jp = sum(
        1
        for ch in text
        if (
            "\u3040" <= ch <= "\u30ff"
            or "\u4e00" <= ch <= "\u9fff"
        )
    )
    num_replacement = text.count("\ufffd")
    num_ctrl = sum(
        1 for ch in text if ord(ch) < 0x20 and ch not in "\r\n\t"
    )
    return num_jp - (num_replacement * 10 + num_ctrl * 2)


def decode_source(raw: bytes) -> Tuple[str, str]:
    """
    バイト列をテキスト化し、(テキスト, エンコーディング名) を返す。

    1) UTF-8 BOM があれば utf-8-sig
    2) chardet の判定（信頼度 0.8 以上でデコードできた場合）
    3) cp932 / euc_jp / utf-8 をスコアで比較
    4) 最後の保険として cp932 で置換デコード
    """
    if raw.startswith(codecs.BOM_UTF8):
        return raw.decode("utf-8-sig"), "utf-8-sig"

    detected = chardet.detect(raw)
    encoding = detected.get("encoding")
    if encoding and (detected.get("confidence") or 0.0) >= MIN_CONFIDENCE:
        try:
            return raw.decode(encoding), encoding.lower()
        except (UnicodeDecodeError, LookupError):
            pass

    best: Optional[Tuple[int, str, str]] = None
    for enc in CANDIDATE_ENCODINGS:
        try:
            text = raw.decode(enc)
        except UnicodeDecodeError:
            continue
        score = _score(text)
        if best is None or score > best[0]:
            best = (score, text, enc)

    if best is None:
        return raw.decode(FALLBACK_ENCODING, errors="replace"), FALLBACK_ENCODING
    return best[1], best[2]


def read_source(path: Union[str, Path]) -> SourceFile:
    path = Path(path)
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise SourceReadError(f"Cannot read {path}: {e}") from e

    text, encoding = decode_source(raw)
    logger.debug("Read %s (encoding: %s)", path, encoding)
    return SourceFile(path=path, text=text, encoding=encoding)


def find_rpg_files(
    directory: Union[str, Path],
    extensions: Iterable[str] = RPG_EXTENSIONS,
    recursive: bool = False,
) -> List[Path]:
    """ディレクトリ内の RPG ソース（拡張子は大文字小文字を区別しない）をパス順に返す。"""
    directory = Path(directory)
    if not directory.is_dir():
        raise SourceReadError(f"Not a directory: {directory}")

    wanted = {ext.lower() for ext in extensions}
    entries = directory.rglob("*") if recursive else directory.iterdir()
    try:
        return sorted(p for p in entries if p.is_file() and p.suffix.lower() in wanted)
    except OSError as e:
        raise SourceReadError(f"Cannot list {directory}: {e}") from e
