# tests/conftest.py
"""固定桁の RPG ソース行を組み立てるヘルパー。"""
from __future__ import annotations

from typing import Callable

import pytest


def build_d(
    name: str = "",
    decl: str = "",
    size: str = "",
    data_type: str = " ",
    decimals: str = "",
    keywords: str = "",
    from_pos: str = "",
    ext: str = " ",
    ds_type: str = " ",
) -> str:
    """D仕様書: 名前 7-21, 外部記述 22, DS タイプ 23, 宣言型 24-25, From 26-32, To 33-39, 型 40, 小数 41-42, キーワード 43-"""
    line = (
        "     D"
        + name.ljust(15)
        + ext
        + ds_type
        + decl.ljust(2)
        + from_pos.rjust(7)
        + size.rjust(7)
        + data_type
        + decimals.rjust(2)
        + keywords
    )
    return line.rstrip()


def build_c(factor1: str = "", opcode: str = "", factor2: str = "", result: str = "") -> str:
    """C仕様書: Factor 1 12-25, 命令 26-35, Factor 2 36-49, 結果 50-63"""
    line = "     C" + " " * 5 + factor1.ljust(14) + opcode.ljust(10) + factor2.ljust(14) + result
    return line.rstrip()


def build_f(
    name: str = "",
    file_type: str = " ",
    designation: str = " ",
    device: str = "",
    keywords: str = "",
    file_format: str = " ",
) -> str:
    """F仕様書: ファイル名 7-16, タイプ 17, 指定 18, 形式 22, 装置 36-42, キーワード 44-"""
    line = (
        "     F"
        + name.ljust(10)
        + file_type
        + designation
        + "   "
        + file_format
        + " " * 13
        + device.ljust(7)
        + " "
        + keywords
    )
    return line.rstrip()


def build_p(name: str = "", begin_end: str = " ", keywords: str = "") -> str:
    """P仕様書: 名前 7-21, 開始/終了 24, キーワード 44-"""
    line = "     P" + name.ljust(15) + "  " + begin_end + " " * 19 + keywords
    return line.rstrip()


def source(*lines: str) -> str:
    return "\n".join(lines)


@pytest.fixture
def d_line() -> Callable[..., str]:
    return build_d


@pytest.fixture
def c_line() -> Callable[..., str]:
    return build_c


@pytest.fixture
def f_line() -> Callable[..., str]:
    return build_f


@pytest.fixture
def p_line() -> Callable[..., str]:
    return build_p


@pytest.fixture
def sample_program() -> str:
    return source(
        "     H DFTACTGRP(*NO)",
        build_d("counter", "S", "10", "I", "0"),
        build_c("", "eval", "counter = 1;"),
    )
