# src/ilerpgcheck/models/check_level.py

from __future__ import annotations

from typing import Tuple

LEVEL_BASIC = "basic"
LEVEL_STANDARD = "standard"
LEVEL_STRICT = "strict"

# basic ⊂ standard ⊂ strict
CHECK_LEVELS: Tuple[str, ...] = (LEVEL_BASIC, LEVEL_STANDARD, LEVEL_STRICT)


def validate_level(level: str) -> str:
    if level not in CHECK_LEVELS:
        raise ValueError(f"Unknown check level: {level}")
    return level


def at_least(level: str, minimum: str) -> bool:
    """level が minimum 以上の厳しさかどうか。"""
    return CHECK_LEVELS.index(validate_level(level)) >= CHECK_LEVELS.index(minimum)
