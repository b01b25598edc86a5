from __future__ import annotations

import math
from dataclasses import dataclass

from chorequest.models import ChoreDifficulty

XP_LEVEL_FACTOR = 100

XP_BY_DIFFICULTY: dict[ChoreDifficulty, int] = {
    ChoreDifficulty.EASY: 10,
    ChoreDifficulty.MEDIUM: 25,
    ChoreDifficulty.HARD: 50,
}


@dataclass(frozen=True, slots=True)
class LevelInfo:
    level: int
    current_level_xp: int
    next_level_xp: int
    progress_percentage: float
    xp_to_next_level: int


@dataclass(frozen=True, slots=True)
class LevelUpCheck:
    leveled_up: bool
    previous_level: int
    new_level: int


def xp_for_level(level: int) -> int:
    """Total XP needed to reach ``level``; level 1 starts at 0."""
    if level <= 1:
        return 0
    return XP_LEVEL_FACTOR * (level - 1) ** 2


def calculate_level(xp: int | float) -> int:
    # isqrt keeps exact boundaries: floor(sqrt(x / 100)) == isqrt(x // 100) for x >= 0.
    safe_xp = max(0, xp)
    return math.isqrt(int(safe_xp // XP_LEVEL_FACTOR)) + 1


def get_level_info(xp: int | float) -> LevelInfo:
    safe_xp = max(0, xp)
    level = calculate_level(safe_xp)
    current_level_xp = xp_for_level(level)
    next_level_xp = xp_for_level(level + 1)
    span = next_level_xp - current_level_xp
    progress_percentage = min(100.0, (safe_xp - current_level_xp) / span * 100)
    return LevelInfo(
        level=level,
        current_level_xp=current_level_xp,
        next_level_xp=next_level_xp,
        progress_percentage=progress_percentage,
        xp_to_next_level=max(0, next_level_xp - safe_xp),
    )


def xp_for_difficulty(difficulty: ChoreDifficulty | str | None) -> int:
    try:
        return XP_BY_DIFFICULTY[ChoreDifficulty(difficulty)]
    except ValueError:
        return XP_BY_DIFFICULTY[ChoreDifficulty.EASY]


def check_level_up(previous_xp: int, new_xp: int) -> LevelUpCheck:
    previous_level = calculate_level(previous_xp)
    new_level = calculate_level(new_xp)
    return LevelUpCheck(
        leveled_up=new_level > previous_level,
        previous_level=previous_level,
        new_level=new_level,
    )
