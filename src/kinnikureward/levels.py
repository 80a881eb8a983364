"""
kinnikureward/levels.py

Level progression derived from a KINNIKU-TOKEN balance.

Eleven levels from "beginner" to "master". Past the master threshold every
additional PLUS_LEVEL_STEP tokens adds a "+N" to the master title. Progress
is measured against the master threshold and capped at 100%.
"""

from dataclasses import dataclass
from typing import List

LEVEL_THRESHOLDS: List[int] = [0, 1000, 2500, 5000, 10000, 15000, 25000, 37500, 50000, 75000, 100000]

LEVEL_NAME_KEYS: List[str] = [
    "level_beginner",
    "level_rookie",
    "level_apprentice",
    "level_intermediate",
    "level_veteran",
    "level_pro",
    "level_sage",
    "level_steel",
    "level_god",
    "level_legend",
    "level_master",
]

PLUS_LEVEL_STEP = 25000
MAX_BACKGROUND_INDEX = 9


@dataclass(frozen=True)
class LevelInfo:
    """Where a balance sits on the progression ladder."""
    balance: int
    level: int
    level_key: str
    plus_level: int
    progress_percent: int
    background_index: int

    @property
    def badge(self) -> str:
        return f"/images/level{self.level}_badge.svg"

    @property
    def is_max_level(self) -> bool:
        return self.level == len(LEVEL_THRESHOLDS) - 1

    def to_dict(self) -> dict:
        return {
            "balance": self.balance,
            "level": self.level,
            "level_key": self.level_key,
            "plus_level": self.plus_level,
            "progress_percent": self.progress_percent,
            "background_index": self.background_index,
            "badge": self.badge,
        }


def compute_level(balance: int) -> LevelInfo:
    """
    Compute level information for a token balance.

    Args:
        balance: Token balance (negative values count as zero)

    Returns:
        LevelInfo
    """
    balance = max(0, int(balance))

    level = 0
    for index, threshold in enumerate(LEVEL_THRESHOLDS):
        if balance >= threshold:
            level = index
        else:
            break

    max_level = len(LEVEL_THRESHOLDS) - 1
    master_threshold = LEVEL_THRESHOLDS[max_level]

    plus_level = 0
    if level == max_level:
        plus_level = (balance - master_threshold) // PLUS_LEVEL_STEP

    progress = min(balance * 100 // master_threshold, 100)

    return LevelInfo(
        balance=balance,
        level=level,
        level_key=LEVEL_NAME_KEYS[level],
        plus_level=plus_level,
        progress_percent=progress,
        background_index=min(level, MAX_BACKGROUND_INDEX),
    )
