"""XP table, rank derivation and certificate scroll ids"""

import random
import time
from dataclasses import dataclass
from typing import Optional

from tavern.core.quest.enums import QuestDifficulty

# === XP awarded per quest difficulty ===
XP_BY_DIFFICULTY: dict[QuestDifficulty, int] = {
    QuestDifficulty.EASY: 100,
    QuestDifficulty.MEDIUM: 200,
    QuestDifficulty.HARD: 400,
    QuestDifficulty.EPIC: 700,
}

# === (lower bound, rank), ascending ===
RANK_THRESHOLDS: list[tuple[int, str]] = [
    (0, "F"),
    (200, "E"),
    (400, "D"),
    (700, "C"),
    (1000, "B"),
    (1500, "A"),
    (2000, "S"),
    (3000, "SS"),
    (5000, "SSS"),
]

RANKS: list[str] = [rank for _, rank in RANK_THRESHOLDS]


@dataclass
class RankProgress:
    """Where an adventurer stands on the rank ladder"""

    xp: int
    rank: str
    next_rank: Optional[str] = None
    xp_to_next_rank: Optional[int] = None


def xp_for_difficulty(difficulty: str | None) -> int:
    """XP for a quest difficulty; unknown or missing values count as Easy."""
    try:
        return XP_BY_DIFFICULTY[QuestDifficulty(difficulty)]
    except ValueError:
        return XP_BY_DIFFICULTY[QuestDifficulty.EASY]


def rank_for_xp(xp: int) -> str:
    """Rank bucket containing xp. Always computed from the total."""
    if xp < 0:
        raise ValueError(f"xp must be >= 0, got {xp}")

    current = RANK_THRESHOLDS[0][1]
    for lower_bound, rank in RANK_THRESHOLDS:
        if xp < lower_bound:
            break
        current = rank
    return current


def rank_progress(xp: int) -> RankProgress:
    rank = rank_for_xp(xp)
    index = RANKS.index(rank)
    if index == len(RANKS) - 1:
        return RankProgress(xp=xp, rank=rank)

    next_bound, next_rank = RANK_THRESHOLDS[index + 1]
    return RankProgress(
        xp=xp,
        rank=rank,
        next_rank=next_rank,
        xp_to_next_rank=next_bound - xp,
    )


def generate_scroll_id(now_ms: int | None = None) -> str:
    """SCROLL-<epoch millis>-<0..9999>"""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"SCROLL-{now_ms}-{random.randint(0, 9999)}"


def apply_xp(current_xp: int, earned_xp: int) -> tuple[int, str]:
    """New (xp, rank) after earning xp. Rank is rederived, never stepped."""
    if earned_xp < 0:
        raise ValueError(f"earned xp must be >= 0, got {earned_xp}")
    total = current_xp + earned_xp
    return total, rank_for_xp(total)
