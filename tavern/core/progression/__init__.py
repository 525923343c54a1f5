"""Adventurer XP / rank progression core package"""

from tavern.core.progression.ranks import (
    RANK_THRESHOLDS,
    RANKS,
    XP_BY_DIFFICULTY,
    RankProgress,
    apply_xp,
    generate_scroll_id,
    rank_for_xp,
    rank_progress,
    xp_for_difficulty,
)

__all__ = [
    "RANK_THRESHOLDS",
    "RANKS",
    "XP_BY_DIFFICULTY",
    "RankProgress",
    "apply_xp",
    "rank_for_xp",
    "rank_progress",
    "xp_for_difficulty",
    "generate_scroll_id",
]
