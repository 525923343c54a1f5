"""NPC organization trust score: pure computation over quest history"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from tavern.core.quest.enums import QuestStatus

BASE_TRUST_SCORE = 50
COMPLETION_WEIGHT = 0.4
CANCELLATION_PENALTY = 2

HIGH_TRUST_THRESHOLD = 75
MEDIUM_TRUST_THRESHOLD = 40

FLAGGED_NOTICE = " This organization is flagged for review."


class TrustTier(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


TIER_SUMMARIES: dict[TrustTier, str] = {
    TrustTier.HIGH: "Highly trusted NPC organization with strong completion history.",
    TrustTier.MEDIUM: "Moderately trusted NPC organization with stable history.",
    TrustTier.LOW: "Low trust NPC organization. Review history carefully.",
}


@dataclass(frozen=True)
class QuestRecord:
    """The two quest fields the trust formula reads"""

    status: str
    reward_gold: float = 0


@dataclass
class TrustOverview:
    trust_score: int
    trust_tier: TrustTier
    verified: bool
    is_flagged: bool
    total_quests_posted: int
    total_gold_spent: float
    completion_rate: float  # 0..100
    dispute_rate: float  # 0..100
    summary: str


def round_half_up(value: float) -> int:
    # round() would bank 0.5 to even
    return math.floor(value + 0.5)


def round2(value: float) -> float:
    return math.floor(value * 100 + 0.5) / 100


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def compute_trust_tier(score: float) -> TrustTier:
    if score >= HIGH_TRUST_THRESHOLD:
        return TrustTier.HIGH
    if score >= MEDIUM_TRUST_THRESHOLD:
        return TrustTier.MEDIUM
    return TrustTier.LOW


def trust_summary(tier: TrustTier, is_flagged: bool) -> str:
    summary = TIER_SUMMARIES[TrustTier(tier)]
    if is_flagged:
        summary += FLAGGED_NOTICE
    return summary


def compute_trust_overview(
    quests: Iterable[QuestRecord],
    verified: bool = False,
    is_flagged: bool = False,
) -> TrustOverview:
    """Derive trust metrics from every quest an NPC has created.

    completion_rate counts finished quests only (COMPLETED + CANCELLED).
    The score subtracts the raw cancellation count, not a rate.
    """
    records = list(quests)

    completed = [q for q in records if q.status == QuestStatus.COMPLETED]
    cancelled_count = sum(1 for q in records if q.status == QuestStatus.CANCELLED)
    finished = len(completed) + cancelled_count

    completion_rate = (
        0 if finished == 0 else round2(len(completed) / finished * 100)
    )
    total_gold_spent = sum((q.reward_gold or 0) for q in completed)
    dispute_rate = 0  # no dispute subsystem

    trust_score = clamp(
        round_half_up(
            BASE_TRUST_SCORE
            + completion_rate * COMPLETION_WEIGHT
            - cancelled_count * CANCELLATION_PENALTY
        ),
        0,
        100,
    )
    trust_tier = compute_trust_tier(trust_score)

    return TrustOverview(
        trust_score=trust_score,
        trust_tier=trust_tier,
        verified=verified,
        is_flagged=is_flagged,
        total_quests_posted=len(records),
        total_gold_spent=total_gold_spent,
        completion_rate=completion_rate,
        dispute_rate=dispute_rate,
        summary=trust_summary(trust_tier, is_flagged),
    )
