"""NPC organization trust core package"""

from tavern.core.trust.scoring import (
    QuestRecord,
    TrustOverview,
    TrustTier,
    compute_trust_overview,
    compute_trust_tier,
    trust_summary,
)

__all__ = [
    "TrustTier",
    "QuestRecord",
    "TrustOverview",
    "compute_trust_overview",
    "compute_trust_tier",
    "trust_summary",
]
