"""Quest enums"""

from enum import Enum


class QuestStatus(str, Enum):
    DRAFT = "DRAFT"
    POSTED = "POSTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class QuestDifficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"
    EPIC = "Epic"


TERMINAL_STATUSES: frozenset[QuestStatus] = frozenset(
    {QuestStatus.COMPLETED, QuestStatus.CANCELLED}
)


class ApplicationStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class ApplicationDecision(str, Enum):
    ACCEPT = "ACCEPT"
    REJECT = "REJECT"
