"""Quest lifecycle core package"""

from tavern.core.quest.enums import (
    TERMINAL_STATUSES,
    ApplicationDecision,
    ApplicationStatus,
    QuestDifficulty,
    QuestStatus,
)
from tavern.core.quest.transitions import (
    ALLOWED_TRANSITIONS,
    assert_application_pending,
    assert_can_accept,
    assert_can_apply,
    assert_can_complete,
    assert_npc_status_transition,
    can_delete_quest,
    can_edit_quest,
    is_allowed_npc_transition,
)

__all__ = [
    # enums
    "QuestStatus",
    "QuestDifficulty",
    "ApplicationStatus",
    "ApplicationDecision",
    "TERMINAL_STATUSES",
    # transitions
    "ALLOWED_TRANSITIONS",
    "assert_npc_status_transition",
    "is_allowed_npc_transition",
    "assert_can_apply",
    "assert_can_accept",
    "assert_application_pending",
    "assert_can_complete",
    "can_edit_quest",
    "can_delete_quest",
]
