"""Quest status state machine and edit/delete gating (no DB)"""

import logging

from tavern.core.errors import PolicyError

from .enums import TERMINAL_STATUSES, ApplicationStatus, QuestStatus

logger = logging.getLogger(__name__)

# source -> targets an NPC may move a quest to
ALLOWED_TRANSITIONS: dict[QuestStatus, frozenset[QuestStatus]] = {
    QuestStatus.DRAFT: frozenset({QuestStatus.POSTED, QuestStatus.CANCELLED}),
    QuestStatus.POSTED: frozenset({QuestStatus.CANCELLED}),
    QuestStatus.IN_PROGRESS: frozenset(
        {QuestStatus.COMPLETED, QuestStatus.CANCELLED}
    ),
    QuestStatus.COMPLETED: frozenset(),
    QuestStatus.CANCELLED: frozenset(),
}

# reachable only by accepting an application / the completion endpoint
RESERVED_TARGETS: dict[QuestStatus, str] = {
    QuestStatus.IN_PROGRESS: "IN_PROGRESS is reserved for accepting an application",
    QuestStatus.COMPLETED: "COMPLETED is reserved for the quest completion endpoint",
}

INITIAL_STATUSES: frozenset[QuestStatus] = frozenset(
    {QuestStatus.DRAFT, QuestStatus.POSTED}
)
EDITABLE_STATUSES: frozenset[QuestStatus] = frozenset(
    {QuestStatus.DRAFT, QuestStatus.POSTED}
)
DELETABLE_STATUSES: frozenset[QuestStatus] = frozenset({QuestStatus.DRAFT})


def can_edit_quest(status: QuestStatus) -> bool:
    return QuestStatus(status) in EDITABLE_STATUSES


def can_delete_quest(status: QuestStatus) -> bool:
    return QuestStatus(status) in DELETABLE_STATUSES


def assert_npc_status_transition(current: QuestStatus, target: QuestStatus) -> None:
    """Raise PolicyError unless an NPC may move a quest from current to target.

    Self-transitions always pass. Terminal states have no way out, and
    IN_PROGRESS/COMPLETED can never be the target of an NPC status change.
    """
    current = QuestStatus(current)
    target = QuestStatus(target)

    if current == target:
        return

    if current in TERMINAL_STATUSES:
        raise PolicyError(
            f"Cannot change status from {current.value} to {target.value}"
        )

    if target in RESERVED_TARGETS:
        raise PolicyError(RESERVED_TARGETS[target])

    if target not in ALLOWED_TRANSITIONS[current]:
        raise PolicyError(
            f"Cannot change status from {current.value} to {target.value}"
        )


def is_allowed_npc_transition(current: QuestStatus, target: QuestStatus) -> bool:
    try:
        assert_npc_status_transition(current, target)
    except PolicyError:
        return False
    return True


def assert_can_apply(status: QuestStatus) -> None:
    """Applications are taken while the quest sits on the board."""
    if QuestStatus(status) != QuestStatus.POSTED:
        raise PolicyError("Only POSTED quests accept applications")


def assert_can_accept(status: QuestStatus) -> None:
    """Only POSTED quests are open to adventurers."""
    if QuestStatus(status) != QuestStatus.POSTED:
        raise PolicyError("Only POSTED quests can be accepted")


def assert_application_pending(status: ApplicationStatus) -> None:
    if ApplicationStatus(status) != ApplicationStatus.PENDING:
        raise PolicyError("Application already decided")


def assert_can_complete(status: QuestStatus) -> None:
    """A quest completes at most once and never after cancellation."""
    if QuestStatus(status) in TERMINAL_STATUSES:
        logger.info("Completion rejected: quest already %s", QuestStatus(status).value)
        raise PolicyError("Quest already completed or cancelled")
