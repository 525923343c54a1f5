"""Domain event names carried on the EventBus."""


class EventTypes:
    """Event type string constants"""

    # auth
    USER_REGISTERED = "user_registered"

    # quest lifecycle
    QUEST_CREATED = "quest_created"
    QUEST_STATUS_CHANGED = "quest_status_changed"
    QUEST_APPLIED = "quest_applied"
    QUEST_APPLICATION_REJECTED = "quest_application_rejected"
    QUEST_ACCEPTED = "quest_accepted"
    QUEST_COMPLETED = "quest_completed"

    # progression
    ADVENTURER_RANKED_UP = "adventurer_ranked_up"

    # npc organization
    ORGANIZATION_CREATED = "organization_created"
