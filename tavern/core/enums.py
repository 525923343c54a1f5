"""Account and notification enums shared across services."""

from enum import Enum


class Role(str, Enum):
    ADVENTURER = "ADVENTURER"
    NPC = "NPC"
    GUILD_MASTER = "GUILD_MASTER"


class NotificationType(str, Enum):
    QUEST_APPLICATION_RECEIVED = "QUEST_APPLICATION_RECEIVED"
    QUEST_APPLICATION_REJECTED = "QUEST_APPLICATION_REJECTED"
    QUEST_ACCEPTED = "QUEST_ACCEPTED"
    QUEST_COMPLETED = "QUEST_COMPLETED"
    RANK_UP = "RANK_UP"
    SYSTEM = "SYSTEM"
