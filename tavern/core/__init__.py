"""Tavern Core"""
__version__ = "0.1.0"

from tavern.core.enums import NotificationType, Role
from tavern.core.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    PolicyError,
    TavernError,
    ValidationFailed,
)
from tavern.core.event_bus import DomainEvent, EventBus
from tavern.core.event_types import EventTypes

__all__ = [
    "Role",
    "NotificationType",
    "TavernError",
    "ValidationFailed",
    "PolicyError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "ConflictError",
    "DomainEvent",
    "EventBus",
    "EventTypes",
]
