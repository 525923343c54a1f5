"""Shared FastAPI dependencies: per-request services and bearer auth."""

from collections.abc import Callable

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from tavern.core.enums import Role
from tavern.core.errors import AuthenticationError, AuthorizationError
from tavern.core.event_bus import EventBus
from tavern.core.security import TokenIdentity, decode_access_token
from tavern.db.database import get_db
from tavern.services.adventurer_service import AdventurerService
from tavern.services.auth_service import AuthService
from tavern.services.notification_hub import NotificationHub
from tavern.services.notification_service import NotificationService
from tavern.services.npc_organization_service import NpcOrganizationService
from tavern.services.quest_service import QuestService

bearer_scheme = HTTPBearer(auto_error=False)


def get_hub(request: Request) -> NotificationHub:
    """Return the app-wide NotificationHub (dependency injection)"""
    hub: NotificationHub = request.app.state.notification_hub
    return hub


def get_event_bus(
    request: Request,
    db: Session = Depends(get_db),
    hub: NotificationHub = Depends(get_hub),
) -> EventBus:
    """One bus per request, with the notification handlers already subscribed."""
    bus = EventBus()
    request.state.notification_service = NotificationService(db, bus, hub)
    return bus


def get_notification_service(
    request: Request, bus: EventBus = Depends(get_event_bus)
) -> NotificationService:
    service: NotificationService = request.state.notification_service
    return service


def get_auth_service(
    db: Session = Depends(get_db), bus: EventBus = Depends(get_event_bus)
) -> AuthService:
    return AuthService(db, bus)


def get_adventurer_service(db: Session = Depends(get_db)) -> AdventurerService:
    return AdventurerService(db)


def get_npc_organization_service(
    db: Session = Depends(get_db), bus: EventBus = Depends(get_event_bus)
) -> NpcOrganizationService:
    return NpcOrganizationService(db, bus)


def get_quest_service(
    db: Session = Depends(get_db), bus: EventBus = Depends(get_event_bus)
) -> QuestService:
    return QuestService(db, bus)


# === Auth ===


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> TokenIdentity:
    if credentials is None:
        raise AuthenticationError("Missing Authorization header")
    return decode_access_token(credentials.credentials)


def require_role(*roles: Role) -> Callable[..., TokenIdentity]:
    """Dependency factory: the caller must hold one of ``roles``."""

    def _checker(user: TokenIdentity = Depends(get_current_user)) -> TokenIdentity:
        if user.role not in roles:
            raise AuthorizationError("Forbidden")
        return user

    return _checker
