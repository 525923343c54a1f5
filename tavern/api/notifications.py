"""Notification inbox endpoints."""

from fastapi import APIRouter, Depends, Query

from tavern.api.deps import get_current_user, get_notification_service
from tavern.api.schemas import (
    DataResponse,
    NotificationCreate,
    NotificationList,
    NotificationOut,
)
from tavern.config import settings
from tavern.core.enums import Role
from tavern.core.errors import AuthorizationError
from tavern.core.security import TokenIdentity
from tavern.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=DataResponse[NotificationList])
def list_my_notifications(
    limit: int = Query(settings.NOTIFICATION_PAGE_LIMIT, ge=1, le=200),
    unread_only: bool = False,
    user: TokenIdentity = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> DataResponse[NotificationList]:
    notifications, unread = service.list_for_user(
        user.user_id, limit=limit, unread_only=unread_only
    )
    return DataResponse(
        data=NotificationList(
            notifications=[NotificationOut.model_validate(n) for n in notifications],
            unread_count=unread,
        )
    )


@router.post("", response_model=DataResponse[NotificationOut], status_code=201)
def create_notification(
    body: NotificationCreate,
    user: TokenIdentity = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> DataResponse[NotificationOut]:
    target = body.user_id or user.user_id
    if target != user.user_id and user.role != Role.GUILD_MASTER:
        raise AuthorizationError("Forbidden")

    orm = service.create_notification(target, body.type, body.title, body.message, body.data)
    return DataResponse(data=NotificationOut.model_validate(orm))


@router.patch("/mark-all-read", response_model=DataResponse[dict[str, int]])
def mark_all_read(
    user: TokenIdentity = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> DataResponse[dict[str, int]]:
    updated = service.mark_all_as_read(user.user_id)
    return DataResponse(data={"updated": updated, "unread_count": 0})


@router.patch("/{notification_id}/read", response_model=DataResponse[NotificationOut])
def mark_read(
    notification_id: str,
    user: TokenIdentity = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> DataResponse[NotificationOut]:
    orm = service.mark_as_read(notification_id, user.user_id)
    return DataResponse(data=NotificationOut.model_validate(orm))


@router.delete("/{notification_id}", response_model=DataResponse[dict[str, str]])
def delete_notification(
    notification_id: str,
    user: TokenIdentity = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> DataResponse[dict[str, str]]:
    service.delete_notification(notification_id, user.user_id)
    return DataResponse(data={"id": notification_id})
