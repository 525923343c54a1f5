"""Notification Service: storage + socket fan-out, fed by EventBus

Other services never call this one; they emit domain events and the
handlers below turn them into stored notifications.
"""

import logging
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from tavern.config import settings
from tavern.core.enums import NotificationType
from tavern.core.errors import NotFoundError
from tavern.core.event_bus import DomainEvent, EventBus
from tavern.core.event_types import EventTypes
from tavern.db.models import CertificateModel, NotificationModel, QuestModel, UserModel
from tavern.services.notification_hub import (
    EVENT_BADGE,
    EVENT_NEW,
    EVENT_READ,
    NotificationHub,
)

logger = logging.getLogger(__name__)


def notification_payload(orm: NotificationModel) -> dict[str, Any]:
    """JSON-safe view pushed over the socket"""
    return {
        "id": orm.id,
        "user_id": orm.user_id,
        "type": orm.type,
        "title": orm.title,
        "message": orm.message,
        "data": orm.data,
        "read": orm.read,
        "created_at": orm.created_at.isoformat() if orm.created_at else None,
    }


class NotificationService:
    """Notification CRUD + domain event reactions"""

    def __init__(self, db: Session, event_bus: EventBus, hub: NotificationHub):
        self._db = db
        self._bus = event_bus
        self._hub = hub
        self._register_event_handlers()

    def _register_event_handlers(self) -> None:
        self._bus.subscribe(EventTypes.QUEST_APPLIED, self._on_quest_applied)
        self._bus.subscribe(EventTypes.QUEST_ACCEPTED, self._on_quest_accepted)
        self._bus.subscribe(
            EventTypes.QUEST_APPLICATION_REJECTED, self._on_application_rejected
        )
        self._bus.subscribe(EventTypes.QUEST_COMPLETED, self._on_quest_completed)
        self._bus.subscribe(EventTypes.ADVENTURER_RANKED_UP, self._on_ranked_up)

    # === CRUD ===

    def create_notification(
        self,
        user_id: str,
        notification_type: NotificationType | str,
        title: str,
        message: str,
        data: dict[str, Any] | None = None,
    ) -> NotificationModel:
        orm = NotificationModel(
            user_id=user_id,
            type=NotificationType(notification_type).value,
            title=title,
            message=message,
            data=data,
            read=False,
        )
        self._db.add(orm)
        self._db.commit()
        self._db.refresh(orm)

        logger.info("Notification %s created for user %s (%s)", orm.id, user_id, orm.type)
        self._hub.publish(user_id, EVENT_NEW, notification_payload(orm))
        self._publish_badge(user_id)
        return orm

    def list_for_user(
        self,
        user_id: str,
        limit: int | None = None,
        unread_only: bool = False,
    ) -> tuple[list[NotificationModel], int]:
        """Newest first, plus the user's total unread count."""
        stmt = select(NotificationModel).where(NotificationModel.user_id == user_id)
        if unread_only:
            stmt = stmt.where(NotificationModel.read.is_(False))
        stmt = stmt.order_by(NotificationModel.created_at.desc()).limit(
            limit or settings.NOTIFICATION_PAGE_LIMIT
        )
        notifications = list(self._db.scalars(stmt))
        return notifications, self.unread_count(user_id)

    def unread_count(self, user_id: str) -> int:
        stmt = select(func.count()).where(
            NotificationModel.user_id == user_id,
            NotificationModel.read.is_(False),
        )
        return self._db.scalar(stmt) or 0

    def mark_as_read(self, notification_id: str, user_id: str) -> NotificationModel:
        orm = self._get_owned(notification_id, user_id)
        if not orm.read:
            orm.read = True
            self._db.commit()
            self._db.refresh(orm)

        self._hub.publish(user_id, EVENT_READ, {"id": orm.id})
        self._publish_badge(user_id)
        return orm

    def mark_all_as_read(self, user_id: str) -> int:
        result = self._db.execute(
            update(NotificationModel)
            .where(
                NotificationModel.user_id == user_id,
                NotificationModel.read.is_(False),
            )
            .values(read=True)
        )
        self._db.commit()
        logger.info("Marked %d notifications read for user %s", result.rowcount, user_id)

        self._publish_badge(user_id)
        return result.rowcount

    def delete_notification(self, notification_id: str, user_id: str) -> None:
        orm = self._get_owned(notification_id, user_id)
        self._db.delete(orm)
        self._db.commit()
        self._publish_badge(user_id)

    def _get_owned(self, notification_id: str, user_id: str) -> NotificationModel:
        orm = self._db.get(NotificationModel, notification_id)
        if orm is None or orm.user_id != user_id:
            raise NotFoundError("Notification not found")
        return orm

    def _publish_badge(self, user_id: str) -> None:
        self._hub.publish(user_id, EVENT_BADGE, {"unread_count": self.unread_count(user_id)})

    # === EventBus handlers ===

    def _on_quest_applied(self, event: DomainEvent) -> None:
        quest = self._db.get(QuestModel, event.data["quest_id"])
        adventurer = self._db.get(UserModel, event.data["adventurer_id"])
        if quest is None or adventurer is None:
            return
        self.create_notification(
            quest.created_by,
            NotificationType.QUEST_APPLICATION_RECEIVED,
            "New Quest Application",
            f'{adventurer.display_name or adventurer.username} has applied to your quest "{quest.title}".',
            {"quest_id": quest.id, "application_id": event.data["application_id"]},
        )

    def _on_quest_accepted(self, event: DomainEvent) -> None:
        quest = self._db.get(QuestModel, event.data["quest_id"])
        if quest is None:
            return
        deadline = f" Deadline: {quest.deadline.isoformat()}" if quest.deadline else ""
        self.create_notification(
            event.data["adventurer_id"],
            NotificationType.QUEST_ACCEPTED,
            "Quest Application Accepted",
            f'Your application for "{quest.title}" has been accepted!{deadline}',
            {"quest_id": quest.id},
        )

    def _on_application_rejected(self, event: DomainEvent) -> None:
        quest = self._db.get(QuestModel, event.data["quest_id"])
        if quest is None:
            return
        self.create_notification(
            event.data["adventurer_id"],
            NotificationType.QUEST_APPLICATION_REJECTED,
            "Quest Application Rejected",
            f'Your application for "{quest.title}" has been rejected.',
            {"quest_id": quest.id},
        )

    def _on_quest_completed(self, event: DomainEvent) -> None:
        quest = self._db.get(QuestModel, event.data["quest_id"])
        if quest is None or quest.assigned_to is None:
            return
        certificate_id = event.data.get("certificate_id")
        certificate = (
            self._db.get(CertificateModel, certificate_id) if certificate_id else None
        )
        xp_awarded = event.data.get("xp_awarded", 0)
        self.create_notification(
            quest.assigned_to,
            NotificationType.QUEST_COMPLETED,
            "Quest Completed",
            f'"{quest.title}" is complete. {xp_awarded} XP awarded.',
            {
                "quest_id": quest.id,
                "xp_awarded": xp_awarded,
                "scroll_id": certificate.scroll_id if certificate else None,
            },
        )

    def _on_ranked_up(self, event: DomainEvent) -> None:
        self.create_notification(
            event.data["adventurer_id"],
            NotificationType.RANK_UP,
            "Rank Up",
            f"You advanced from rank {event.data['old_rank']} to {event.data['new_rank']}!",
            {"old_rank": event.data["old_rank"], "new_rank": event.data["new_rank"]},
        )
