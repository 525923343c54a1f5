"""Quest Service: NPC quest CRUD, status machine, applications, completion

Service -> Core and Service -> DB only. Notifications react to the
events emitted here; this service never calls NotificationService.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from tavern.core.enums import Role
from tavern.core.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    PolicyError,
)
from tavern.core.event_bus import DomainEvent, EventBus
from tavern.core.event_types import EventTypes
from tavern.core.progression import apply_xp, generate_scroll_id, xp_for_difficulty
from tavern.core.quest import (
    ApplicationDecision,
    ApplicationStatus,
    QuestDifficulty,
    QuestStatus,
    assert_application_pending,
    assert_can_accept,
    assert_can_apply,
    assert_can_complete,
    assert_npc_status_transition,
    can_delete_quest,
    can_edit_quest,
)
from tavern.core.quest.transitions import INITIAL_STATUSES
from tavern.db.models import (
    AdventurerProfileModel,
    CertificateModel,
    QuestApplicationModel,
    QuestModel,
    UserModel,
)

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "title",
    "description",
    "difficulty",
    "reward_gold",
    "required_level",
    "required_classes",
    "tags",
    "deadline",
)
NULLABLE_FIELDS = ("required_level", "deadline")
ALREADY_APPLIED = "You have already applied to this quest"


@dataclass
class CompletionResult:
    """Outcome of completing a quest"""

    quest: QuestModel
    certificate: CertificateModel
    xp_awarded: int
    xp: int
    rank: str
    previous_rank: str

    @property
    def message(self) -> str:
        return f"Quest completed. {self.xp_awarded} XP awarded."

    @property
    def ranked_up(self) -> bool:
        return self.rank != self.previous_rank


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QuestService:
    """Quest lifecycle for NPC owners and applying adventurers"""

    def __init__(self, db: Session, event_bus: EventBus):
        self._db = db
        self._bus = event_bus

    # === NPC CRUD ===

    def create_quest(self, npc_user_id: str, data: dict[str, Any]) -> QuestModel:
        user = self._db.get(UserModel, npc_user_id)
        if user is None:
            raise NotFoundError("User not found")
        if user.role != Role.NPC:
            raise AuthorizationError("Only NPC users can create quests")

        status = QuestStatus(data.get("status") or QuestStatus.DRAFT)
        if status not in INITIAL_STATUSES:
            raise PolicyError("Quests can only be created as DRAFT or POSTED")

        quest = QuestModel(
            title=data["title"],
            description=data["description"],
            created_by=npc_user_id,
            status=status.value,
            difficulty=QuestDifficulty(data.get("difficulty") or QuestDifficulty.EASY).value,
            reward_gold=data["reward_gold"],
            required_level=data.get("required_level"),
            required_classes=list(data.get("required_classes") or []),
            tags=list(data.get("tags") or []),
            deadline=data.get("deadline"),
        )
        self._db.add(quest)
        self._db.commit()
        self._db.refresh(quest)

        logger.info("Quest %s created by NPC %s as %s", quest.id, npc_user_id, quest.status)
        self._bus.emit(
            DomainEvent(
                event_type=EventTypes.QUEST_CREATED,
                data={"quest_id": quest.id, "npc_id": npc_user_id},
                source="quest_service",
            )
        )
        return quest

    def list_quests_for_npc(self, npc_user_id: str) -> list[QuestModel]:
        stmt = (
            select(QuestModel)
            .where(QuestModel.created_by == npc_user_id)
            .order_by(QuestModel.created_at.desc())
        )
        return list(self._db.scalars(stmt))

    def get_quest_for_npc(self, npc_user_id: str, quest_id: str) -> QuestModel:
        """Another NPC's quest is reported as missing, not forbidden."""
        quest = self._db.get(QuestModel, quest_id)
        if quest is None or quest.created_by != npc_user_id:
            raise NotFoundError("Quest not found")
        return quest

    def update_quest(
        self, npc_user_id: str, quest_id: str, fields: dict[str, Any]
    ) -> QuestModel:
        quest = self.get_quest_for_npc(npc_user_id, quest_id)
        if not can_edit_quest(quest.status):
            raise PolicyError("Quest can only be edited while DRAFT or POSTED")

        for name in EDITABLE_FIELDS:
            if name in fields:
                value = fields[name]
                if value is None and name not in NULLABLE_FIELDS:
                    continue
                if name in ("required_classes", "tags"):
                    value = list(value or [])
                elif name == "difficulty":
                    value = QuestDifficulty(value).value
                setattr(quest, name, value)

        self._db.commit()
        self._db.refresh(quest)
        return quest

    def delete_quest(self, npc_user_id: str, quest_id: str) -> None:
        quest = self.get_quest_for_npc(npc_user_id, quest_id)
        if not can_delete_quest(quest.status):
            raise PolicyError("Quest can only be deleted while DRAFT")

        self._db.delete(quest)
        self._db.commit()
        logger.info("Quest %s deleted by NPC %s", quest_id, npc_user_id)

    def update_status(
        self, npc_user_id: str, quest_id: str, target: QuestStatus | str
    ) -> QuestModel:
        quest = self.get_quest_for_npc(npc_user_id, quest_id)
        current = QuestStatus(quest.status)
        target = QuestStatus(target)

        assert_npc_status_transition(current, target)
        if current == target:
            return quest

        quest.status = target.value
        self._db.commit()
        self._db.refresh(quest)

        logger.info("Quest %s: %s -> %s", quest_id, current.value, target.value)
        self._bus.emit(
            DomainEvent(
                event_type=EventTypes.QUEST_STATUS_CHANGED,
                data={"quest_id": quest_id, "from": current.value, "to": target.value},
                source="quest_service",
            )
        )
        return quest

    # === Adventurer side ===

    def list_board(
        self, tag: str | None = None, difficulty: str | None = None
    ) -> list[QuestModel]:
        """POSTED quests, newest first."""
        stmt = select(QuestModel).where(QuestModel.status == QuestStatus.POSTED.value)
        if difficulty:
            stmt = stmt.where(QuestModel.difficulty == difficulty)
        quests = list(self._db.scalars(stmt.order_by(QuestModel.created_at.desc())))
        if tag:
            # tags is a JSON list; filtered here to stay backend-agnostic
            quests = [q for q in quests if tag in (q.tags or [])]
        return quests

    def apply_to_quest(
        self, adventurer_user_id: str, quest_id: str, note: str | None = None
    ) -> QuestApplicationModel:
        quest = self._db.get(QuestModel, quest_id)
        if quest is None:
            raise NotFoundError("Quest not found")

        profile = self._get_adventurer_profile(adventurer_user_id)
        if profile is None:
            raise NotFoundError("Adventurer profile not found")

        assert_can_apply(quest.status)

        existing = self._db.scalar(
            select(QuestApplicationModel.id).where(
                QuestApplicationModel.quest_id == quest_id,
                QuestApplicationModel.adventurer_id == adventurer_user_id,
            )
        )
        if existing is not None:
            raise ConflictError(ALREADY_APPLIED)

        application = QuestApplicationModel(
            quest_id=quest_id,
            adventurer_id=adventurer_user_id,
            note=note,
            status=ApplicationStatus.PENDING.value,
        )
        self._db.add(application)
        try:
            self._db.commit()
        except IntegrityError:
            self._db.rollback()
            raise ConflictError(ALREADY_APPLIED)
        self._db.refresh(application)

        logger.info("Adventurer %s applied to quest %s", adventurer_user_id, quest_id)
        self._bus.emit(
            DomainEvent(
                event_type=EventTypes.QUEST_APPLIED,
                data={
                    "quest_id": quest_id,
                    "application_id": application.id,
                    "adventurer_id": adventurer_user_id,
                },
                source="quest_service",
            )
        )
        return application

    def list_my_applications(self, adventurer_user_id: str) -> list[QuestApplicationModel]:
        stmt = (
            select(QuestApplicationModel)
            .where(QuestApplicationModel.adventurer_id == adventurer_user_id)
            .order_by(QuestApplicationModel.created_at.desc())
        )
        return list(self._db.scalars(stmt))

    # === Application decisions (NPC) ===

    def list_applications_for_npc(
        self, npc_user_id: str, quest_id: str
    ) -> list[QuestApplicationModel]:
        quest = self.get_quest_for_npc(npc_user_id, quest_id)
        stmt = (
            select(QuestApplicationModel)
            .where(QuestApplicationModel.quest_id == quest.id)
            .order_by(QuestApplicationModel.created_at)
        )
        return list(self._db.scalars(stmt))

    def decide_application(
        self,
        npc_user_id: str,
        quest_id: str,
        application_id: str,
        decision: ApplicationDecision | str,
        deadline: datetime | None = None,
    ) -> QuestModel:
        """ACCEPT assigns the applicant and rejects the rest; REJECT only that one."""
        quest = self.get_quest_for_npc(npc_user_id, quest_id)
        application = self._db.get(QuestApplicationModel, application_id)
        if application is None or application.quest_id != quest.id:
            raise NotFoundError("Application not found")

        assert_application_pending(application.status)
        if ApplicationDecision(decision) == ApplicationDecision.REJECT:
            return self._reject_application(quest, application)
        return self._accept_application(quest, application, deadline)

    def _reject_application(
        self, quest: QuestModel, application: QuestApplicationModel
    ) -> QuestModel:
        application_id = application.id
        adventurer_id = application.adventurer_id
        rejected = self._db.execute(
            update(QuestApplicationModel)
            .where(
                QuestApplicationModel.id == application_id,
                QuestApplicationModel.status == ApplicationStatus.PENDING.value,
            )
            .values(status=ApplicationStatus.REJECTED.value, decided_at=_utcnow())
        )
        if rejected.rowcount != 1:
            self._db.rollback()
            raise PolicyError("Application already decided")
        self._db.commit()
        self._db.refresh(quest)

        logger.info("Application %s on quest %s rejected", application_id, quest.id)
        self._emit_rejection(quest.id, adventurer_id)
        return quest

    def _accept_application(
        self,
        quest: QuestModel,
        application: QuestApplicationModel,
        deadline: datetime | None,
    ) -> QuestModel:
        """POSTED -> IN_PROGRESS, guarded in the UPDATE itself."""
        assert_can_accept(quest.status)

        quest_id = quest.id
        application_id = application.id
        adventurer_id = application.adventurer_id
        now = _utcnow()
        values: dict[str, Any] = {
            "status": QuestStatus.IN_PROGRESS.value,
            "assigned_to": adventurer_id,
            "accepted_at": now,
        }
        if deadline is not None:
            values["deadline"] = deadline

        try:
            claimed = self._db.execute(
                update(QuestModel)
                .where(
                    QuestModel.id == quest_id,
                    QuestModel.status == QuestStatus.POSTED.value,
                )
                .values(**values)
            )
            if claimed.rowcount != 1:
                self._db.rollback()
                logger.info("Quest %s no longer POSTED, acceptance refused", quest_id)
                raise PolicyError("Only POSTED quests can be accepted")

            picked = self._db.execute(
                update(QuestApplicationModel)
                .where(
                    QuestApplicationModel.id == application_id,
                    QuestApplicationModel.status == ApplicationStatus.PENDING.value,
                )
                .values(status=ApplicationStatus.ACCEPTED.value, decided_at=now)
            )
            if picked.rowcount != 1:
                self._db.rollback()
                raise PolicyError("Application already decided")

            passed_over = list(
                self._db.scalars(
                    select(QuestApplicationModel.adventurer_id).where(
                        QuestApplicationModel.quest_id == quest_id,
                        QuestApplicationModel.status == ApplicationStatus.PENDING.value,
                    )
                )
            )
            self._db.execute(
                update(QuestApplicationModel)
                .where(
                    QuestApplicationModel.quest_id == quest_id,
                    QuestApplicationModel.status == ApplicationStatus.PENDING.value,
                )
                .values(status=ApplicationStatus.REJECTED.value, decided_at=now)
            )
            self._db.commit()
        except SQLAlchemyError:
            self._db.rollback()
            logger.exception("Acceptance of application %s rolled back", application_id)
            raise

        self._db.refresh(quest)
        logger.info(
            "Quest %s assigned to adventurer %s (%d other applicant(s) rejected)",
            quest_id,
            adventurer_id,
            len(passed_over),
        )
        self._bus.emit(
            DomainEvent(
                event_type=EventTypes.QUEST_ACCEPTED,
                data={
                    "quest_id": quest_id,
                    "adventurer_id": adventurer_id,
                    "application_id": application_id,
                },
                source="quest_service",
            )
        )
        for other_id in passed_over:
            self._emit_rejection(quest_id, other_id)
        return quest

    def _emit_rejection(self, quest_id: str, adventurer_id: str) -> None:
        self._bus.emit(
            DomainEvent(
                event_type=EventTypes.QUEST_APPLICATION_REJECTED,
                data={"quest_id": quest_id, "adventurer_id": adventurer_id},
                source="quest_service",
            )
        )

    # === Completion ===

    def complete_quest(self, npc_user_id: str, quest_id: str) -> CompletionResult:
        """Complete a quest, award XP, mint its certificate.

        The quest, profile and certificate writes share one commit; any
        failure rolls all three back. The status flip is conditional on
        IN_PROGRESS in the UPDATE, so a stale read cannot complete twice.
        Events go out only after the commit.
        """
        quest = self._db.get(QuestModel, quest_id)
        if quest is None:
            raise NotFoundError("Quest not found")
        if quest.created_by != npc_user_id:
            raise AuthorizationError("Not authorized")

        assert_can_complete(quest.status)

        if quest.assigned_to is None:
            raise PolicyError("No adventurer assigned")
        adventurer_id = quest.assigned_to
        profile = self._get_adventurer_profile(adventurer_id)
        if profile is None:
            raise NotFoundError("Adventurer not found")

        xp_awarded = xp_for_difficulty(quest.difficulty)
        previous_rank = profile.rank
        new_xp, new_rank = apply_xp(profile.xp, xp_awarded)

        try:
            completed = self._db.execute(
                update(QuestModel)
                .where(
                    QuestModel.id == quest_id,
                    QuestModel.status == QuestStatus.IN_PROGRESS.value,
                )
                .values(status=QuestStatus.COMPLETED.value, completed_at=_utcnow())
            )
            if completed.rowcount != 1:
                self._db.rollback()
                logger.info("Quest %s left IN_PROGRESS before completion", quest_id)
                raise PolicyError("Quest already completed or cancelled")

            profile.xp = new_xp
            profile.rank = new_rank
            certificate = CertificateModel(
                adventurer_id=adventurer_id,
                quest_id=quest_id,
                scroll_id=generate_scroll_id(),
            )
            self._db.add(certificate)
            self._db.commit()
        except SQLAlchemyError:
            self._db.rollback()
            logger.exception("Quest %s completion rolled back", quest_id)
            raise

        self._db.refresh(quest)
        self._db.refresh(certificate)

        result = CompletionResult(
            quest=quest,
            certificate=certificate,
            xp_awarded=xp_awarded,
            xp=new_xp,
            rank=new_rank,
            previous_rank=previous_rank,
        )
        logger.info(
            "Quest %s completed: adventurer %s +%d XP (%s -> %s), scroll %s",
            quest_id,
            adventurer_id,
            xp_awarded,
            previous_rank,
            new_rank,
            certificate.scroll_id,
        )

        self._bus.emit(
            DomainEvent(
                event_type=EventTypes.QUEST_COMPLETED,
                data={
                    "quest_id": quest.id,
                    "adventurer_id": adventurer_id,
                    "certificate_id": certificate.id,
                    "xp_awarded": xp_awarded,
                },
                source="quest_service",
            )
        )
        if result.ranked_up:
            self._bus.emit(
                DomainEvent(
                    event_type=EventTypes.ADVENTURER_RANKED_UP,
                    data={
                        "adventurer_id": adventurer_id,
                        "old_rank": previous_rank,
                        "new_rank": new_rank,
                    },
                    source="quest_service",
                )
            )
        return result

    def _get_adventurer_profile(self, user_id: str) -> AdventurerProfileModel | None:
        return self._db.scalar(
            select(AdventurerProfileModel).where(AdventurerProfileModel.user_id == user_id)
        )
