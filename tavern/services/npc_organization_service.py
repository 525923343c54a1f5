"""NPC Organization Service: organization CRUD + live trust overview"""

import logging
from typing import Any

from sqlalchemy import select
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
from tavern.core.trust import (
    QuestRecord,
    TrustOverview,
    TrustTier,
    compute_trust_overview,
    compute_trust_tier,
)
from tavern.db.models import NpcOrganizationModel, QuestModel, UserModel

logger = logging.getLogger(__name__)

INITIAL_TRUST_SCORE = 50

SELF_FIELDS = ("name", "description", "domain", "website")
ADMIN_FIELDS = SELF_FIELDS + (
    "verified",
    "trust_score",
    "trust_tier",
    "is_flagged",
    "total_quests_posted",
    "total_gold_spent",
    "completion_rate",
    "dispute_rate",
)


class NpcOrganizationService:
    def __init__(self, db: Session, event_bus: EventBus):
        self._db = db
        self._bus = event_bus

    # === NPC self ===

    def get_for_user(self, user_id: str) -> NpcOrganizationModel | None:
        return self._db.scalar(
            select(NpcOrganizationModel).where(NpcOrganizationModel.user_id == user_id)
        )

    def require_for_user(self, user_id: str) -> NpcOrganizationModel:
        org = self.get_for_user(user_id)
        if org is None:
            raise NotFoundError("Organization profile not found")
        return org

    def create_for_npc(self, user_id: str, data: dict[str, Any]) -> NpcOrganizationModel:
        user = self._db.get(UserModel, user_id)
        if user is None:
            raise NotFoundError("User not found")
        if user.role != Role.NPC:
            raise AuthorizationError("Only NPC users can create organization profiles")
        if self.get_for_user(user_id) is not None:
            raise ConflictError("Organization profile already exists for this NPC")

        org = NpcOrganizationModel(
            user_id=user_id,
            name=data["name"],
            description=data.get("description"),
            domain=data.get("domain"),
            website=data.get("website"),
            trust_score=INITIAL_TRUST_SCORE,
            trust_tier=compute_trust_tier(INITIAL_TRUST_SCORE).value,
        )
        self._db.add(org)
        self._db.commit()
        self._db.refresh(org)

        logger.info("Organization %s created for NPC %s", org.id, user_id)
        self._bus.emit(
            DomainEvent(
                event_type=EventTypes.ORGANIZATION_CREATED,
                data={"organization_id": org.id, "user_id": user_id},
                source="npc_organization_service",
            )
        )
        return org

    def update_for_npc(self, user_id: str, fields: dict[str, Any]) -> NpcOrganizationModel:
        org = self.require_for_user(user_id)
        for name in SELF_FIELDS:
            if name in fields:
                if name == "name" and fields[name] is None:
                    continue
                setattr(org, name, fields[name])
        self._db.commit()
        self._db.refresh(org)
        return org

    # === Guild Master ===

    def list_all(
        self,
        domain: str | None = None,
        min_trust: float | None = None,
        max_trust: float | None = None,
    ) -> list[NpcOrganizationModel]:
        stmt = select(NpcOrganizationModel)
        if domain:
            stmt = stmt.where(NpcOrganizationModel.domain == domain)
        if min_trust is not None:
            stmt = stmt.where(NpcOrganizationModel.trust_score >= min_trust)
        if max_trust is not None:
            stmt = stmt.where(NpcOrganizationModel.trust_score <= max_trust)
        return list(self._db.scalars(stmt.order_by(NpcOrganizationModel.created_at)))

    def get_by_id(self, org_id: str) -> NpcOrganizationModel:
        org = self._db.get(NpcOrganizationModel, org_id)
        if org is None:
            raise NotFoundError("Organization profile not found")
        return org

    def update_by_id(self, org_id: str, fields: dict[str, Any]) -> NpcOrganizationModel:
        """Admin patch. The stored tier is always re-derived from the score;
        an explicit trust_tier must agree with it."""
        org = self.get_by_id(org_id)

        updates = {
            name: fields[name]
            for name in ADMIN_FIELDS
            if fields.get(name) is not None and name != "trust_tier"
        }
        score = updates.get("trust_score", org.trust_score)
        tier = compute_trust_tier(score)

        requested_tier = fields.get("trust_tier")
        if requested_tier is not None and TrustTier(requested_tier) != tier:
            raise PolicyError(
                f"trust_tier {TrustTier(requested_tier).value} does not match "
                f"trust_score {score} ({tier.value})"
            )
        updates["trust_tier"] = tier.value

        for name, value in updates.items():
            setattr(org, name, value)

        self._db.commit()
        self._db.refresh(org)
        logger.info("Organization %s updated by guild master: %s", org_id, sorted(updates))
        return org

    # === Trust ===

    def get_trust_overview(self, org_id: str) -> TrustOverview:
        """Recompute trust from the NPC's quests and persist the snapshot."""
        org = self.get_by_id(org_id)

        rows = self._db.execute(
            select(QuestModel.status, QuestModel.reward_gold).where(
                QuestModel.created_by == org.user_id
            )
        )
        overview = compute_trust_overview(
            (QuestRecord(status=status, reward_gold=gold or 0) for status, gold in rows),
            verified=org.verified,
            is_flagged=org.is_flagged,
        )

        org.trust_score = overview.trust_score
        org.trust_tier = overview.trust_tier.value
        org.total_quests_posted = overview.total_quests_posted
        org.total_gold_spent = overview.total_gold_spent
        org.completion_rate = overview.completion_rate
        org.dispute_rate = overview.dispute_rate
        self._db.commit()

        return overview

    def get_trust_overview_for_user(self, user_id: str) -> TrustOverview:
        return self.get_trust_overview(self.require_for_user(user_id).id)
