"""Adventurer Service: profile + skills CRUD, progression views"""

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
from tavern.core.progression import RankProgress, rank_for_xp, rank_progress
from tavern.db.models import (
    AdventurerProfileModel,
    AdventurerSkillModel,
    CertificateModel,
    UserModel,
)

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("title", "summary", "level", "race", "background")
SKILL_FIELDS = ("name", "description", "level", "category", "cooldown")


class AdventurerService:
    """Adventurer profile CRUD + leaderboard"""

    def __init__(self, db: Session):
        self._db = db

    # === Profile ===

    def get_profile(self, user_id: str) -> AdventurerProfileModel | None:
        return self._db.scalar(
            select(AdventurerProfileModel).where(AdventurerProfileModel.user_id == user_id)
        )

    def require_profile(self, user_id: str) -> AdventurerProfileModel:
        profile = self.get_profile(user_id)
        if profile is None:
            raise NotFoundError("Adventurer profile not found")
        return profile

    def create_profile(self, user_id: str, data: dict[str, Any]) -> AdventurerProfileModel:
        user = self._db.get(UserModel, user_id)
        if user is None:
            raise NotFoundError("User not found for this profile")
        if user.role != Role.ADVENTURER:
            raise AuthorizationError(
                "Only users with role ADVENTURER can have adventurer profiles"
            )
        if self.get_profile(user_id) is not None:
            raise ConflictError("Profile already exists for this user")

        profile = AdventurerProfileModel(
            user_id=user_id,
            title=data["title"],
            summary=data["summary"],
            adventurer_class=data["adventurer_class"],
            level=data.get("level", 1),
            race=data.get("race"),
            background=data.get("background"),
            attributes=dict(data["attributes"]),
            xp=0,
            rank=rank_for_xp(0),
        )
        for position, skill in enumerate(data.get("skills") or []):
            profile.skills.append(self._new_skill(skill, position))

        self._db.add(profile)
        self._db.commit()
        self._db.refresh(profile)

        logger.info("Adventurer profile created for user %s", user_id)
        return profile

    def update_profile(self, user_id: str, fields: dict[str, Any]) -> AdventurerProfileModel:
        """Partial update. Class is fixed once the profile exists."""
        profile = self.require_profile(user_id)

        new_class = fields.get("adventurer_class")
        if new_class is not None and new_class != profile.adventurer_class:
            raise PolicyError("Class cannot be changed after profile creation")

        for name in PROFILE_FIELDS:
            if fields.get(name) is not None:
                setattr(profile, name, fields[name])

        if fields.get("attributes"):
            # JSON column: assign a new dict so the change is tracked
            profile.attributes = {**profile.attributes, **fields["attributes"]}

        self._db.commit()
        self._db.refresh(profile)
        return profile

    # === Skills ===

    def add_skill(self, user_id: str, skill: dict[str, Any]) -> AdventurerProfileModel:
        profile = self.require_profile(user_id)
        position = max((s.position for s in profile.skills), default=-1) + 1
        profile.skills.append(self._new_skill(skill, position))
        self._db.commit()
        self._db.refresh(profile)
        return profile

    def update_skill(
        self, user_id: str, skill_id: str, fields: dict[str, Any]
    ) -> AdventurerProfileModel:
        profile = self.require_profile(user_id)
        skill = self._find_skill(profile, skill_id)

        for name in SKILL_FIELDS:
            if fields.get(name) is not None:
                setattr(skill, name, fields[name])

        self._db.commit()
        self._db.refresh(profile)
        return profile

    def delete_skill(self, user_id: str, skill_id: str) -> AdventurerProfileModel:
        profile = self.require_profile(user_id)
        skill = self._find_skill(profile, skill_id)
        profile.skills.remove(skill)
        self._db.commit()
        self._db.refresh(profile)
        return profile

    @staticmethod
    def _new_skill(skill: dict[str, Any], position: int) -> AdventurerSkillModel:
        return AdventurerSkillModel(
            name=skill["name"],
            description=skill.get("description"),
            level=skill["level"],
            category=skill.get("category"),
            cooldown=skill.get("cooldown"),
            position=position,
        )

    @staticmethod
    def _find_skill(profile: AdventurerProfileModel, skill_id: str) -> AdventurerSkillModel:
        for skill in profile.skills:
            if skill.id == skill_id:
                return skill
        raise NotFoundError("Skill not found")

    # === Progression ===

    def get_progression(self, user_id: str) -> RankProgress:
        profile = self.require_profile(user_id)
        return rank_progress(profile.xp)

    def list_certificates(self, user_id: str) -> list[CertificateModel]:
        stmt = (
            select(CertificateModel)
            .where(CertificateModel.adventurer_id == user_id)
            .order_by(CertificateModel.issued_at.desc())
        )
        return list(self._db.scalars(stmt))

    def leaderboard(self, limit: int = 10) -> list[tuple[AdventurerProfileModel, str]]:
        """Top adventurers by XP with their display names."""
        stmt = (
            select(AdventurerProfileModel, UserModel.display_name)
            .join(UserModel, UserModel.id == AdventurerProfileModel.user_id)
            .order_by(AdventurerProfileModel.xp.desc(), AdventurerProfileModel.created_at)
            .limit(limit)
        )
        return [(profile, display_name) for profile, display_name in self._db.execute(stmt)]
