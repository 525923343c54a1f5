"""SQLAlchemy declarative base and ORM models."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import JSON


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all database models."""


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


# ── accounts ──────────────────────────────────────────────


class UserModel(TimestampMixin, Base):
    """Account with a role tag"""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    username: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String, nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(String, nullable=True)
    role: Mapped[str] = mapped_column(String, nullable=False, default="ADVENTURER")
    password_hash: Mapped[str] = mapped_column(String, nullable=False)
    gold: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


# ── adventurers ───────────────────────────────────────────


class AdventurerProfileModel(TimestampMixin, Base):
    """Adventurer profile, 1:1 with an ADVENTURER user"""

    __tablename__ = "adventurer_profiles"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String, nullable=False)
    summary: Mapped[str] = mapped_column(Text, nullable=False)
    adventurer_class: Mapped[str] = mapped_column("class", String, nullable=False)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    race: Mapped[str | None] = mapped_column(String, nullable=True)
    background: Mapped[str | None] = mapped_column(Text, nullable=True)

    # strength / dexterity / intelligence / charisma / vitality / luck
    attributes: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    xp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rank: Mapped[str] = mapped_column(String(3), nullable=False, default="F")

    skills: Mapped[list["AdventurerSkillModel"]] = relationship(
        "AdventurerSkillModel",
        back_populates="profile",
        cascade="all, delete-orphan",
        order_by="AdventurerSkillModel.position",
    )

    __table_args__ = (Index("idx_adventurer_xp", "xp"),)


class AdventurerSkillModel(Base):
    """Skill entry on an adventurer profile"""

    __tablename__ = "adventurer_skills"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    profile_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("adventurer_profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    category: Mapped[str | None] = mapped_column(String, nullable=True)
    cooldown: Mapped[str | None] = mapped_column(String, nullable=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    profile: Mapped["AdventurerProfileModel"] = relationship(
        "AdventurerProfileModel", back_populates="skills"
    )


# ── npc organizations ─────────────────────────────────────


class NpcOrganizationModel(TimestampMixin, Base):
    """Organization profile, 1:1 with an NPC user"""

    __tablename__ = "npc_organizations"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    domain: Mapped[str | None] = mapped_column(String, nullable=True)
    website: Mapped[str | None] = mapped_column(String, nullable=True)
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    trust_score: Mapped[float] = mapped_column(Float, nullable=False, default=50)
    trust_tier: Mapped[str] = mapped_column(String, nullable=False, default="MEDIUM")
    is_flagged: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    total_quests_posted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_gold_spent: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    completion_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    dispute_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0)

    __table_args__ = (
        Index("idx_org_domain", "domain"),
        Index("idx_org_trust", "trust_score"),
    )


# ── quests ────────────────────────────────────────────────


class QuestModel(TimestampMixin, Base):
    """Quest posted by an NPC"""

    __tablename__ = "quests"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    created_by: Mapped[str] = mapped_column(
        String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(String, nullable=False, default="DRAFT")
    difficulty: Mapped[str] = mapped_column(String, nullable=False, default="Easy")

    required_level: Mapped[int | None] = mapped_column(Integer, nullable=True)
    required_classes: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    reward_gold: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    deadline: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    assigned_to: Mapped[str | None] = mapped_column(
        String(32), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    accepted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        Index("idx_quest_creator", "created_by"),
        Index("idx_quest_status", "status"),
    )


class QuestApplicationModel(Base):
    """Adventurer application to a POSTED quest"""

    __tablename__ = "quest_applications"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    quest_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("quests.id", ondelete="CASCADE"), nullable=False
    )
    adventurer_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="PENDING")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    decided_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        UniqueConstraint("quest_id", "adventurer_id", name="uq_application_quest_adventurer"),
        Index("idx_application_adventurer", "adventurer_id"),
    )


class CertificateModel(Base):
    """Scroll of Deed minted when a quest completes"""

    __tablename__ = "certificates"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    adventurer_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    quest_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("quests.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    scroll_id: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    issued_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


# ── notifications ─────────────────────────────────────────


class NotificationModel(Base):
    """Per-user notification"""

    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String, nullable=False)
    title: Mapped[str] = mapped_column(String, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        Index("idx_notification_user_read", "user_id", "read", "created_at"),
    )
