"""API request/response schemas."""

from datetime import datetime
from typing import Any, Generic, Literal, Optional, TypeVar

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    HttpUrl,
    TypeAdapter,
    field_validator,
)

from tavern.core.enums import NotificationType, Role
from tavern.core.quest import (
    ApplicationDecision,
    ApplicationStatus,
    QuestDifficulty,
    QuestStatus,
)
from tavern.core.trust import TrustTier

T = TypeVar("T")

_http_url = TypeAdapter(HttpUrl)


def _optional_url(value: Any) -> Any:
    """Blank means absent; anything else must be an http(s) URL."""
    if not isinstance(value, str):
        return value
    trimmed = value.strip()
    if trimmed == "":
        return None
    try:
        _http_url.validate_python(trimmed)
    except ValueError:
        raise ValueError("Website must be a valid URL (example: https://site.com)")
    return trimmed


# === Envelopes ===


class DataResponse(BaseModel, Generic[T]):
    """Successful response envelope"""

    success: bool = True
    data: T


class ValidationIssue(BaseModel):
    path: str
    message: str


class ErrorResponse(BaseModel):
    """Failure envelope"""

    success: bool = False
    message: str
    issues: Optional[list[ValidationIssue]] = None


# === Auth ===


class RegisterRequest(BaseModel):
    email: EmailStr
    username: str = Field(..., min_length=3, pattern=r"^[^@\s]+$", description="No spaces or @")
    display_name: str = Field(..., min_length=1)
    avatar_url: Optional[HttpUrl] = None
    role: Optional[Role] = None
    password: str = Field(..., min_length=6, max_length=72, description="6 to 72 characters")


class LoginRequest(BaseModel):
    email_or_username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=6, max_length=72)


class UserOut(BaseModel):
    """Public user view (never includes the password hash)"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    username: str
    display_name: str
    avatar_url: Optional[str] = None
    role: Role
    gold: int = 0
    created_at: datetime
    updated_at: datetime


class AuthPayload(BaseModel):
    token: str
    user: UserOut


# === Adventurer ===


class Attributes(BaseModel):
    strength: int = Field(..., ge=1, le=20)
    dexterity: int = Field(..., ge=1, le=20)
    intelligence: int = Field(..., ge=1, le=20)
    charisma: int = Field(..., ge=1, le=20)
    vitality: int = Field(..., ge=1, le=20)
    luck: int = Field(..., ge=1, le=20)


class AttributesUpdate(BaseModel):
    strength: Optional[int] = Field(None, ge=1, le=20)
    dexterity: Optional[int] = Field(None, ge=1, le=20)
    intelligence: Optional[int] = Field(None, ge=1, le=20)
    charisma: Optional[int] = Field(None, ge=1, le=20)
    vitality: Optional[int] = Field(None, ge=1, le=20)
    luck: Optional[int] = Field(None, ge=1, le=20)


class SkillCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    level: int = Field(..., ge=1, le=10)
    category: Optional[str] = None
    cooldown: Optional[str] = None


class SkillUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    level: Optional[int] = Field(None, ge=1, le=10)
    category: Optional[str] = None
    cooldown: Optional[str] = None


class AdventurerProfileCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1)
    summary: str = Field(..., min_length=1)
    adventurer_class: str = Field(..., min_length=1, alias="class")
    level: int = Field(1, ge=1)
    race: Optional[str] = None
    background: Optional[str] = None
    attributes: Attributes
    skills: list[SkillCreate] = []


class AdventurerProfileUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = Field(None, min_length=1)
    summary: Optional[str] = Field(None, min_length=1)
    adventurer_class: Optional[str] = Field(None, min_length=1, alias="class")
    level: Optional[int] = Field(None, ge=1)
    race: Optional[str] = None
    background: Optional[str] = None
    attributes: Optional[AttributesUpdate] = None


class SkillOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    level: int
    category: Optional[str] = None
    cooldown: Optional[str] = None


class AdventurerProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    title: str
    summary: str
    adventurer_class: str = Field(
        validation_alias=AliasChoices("adventurer_class", "class"),
        serialization_alias="class",
    )
    level: int
    race: Optional[str] = None
    background: Optional[str] = None
    attributes: dict[str, int]
    skills: list[SkillOut] = []
    xp: int
    rank: str
    created_at: datetime
    updated_at: datetime


class ProgressionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    xp: int
    rank: str
    next_rank: Optional[str] = None
    xp_to_next_rank: Optional[int] = None


class CertificateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    adventurer_id: str
    quest_id: str
    scroll_id: str
    issued_at: datetime


class LeaderboardEntry(BaseModel):
    position: int
    user_id: str
    display_name: str
    title: str
    adventurer_class: str = Field(
        validation_alias=AliasChoices("adventurer_class", "class"),
        serialization_alias="class",
    )
    xp: int
    rank: str


# === NPC Organization ===


class NpcOrganizationCreate(BaseModel):
    name: str = Field(..., min_length=1, description="Name is required")
    description: Optional[str] = None
    domain: Optional[str] = None
    website: Optional[str] = None

    normalise_website = field_validator("website", mode="before")(_optional_url)


class NpcOrganizationUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    domain: Optional[str] = None
    website: Optional[str] = None

    normalise_website = field_validator("website", mode="before")(_optional_url)


class NpcOrganizationAdminUpdate(NpcOrganizationUpdate):
    verified: Optional[bool] = None
    trust_score: Optional[float] = Field(None, ge=0, le=100)
    trust_tier: Optional[TrustTier] = None
    is_flagged: Optional[bool] = None
    total_quests_posted: Optional[int] = Field(None, ge=0)
    total_gold_spent: Optional[float] = Field(None, ge=0)
    completion_rate: Optional[float] = Field(None, ge=0, le=100)
    dispute_rate: Optional[float] = Field(None, ge=0, le=100)


class NpcOrganizationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    domain: Optional[str] = None
    website: Optional[str] = None
    verified: bool
    trust_score: float
    trust_tier: TrustTier
    is_flagged: bool
    total_quests_posted: int
    total_gold_spent: float
    completion_rate: float
    dispute_rate: float
    created_at: datetime
    updated_at: datetime


class TrustOverviewOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    trust_score: int
    trust_tier: TrustTier
    verified: bool
    is_flagged: bool
    total_quests_posted: int
    total_gold_spent: float
    completion_rate: float
    dispute_rate: float
    summary: str


# === Quest ===


class _QuestFields(BaseModel):
    difficulty: Optional[QuestDifficulty] = None
    required_level: Optional[int] = Field(None, ge=1)
    required_classes: Optional[list[str]] = None
    tags: Optional[list[str]] = None
    deadline: Optional[datetime] = None

    @field_validator("required_classes", "tags")
    @classmethod
    def no_blank_entries(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        if value is not None and any(not item.strip() for item in value):
            raise ValueError("entries must be non-empty strings")
        return value


class QuestCreate(_QuestFields):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    reward_gold: float = Field(..., ge=0)
    status: Optional[Literal["DRAFT", "POSTED"]] = None


class QuestUpdate(_QuestFields):
    """Every field optional; status changes go through the status endpoint."""

    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    reward_gold: Optional[float] = Field(None, ge=0)


class QuestStatusUpdate(BaseModel):
    status: QuestStatus


class QuestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str
    created_by: str
    status: QuestStatus
    difficulty: QuestDifficulty
    reward_gold: float
    required_level: Optional[int] = None
    required_classes: list[str] = []
    tags: list[str] = []
    deadline: Optional[datetime] = None
    assigned_to: Optional[str] = None
    accepted_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class ApplicationCreate(BaseModel):
    note: Optional[str] = None


class ApplicationDecisionRequest(BaseModel):
    decision: ApplicationDecision
    deadline: Optional[datetime] = Field(None, description="Replaces the quest deadline on ACCEPT")


class QuestApplicationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    quest_id: str
    adventurer_id: str
    note: Optional[str] = None
    status: ApplicationStatus
    created_at: datetime
    decided_at: Optional[datetime] = None


class CompletionOut(BaseModel):
    message: str
    xp_awarded: int
    xp: int
    rank: str
    certificate: CertificateOut


# === Notification ===


class NotificationCreate(BaseModel):
    user_id: Optional[str] = Field(None, description="Defaults to the caller")
    type: NotificationType = NotificationType.SYSTEM
    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    data: Optional[dict[str, Any]] = None


class NotificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    data: Optional[dict[str, Any]] = None
    read: bool
    created_at: datetime


class NotificationList(BaseModel):
    notifications: list[NotificationOut]
    unread_count: int
