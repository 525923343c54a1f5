"""Adventurer profile, skills and progression endpoints."""

from fastapi import APIRouter, Depends, Query

from tavern.api.deps import get_adventurer_service, require_role
from tavern.api.schemas import (
    AdventurerProfileCreate,
    AdventurerProfileOut,
    AdventurerProfileUpdate,
    CertificateOut,
    DataResponse,
    LeaderboardEntry,
    ProgressionOut,
    SkillCreate,
    SkillUpdate,
)
from tavern.core.enums import Role
from tavern.core.security import TokenIdentity
from tavern.services.adventurer_service import AdventurerService

router = APIRouter(prefix="/adventurers", tags=["adventurers"])

adventurer_only = require_role(Role.ADVENTURER)


def _profile(orm) -> DataResponse[AdventurerProfileOut]:
    return DataResponse(data=AdventurerProfileOut.model_validate(orm))


@router.get("/leaderboard", response_model=DataResponse[list[LeaderboardEntry]])
def leaderboard(
    limit: int = Query(10, ge=1, le=100),
    service: AdventurerService = Depends(get_adventurer_service),
) -> DataResponse[list[LeaderboardEntry]]:
    entries = [
        LeaderboardEntry(
            position=position,
            user_id=profile.user_id,
            display_name=display_name,
            title=profile.title,
            adventurer_class=profile.adventurer_class,
            xp=profile.xp,
            rank=profile.rank,
        )
        for position, (profile, display_name) in enumerate(service.leaderboard(limit), start=1)
    ]
    return DataResponse(data=entries)


@router.get("/me", response_model=DataResponse[AdventurerProfileOut])
def get_my_profile(
    user: TokenIdentity = Depends(adventurer_only),
    service: AdventurerService = Depends(get_adventurer_service),
) -> DataResponse[AdventurerProfileOut]:
    return _profile(service.require_profile(user.user_id))


@router.post("/me", response_model=DataResponse[AdventurerProfileOut], status_code=201)
def create_my_profile(
    body: AdventurerProfileCreate,
    user: TokenIdentity = Depends(adventurer_only),
    service: AdventurerService = Depends(get_adventurer_service),
) -> DataResponse[AdventurerProfileOut]:
    return _profile(service.create_profile(user.user_id, body.model_dump()))


@router.patch("/me", response_model=DataResponse[AdventurerProfileOut])
def update_my_profile(
    body: AdventurerProfileUpdate,
    user: TokenIdentity = Depends(adventurer_only),
    service: AdventurerService = Depends(get_adventurer_service),
) -> DataResponse[AdventurerProfileOut]:
    fields = body.model_dump(exclude_unset=True, exclude_none=True)
    return _profile(service.update_profile(user.user_id, fields))


# === Skills ===


@router.post("/me/skills", response_model=DataResponse[AdventurerProfileOut], status_code=201)
def add_skill(
    body: SkillCreate,
    user: TokenIdentity = Depends(adventurer_only),
    service: AdventurerService = Depends(get_adventurer_service),
) -> DataResponse[AdventurerProfileOut]:
    return _profile(service.add_skill(user.user_id, body.model_dump()))


@router.patch("/me/skills/{skill_id}", response_model=DataResponse[AdventurerProfileOut])
def update_skill(
    skill_id: str,
    body: SkillUpdate,
    user: TokenIdentity = Depends(adventurer_only),
    service: AdventurerService = Depends(get_adventurer_service),
) -> DataResponse[AdventurerProfileOut]:
    fields = body.model_dump(exclude_unset=True, exclude_none=True)
    return _profile(service.update_skill(user.user_id, skill_id, fields))


@router.delete("/me/skills/{skill_id}", response_model=DataResponse[AdventurerProfileOut])
def delete_skill(
    skill_id: str,
    user: TokenIdentity = Depends(adventurer_only),
    service: AdventurerService = Depends(get_adventurer_service),
) -> DataResponse[AdventurerProfileOut]:
    return _profile(service.delete_skill(user.user_id, skill_id))


# === Progression ===


@router.get("/me/certificates", response_model=DataResponse[list[CertificateOut]])
def list_my_certificates(
    user: TokenIdentity = Depends(adventurer_only),
    service: AdventurerService = Depends(get_adventurer_service),
) -> DataResponse[list[CertificateOut]]:
    certificates = service.list_certificates(user.user_id)
    return DataResponse(data=[CertificateOut.model_validate(c) for c in certificates])


@router.get("/me/progression", response_model=DataResponse[ProgressionOut])
def get_my_progression(
    user: TokenIdentity = Depends(adventurer_only),
    service: AdventurerService = Depends(get_adventurer_service),
) -> DataResponse[ProgressionOut]:
    return DataResponse(data=ProgressionOut.model_validate(service.get_progression(user.user_id)))
