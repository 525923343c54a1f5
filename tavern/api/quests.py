"""Quest endpoints: NPC management, quest board, applications, completion."""

from typing import Optional

from fastapi import APIRouter, Depends

from tavern.api.deps import get_quest_service, require_role
from tavern.api.schemas import (
    ApplicationCreate,
    ApplicationDecisionRequest,
    CertificateOut,
    CompletionOut,
    DataResponse,
    QuestApplicationOut,
    QuestCreate,
    QuestOut,
    QuestStatusUpdate,
    QuestUpdate,
)
from tavern.core.enums import Role
from tavern.core.quest import QuestDifficulty
from tavern.core.security import TokenIdentity
from tavern.services.quest_service import QuestService

router = APIRouter(prefix="/quests", tags=["quests"])
completion_router = APIRouter(prefix="/quest", tags=["quests"])

npc_only = require_role(Role.NPC)
adventurer_only = require_role(Role.ADVENTURER)


def _quest(orm) -> DataResponse[QuestOut]:
    return DataResponse(data=QuestOut.model_validate(orm))


# === NPC ===


@router.post("/me", response_model=DataResponse[QuestOut], status_code=201)
def create_quest(
    body: QuestCreate,
    user: TokenIdentity = Depends(npc_only),
    service: QuestService = Depends(get_quest_service),
) -> DataResponse[QuestOut]:
    return _quest(service.create_quest(user.user_id, body.model_dump()))


@router.get("/me", response_model=DataResponse[list[QuestOut]])
def list_my_quests(
    user: TokenIdentity = Depends(npc_only),
    service: QuestService = Depends(get_quest_service),
) -> DataResponse[list[QuestOut]]:
    quests = service.list_quests_for_npc(user.user_id)
    return DataResponse(data=[QuestOut.model_validate(q) for q in quests])


@router.get("/me/{quest_id}", response_model=DataResponse[QuestOut])
def get_my_quest(
    quest_id: str,
    user: TokenIdentity = Depends(npc_only),
    service: QuestService = Depends(get_quest_service),
) -> DataResponse[QuestOut]:
    return _quest(service.get_quest_for_npc(user.user_id, quest_id))


@router.patch("/me/{quest_id}", response_model=DataResponse[QuestOut])
def update_my_quest(
    quest_id: str,
    body: QuestUpdate,
    user: TokenIdentity = Depends(npc_only),
    service: QuestService = Depends(get_quest_service),
) -> DataResponse[QuestOut]:
    fields = body.model_dump(exclude_unset=True)
    return _quest(service.update_quest(user.user_id, quest_id, fields))


@router.delete("/me/{quest_id}", response_model=DataResponse[dict[str, str]])
def delete_my_quest(
    quest_id: str,
    user: TokenIdentity = Depends(npc_only),
    service: QuestService = Depends(get_quest_service),
) -> DataResponse[dict[str, str]]:
    service.delete_quest(user.user_id, quest_id)
    return DataResponse(data={"id": quest_id})


@router.patch("/me/{quest_id}/status", response_model=DataResponse[QuestOut])
def update_my_quest_status(
    quest_id: str,
    body: QuestStatusUpdate,
    user: TokenIdentity = Depends(npc_only),
    service: QuestService = Depends(get_quest_service),
) -> DataResponse[QuestOut]:
    return _quest(service.update_status(user.user_id, quest_id, body.status))


@router.get("/me/{quest_id}/applications", response_model=DataResponse[list[QuestApplicationOut]])
def list_quest_applications(
    quest_id: str,
    user: TokenIdentity = Depends(npc_only),
    service: QuestService = Depends(get_quest_service),
) -> DataResponse[list[QuestApplicationOut]]:
    applications = service.list_applications_for_npc(user.user_id, quest_id)
    return DataResponse(data=[QuestApplicationOut.model_validate(a) for a in applications])


@router.post(
    "/me/{quest_id}/applications/{application_id}/decision",
    response_model=DataResponse[QuestOut],
)
def decide_application(
    quest_id: str,
    application_id: str,
    body: ApplicationDecisionRequest,
    user: TokenIdentity = Depends(npc_only),
    service: QuestService = Depends(get_quest_service),
) -> DataResponse[QuestOut]:
    quest = service.decide_application(
        user.user_id, quest_id, application_id, body.decision, deadline=body.deadline
    )
    return _quest(quest)


# === Adventurer ===


@router.get("/board", response_model=DataResponse[list[QuestOut]])
def quest_board(
    tag: Optional[str] = None,
    difficulty: Optional[QuestDifficulty] = None,
    user: TokenIdentity = Depends(adventurer_only),
    service: QuestService = Depends(get_quest_service),
) -> DataResponse[list[QuestOut]]:
    quests = service.list_board(tag=tag, difficulty=difficulty.value if difficulty else None)
    return DataResponse(data=[QuestOut.model_validate(q) for q in quests])


@router.get("/applications/mine", response_model=DataResponse[list[QuestApplicationOut]])
def list_my_applications(
    user: TokenIdentity = Depends(adventurer_only),
    service: QuestService = Depends(get_quest_service),
) -> DataResponse[list[QuestApplicationOut]]:
    applications = service.list_my_applications(user.user_id)
    return DataResponse(data=[QuestApplicationOut.model_validate(a) for a in applications])


@router.post(
    "/{quest_id}/apply", response_model=DataResponse[QuestApplicationOut], status_code=201
)
def apply_to_quest(
    quest_id: str,
    body: Optional[ApplicationCreate] = None,
    user: TokenIdentity = Depends(adventurer_only),
    service: QuestService = Depends(get_quest_service),
) -> DataResponse[QuestApplicationOut]:
    note = body.note if body else None
    application = service.apply_to_quest(user.user_id, quest_id, note=note)
    return DataResponse(data=QuestApplicationOut.model_validate(application))


# === Completion ===


@completion_router.post("/{quest_id}/complete", response_model=DataResponse[CompletionOut])
def complete_quest(
    quest_id: str,
    user: TokenIdentity = Depends(npc_only),
    service: QuestService = Depends(get_quest_service),
) -> DataResponse[CompletionOut]:
    result = service.complete_quest(user.user_id, quest_id)
    return DataResponse(
        data=CompletionOut(
            message=result.message,
            xp_awarded=result.xp_awarded,
            xp=result.xp,
            rank=result.rank,
            certificate=CertificateOut.model_validate(result.certificate),
        )
    )
