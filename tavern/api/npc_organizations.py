"""NPC organization endpoints (NPC self-service + guild master admin)."""

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, Query

from tavern.api.deps import get_npc_organization_service, require_role
from tavern.api.schemas import (
    DataResponse,
    NpcOrganizationAdminUpdate,
    NpcOrganizationCreate,
    NpcOrganizationOut,
    NpcOrganizationUpdate,
    TrustOverviewOut,
)
from tavern.core.enums import Role
from tavern.core.security import TokenIdentity
from tavern.services.npc_organization_service import NpcOrganizationService

router = APIRouter(prefix="/npc-organizations", tags=["npc-organizations"])

npc_only = require_role(Role.NPC)
guild_master_only = require_role(Role.GUILD_MASTER)


def _org(orm) -> DataResponse[NpcOrganizationOut]:
    return DataResponse(data=NpcOrganizationOut.model_validate(orm))


# === NPC self ===


@router.get("/me", response_model=DataResponse[NpcOrganizationOut])
def get_my_organization(
    user: TokenIdentity = Depends(npc_only),
    service: NpcOrganizationService = Depends(get_npc_organization_service),
) -> DataResponse[NpcOrganizationOut]:
    return _org(service.require_for_user(user.user_id))


@router.post("/me", response_model=DataResponse[NpcOrganizationOut], status_code=201)
def create_my_organization(
    body: NpcOrganizationCreate,
    user: TokenIdentity = Depends(npc_only),
    service: NpcOrganizationService = Depends(get_npc_organization_service),
) -> DataResponse[NpcOrganizationOut]:
    return _org(service.create_for_npc(user.user_id, body.model_dump()))


@router.patch("/me", response_model=DataResponse[NpcOrganizationOut])
def update_my_organization(
    body: NpcOrganizationUpdate,
    user: TokenIdentity = Depends(npc_only),
    service: NpcOrganizationService = Depends(get_npc_organization_service),
) -> DataResponse[NpcOrganizationOut]:
    return _org(service.update_for_npc(user.user_id, body.model_dump(exclude_unset=True)))


@router.get("/me/trust", response_model=DataResponse[TrustOverviewOut])
def get_my_trust(
    user: TokenIdentity = Depends(npc_only),
    service: NpcOrganizationService = Depends(get_npc_organization_service),
) -> DataResponse[TrustOverviewOut]:
    overview = service.get_trust_overview_for_user(user.user_id)
    return DataResponse(data=TrustOverviewOut.model_validate(asdict(overview)))


# === Guild Master ===


@router.get("", response_model=DataResponse[list[NpcOrganizationOut]])
def list_organizations(
    domain: Optional[str] = None,
    min_trust: Optional[float] = Query(None, ge=0, le=100),
    max_trust: Optional[float] = Query(None, ge=0, le=100),
    user: TokenIdentity = Depends(guild_master_only),
    service: NpcOrganizationService = Depends(get_npc_organization_service),
) -> DataResponse[list[NpcOrganizationOut]]:
    orgs = service.list_all(domain=domain, min_trust=min_trust, max_trust=max_trust)
    return DataResponse(data=[NpcOrganizationOut.model_validate(o) for o in orgs])


@router.get("/{org_id}", response_model=DataResponse[NpcOrganizationOut])
def get_organization(
    org_id: str,
    user: TokenIdentity = Depends(guild_master_only),
    service: NpcOrganizationService = Depends(get_npc_organization_service),
) -> DataResponse[NpcOrganizationOut]:
    return _org(service.get_by_id(org_id))


@router.patch("/{org_id}", response_model=DataResponse[NpcOrganizationOut])
def update_organization(
    org_id: str,
    body: NpcOrganizationAdminUpdate,
    user: TokenIdentity = Depends(guild_master_only),
    service: NpcOrganizationService = Depends(get_npc_organization_service),
) -> DataResponse[NpcOrganizationOut]:
    return _org(service.update_by_id(org_id, body.model_dump(exclude_unset=True)))
