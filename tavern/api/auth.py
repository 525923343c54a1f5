"""Registration, login and identity endpoints."""

from fastapi import APIRouter, Depends

from tavern.api.deps import get_auth_service, get_current_user
from tavern.api.schemas import (
    AuthPayload,
    DataResponse,
    LoginRequest,
    RegisterRequest,
    UserOut,
)
from tavern.core.enums import Role
from tavern.core.security import TokenIdentity
from tavern.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=DataResponse[AuthPayload], status_code=201)
def register(
    body: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
) -> DataResponse[AuthPayload]:
    token, user = service.register(
        email=body.email,
        username=body.username,
        display_name=body.display_name,
        password=body.password,
        role=body.role or Role.ADVENTURER,
        avatar_url=str(body.avatar_url) if body.avatar_url else None,
    )
    return DataResponse(data=AuthPayload(token=token, user=UserOut.model_validate(user)))


@router.post("/login", response_model=DataResponse[AuthPayload])
def login(
    body: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> DataResponse[AuthPayload]:
    token, user = service.login(body.email_or_username, body.password)
    return DataResponse(data=AuthPayload(token=token, user=UserOut.model_validate(user)))


@router.get("/me", response_model=DataResponse[UserOut])
def me(
    identity: TokenIdentity = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
) -> DataResponse[UserOut]:
    return DataResponse(data=UserOut.model_validate(service.me(identity.user_id)))
