"""Auth Service: registration, login, identity lookup"""

import logging

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tavern.core.enums import Role
from tavern.core.errors import AuthenticationError, ConflictError, NotFoundError
from tavern.core.event_bus import DomainEvent, EventBus
from tavern.core.event_types import EventTypes
from tavern.core.security import create_access_token, hash_password, verify_password
from tavern.db.models import UserModel

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
DUPLICATE_USER = "User with this email/username already exists"


class AuthService:
    def __init__(self, db: Session, event_bus: EventBus):
        self._db = db
        self._bus = event_bus

    def register(
        self,
        email: str,
        username: str,
        display_name: str,
        password: str,
        role: Role | str = Role.ADVENTURER,
        avatar_url: str | None = None,
    ) -> tuple[str, UserModel]:
        """Create an account and return (token, user)."""
        existing = self._db.scalar(
            select(UserModel.id).where(
                or_(UserModel.email == email, UserModel.username == username)
            )
        )
        if existing is not None:
            raise ConflictError(DUPLICATE_USER)

        user = UserModel(
            email=email,
            username=username,
            display_name=display_name,
            avatar_url=avatar_url,
            role=Role(role).value,
            password_hash=hash_password(password),
        )
        self._db.add(user)
        try:
            self._db.commit()
        except IntegrityError:
            # lost a race with a concurrent registration
            self._db.rollback()
            raise ConflictError(DUPLICATE_USER)
        self._db.refresh(user)

        logger.info("User registered: %s (%s)", user.username, user.role)
        self._bus.emit(
            DomainEvent(
                event_type=EventTypes.USER_REGISTERED,
                data={"user_id": user.id, "role": user.role},
                source="auth_service",
            )
        )
        return create_access_token(user.id, Role(user.role)), user

    def login(self, email_or_username: str, password: str) -> tuple[str, UserModel]:
        """Unknown user and wrong password fail identically.

        An email match wins over a username match, so the lookup resolves
        to a single account even if some username equals another email.
        """
        user = self._db.scalar(
            select(UserModel).where(UserModel.email == email_or_username)
        )
        if user is None:
            user = self._db.scalar(
                select(UserModel).where(UserModel.username == email_or_username)
            )
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login for %s", email_or_username)
            raise AuthenticationError(INVALID_CREDENTIALS)

        return create_access_token(user.id, Role(user.role)), user

    def me(self, user_id: str) -> UserModel:
        user = self._db.get(UserModel, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user
