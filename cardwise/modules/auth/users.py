from typing import AsyncIterator, Optional, cast

from fastapi import Depends, Request
from fastapi_users import FastAPIUsers
from fastapi_users.authentication import (
    AuthenticationBackend,
    BearerTransport,
)
from fastapi_users.authentication.transport import Transport
from fastapi_users_db_sqlalchemy import SQLAlchemyUserDatabase
from fastapi_users.manager import BaseUserManager, IntegerIDMixin
from fastapi_users import schemas as fa_schemas

from pydantic import EmailStr

from sqlalchemy.ext.asyncio import AsyncSession

from cardwise.core.config import settings
from cardwise.core.db.base import get_session
from cardwise.core.db.schemas.auth import User
from cardwise.core.db.schemas.flashcards import Persona
from cardwise.core.logging import bind, get_logger

logger = get_logger(__name__)


class UserRead(fa_schemas.BaseUser[int]):
    id: int
    email: EmailStr
    persona: Optional[Persona] = None


class UserCreate(fa_schemas.BaseUserCreate):
    """Sign-up payload; the persona picked on the landing page may come along."""

    email: EmailStr
    password: str
    persona: Optional[Persona] = None


class UserUpdate(fa_schemas.BaseUserUpdate):
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    persona: Optional[Persona] = None


async def get_user_db(
    session: AsyncSession = Depends(get_session),
) -> AsyncIterator[SQLAlchemyUserDatabase]:
    yield SQLAlchemyUserDatabase(session, User)


class UserManager(IntegerIDMixin, BaseUserManager[User, int]):  # type: ignore[type-arg]
    reset_password_token_secret = settings.app.jwt_secret
    verification_token_secret = settings.app.jwt_secret

    def _log(self, user: User):
        persona = user.persona.value if user.persona else "-"
        return bind(logger, user_id=user.id, persona=persona)

    async def on_after_register(
        self, user: User, request: Optional[Request] = None
    ) -> None:
        self._log(user).info("Registered new account")

    async def on_after_forgot_password(
        self, user: User, token: str, request: Optional[Request] = None
    ) -> None:
        # No mailer is wired in; the token is only handed to the reset route
        self._log(user).info("Password reset requested")

    async def on_after_reset_password(
        self, user: User, request: Optional[Request] = None
    ) -> None:
        self._log(user).info("Password reset completed")


async def get_user_manager(
    user_db: SQLAlchemyUserDatabase = Depends(get_user_db),
) -> AsyncIterator[UserManager]:
    yield UserManager(user_db)


# Bearer tokens; the login form posts to the versioned auth route
bearer_transport = BearerTransport(
    tokenUrl=f"{settings.app.version}/auth/login"
)


_jwt_strategy = None


def get_jwt_strategy():
    """Process-wide RS256 strategy; the signing key is loaded once from ``JWT_KEY_FILE``."""
    global _jwt_strategy
    if _jwt_strategy is None:
        from cardwise.core.jwt_strategy import RS256JWTStrategyWithKid

        _jwt_strategy = RS256JWTStrategyWithKid(
            lifetime_seconds=settings.jwt.token_lifetime_seconds,
            key_id=settings.app.version,
            key_file=settings.jwt.key_file,
        )
    return _jwt_strategy


auth_backend = AuthenticationBackend(
    name="jwt",
    transport=cast(Transport, bearer_transport),
    get_strategy=get_jwt_strategy,
)


fastapi_users = FastAPIUsers[User, int](  # type: ignore[type-arg]
    get_user_manager,
    [auth_backend],
)

# Every card and collection route is scoped to the signed-in, active user
current_active_user = fastapi_users.current_user(active=True)
