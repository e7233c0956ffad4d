"""Accounts: fastapi-users wiring and the RS256 JWT backend."""

from .users import (
    UserCreate,
    UserRead,
    UserUpdate,
    auth_backend,
    current_active_user,
    fastapi_users,
    get_jwt_strategy,
)

__all__ = [
    "UserCreate",
    "UserRead",
    "UserUpdate",
    "auth_backend",
    "current_active_user",
    "fastapi_users",
    "get_jwt_strategy",
]
