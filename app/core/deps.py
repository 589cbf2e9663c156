from typing import AsyncGenerator

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.exceptions import AppException
from app.core.security import decode_access_token
from app.models.enums import Role
from app.models.user import User
from app.storage.base import Storage
from app.storage.factory import open_storage


bearer_scheme = HTTPBearer(auto_error=False)


async def get_storage() -> AsyncGenerator[Storage, None]:
    async with open_storage() as storage:
        yield storage


async def get_current_user(
    storage: Storage = Depends(get_storage),
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> User:
    """Resolve the staff user from the bearer JWT (sub = user id)."""
    if credentials is None or not credentials.credentials:
        AppException().raise_401("Not authenticated")
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        AppException().raise_401("Could not validate credentials")

    user_id = payload.get("sub")
    if user_id is None:
        AppException().raise_401("Could not validate credentials")
    try:
        user_pk = int(user_id)
    except (ValueError, TypeError):
        AppException().raise_401("Invalid token subject")

    user = await storage.get_user(user_pk)
    if user is None:
        AppException().raise_401("Could not validate credentials")
    return user


async def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_active:
        AppException().raise_400("Inactive user")
    return current_user


async def get_current_active_admin_user(current_user: User = Depends(get_current_active_user)) -> User:
    if current_user.role != Role.admin.value:
        AppException().raise_403("Not an admin user")
    return current_user


def require_permission(*permissions: str):
    """Dependency factory: the user must hold at least one of the permissions (admins hold all)."""
    required = [getattr(p, "value", p) for p in permissions]

    async def checker(current_user: User = Depends(get_current_active_user)) -> User:
        if not current_user.has_permission(*required):
            AppException().raise_403(
                f"Not authorized. One of these permissions required: {', '.join(required)}"
            )
        return current_user

    return checker
