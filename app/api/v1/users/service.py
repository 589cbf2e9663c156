import logging
from typing import Any, List, Optional

from app.api.v1.users.schemas import UserCreate, UserUpdate
from app.core.exceptions import AppException
from app.core.security import get_password_hash, verify_password
from app.models.user import User
from app.storage.base import Storage

logger = logging.getLogger(__name__)


def _user_fields(data: dict[str, Any]) -> dict[str, Any]:
    if "password" in data:
        data["password_hash"] = get_password_hash(data.pop("password"))
    if data.get("role") is not None:
        data["role"] = data["role"].value
    if data.get("permissions") is not None:
        data["permissions"] = [p.value for p in data["permissions"]]
    return data


class UserService:
    def __init__(self, storage: Storage):
        self.storage = storage

    async def authenticate_user(self, username: str, password: str) -> Optional[User]:
        user = await self.storage.get_user_by_username(username)
        if not user or not verify_password(password, user.password_hash):
            logger.info("Failed login for %s", username)
            return None
        return user

    async def get_all_users(self) -> List[User]:
        return await self.storage.get_all_users()

    async def get_user_by_id(self, user_id: int) -> User:
        user = await self.storage.get_user(user_id)
        if user is None:
            AppException().raise_404(f"User with id {user_id} not found")
        return user

    async def create_user(self, user_data: UserCreate) -> User:
        return await self.storage.create_user(_user_fields(user_data.model_dump()))

    async def update_user(self, user_id: int, user_data: UserUpdate) -> User:
        data = user_data.model_dump(exclude_none=True)
        user = await self.storage.update_user(user_id, _user_fields(data))
        if user is None:
            AppException().raise_404(f"User with id {user_id} not found")
        return user

    async def delete_user(self, user_id: int, current_user: User) -> None:
        if user_id == current_user.id:
            AppException().raise_400("You cannot delete your own account")
        if not await self.storage.delete_user(user_id):
            AppException().raise_404(f"User with id {user_id} not found")
