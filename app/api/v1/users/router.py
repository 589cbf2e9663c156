from typing import List

from fastapi import APIRouter, Depends, status

from app.api.v1.users.schemas import UserCreate, UserResponse, UserUpdate
from app.api.v1.users.service import UserService
from app.core.deps import get_current_active_admin_user, get_storage
from app.models.user import User
from app.storage.base import Storage

router = APIRouter()


@router.get(
    "/",
    response_model=List[UserResponse],
    summary="Get all users",
    description="Staff accounts. Admin only.",
    dependencies=[Depends(get_current_active_admin_user)],
)
async def get_all_users(storage: Storage = Depends(get_storage)):
    return [UserResponse.model_validate(u) for u in await UserService(storage).get_all_users()]


@router.post(
    "/",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create user",
    dependencies=[Depends(get_current_active_admin_user)],
)
async def create_user(user_data: UserCreate, storage: Storage = Depends(get_storage)):
    return UserResponse.model_validate(await UserService(storage).create_user(user_data))


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    summary="Get user by ID",
    dependencies=[Depends(get_current_active_admin_user)],
)
async def get_user(user_id: int, storage: Storage = Depends(get_storage)):
    return UserResponse.model_validate(await UserService(storage).get_user_by_id(user_id))


@router.patch(
    "/{user_id}",
    response_model=UserResponse,
    summary="Update user",
    description="Change role, permissions, password or activation. Admin only.",
    dependencies=[Depends(get_current_active_admin_user)],
)
async def update_user(user_id: int, user_data: UserUpdate, storage: Storage = Depends(get_storage)):
    return UserResponse.model_validate(await UserService(storage).update_user(user_id, user_data))


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete user",
)
async def delete_user(
    user_id: int,
    current_admin: User = Depends(get_current_active_admin_user),
    storage: Storage = Depends(get_storage),
):
    await UserService(storage).delete_user(user_id, current_admin)
