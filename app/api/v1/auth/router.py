from datetime import timedelta

from fastapi import APIRouter, Depends

from app.api.v1.auth.schemas import LoginRequest, TokenResponse
from app.api.v1.users.schemas import UserResponse
from app.api.v1.users.service import UserService
from app.core.config import settings
from app.core.deps import get_current_active_user, get_storage
from app.core.exceptions import AppException
from app.core.security import create_access_token
from app.models.user import User
from app.storage.base import Storage

router = APIRouter()


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Staff login",
)
async def login(login_data: LoginRequest, storage: Storage = Depends(get_storage)):
    user = await UserService(storage).authenticate_user(login_data.username, login_data.password)
    if not user:
        AppException().raise_401("Incorrect username or password")
    if not user.is_active:
        AppException().raise_403("User account is inactive")
    access_token = create_access_token(
        data={"sub": str(user.id), "role": user.role},
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    return TokenResponse(access_token=access_token)


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Current user",
)
async def me(current_user: User = Depends(get_current_active_user)):
    return UserResponse.model_validate(current_user)
