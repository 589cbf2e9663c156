from typing import List, Optional

from fastapi import APIRouter, Depends, status, Query

from app.api.v1.notifications.schemas import CreateNotificationRequest, NotificationResponse, SetReadRequest
from app.api.v1.notifications.service import NotificationService
from app.core.deps import get_current_active_user, get_storage, require_permission
from app.models.enums import Permission
from app.models.user import User
from app.storage.base import Storage

router = APIRouter()


@router.get(
    "/",
    response_model=List[NotificationResponse],
    summary="Staff notifications",
    description="System-wide notifications plus those addressed to the current user, newest first.",
)
async def list_notifications(
    unread_only: bool = Query(False),
    type: Optional[str] = Query(None, description="e.g. spare_assignment"),
    current_user: User = Depends(get_current_active_user),
    storage: Storage = Depends(get_storage),
):
    items = await NotificationService(storage).list_for_user(current_user, unread_only=unread_only, type=type)
    return [NotificationResponse.model_validate(n) for n in items]


@router.post(
    "/",
    response_model=NotificationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a custom notification",
    dependencies=[Depends(require_permission(Permission.manage_notifications))],
)
async def create_notification(data: CreateNotificationRequest, storage: Storage = Depends(get_storage)):
    return NotificationResponse.model_validate(await NotificationService(storage).create(data))


@router.patch(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark read or unread",
)
async def set_read(
    notification_id: int,
    data: SetReadRequest,
    current_user: User = Depends(get_current_active_user),
    storage: Storage = Depends(get_storage),
):
    notification = await NotificationService(storage).set_read(notification_id, current_user, data.is_read)
    return NotificationResponse.model_validate(notification)


@router.delete(
    "/{notification_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete notification",
)
async def delete_notification(
    notification_id: int,
    current_user: User = Depends(require_permission(Permission.manage_notifications)),
    storage: Storage = Depends(get_storage),
):
    await NotificationService(storage).delete(notification_id, current_user)
