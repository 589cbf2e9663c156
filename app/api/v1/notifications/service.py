from typing import List, Optional

from app.api.v1.notifications.schemas import CreateNotificationRequest
from app.core.dates import parse_date, today_iso
from app.core.exceptions import AppException
from app.models.enums import NotificationType
from app.models.notification import CustomNotification
from app.models.user import User
from app.storage.base import Storage


def visible_to(notification: CustomNotification, user: User) -> bool:
    return notification.user_id is None or notification.user_id == user.id


class NotificationService:
    def __init__(self, storage: Storage):
        self.storage = storage

    async def list_for_user(self, user: User, unread_only: bool = False, type: Optional[str] = None) -> List[CustomNotification]:
        if type:
            items = await self.storage.get_custom_notifications_by_type(type)
            if unread_only:
                items = [n for n in items if not n.is_read]
        else:
            items = await self.storage.get_all_custom_notifications(unread_only=unread_only)
        return [n for n in items if visible_to(n, user)]

    async def get_for_user(self, notification_id: int, user: User) -> CustomNotification:
        notification = await self.storage.get_custom_notification(notification_id)
        if notification is None or not visible_to(notification, user):
            AppException().raise_404(f"Notification with id {notification_id} not found")
        return notification

    async def create(self, data: CreateNotificationRequest) -> CustomNotification:
        payload = data.model_dump()
        payload["priority"] = data.priority.value
        payload["date"] = parse_date(data.date).isoformat() if data.date else today_iso()
        payload["type"] = NotificationType.custom.value
        if data.user_id is not None and await self.storage.get_user(data.user_id) is None:
            AppException().raise_404(f"User with id {data.user_id} not found")
        return await self.storage.create_custom_notification(payload)

    async def set_read(self, notification_id: int, user: User, is_read: bool) -> CustomNotification:
        await self.get_for_user(notification_id, user)
        await self.storage.set_custom_notification_read(notification_id, is_read)
        return await self.storage.get_custom_notification(notification_id)

    async def delete(self, notification_id: int, user: User) -> None:
        await self.get_for_user(notification_id, user)
        await self.storage.delete_custom_notification(notification_id)
