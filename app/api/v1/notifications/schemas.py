from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.models.enums import NotificationPriority


class CreateNotificationRequest(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    date: Optional[str] = Field(None, description="YYYY-MM-DD the alert is about; defaults to today")
    link: Optional[str] = None
    icon: Optional[str] = None
    priority: NotificationPriority = NotificationPriority.normal
    user_id: Optional[int] = Field(None, description="Target user; empty = everyone")
    reservation_id: Optional[int] = None


class SetReadRequest(BaseModel):
    is_read: bool = True


class NotificationResponse(BaseModel):
    id: int
    title: str
    description: str
    date: str
    type: str
    is_read: bool
    link: Optional[str] = None
    icon: Optional[str] = None
    priority: str
    user_id: Optional[int] = None
    reservation_id: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
