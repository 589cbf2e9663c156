"""Staff-facing notifications (dashboard alerts), e.g. spare vehicles awaiting assignment."""
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String

from app.core.database import Base
from app.models.enums import NotificationPriority


class CustomNotification(Base):
    __tablename__ = "custom_notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String, nullable=False)
    description = Column(String, nullable=False)
    date = Column(String(10), nullable=False)  # ISO date the alert is about
    type = Column(String(50), default="custom", nullable=False, index=True)
    is_read = Column(Boolean, default=False, nullable=False)
    link = Column(String, nullable=True)
    icon = Column(String, nullable=True)
    priority = Column(String(10), default=NotificationPriority.normal.value, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)  # NULL = system-wide
    reservation_id = Column(Integer, ForeignKey("reservations.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
