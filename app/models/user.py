from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String

from app.core.database import Base
from app.models.enums import Role


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=True)
    full_name = Column(String, nullable=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, default=Role.user.value, nullable=False)
    permissions = Column(JSON, default=list, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def has_permission(self, *permissions: str) -> bool:
        """Admins hold every permission; others need at least one of the given ones."""
        if self.role == Role.admin.value:
            return True
        granted = set(self.permissions or [])
        return any(p in granted for p in permissions)
