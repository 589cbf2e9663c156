"""
Startup utilities for the application.
"""
import logging

from sqlalchemy.exc import OperationalError, ProgrammingError

from app.core.config import settings
from app.core.database import Base, engine
from app.core.security import get_password_hash
from app.models import customer, notification, reservation, user, vehicle  # noqa: F401 (register tables)
from app.models.enums import Role
from app.storage.factory import open_storage

logger = logging.getLogger(__name__)


async def ensure_tables():
    """Create missing tables for the database backend (local SQLite runs without alembic)."""
    if settings.STORAGE_BACKEND != "database":
        return
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except (OperationalError, ProgrammingError) as e:
        logger.warning("Could not ensure tables: %s. Run 'alembic upgrade head'.", e)


async def ensure_default_admin():
    """
    Check if any user exists. If not, create the default admin from
    DEFAULT_ADMIN_USERNAME / DEFAULT_ADMIN_PASSWORD.
    """
    try:
        async with open_storage() as storage:
            user_count = await storage.count_users()
            if user_count:
                logger.info("Found %s user(s). Skipping default admin creation.", user_count)
                return
            logger.info("No user found. Creating default admin...")
            await storage.create_user({
                "username": settings.DEFAULT_ADMIN_USERNAME,
                "email": settings.DEFAULT_ADMIN_EMAIL,
                "full_name": "Administrator",
                "password_hash": get_password_hash(settings.DEFAULT_ADMIN_PASSWORD),
                "role": Role.admin.value,
                "permissions": [],
                "is_active": True,
            })
            logger.info("Default admin created with username: %s", settings.DEFAULT_ADMIN_USERNAME)
    except (OperationalError, ProgrammingError) as e:
        # Don't block startup; tables are created by 'alembic upgrade head'
        logger.warning(
            "Database error during admin check/creation: %s. "
            "Please ensure the database is reachable and migrations are run.", e
        )
