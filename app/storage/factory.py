"""Picks the storage backend configured by STORAGE_BACKEND."""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from app.core.config import settings
from app.core.database import get_async_session_maker_instance
from app.storage.base import Storage
from app.storage.database import DatabaseStorage
from app.storage.memory import MemStorage

logger = logging.getLogger(__name__)

_memory_storage: Optional[MemStorage] = None


def get_memory_storage() -> MemStorage:
    """Process-wide in-memory store; state lives as long as the process."""
    global _memory_storage
    if _memory_storage is None:
        logger.info("Using in-memory storage backend")
        _memory_storage = MemStorage()
    return _memory_storage


@asynccontextmanager
async def open_storage() -> AsyncIterator[Storage]:
    """Storage for one unit of work (a request or a cron run)."""
    if settings.STORAGE_BACKEND == "memory":
        yield get_memory_storage()
        return
    async_session_maker = get_async_session_maker_instance()
    async with async_session_maker() as session:
        yield DatabaseStorage(session)
