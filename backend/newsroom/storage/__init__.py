"""Persistence backends and the request-scoped storage dependency."""

from fastapi import Depends
from sqlalchemy.orm import Session

from newsroom.config import settings
from newsroom.database import get_db
from newsroom.storage.base import Storage, StorageError, RecordNotFound, DuplicateRecord
from newsroom.storage.memory import MemoryStorage
from newsroom.storage.sql import SQLStorage

# Shared by every request when STORAGE_BACKEND=memory
memory_storage = MemoryStorage()


def get_storage(db: Session = Depends(get_db)) -> Storage:
    """
    Dependency returning the configured storage backend.

    Usage in routes:
        @router.get("/channels")
        def list_channels(storage: Storage = Depends(get_storage)):
            ...
    """
    if settings.storage_backend == "memory":
        return memory_storage
    return SQLStorage(db)


__all__ = [
    "Storage",
    "StorageError",
    "RecordNotFound",
    "DuplicateRecord",
    "MemoryStorage",
    "SQLStorage",
    "memory_storage",
    "get_storage",
]
