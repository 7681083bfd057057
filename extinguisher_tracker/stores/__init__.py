from __future__ import annotations

import logging

from ..core.settings import AppSettings
from .base import Storage, order_logs
from .database import DatabaseStorage
from .keyvalue import JsonFileKeyValue, KeyValueStorage
from .memory import MemoryStorage

logger = logging.getLogger(__name__)

__all__ = [
    "DatabaseStorage",
    "JsonFileKeyValue",
    "KeyValueStorage",
    "MemoryStorage",
    "Storage",
    "build_storage",
    "order_logs",
]


def build_storage(settings: AppSettings) -> Storage:
    """Pick the backend named by ``STORAGE_BACKEND``."""

    backend = settings.STORAGE_BACKEND
    if backend == "memory":
        storage: Storage = MemoryStorage()
    elif backend == "keyvalue":
        storage = KeyValueStorage.from_path(settings.kv_path, prefix=settings.KV_PREFIX)
    elif backend == "database":
        storage = DatabaseStorage.from_url(settings.db_url)
    else:
        raise ValueError(f"Unknown storage backend: {backend!r}")
    logger.info("storage.ready", extra={"extra_data": {"backend": storage.name}})
    return storage
