"""The storage contract shared by every backend.

A ``Storage`` is built once at startup (see :func:`build_storage`) and handed
to whoever needs it. Two logical stores live behind it:

* the identifier store, mapping a barcode to exactly one extinguisher record;
* the maintenance log store, an append-only list of entries per record.

Neither exposes update or delete operations.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Iterable

from ..schemas import (
    ExtinguisherCreate,
    FireExtinguisher,
    FireExtinguisherWithLogs,
    MaintenanceLog,
    MaintenanceLogEntry,
)


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _sort_key(log: MaintenanceLog) -> tuple:
    created = log.created_at
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return (log.date_work_done, created)


def order_logs(logs: Iterable[MaintenanceLog]) -> list[MaintenanceLog]:
    """Newest work first; equal dates fall back to newest creation time.

    ``logs`` must arrive in insertion order: the sort is stable over the
    reversed input, so entries that tie on both keys come out newest-inserted
    first.
    """

    return sorted(reversed(list(logs)), key=_sort_key, reverse=True)


class Storage(ABC):
    """Identifier store plus maintenance log store behind one interface."""

    name = "abstract"

    # ---- identifier store

    @abstractmethod
    def get(self, barcode: str) -> FireExtinguisher | None:
        """Exact match on an already normalised barcode; ``None`` when unknown."""

    @abstractmethod
    def get_by_id(self, extinguisher_id: str) -> FireExtinguisher | None:
        ...

    @abstractmethod
    def create(self, data: ExtinguisherCreate) -> FireExtinguisher:
        """Persist a new record.

        Raises ``DuplicateBarcodeError`` when the barcode is taken. The check
        and the insert happen as one step so two concurrent registrations of
        the same code cannot both succeed.
        """

    @abstractmethod
    def list(self) -> list[FireExtinguisher]:
        ...

    # ---- maintenance log store

    @abstractmethod
    def append(self, extinguisher_id: str, entry: MaintenanceLogEntry) -> MaintenanceLog:
        """Store a new log entry; ``UnknownExtinguisherError`` for a missing record."""

    @abstractmethod
    def list_for(self, extinguisher_id: str) -> list[MaintenanceLog]:
        ...

    # ---- composite

    def get_with_logs(self, barcode: str) -> FireExtinguisherWithLogs | None:
        record = self.get(barcode)
        if record is None:
            return None
        return FireExtinguisherWithLogs(
            **record.model_dump(),
            maintenance_logs=self.list_for(record.id),
        )

    def close(self) -> None:
        """Release any resources held by the backend."""
