from __future__ import annotations

import logging
import threading

from ..core.errors import DuplicateBarcodeError, UnknownExtinguisherError
from ..schemas import ExtinguisherCreate, FireExtinguisher, MaintenanceLog, MaintenanceLogEntry
from .base import Storage, new_id, order_logs, utcnow

logger = logging.getLogger(__name__)


class MemoryStorage(Storage):
    """Volatile, process-local storage. Everything is lost on restart."""

    name = "memory"

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_id: dict[str, FireExtinguisher] = {}
        self._by_barcode: dict[str, str] = {}
        self._logs: dict[str, list[MaintenanceLog]] = {}

    def get(self, barcode: str) -> FireExtinguisher | None:
        with self._lock:
            extinguisher_id = self._by_barcode.get(barcode)
            return self._by_id.get(extinguisher_id) if extinguisher_id else None

    def get_by_id(self, extinguisher_id: str) -> FireExtinguisher | None:
        with self._lock:
            return self._by_id.get(extinguisher_id)

    def create(self, data: ExtinguisherCreate) -> FireExtinguisher:
        with self._lock:
            if data.barcode in self._by_barcode:
                raise DuplicateBarcodeError()
            record = FireExtinguisher(id=new_id(), created_at=utcnow(), **data.model_dump())
            self._by_id[record.id] = record
            self._by_barcode[record.barcode] = record.id
            self._logs[record.id] = []
        logger.info("extinguisher.created", extra={"extra_data": {"barcode": record.barcode, "backend": self.name}})
        return record

    def list(self) -> list[FireExtinguisher]:
        with self._lock:
            return list(self._by_id.values())

    def append(self, extinguisher_id: str, entry: MaintenanceLogEntry) -> MaintenanceLog:
        with self._lock:
            if extinguisher_id not in self._by_id:
                raise UnknownExtinguisherError()
            log = MaintenanceLog(
                id=new_id(),
                extinguisher_id=extinguisher_id,
                date_work_done=entry.date_work_done,
                remarks=entry.remarks,
                user=entry.user,
                created_at=utcnow(),
            )
            self._logs[extinguisher_id].append(log)
        logger.info(
            "maintenance_log.appended",
            extra={"extra_data": {"extinguisher_id": extinguisher_id, "backend": self.name}},
        )
        return log

    def list_for(self, extinguisher_id: str) -> list[MaintenanceLog]:
        with self._lock:
            logs = list(self._logs.get(extinguisher_id, ()))
        return order_logs(logs)
