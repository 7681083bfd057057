"""Device-storage style backend: one JSON blob per extinguisher.

Each record lives under ``<prefix><barcode>`` and its value is the serialized
record with its maintenance logs embedded, newest appended entry first. The
key-value pairs themselves are kept in a single JSON file on disk.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from ..core.errors import DuplicateBarcodeError, StorageFailure, UnknownExtinguisherError
from ..schemas import (
    ExtinguisherCreate,
    FireExtinguisher,
    FireExtinguisherWithLogs,
    MaintenanceLog,
    MaintenanceLogEntry,
)
from .base import Storage, new_id, order_logs, utcnow

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "fe_extinguisher_"


class JsonFileKeyValue:
    """A string-to-string map persisted as one JSON object.

    Writes go to a temporary file that replaces the original, so a failed
    write leaves both the file and the in-memory view untouched.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._items = self._load()

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as exc:
            raise StorageFailure("Failed to read stored data") from exc
        if not isinstance(raw, dict):
            raise StorageFailure("Stored data is not a key-value document")
        return {str(key): value for key, value in raw.items() if isinstance(value, str)}

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def keys(self) -> list[str]:
        return list(self._items)

    def set_item(self, key: str, value: str) -> None:
        items = dict(self._items)
        items[key] = value
        self._write(items)
        self._items = items

    def _write(self, items: dict[str, str]) -> None:
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=self.path.name, suffix=".tmp", dir=self.path.parent)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(items, handle)
            os.replace(tmp_name, self.path)
        except (OSError, TypeError, ValueError) as exc:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageFailure("Failed to save data to local storage") from exc


class KeyValueStorage(Storage):
    name = "keyvalue"

    def __init__(self, kv: JsonFileKeyValue, prefix: str = DEFAULT_PREFIX) -> None:
        self.kv = kv
        self.prefix = prefix
        self._lock = threading.RLock()
        self._barcode_by_id: dict[str, str] | None = None

    @classmethod
    def from_path(cls, path: Path | str, prefix: str = DEFAULT_PREFIX) -> "KeyValueStorage":
        return cls(JsonFileKeyValue(path), prefix=prefix)

    def _key(self, barcode: str) -> str:
        return f"{self.prefix}{barcode}"

    def _read(self, barcode: str) -> FireExtinguisherWithLogs | None:
        value = self.kv.get_item(self._key(barcode))
        if value is None:
            return None
        try:
            return FireExtinguisherWithLogs.model_validate_json(value)
        except PydanticValidationError as exc:
            raise StorageFailure("Failed to retrieve extinguisher data") from exc

    def _save(self, record: FireExtinguisherWithLogs) -> None:
        self.kv.set_item(self._key(record.barcode), record.model_dump_json(by_alias=True))

    def _index(self) -> dict[str, str]:
        if self._barcode_by_id is None:
            index: dict[str, str] = {}
            for key in self.kv.keys():
                if not key.startswith(self.prefix):
                    continue
                record = self._read(key[len(self.prefix):])
                if record is not None:
                    index[record.id] = record.barcode
            self._barcode_by_id = index
        return self._barcode_by_id

    @staticmethod
    def _plain(record: FireExtinguisherWithLogs) -> FireExtinguisher:
        return FireExtinguisher(**record.model_dump(exclude={"maintenance_logs"}))

    def get(self, barcode: str) -> FireExtinguisher | None:
        with self._lock:
            record = self._read(barcode)
        return self._plain(record) if record else None

    def get_by_id(self, extinguisher_id: str) -> FireExtinguisher | None:
        with self._lock:
            barcode = self._index().get(extinguisher_id)
            record = self._read(barcode) if barcode else None
        return self._plain(record) if record else None

    def create(self, data: ExtinguisherCreate) -> FireExtinguisher:
        with self._lock:
            if self.kv.get_item(self._key(data.barcode)) is not None:
                raise DuplicateBarcodeError()
            record = FireExtinguisherWithLogs(
                id=new_id(),
                created_at=utcnow(),
                maintenance_logs=[],
                **data.model_dump(),
            )
            self._save(record)
            self._index()[record.id] = record.barcode
        logger.info("extinguisher.created", extra={"extra_data": {"barcode": record.barcode, "backend": self.name}})
        return self._plain(record)

    def list(self) -> list[FireExtinguisher]:
        with self._lock:
            barcodes = list(self._index().values())
            records = [self._read(barcode) for barcode in barcodes]
        return [self._plain(record) for record in records if record is not None]

    def append(self, extinguisher_id: str, entry: MaintenanceLogEntry) -> MaintenanceLog:
        with self._lock:
            barcode = self._index().get(extinguisher_id)
            record = self._read(barcode) if barcode else None
            if record is None:
                raise UnknownExtinguisherError()
            log = MaintenanceLog(
                id=new_id(),
                extinguisher_id=extinguisher_id,
                date_work_done=entry.date_work_done,
                remarks=entry.remarks,
                user=entry.user,
                created_at=utcnow(),
            )
            updated = record.model_copy(update={"maintenance_logs": [log, *record.maintenance_logs]})
            self._save(updated)
        logger.info(
            "maintenance_log.appended",
            extra={"extra_data": {"extinguisher_id": extinguisher_id, "backend": self.name}},
        )
        return log

    def list_for(self, extinguisher_id: str) -> list[MaintenanceLog]:
        with self._lock:
            barcode = self._index().get(extinguisher_id)
            record = self._read(barcode) if barcode else None
        if record is None:
            return []
        # Stored newest-first; ``order_logs`` wants insertion order.
        return order_logs(reversed(record.maintenance_logs))
