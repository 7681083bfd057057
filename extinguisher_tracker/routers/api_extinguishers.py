from __future__ import annotations

from fastapi import APIRouter, Depends

from ..core.barcodes import normalize_barcode
from ..core.errors import NotFoundError
from ..deps import get_storage
from ..schemas import ExtinguisherCreate, FireExtinguisher, FireExtinguisherWithLogs, MaintenanceLog
from ..stores import Storage

router = APIRouter(prefix="/api/extinguishers", tags=["extinguishers"])


def _load(storage: Storage, barcode: str) -> FireExtinguisherWithLogs:
    normalized = normalize_barcode(barcode)
    record = storage.get_with_logs(normalized) if normalized else None
    if record is None:
        raise NotFoundError()
    return record


@router.get("", response_model=list[FireExtinguisher])
def api_list(storage: Storage = Depends(get_storage)):
    return storage.list()


@router.get("/{barcode:path}/maintenance-logs", response_model=list[MaintenanceLog])
def api_list_logs(barcode: str, storage: Storage = Depends(get_storage)):
    return _load(storage, barcode).maintenance_logs


# Barcodes may contain "/"; the suffixed route above must be matched first.
@router.get("/{barcode:path}", response_model=FireExtinguisherWithLogs)
def api_get(barcode: str, storage: Storage = Depends(get_storage)):
    return _load(storage, barcode)


@router.post("", response_model=FireExtinguisher, status_code=201)
def api_create(payload: ExtinguisherCreate, storage: Storage = Depends(get_storage)):
    return storage.create(payload)
