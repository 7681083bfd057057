from __future__ import annotations

from fastapi import APIRouter, Depends

from ..deps import get_storage
from ..schemas import MaintenanceLog, MaintenanceLogCreate
from ..stores import Storage

router = APIRouter(prefix="/api/maintenance-logs", tags=["maintenance"])


@router.post("", response_model=MaintenanceLog, status_code=201)
def api_append(payload: MaintenanceLogCreate, storage: Storage = Depends(get_storage)):
    return storage.append(payload.extinguisher_id, payload)
