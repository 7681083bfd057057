from __future__ import annotations

from .barcode import BatchRequest, BatchResponse, Resolution, ResolutionOut, ResolutionOutcome
from .extinguisher import ExtinguisherCreate, FireExtinguisher, FireExtinguisherWithLogs
from .maintenance import MaintenanceLog, MaintenanceLogCreate, MaintenanceLogEntry

__all__ = [
    "BatchRequest",
    "BatchResponse",
    "ExtinguisherCreate",
    "FireExtinguisher",
    "FireExtinguisherWithLogs",
    "MaintenanceLog",
    "MaintenanceLogCreate",
    "MaintenanceLogEntry",
    "Resolution",
    "ResolutionOut",
    "ResolutionOutcome",
]
