from __future__ import annotations

from datetime import date, datetime

from pydantic import Field, field_validator

from ..core.barcodes import normalize_barcode
from .base import CamelModel, require_text
from .maintenance import MaintenanceLog


class ExtinguisherCreate(CamelModel):
    barcode: str
    extinguisher_no: str
    location: str
    date_of_testing: date

    @field_validator("barcode", mode="before")
    @classmethod
    def clean_barcode(cls, value: object) -> object:
        if isinstance(value, str):
            normalized = normalize_barcode(value)
            if not normalized:
                raise ValueError("Barcode is required")
            return normalized
        return value

    @field_validator("extinguisher_no")
    @classmethod
    def check_extinguisher_no(cls, value: str) -> str:
        return require_text(value, "Fire Extinguisher No")

    @field_validator("location")
    @classmethod
    def check_location(cls, value: str) -> str:
        return require_text(value, "Location")


class FireExtinguisher(CamelModel):
    id: str
    barcode: str
    extinguisher_no: str
    location: str
    date_of_testing: date
    created_at: datetime


class FireExtinguisherWithLogs(FireExtinguisher):
    maintenance_logs: list[MaintenanceLog] = Field(default_factory=list)
