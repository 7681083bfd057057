from __future__ import annotations

from datetime import date, datetime

from pydantic import field_validator

from .base import CamelModel, require_text


class MaintenanceLogEntry(CamelModel):
    """The caller-supplied part of a log entry."""

    date_work_done: date
    remarks: str
    user: str

    @field_validator("remarks")
    @classmethod
    def check_remarks(cls, value: str) -> str:
        return require_text(value, "Remarks")

    @field_validator("user")
    @classmethod
    def check_user(cls, value: str) -> str:
        return require_text(value, "Technician Name")


class MaintenanceLogCreate(MaintenanceLogEntry):
    extinguisher_id: str

    @field_validator("extinguisher_id")
    @classmethod
    def check_extinguisher_id(cls, value: str) -> str:
        return require_text(value, "Extinguisher id")


class MaintenanceLog(CamelModel):
    id: str
    extinguisher_id: str
    date_work_done: date
    remarks: str
    user: str
    created_at: datetime
