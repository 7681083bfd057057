from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel

from .base import CamelModel
from .extinguisher import FireExtinguisherWithLogs


class BatchRequest(BaseModel):
    prefix: str = "FE-"
    count: int = 5


class BatchResponse(BaseModel):
    barcodes: list[str]


class ResolutionOutcome(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"


class Resolution(CamelModel):
    outcome: ResolutionOutcome
    barcode: str
    extinguisher: Optional[FireExtinguisherWithLogs] = None

    @property
    def found(self) -> bool:
        return self.outcome is ResolutionOutcome.FOUND


class ResolutionOut(Resolution):
    next: str
