"""Scan-to-record routing.

A scanned or typed code either belongs to a registered extinguisher, in which
case the caller shows its maintenance history, or it does not, in which case
the caller opens the registration form pre-filled with the code. Registering
then lands on the history view for the new record.
"""

from __future__ import annotations

import logging
from urllib.parse import quote

from ..core.barcodes import normalize_barcode
from ..core.errors import ValidationError
from ..schemas import ExtinguisherCreate, Resolution, ResolutionOutcome
from ..stores import Storage

logger = logging.getLogger(__name__)


def resolve(storage: Storage, raw: str | None) -> Resolution:
    barcode = normalize_barcode(raw)
    if not barcode:
        raise ValidationError("Please enter a barcode to scan")
    record = storage.get_with_logs(barcode)
    outcome = ResolutionOutcome.FOUND if record else ResolutionOutcome.NOT_FOUND
    logger.info("resolver.outcome", extra={"extra_data": {"barcode": barcode, "outcome": outcome.value}})
    return Resolution(outcome=outcome, barcode=barcode, extinguisher=record)


def register(storage: Storage, data: ExtinguisherCreate) -> Resolution:
    """Create the record, then resolve it again so the flow continues as FOUND."""

    storage.create(data)
    return resolve(storage, data.barcode)


def next_path(resolution: Resolution) -> str:
    """UI location the caller should move to for this outcome."""

    segment = quote(resolution.barcode, safe="")
    if resolution.found:
        return f"/maintenance-log/{segment}"
    return f"/register/{segment}"
