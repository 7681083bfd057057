"""Error taxonomy and the JSON error envelope.

Every failure a user can trigger maps to one of the exceptions below. The HTTP
layer converts them into ``{"error": ..., "details": ...}`` bodies and the HTML
layer into inline form messages, so no error ends the session.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class TrackerError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, *, details: Any | None = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationError(TrackerError):
    """A required field is missing or malformed; nothing was written."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid data"


class UnknownExtinguisherError(ValidationError):
    default_message = "Fire extinguisher does not exist"


class DuplicateBarcodeError(TrackerError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Barcode already exists"


class NotFoundError(TrackerError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Fire extinguisher not found"


class StorageFailure(TrackerError):
    default_message = "Failed to save data"


class CameraUnavailable(TrackerError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "No camera found on this device"


class ErrorEnvelope(JSONResponse):
    def __init__(
        self,
        *,
        status_code: int,
        error: str,
        details: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        payload: dict[str, Any] = {"error": error}
        if details is not None:
            payload["details"] = details
        super().__init__(payload, status_code=status_code, headers=headers)


async def tracker_exception_handler(request: Request, exc: TrackerError):
    if exc.status_code >= 500:
        logger.error(
            "request.failed",
            exc_info=exc,
            extra={"extra_data": {"path": request.url.path, "error": exc.message}},
        )
    return ErrorEnvelope(status_code=exc.status_code, error=exc.message, details=exc.details)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    message = detail if isinstance(detail, str) else "Error"
    details = detail if isinstance(detail, (dict, list)) else None
    return ErrorEnvelope(status_code=exc.status_code, error=message, details=details, headers=exc.headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return ErrorEnvelope(
        status_code=status.HTTP_400_BAD_REQUEST,
        error="Invalid data",
        details=jsonable_encoder(exc.errors()),
    )
