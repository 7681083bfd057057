"""HTML pages: scan, register, and the maintenance history of one unit.

Every failure here is turned into an inline message on the page the user was
looking at; none of them escape as a JSON error.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError as PydanticValidationError

from ..core.barcodes import BATCH_MAX, generate_batch, normalize_barcode, share_links
from ..core.errors import DuplicateBarcodeError, TrackerError
from ..core.settings import AppSettings
from ..deps import get_app_settings, get_storage, get_templates
from ..schemas import ExtinguisherCreate, MaintenanceLogEntry
from ..services.resolver import next_path, register, resolve
from ..services.scanner import decode_image
from ..stores import Storage

logger = logging.getLogger(__name__)

router = APIRouter(include_in_schema=False)


def _first_error(exc: PydanticValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Please fill in all required fields"
    first = errors[0]
    message = str(first.get("msg", ""))
    if message.startswith("Value error, "):
        return message[len("Value error, "):]
    field = ".".join(str(part) for part in first.get("loc", ()))
    return f"{field}: {message}" if field else message


def _redirect(path: str) -> RedirectResponse:
    return RedirectResponse(url=path, status_code=303)


def _home(
    request: Request,
    templates: Jinja2Templates,
    storage: Storage,
    settings: AppSettings,
    *,
    status_code: int = 200,
    **context: object,
) -> HTMLResponse:
    base: dict[str, object] = {
        "extinguishers": storage.list(),
        "batch_prefix": "FE-",
        "batch_count": 5,
        "batch_max": settings.BATCH_MAX,
        "barcodes": [],
        "qr_value": None,
        "error": None,
        "message": None,
    }
    base.update(context)
    return templates.TemplateResponse(request, "home.html", base, status_code=status_code)


@router.get("/", response_class=HTMLResponse)
def home_page(
    request: Request,
    qr: str = "",
    storage: Storage = Depends(get_storage),
    templates: Jinja2Templates = Depends(get_templates),
    settings: AppSettings = Depends(get_app_settings),
):
    value = normalize_barcode(qr)
    return _home(
        request,
        templates,
        storage,
        settings,
        qr_value=value,
        share=share_links(value) if value else None,
    )


@router.get("/batch", response_class=HTMLResponse)
def batch_page(
    request: Request,
    prefix: str = "FE-",
    count: int = 5,
    storage: Storage = Depends(get_storage),
    templates: Jinja2Templates = Depends(get_templates),
    settings: AppSettings = Depends(get_app_settings),
):
    try:
        barcodes = generate_batch(prefix, count, limit=settings.BATCH_MAX or BATCH_MAX)
    except TrackerError as exc:
        return _home(
            request, templates, storage, settings,
            status_code=400, error=exc.message, batch_prefix=prefix, batch_count=count,
        )
    return _home(
        request, templates, storage, settings,
        barcodes=barcodes,
        batch_prefix=prefix,
        batch_count=count,
        message=f"Generated {len(barcodes)} QR codes successfully!",
    )


@router.get("/scan", response_class=HTMLResponse)
def scan_lookup(
    request: Request,
    barcode: str = "",
    storage: Storage = Depends(get_storage),
    templates: Jinja2Templates = Depends(get_templates),
    settings: AppSettings = Depends(get_app_settings),
):
    try:
        resolution = resolve(storage, barcode)
    except TrackerError as exc:
        return _home(request, templates, storage, settings, status_code=exc.status_code, error=exc.message)
    return _redirect(next_path(resolution))


@router.post("/scan/image", response_class=HTMLResponse)
def scan_upload(
    request: Request,
    file: UploadFile = File(...),
    storage: Storage = Depends(get_storage),
    templates: Jinja2Templates = Depends(get_templates),
    settings: AppSettings = Depends(get_app_settings),
):
    try:
        barcode = decode_image(file.file.read())
        if not barcode:
            return _home(
                request, templates, storage, settings,
                status_code=400, error="No QR code found in the image",
            )
        resolution = resolve(storage, barcode)
    except TrackerError as exc:
        return _home(request, templates, storage, settings, status_code=exc.status_code, error=exc.message)
    return _redirect(next_path(resolution))


@router.get("/register/{barcode:path}", response_class=HTMLResponse)
def register_page(
    request: Request,
    barcode: str,
    storage: Storage = Depends(get_storage),
    templates: Jinja2Templates = Depends(get_templates),
    settings: AppSettings = Depends(get_app_settings),
):
    try:
        resolution = resolve(storage, barcode)
    except TrackerError as exc:
        return _home(request, templates, storage, settings, status_code=exc.status_code, error=exc.message)
    if resolution.found:
        return _redirect(next_path(resolution))
    context = {"barcode": resolution.barcode, "form": {}, "error": None}
    return templates.TemplateResponse(request, "register.html", context)


@router.post("/register/{barcode:path}", response_class=HTMLResponse)
def register_submit(
    request: Request,
    barcode: str,
    extinguisher_no: str = Form(""),
    location: str = Form(""),
    date_of_testing: str = Form(""),
    storage: Storage = Depends(get_storage),
    templates: Jinja2Templates = Depends(get_templates),
):
    form = {"extinguisher_no": extinguisher_no, "location": location, "date_of_testing": date_of_testing}
    try:
        payload = ExtinguisherCreate(barcode=barcode, **form)
        resolution = register(storage, payload)
    except PydanticValidationError as exc:
        error, status_code = _first_error(exc), 400
    except DuplicateBarcodeError:
        return _redirect(next_path(resolve(storage, barcode)))
    except TrackerError as exc:
        error, status_code = exc.message, exc.status_code
    else:
        return _redirect(next_path(resolution))
    context = {"barcode": normalize_barcode(barcode) or barcode, "form": form, "error": error}
    return templates.TemplateResponse(request, "register.html", context, status_code=status_code)


def _log_page(
    request: Request,
    templates: Jinja2Templates,
    storage: Storage,
    barcode: str,
    *,
    form: dict[str, str] | None = None,
    error: str | None = None,
    message: str | None = None,
    status_code: int = 200,
) -> HTMLResponse:
    normalized = normalize_barcode(barcode)
    extinguisher = storage.get_with_logs(normalized) if normalized else None
    if extinguisher is None:
        return templates.TemplateResponse(
            request, "not_found.html", {"barcode": normalized or barcode}, status_code=404
        )
    context = {
        "extinguisher": extinguisher,
        "form": form or {},
        "error": error,
        "message": message,
    }
    return templates.TemplateResponse(request, "maintenance_log.html", context, status_code=status_code)


@router.get("/maintenance-log/{barcode:path}", response_class=HTMLResponse)
def maintenance_log_page(
    request: Request,
    barcode: str,
    storage: Storage = Depends(get_storage),
    templates: Jinja2Templates = Depends(get_templates),
):
    return _log_page(request, templates, storage, barcode)


@router.post("/maintenance-log/{barcode:path}", response_class=HTMLResponse)
def maintenance_log_submit(
    request: Request,
    barcode: str,
    date_work_done: str = Form(""),
    remarks: str = Form(""),
    user: str = Form(""),
    storage: Storage = Depends(get_storage),
    templates: Jinja2Templates = Depends(get_templates),
):
    form = {"date_work_done": date_work_done, "remarks": remarks, "user": user}
    normalized = normalize_barcode(barcode)
    record = storage.get(normalized) if normalized else None
    if record is None:
        return _log_page(request, templates, storage, barcode)
    try:
        storage.append(record.id, MaintenanceLogEntry(**form))
    except PydanticValidationError as exc:
        return _log_page(request, templates, storage, barcode, form=form, error=_first_error(exc), status_code=400)
    except TrackerError as exc:
        return _log_page(
            request, templates, storage, barcode, form=form, error=exc.message, status_code=exc.status_code
        )
    return _log_page(request, templates, storage, barcode, message="Maintenance log added successfully!")
