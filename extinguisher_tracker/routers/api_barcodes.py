from __future__ import annotations

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import PlainTextResponse, Response

from ..core.barcodes import generate_batch, normalize_barcode, share_message
from ..core.errors import ValidationError
from ..core.settings import AppSettings
from ..deps import get_app_settings, get_storage
from ..schemas import BatchRequest, BatchResponse, Resolution, ResolutionOut
from ..services import qr
from ..services.resolver import next_path, resolve
from ..services.scanner import decode_image
from ..stores import Storage

router = APIRouter(prefix="/api", tags=["barcodes"])


def _out(resolution: Resolution) -> ResolutionOut:
    return ResolutionOut(**resolution.model_dump(), next=next_path(resolution))


@router.post("/barcodes/batch", response_model=BatchResponse)
def api_batch(payload: BatchRequest, settings: AppSettings = Depends(get_app_settings)):
    return BatchResponse(barcodes=generate_batch(payload.prefix, payload.count, limit=settings.BATCH_MAX))


@router.get("/barcodes/{barcode:path}/qr.png")
def api_qr_png(barcode: str, settings: AppSettings = Depends(get_app_settings)):
    return Response(qr.render_png(barcode, box_size=settings.QR_BOX_SIZE), media_type="image/png")


@router.get("/barcodes/{barcode:path}/qr.svg")
def api_qr_svg(barcode: str, settings: AppSettings = Depends(get_app_settings)):
    return Response(qr.render_svg(barcode, box_size=settings.QR_BOX_SIZE), media_type="image/svg+xml")


@router.get("/barcodes/{barcode:path}/share.txt", response_class=PlainTextResponse)
def api_share_text(barcode: str):
    value = normalize_barcode(barcode)
    if not value:
        raise ValidationError("Please enter a barcode identifier")
    filename = f"barcode-{value.replace('/', '-')}.txt"
    return PlainTextResponse(
        share_message(value),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/resolve", response_model=ResolutionOut)
def api_resolve(barcode: str = "", storage: Storage = Depends(get_storage)):
    return _out(resolve(storage, barcode))


@router.post("/scan/image", response_model=ResolutionOut)
def api_scan_image(file: UploadFile = File(...), storage: Storage = Depends(get_storage)):
    barcode = decode_image(file.file.read())
    if not barcode:
        raise ValidationError("No QR code found in the image")
    return _out(resolve(storage, barcode))
