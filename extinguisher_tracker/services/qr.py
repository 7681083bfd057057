"""QR label rendering on top of the ``qrcode`` package."""

from __future__ import annotations

import io

import qrcode
import qrcode.image.svg
from qrcode.constants import ERROR_CORRECT_M

from ..core.barcodes import normalize_barcode
from ..core.errors import ValidationError


def _build(barcode: str, box_size: int) -> qrcode.QRCode:
    value = normalize_barcode(barcode)
    if not value:
        raise ValidationError("Please enter a barcode identifier")
    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_M, box_size=box_size, border=4)
    qr.add_data(value)
    qr.make(fit=True)
    return qr


def render_png(barcode: str, box_size: int = 10) -> bytes:
    buffer = io.BytesIO()
    _build(barcode, box_size).make_image(fill_color="black", back_color="white").save(buffer)
    return buffer.getvalue()


def render_svg(barcode: str, box_size: int = 10) -> bytes:
    buffer = io.BytesIO()
    _build(barcode, box_size).make_image(image_factory=qrcode.image.svg.SvgPathImage).save(buffer)
    return buffer.getvalue()
