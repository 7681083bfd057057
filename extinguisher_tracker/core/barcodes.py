"""Barcode normalisation and generation helpers.

Codes reach us typed into a form, decoded from a camera frame, or pulled out of a
URL. The web framework undoes URL escaping exactly once before a value gets
here, so a printed ``50%25`` stays ``50%25``. These helpers make sure every
source ends up as the same lookup key, and produce the sequential identifiers
printed on new QR labels.
"""

from __future__ import annotations

import re
from urllib.parse import quote

from .errors import ValidationError

__all__ = [
    "BATCH_MAX",
    "BATCH_MIN",
    "SEQUENCE_WIDTH",
    "generate_batch",
    "normalize_barcode",
    "share_links",
    "share_message",
]

BATCH_MIN = 1
BATCH_MAX = 200
SEQUENCE_WIDTH = 3

_WHITESPACE_RE = re.compile(r"\s+")


def _strip_and_collapse(value: str) -> str:
    """Trim surrounding whitespace and squash repeated spaces into one."""

    return _WHITESPACE_RE.sub(" ", value.strip())


def normalize_barcode(raw: str | None) -> str | None:
    """Return the canonical lookup key for a scanned or typed barcode.

    * Outer whitespace is trimmed and internal runs collapse to one space.
    * Case is preserved: printed labels are case sensitive.
    """

    if raw is None:
        return None

    cleaned = _strip_and_collapse(raw)
    return cleaned or None


def generate_batch(prefix: str, count: int, *, limit: int = BATCH_MAX) -> list[str]:
    """Build ``count`` sequential codes such as ``FE-001`` .. ``FE-005``.

    The range check happens before anything is generated so a rejected request
    never yields a partial batch.
    """

    if isinstance(count, bool) or not isinstance(count, int):
        raise ValidationError(f"Batch count must be between {BATCH_MIN} and {limit}")
    if count < BATCH_MIN or count > limit:
        raise ValidationError(f"Batch count must be between {BATCH_MIN} and {limit}")
    prefix = prefix or ""
    return [f"{prefix}{str(number).zfill(SEQUENCE_WIDTH)}" for number in range(1, count + 1)]


def share_message(barcode: str) -> str:
    return f"Fire Extinguisher Barcode: {barcode}"


def share_links(barcode: str) -> dict[str, str]:
    """Prebuilt links for handing a code to someone else."""

    message = quote(share_message(barcode))
    return {
        "email": f"mailto:?subject={quote('Fire Extinguisher Barcode')}&body={message}",
        "whatsapp": f"https://wa.me/?text={message}",
    }
