"""Jinja2 environment for the HTML pages, with our display filters."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo

from fastapi.templating import Jinja2Templates

from .settings import AppSettings


def _to_dt(value: Any, tz: ZoneInfo | None) -> datetime | None:
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value:
        try:
            dt = datetime.fromisoformat(value)
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(tz) if tz else dt


def _fmt_date(value: Any, fmt: str = "%b %d, %Y") -> str:
    """Render a calendar date the way the labels print it (``Jun 01, 2024``)."""

    if isinstance(value, date) and not isinstance(value, datetime):
        return value.strftime(fmt)
    if isinstance(value, str):
        try:
            return date.fromisoformat(value).strftime(fmt)
        except ValueError:
            return value
    return ""


def get_templates(settings: AppSettings) -> Jinja2Templates:
    tz = ZoneInfo(settings.TZ) if settings.TZ else None

    def fmt_dt(value: Any, fmt: str = "%Y-%m-%d %I:%M %p") -> str:
        dt = _to_dt(value, tz)
        return dt.strftime(fmt) if dt else ""

    templates = Jinja2Templates(directory=str(settings.templates_dir))
    templates.env.filters["fmt_dt"] = fmt_dt
    templates.env.filters["fmt_date"] = _fmt_date
    templates.env.globals["app_name"] = settings.APP_NAME
    return templates
