"""FastAPI dependencies handing out the objects built in ``create_app``."""

from __future__ import annotations

from fastapi import Request
from fastapi.templating import Jinja2Templates

from ..core.settings import AppSettings
from ..stores import Storage


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_app_settings(request: Request) -> AppSettings:
    return request.app.state.settings


def get_templates(request: Request) -> Jinja2Templates:
    return request.app.state.templates
