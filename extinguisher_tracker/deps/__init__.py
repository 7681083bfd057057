from __future__ import annotations

from .storage import get_app_settings, get_storage, get_templates

__all__ = ["get_app_settings", "get_storage", "get_templates"]
