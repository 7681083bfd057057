"""Application factory and top-level wiring for the extinguisher tracker.

``create_app`` builds one storage backend, one template environment and the
routers that use them. Nothing is kept in module globals: tests and scripts
can build as many independent apps as they like, each with its own store.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.errors import (
    TrackerError,
    http_exception_handler,
    tracker_exception_handler,
    validation_exception_handler,
)
from .core.jinja import get_templates
from .core.settings import AppSettings, get_settings
from .middlewares import RequestIdMiddleware, SecurityHeadersMiddleware
from .stores import Storage, build_storage

__version__ = "1.0.0"


def create_app(settings: AppSettings | None = None, storage: Storage | None = None) -> FastAPI:
    settings = settings or get_settings()
    storage = storage or build_storage(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            yield
        finally:
            app.state.storage.close()

    app = FastAPI(title=settings.APP_NAME, version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.storage = storage
    app.state.templates = get_templates(settings)

    app.mount("/static", StaticFiles(directory=str(settings.static_dir)), name="static")

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(TrackerError, tracker_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    from .routers import api_barcodes, api_extinguishers, api_maintenance, ui

    app.include_router(api_extinguishers.router)
    app.include_router(api_maintenance.router)
    app.include_router(api_barcodes.router)
    app.include_router(ui.router)

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, bool]:
        return {"ok": True}

    return app


__all__ = ["create_app"]
