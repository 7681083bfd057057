from prometheus_fastapi_instrumentator import Instrumentator

from . import create_app
from .core.logging import configure_logging
from .core.settings import get_settings

settings = get_settings()
configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)
app = create_app(settings)
Instrumentator().instrument(app).expose(app, include_in_schema=False)


def run() -> None:
    import uvicorn

    uvicorn.run("extinguisher_tracker.main:app", host=settings.HOST, port=settings.PORT)
