from fastapi import FastAPI

from app.celltrack.api import api_router
from app.celltrack.core.config import settings
from app.celltrack.core.errors import setup_exception_handlers
from app.celltrack.core.logging import configure_logging
from app.celltrack.middleware.observability import ObservabilityMiddleware
from app.celltrack.middleware.trace import TraceIdMiddleware


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title=settings.APP_NAME)
    app.add_middleware(TraceIdMiddleware)
    app.add_middleware(ObservabilityMiddleware)
    setup_exception_handlers(app)
    app.include_router(api_router)
    return app


app = create_app()
