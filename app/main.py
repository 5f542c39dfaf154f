"""FastAPI application for the realtime side of the collaboration backend.

Serves the health probes and the /ws socket endpoint. The scoped client
factory, realtime publisher and Redis relay are wired in app.core.lifespan;
domain errors from the data layer map to JSON in app.core.exception_handlers.

create_app() resolves settings when called, so tests can set env before
building an app.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.router import api_router
from app.core.config import get_settings
from app.core.exception_handlers import register_exception_handlers
from app.core.lifespan import create_lifespan
from app.shared.telemetry import setup_logging

API_PREFIX = "/api/v1"


def _cors_origins(raw: str) -> list[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def create_app() -> FastAPI:
    """Build the app: logging, exception handlers, CORS, v1 routes and a root descriptor."""
    settings = get_settings()
    setup_logging()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )
    register_exception_handlers(app)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(settings.allowed_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(api_router, prefix=API_PREFIX)

    @app.get("/", include_in_schema=False)
    def root() -> dict[str, str]:
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "health": f"{API_PREFIX}/health",
            "websocket": f"{API_PREFIX}/ws",
        }

    return app


app = create_app()
