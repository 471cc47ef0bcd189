"""Application entry point and FastAPI app factory."""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import AsyncIterator, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config.settings import Settings, settings as default_settings
from .controllers import images, schools
from .database import Database
from .errors import PersistenceError, SchoolDirectoryError
from .middleware import StructuredLoggingMiddleware, TelemetryMiddleware
from .views import HealthResponse, error_body

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def _configure_logging(app_settings: Settings) -> None:
    """Stream logs to stdout and a rotating file."""

    logging.getLogger().handlers.clear()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    log_path = Path(app_settings.log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=1_000_000,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root_logger = logging.getLogger()
    root_logger.addHandler(stdout_handler)
    root_logger.addHandler(file_handler)
    root_logger.setLevel(logging.DEBUG if app_settings.debug else logging.INFO)

    middleware_logger = logging.getLogger("school_directory.middleware.structured")
    middleware_logger.handlers.clear()
    middleware_stdout = logging.StreamHandler(sys.stdout)
    middleware_stdout.setFormatter(logging.Formatter("%(message)s"))
    middleware_logger.addHandler(middleware_stdout)
    middleware_logger.addHandler(file_handler)
    middleware_logger.setLevel(logging.INFO)
    middleware_logger.propagate = False

    for name in ("sqlalchemy.engine", "httpx", "httpcore", "multipart"):
        logging.getLogger(name).setLevel(logging.WARNING)


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(SchoolDirectoryError)
    async def domain_exception_handler(
        request: Request, exc: SchoolDirectoryError
    ) -> JSONResponse:
        if isinstance(exc, PersistenceError):
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.message),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        detail = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return JSONResponse(status_code=400, content=error_body(str(detail)))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content=error_body(
                    f"Route {request.url.path} not found",
                    "The requested endpoint does not exist",
                ),
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=error_body("Internal server error occurred. Please try again."),
        )


def create_app(
    app_settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    *,
    configure_logging: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application.

    ``database`` lets callers inject a pre-built store handle; otherwise one
    is constructed from ``app_settings.database``. Either way the app owns
    its lifecycle: tables are ensured on startup and the pool is disposed on
    shutdown.
    """

    app_settings = app_settings or default_settings
    if configure_logging:
        _configure_logging(app_settings)

    store = database or Database(app_settings.database, echo=app_settings.debug)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if not await store.ping():
            raise PersistenceError("Failed to connect to database")
        await store.init_models()
        logger.info(
            "%s %s started (environment=%s)",
            app_settings.app_name,
            app_settings.app_version,
            app_settings.environment,
        )
        try:
            yield
        finally:
            await store.dispose()

    app = FastAPI(
        title=app_settings.app_name,
        version=app_settings.app_version,
        debug=app_settings.debug,
        description="School directory API with photo storage",
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.database = store

    app.add_middleware(TelemetryMiddleware)
    app.add_middleware(StructuredLoggingMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=app_settings.cors_allow_credentials,
        allow_methods=app_settings.cors_allow_methods,
        allow_headers=app_settings.cors_allow_headers,
    )

    app.include_router(schools.router)
    app.include_router(images.router)

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        """Root endpoint."""

        return {
            "message": f"Welcome to {app_settings.app_name}",
            "version": app_settings.app_version,
            "status": "operational",
        }

    @app.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Health check endpoint."""

        return HealthResponse(
            message="Server is running successfully",
            timestamp=datetime.now(timezone.utc).isoformat(),
            environment=app_settings.environment,
        )

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        """Expose application metrics for Prometheus scraping."""

        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    _register_exception_handlers(app)

    return app


if __name__ == "__main__":
    uvicorn.run(
        "school_directory.main:create_app",
        factory=True,
        host=default_settings.host,
        port=default_settings.port,
        reload=default_settings.debug,
    )
