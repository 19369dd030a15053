import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, get_settings
from .db import Database
from .otel import configure_logging, configure_otel, shutdown_otel
from .responses import fail, internal_error
from .routes import VALIDATION_FAILED, build_router
from .validation import field_errors

logger = logging.getLogger("books_api")
request_logger = logging.getLogger("books_api.requests")

ROUTE_NOT_FOUND = "Route not found"


@asynccontextmanager
async def lifespan(app: FastAPI):
    database: Database = app.state.database
    try:
        database.init()
    except Exception:
        logger.exception("Failed to initialize database")
        raise
    logger.info("Books API ready", extra={"prefix": app.state.settings.api_prefix})
    yield
    logger.info("Shutting down server")
    database.dispose()
    shutdown_otel(app.state.telemetry)


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        description="A simple Books CRUD API with relational persistence.",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.telemetry = []
    app.state.database = database or Database(settings.sqlalchemy_url, pool_size=settings.db_pool_size)

    if settings.allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.allowed_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
            allow_headers=["Content-Type"],
        )

    @app.get("/health", tags=["health"])
    def health() -> dict:
        return {
            "status": "OK",
            "message": "Book CRUD API is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    app.include_router(build_router(settings.api_prefix))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request, exc: StarletteHTTPException):
        # Unknown paths and unrouted methods on known paths both miss the route table.
        if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
            return fail(status.HTTP_404_NOT_FOUND, ROUTE_NOT_FOUND)
        return fail(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request, exc: RequestValidationError):
        details = [error.as_dict() for error in field_errors(list(exc.errors()))]
        return fail(status.HTTP_400_BAD_REQUEST, VALIDATION_FAILED, details)

    @app.middleware("http")
    async def internal_error_middleware(request, call_next):
        try:
            return await call_next(request)
        except Exception:
            logger.exception(
                "request.failed", extra={"path": request.url.path, "method": request.method}
            )
            return internal_error()

    @app.middleware("http")
    async def request_logging_middleware(request, call_next):
        request_logger.info("request.start", extra={"path": request.url.path, "method": request.method})
        response = await call_next(request)
        request_logger.info(
            "request.end",
            extra={"path": request.url.path, "method": request.method, "status": response.status_code},
        )
        return response

    @app.middleware("http")
    async def request_id_middleware(request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    if settings.otel_enabled:
        app.state.telemetry = configure_otel(app, settings)

    return app
