"""FastAPI application factory and main entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import __version__
from ..config import get_settings
from ..errors import (
    GenerationFailed,
    InvalidArgument,
    NotFound,
    QuotaExceeded,
    RepurposerError,
    TokenAllowanceExceeded,
    UpstreamError,
)
from ..logging.config import configure_logging, get_logger
from .dependencies import ServiceContainer, build_container
from .middleware import CorrelationIdMiddleware
from .models.base import ErrorResponse
from .routes import content, health, sources, usage, youtube

logger = get_logger(__name__)

# Status code and error code for each error in the taxonomy
ERROR_STATUS: dict[type[RepurposerError], tuple[int, str]] = {
    InvalidArgument: (400, "invalid_argument"),
    TokenAllowanceExceeded: (402, "token_allowance_exceeded"),
    NotFound: (404, "not_found"),
    QuotaExceeded: (429, "quota_exceeded"),
    GenerationFailed: (500, "generation_failed"),
    UpstreamError: (502, "upstream_error"),
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    settings = get_settings()
    container: ServiceContainer = app.state.container

    logger.info(
        "Starting application",
        service=settings.service_name,
        version=app.version,
        environment=settings.environment,
    )

    await container.db.connect()
    await container.db.create_tables()
    logger.info("Database connection established and tables created")

    yield

    logger.info("Shutting down application")
    await container.close()


def create_app(container: ServiceContainer | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        container: Pre-wired services; built from settings if omitted.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    configure_logging(
        level=settings.logging.level,
        json_format=settings.logging.json_format,
        service_name=settings.service_name,
        service_version=settings.service_version,
    )

    app = FastAPI(
        title="Content Repurposer API",
        description="Turns YouTube videos into blog, social and newsletter content",
        version=__version__,
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
        openapi_url="/openapi.json" if settings.api.debug else None,
        lifespan=lifespan,
    )
    app.state.container = container or build_container(settings)

    # First added = last executed
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Correlation-ID"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    app.add_exception_handler(RepurposerError, repurposer_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(health.router)
    app.include_router(sources.router)
    app.include_router(content.router)
    app.include_router(youtube.router)
    app.include_router(usage.router)

    return app


def _error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: list[dict] | None = None,
) -> JSONResponse:
    correlation_id = getattr(request.state, "correlation_id", None)
    body = ErrorResponse.create(code, message, correlation_id, details)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(),
        headers={"X-Correlation-ID": correlation_id} if correlation_id else {},
    )


def error_status(exc: RepurposerError) -> tuple[int, str]:
    """Map an error to its HTTP status and code, walking up its class hierarchy."""
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 500, "internal_error"


async def repurposer_error_handler(request: Request, exc: RepurposerError) -> JSONResponse:
    """Render taxonomy errors with their user-facing message."""
    status_code, code = error_status(exc)
    log = logger.warning if status_code < 500 else logger.error
    log(
        "Request failed",
        path=request.url.path,
        method=request.method,
        status_code=status_code,
        error=exc.message,
        cause=repr(exc.__cause__) if exc.__cause__ else None,
    )
    return _error_response(request, status_code, code, exc.message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions."""
    return _error_response(request, exc.status_code, "http_error", str(exc.detail))


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Handle request validation errors."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    return _error_response(request, 422, "validation_error", "Validation Error", errors)


def run() -> None:
    """Run the API with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "repurposer.api.main:create_app",
        factory=True,
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.debug,
    )
