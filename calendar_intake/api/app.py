"""
FastAPI application factory.
"""

import asyncio
import contextlib
import time
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from calendar_intake import __version__
from calendar_intake.admission import (
    ActivityStore,
    AdmissionConfig,
    AdmissionController,
    AdmissionDenied,
)
from calendar_intake.api.middleware.security import (
    ApiRequestScreenMiddleware,
    SecurityHeadersMiddleware,
)
from calendar_intake.api.middleware.timeout import TimeoutMiddleware
from calendar_intake.api.routes import admin, events, health, timezone
from calendar_intake.config.settings import Settings, get_settings
from calendar_intake.documents import DocumentProviderError, DocumentTextExtractor
from calendar_intake.extraction import (
    ExtractionConfig,
    ExtractionFatalError,
    ExtractionService,
)
from calendar_intake.observability.logging import bind_context, clear_context
from calendar_intake.observability.metrics import MetricsCollector, get_metrics

logger = structlog.get_logger(__name__)

# Denial category -> HTTP status
DENIAL_STATUS: dict[str, int] = {
    "invalid_content": 400,
    "suspicious": 403,
    "rate_limited": 429,
    "abusive": 429,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Calendar intake API starting up", ai_configured=app.state.extraction_service.ai_configured)

    sweeper = asyncio.create_task(
        app.state.activity_store.run_sweeper(app.state.settings.sweep_interval_seconds)
    )

    yield

    logger.info("Calendar intake API shutting down")
    sweeper.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await sweeper
    await app.state.extraction_service.close()


def _error_response(status_code: int, content: dict, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def create_app(
    settings: Settings | None = None,
    admission_config: AdmissionConfig | None = None,
    extraction_config: ExtractionConfig | None = None,
    store: ActivityStore | None = None,
    extraction_service: ExtractionService | None = None,
    metrics: MetricsCollector | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    The activity store, admission controller and extraction service are
    built here and held on app.state. Any of them can be passed in, which
    is how tests inject clocks, fake AI clients and private registries.

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    metrics = metrics or get_metrics()
    store = store or ActivityStore()
    extraction_service = extraction_service or ExtractionService(
        extraction_config or ExtractionConfig(), metrics=metrics
    )

    openapi_tags = [
        {"name": "health", "description": "Service health checks"},
        {"name": "events", "description": "Event extraction and ICS export"},
        {"name": "timezone", "description": "Timezone validation and inference"},
        {"name": "admin", "description": "Operator statistics and resets"},
    ]

    app = FastAPI(
        title="Calendar Intake API",
        description="""
Turns free-form text and uploaded documents into structured calendar events.

## Extraction

A hosted language model is tried first. When it is unavailable or its
answer is unusable, a deterministic pattern extractor takes over.

## Limits

Requests are rate limited per client address. Denials carry a `code`
and, where waiting helps, a `retryAfter` in seconds.
        """,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        openapi_tags=openapi_tags,
    )

    app.state.settings = settings
    app.state.metrics = metrics
    app.state.activity_store = store
    app.state.admission_controller = AdmissionController(
        store, admission_config or AdmissionConfig(), metrics=metrics
    )
    app.state.extraction_service = extraction_service
    app.state.document_extractor = DocumentTextExtractor(max_bytes=settings.max_upload_bytes)

    # Innermost: reject malformed /api/ requests
    app.add_middleware(ApiRequestScreenMiddleware)

    # CORS (origins from CORS_ORIGINS env var, comma-separated)
    cors_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "User-Agent"],
        max_age=86400,
    )

    # Request timeout middleware (must be added before logging middleware
    # so timeout wraps the entire request lifecycle)
    if settings.request_timeout_seconds > 0:
        app.add_middleware(
            TimeoutMiddleware,
            timeout_seconds=settings.request_timeout_seconds,
        )

    # Request logging and correlation ID middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        # Correlation ID: use incoming header or generate a new one
        request_id = (
            request.headers.get("X-Request-ID")
            or request.headers.get("X-Correlation-ID")
            or str(uuid.uuid4())
        )

        bind_context(request_id=request_id)

        start_time = time.perf_counter()

        try:
            try:
                response = await call_next(request)
            except Exception as exc:
                logger.error(f"Unhandled exception: {exc}", exc_info=True)
                response = _error_response(500, {"error": "Internal server error"})
            duration = time.perf_counter() - start_time

            # Add correlation ID to response headers
            response.headers["X-Request-ID"] = request_id

            logger.info(
                "HTTP request",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration * 1000, 2),
            )
            return response
        finally:
            clear_context()

    # Outermost, so error responses get the headers too
    app.add_middleware(SecurityHeadersMiddleware)

    # Exception handlers
    @app.exception_handler(AdmissionDenied)
    async def admission_denied_handler(request: Request, exc: AdmissionDenied):
        decision = exc.decision
        headers = {"Retry-After": str(decision.retry_after)} if decision.retry_after else None
        return _error_response(
            DENIAL_STATUS.get(decision.category or "", 400),
            decision.to_dict(),
            headers,
        )

    @app.exception_handler(ExtractionFatalError)
    async def extraction_fatal_handler(request: Request, exc: ExtractionFatalError):
        return _error_response(400, {"error": str(exc), "code": "no_event_found"})

    @app.exception_handler(DocumentProviderError)
    async def document_error_handler(request: Request, exc: DocumentProviderError):
        return _error_response(
            exc.status_code,
            {"error": str(exc), "code": type(exc).__name__},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error_response(exc.status_code, {"error": str(exc.detail)}, exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _error_response(
            400,
            {"error": "Invalid request body", "code": "validation_error"},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return _error_response(500, {"error": "Internal server error"})

    # Include routers
    app.include_router(health.router, tags=["health"])
    app.include_router(events.router, tags=["events"])
    app.include_router(timezone.router, tags=["timezone"])
    app.include_router(admin.router, tags=["admin"])

    # Root endpoint
    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "service": "Calendar Intake API",
            "version": __version__,
            "docs": "/docs",
        }

    return app
