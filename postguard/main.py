"""
PostGuard: FastAPI Application Entry Point

This module initializes the FastAPI application and defines the endpoints:
- /moderate: Screen a post against the ordered classifiers
- /health: Health check endpoint
- /config: Non-sensitive configuration values
- /models: Classifier order and decision rules
- /metrics: Screening statistics endpoint

The application uses a lifespan context manager to:
1. Load configuration and configure logging at startup
2. Report whether the moderation credential is present
3. Close the pooled inference HTTP client at shutdown
"""

from contextlib import asynccontextmanager
import logging
import time

from fastapi import FastAPI, Depends, Request
from fastapi.responses import JSONResponse, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from postguard import __version__
from postguard.config import Settings, get_settings, configure_logging
from postguard.dispatcher.handlers import get_model_client
from postguard.exceptions import ConfigurationError, ModerationUnavailable
from postguard.metrics import MetricsReporter, RunMetric, get_metrics_store
from postguard.pipeline.screening import get_screening_pipeline
from postguard.registry import get_classifier_registry
from postguard.schemas.moderation import (
    MISSING_CREDENTIAL_MESSAGE,
    UNAVAILABLE_MESSAGE,
    ModerationRequest,
    ModerationResponse,
    ModerationErrorResponse,
    ErrorCodes,
    ErrorDetail,
    ErrorResponse,
    MetricsResponse,
    HealthResponse,
    ComponentHealth,
    build_moderation_response,
)

logger = logging.getLogger(__name__)

_start_time: float = 0.0


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler for startup/shutdown events.

    A missing credential is logged but does not stop startup: every
    moderation request then fails closed with a configuration error.
    """
    settings = get_settings()
    configure_logging(settings)

    logger.info("=" * 60)
    logger.info("PostGuard starting up...")
    logger.info("=" * 60)
    logger.info(f"Inference base URL: {settings.inference_base_url}")
    logger.info(f"Model timeout: {settings.model_timeout_seconds}s")
    logger.info(f"Metrics tracking: {'enabled' if settings.track_metrics else 'disabled'}")
    logger.info(f"Debug mode: {'enabled' if settings.debug else 'disabled'}")

    if settings.has_credential:
        logger.info("Moderation API key: configured")
    else:
        logger.error("Moderation API key not set in environment variables")

    registry = get_classifier_registry()
    logger.info(f"Screening order ({len(registry.list_classifiers())} classifiers):")
    for classifier in registry.list_classifiers():
        logger.info(
            f"  - {classifier.name}: {classifier.model_id} "
            f"({classifier.rule.value}, {classifier.target_label} > {classifier.threshold})"
        )

    global _start_time
    _start_time = time.time()

    logger.info("=" * 60)
    logger.info("PostGuard ready to accept requests")

    yield  # Application runs here

    logger.info("PostGuard shutting down...")
    await get_model_client().aclose()


app = FastAPI(
    title="PostGuard",
    description="Sequential content moderation for blog posts",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    """
    Root endpoint with API information.
    """
    return {
        "name": "PostGuard",
        "description": "Sequential content moderation for blog posts",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "config": "/config"
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check system health and component status.",
)
async def health_check(settings: Settings = Depends(get_settings)):
    """
    Health check endpoint for monitoring and orchestration.

    A missing credential degrades the service: it stays up but rejects
    every moderation request with a configuration error.
    """
    components = []
    overall_status = "healthy"

    try:
        registry = get_classifier_registry()
        names = registry.get_classifier_names()
        components.append(
            ComponentHealth(
                name="registry",
                status="healthy",
                message=f"{len(names)} classifiers: {', '.join(names)}",
            )
        )
    except Exception as e:
        components.append(
            ComponentHealth(
                name="registry",
                status="unhealthy",
                message=str(e),
            )
        )
        overall_status = "unhealthy"

    if settings.has_credential:
        components.append(ComponentHealth(name="credential", status="healthy"))
    else:
        components.append(
            ComponentHealth(
                name="credential",
                status="degraded",
                message="MODERATION_API_KEY is not set",
            )
        )
        if overall_status == "healthy":
            overall_status = "degraded"

    uptime = time.time() - _start_time if _start_time > 0 else 0.0

    return HealthResponse(
        status=overall_status,
        service="postguard",
        version=__version__,
        components=components,
        uptime_seconds=uptime,
    )


@app.get("/config")
async def show_config(settings: Settings = Depends(get_settings)):
    """
    Returns non-sensitive configuration values.

    The API key is a SecretStr and is NOT exposed in this endpoint.
    """
    return {
        "inference": {
            "base_url": settings.inference_base_url,
            "timeout_seconds": settings.model_timeout_seconds,
        },
        "metrics": {
            "enabled": settings.track_metrics
        },
        "server": {
            "host": settings.host,
            "port": settings.port,
            "debug": settings.debug
        },
        "logging": {
            "level": settings.log_level
        },
        "api_key_configured": settings.has_credential,
    }


@app.get("/models")
async def list_models():
    """
    List classifiers in screening order.

    The first classifier that flags a post ends the run, so position in
    this list decides which later models are skipped.
    """
    classifiers = get_classifier_registry().list_classifiers()

    return {
        "models": [
            {
                "order": position,
                "name": c.name,
                "display_name": c.display_name,
                "model_id": c.model_id,
                "endpoint": c.endpoint,
                "rule": c.rule.value,
                "target_label": c.target_label,
                "threshold": c.threshold,
            }
            for position, c in enumerate(classifiers, start=1)
        ],
        "total_models": len(classifiers),
    }


def _record_run(metric: RunMetric) -> None:
    if get_settings().track_metrics:
        get_metrics_store().record(metric)


@app.post(
    "/moderate",
    response_model=ModerationResponse,
    responses={
        400: {"model": ModerationResponse},
        500: {"model": ModerationErrorResponse},
    },
    summary="Moderate a post",
    description="Screen a post against each classifier in order, stopping at the first rejection.",
)
async def moderate_content(request: ModerationRequest):
    """
    Main content moderation endpoint.

    Responses:
    - 200: every classifier passed the post; report covers all of them
    - 400: a classifier rejected the post; report ends at that classifier
    - 500: missing credential, or a classifier call failed (no verdict)
    """
    pipeline = get_screening_pipeline()
    start_time = time.perf_counter()

    try:
        result = await pipeline.screen(request)
    except ConfigurationError:
        return JSONResponse(
            status_code=500,
            content=ModerationErrorResponse(
                error=MISSING_CREDENTIAL_MESSAGE
            ).model_dump(exclude_none=True),
        )
    except ModerationUnavailable as e:
        logger.error(f"Moderation failed: {e.message}")
        _record_run(
            RunMetric.from_report(
                "failed",
                e.report,
                (time.perf_counter() - start_time) * 1000,
                decided_by=e.model_name,
            )
        )
        return JSONResponse(
            status_code=500,
            content=ModerationErrorResponse(
                error=UNAVAILABLE_MESSAGE,
                details=e.message,
            ).model_dump(),
        )

    _record_run(
        RunMetric.from_report(
            result.verdict.value,
            result.report,
            result.latency_ms,
            decided_by=result.rejected_by,
        )
    )

    # Raw results are untrusted: model_dump_json writes non-finite floats as null
    response = build_moderation_response(result)
    return Response(
        content=response.model_dump_json(),
        status_code=200 if result.approved else 400,
        media_type="application/json",
    )


@app.get(
    "/metrics",
    response_model=MetricsResponse,
    summary="Get metrics",
    description="Retrieve aggregated screening statistics.",
)
async def get_metrics():
    """
    Return aggregated screening metrics.

    Includes verdict counts, rejections per classifier, per-classifier call
    statistics and the average number of classifiers called per post.
    """
    return MetricsReporter().generate_report()


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle Pydantic validation errors.

    Returns a consistent error response format with the first validation
    error's details for client-side error handling.
    """
    errors = exc.errors()
    first_error = errors[0] if errors else {}

    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error=ErrorDetail(
                code=ErrorCodes.VALIDATION_ERROR,
                message=first_error.get("msg", "Validation failed"),
                field=".".join(str(loc) for loc in first_error.get("loc", [])),
            )
        ).model_dump(),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """
    Handle HTTP exceptions (unknown routes, wrong methods) with consistent format.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(code=ErrorCodes.HTTP_ERROR, message=str(exc.detail))
        ).model_dump(exclude_none=True),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def general_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Logs the full exception for debugging and returns a generic error
    response to avoid leaking implementation details.
    """
    logger.exception("Unhandled exception")
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code=ErrorCodes.INTERNAL_ERROR,
                message="An unexpected error occurred",
            )
        ).model_dump(exclude_none=True),
    )
