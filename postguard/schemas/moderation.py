"""
Pydantic Schemas for Moderation API

This module defines the request and response models for the PostGuard API:
- ModerationRequest: Post title, summary and content to screen
- ModerationResponse: Verdict message plus the per-model report
- Error responses, metrics, and health check schemas

All schemas follow Pydantic v2 patterns with field descriptions and
OpenAPI documentation support.
"""

from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from postguard.pipeline.screening import ModerationReport, ScreeningResult


APPROVED_MESSAGE = "Post approved by all moderation models"
MISSING_CREDENTIAL_MESSAGE = "Missing credential"
UNAVAILABLE_MESSAGE = "Moderation service unavailable"


def rejection_message(model_name: str) -> str:
    """Message returned when a classifier flags the post."""
    return f"{model_name} rejected the content"


# =============================================================================
# REQUEST MODELS
# =============================================================================


class ModerationRequest(BaseModel):
    """
    Request body for the /moderate endpoint.

    Fields are free text handed over by the post editor. Missing fields are
    screened as empty strings; length and format checks belong to the
    calling layer.

    Example:
        {
            "title": "Weekend hike",
            "summary": "Trip report from the ridge trail",
            "content": "We started at dawn..."
        }
    """

    title: str | None = Field(
        default="",
        description="Post title",
    )

    summary: str | None = Field(
        default="",
        description="Short post summary",
    )

    content: str | None = Field(
        default="",
        description="Post body as plain text",
    )

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "examples": [
                {
                    "title": "Weekend hike",
                    "summary": "Trip report from the ridge trail",
                    "content": "We started at dawn and reached the summit by noon.",
                },
            ]
        },
    )


# =============================================================================
# RESPONSE MODELS
# =============================================================================


class ReportEntry(BaseModel):
    """
    One classifier's outcome within a moderation report.
    """

    model: str = Field(
        ...,
        description="Classifier name",
    )

    flagged: bool = Field(
        ...,
        description="Whether this classifier flagged the post",
    )

    result: Any = Field(
        default=None,
        description="Raw classifier output, as returned by the endpoint",
    )

    error: str | None = Field(
        default=None,
        description="Call failure, if any",
    )

    diagnostic: str | None = Field(
        default=None,
        description="Why the raw output could not be interpreted, if it could not",
    )

    latency_ms: float = Field(
        default=0.0,
        ge=0.0,
        description="Classifier call time in milliseconds",
    )

    model_config = ConfigDict(protected_namespaces=())


class ModerationResponse(BaseModel):
    """
    Response from the /moderate endpoint when a verdict was reached.

    Returned with 200 when every classifier passed the post, and with 400
    when one rejected it. In the latter case the report ends at the
    rejecting classifier.

    Example:
        {
            "message": "hate-speech rejected the content",
            "report": [
                {
                    "model": "hate-speech",
                    "flagged": true,
                    "result": [[{"label": "hate", "score": 0.93},
                                {"label": "nothate", "score": 0.07}]],
                    "error": null,
                    "diagnostic": null,
                    "latency_ms": 212.4
                }
            ]
        }
    """

    message: str = Field(
        ...,
        description="Human-readable verdict",
    )

    report: list[ReportEntry] = Field(
        default_factory=list,
        description="Outcomes of the classifiers that ran, in screening order",
    )


class ModerationErrorResponse(BaseModel):
    """
    Response from the /moderate endpoint when no verdict could be reached.

    Example:
        {
            "error": "Moderation service unavailable",
            "details": "toxicity: Model failed: Model unitary/toxic-bert is currently loading"
        }
    """

    error: str = Field(
        ...,
        description="Failure summary",
    )

    details: str | None = Field(
        default=None,
        description="Failing classifier and reason",
    )


# =============================================================================
# ERROR MODELS
# =============================================================================


class ErrorCodes:
    """
    Standard error codes for non-moderation API errors.

    These codes enable programmatic error handling by clients
    without parsing human-readable messages.
    """

    VALIDATION_ERROR = "VALIDATION_ERROR"
    HTTP_ERROR = "HTTP_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorDetail(BaseModel):
    """
    Detailed error information for API error responses.
    """

    code: str = Field(
        ...,
        description="Machine-readable error code for programmatic handling",
    )

    message: str = Field(
        ...,
        description="Human-readable error message",
    )

    field: str | None = Field(
        default=None,
        description="Field that caused the error (for validation errors)",
    )


class ErrorResponse(BaseModel):
    """
    Error format for request validation and unexpected failures.

    Example:
        {
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Input should be a valid string",
                "field": "body.title"
            }
        }
    """

    error: ErrorDetail = Field(
        ...,
        description="Error details",
    )


# =============================================================================
# METRICS MODELS
# =============================================================================


class ClassifierMetrics(BaseModel):
    """
    Aggregated metrics for one classifier.

    Invocation counts show how much the screening order saves: classifiers
    later in the order are only called for posts earlier ones let through.
    """

    model: str = Field(
        ...,
        description="Classifier name",
    )

    invocation_count: int = Field(
        default=0,
        ge=0,
        description="Times this classifier was called",
    )

    flagged_count: int = Field(
        default=0,
        ge=0,
        description="Times this classifier flagged a post",
    )

    error_count: int = Field(
        default=0,
        ge=0,
        description="Times a call to this classifier failed",
    )

    avg_latency_ms: float = Field(
        default=0.0,
        ge=0.0,
        description="Average call latency in milliseconds",
    )

    model_config = ConfigDict(protected_namespaces=())


class MetricsResponse(BaseModel):
    """
    Response from the /metrics endpoint.

    Example:
        {
            "total_requests": 120,
            "approved": 101,
            "rejected": 17,
            "failed": 2,
            "rejections_by_model": {"hate-speech": 9, "toxicity": 8},
            "requests_by_model": {...},
            "avg_screening_latency_ms": 410.7,
            "avg_models_per_request": 1.9
        }
    """

    total_requests: int = Field(default=0, ge=0)
    approved: int = Field(default=0, ge=0)
    rejected: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)

    rejections_by_model: dict[str, int] = Field(
        default_factory=dict,
        description="Rejected posts per rejecting classifier",
    )

    requests_by_model: dict[str, ClassifierMetrics] = Field(
        default_factory=dict,
        description="Per-classifier call statistics",
    )

    avg_screening_latency_ms: float = Field(
        default=0.0,
        ge=0.0,
        description="Average wall time of a screening run",
    )

    avg_models_per_request: float = Field(
        default=0.0,
        ge=0.0,
        description="Average number of classifiers called per run",
    )


# =============================================================================
# HEALTH MODELS
# =============================================================================


class ComponentHealth(BaseModel):
    """
    Health status of an individual system component.
    """

    name: str = Field(
        ...,
        description="Component name (e.g., 'registry', 'credential')",
    )

    status: Literal["healthy", "degraded", "unhealthy"] = Field(
        ...,
        description="Component health status",
    )

    message: str | None = Field(
        default=None,
        description="Additional status information or error details",
    )


class HealthResponse(BaseModel):
    """
    Response from the /health endpoint.

    Example:
        {
            "status": "healthy",
            "service": "postguard",
            "version": "0.1.0",
            "components": [
                {"name": "registry", "status": "healthy", "message": "2 classifiers"},
                {"name": "credential", "status": "healthy"}
            ],
            "uptime_seconds": 3600.5
        }
    """

    status: Literal["healthy", "degraded", "unhealthy"] = Field(
        ...,
        description="Overall service health status",
    )

    service: str = Field(
        default="postguard",
        description="Service identifier",
    )

    version: str = Field(
        ...,
        description="Application version",
    )

    components: list[ComponentHealth] = Field(
        default_factory=list,
        description="Health status of individual components",
    )

    uptime_seconds: float | None = Field(
        default=None,
        ge=0.0,
        description="Time since service start in seconds",
    )


# =============================================================================
# CONVERSION UTILITIES
# =============================================================================


def report_entries(report: "ModerationReport") -> list[ReportEntry]:
    """
    Convert a pipeline report into response entries.

    Args:
        report: ModerationReport from pipeline/screening.py

    Returns:
        ReportEntry list in screening order
    """
    return [ReportEntry(**outcome.to_dict()) for outcome in report]


def build_moderation_response(result: "ScreeningResult") -> ModerationResponse:
    """
    Build the /moderate response body from a screening result.

    Args:
        result: ScreeningResult with verdict, report and rejecting classifier

    Returns:
        ModerationResponse ready for API serialization
    """
    if result.rejected_by is not None:
        message = rejection_message(result.rejected_by)
    else:
        message = APPROVED_MESSAGE

    return ModerationResponse(message=message, report=report_entries(result.report))
