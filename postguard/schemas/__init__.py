"""
Schemas module: Pydantic request/response models.

This module provides validated data models for the PostGuard API:
- Request/response models for /moderate endpoint
- Error response models for consistent error handling
- Metrics and health check response models

Example usage:
    from postguard.schemas import ModerationRequest, build_moderation_response

    request = ModerationRequest(title="Hi", content="Hello world")
    response = build_moderation_response(screening_result)
"""

from postguard.schemas.moderation import (
    # Messages
    APPROVED_MESSAGE,
    MISSING_CREDENTIAL_MESSAGE,
    UNAVAILABLE_MESSAGE,
    rejection_message,
    # Request models
    ModerationRequest,
    # Response models
    ReportEntry,
    ModerationResponse,
    ModerationErrorResponse,
    # Error models
    ErrorCodes,
    ErrorDetail,
    ErrorResponse,
    # Metrics models
    ClassifierMetrics,
    MetricsResponse,
    # Health models
    ComponentHealth,
    HealthResponse,
    # Conversion utilities
    build_moderation_response,
    report_entries,
)

__all__ = [
    # Messages
    "APPROVED_MESSAGE",
    "MISSING_CREDENTIAL_MESSAGE",
    "UNAVAILABLE_MESSAGE",
    "rejection_message",
    # Request models
    "ModerationRequest",
    # Response models
    "ReportEntry",
    "ModerationResponse",
    "ModerationErrorResponse",
    # Error models
    "ErrorCodes",
    "ErrorDetail",
    "ErrorResponse",
    # Metrics models
    "ClassifierMetrics",
    "MetricsResponse",
    # Health models
    "ComponentHealth",
    "HealthResponse",
    # Conversion utilities
    "build_moderation_response",
    "report_entries",
]
