"""
Exception classes for the moderation pipeline.

All custom exceptions inherit from PostGuardError and carry:
- message: Human-readable error message
- details: Optional dictionary with additional context

Hierarchy:
    PostGuardError
    ├── ConfigurationError          credential absent, fail closed
    ├── ModelClientError            single error channel of the model client
    │   ├── ModelTransportError     network failure or timeout
    │   ├── MalformedUpstreamResponse  non-JSON body
    │   └── UpstreamModelError      inference API reported an error
    ├── ModerationUnavailable       a run aborted on a model failure
    └── DecisionShapeMismatch       raw result has an unexpected shape
"""

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from postguard.pipeline.screening import ModerationReport


class PostGuardError(Exception):
    """Base exception for all PostGuard errors.

    Attributes:
        message: Human-readable error message
        details: Optional dictionary with additional error context
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging."""
        result: dict[str, Any] = {"message": self.message}
        if self.details:
            result["details"] = self.details
        return result


class ConfigurationError(PostGuardError):
    """The moderation credential is not configured.

    Raised before any model is contacted; no report is produced.
    """

    def __init__(self, message: str = "Missing credential"):
        super().__init__(message)


class ModelClientError(PostGuardError):
    """A classifier call did not yield a usable raw result."""

    def __init__(self, message: str, endpoint: str, details: Optional[dict[str, Any]] = None):
        self.endpoint = endpoint
        super().__init__(message, {"endpoint": endpoint, **(details or {})})


class ModelTransportError(ModelClientError):
    """Connection failure, protocol error, or timeout."""


class MalformedUpstreamResponse(ModelClientError):
    """The endpoint answered with something other than JSON.

    Attributes:
        body: The raw response text, kept for diagnostics
    """

    def __init__(self, endpoint: str, body: str, content_type: str = ""):
        self.body = body
        self.content_type = content_type
        super().__init__(
            f"Model endpoint returned non-JSON response: {body}",
            endpoint,
            {"content_type": content_type},
        )


class UpstreamModelError(ModelClientError):
    """The inference API reported its own error in the response body."""

    def __init__(self, endpoint: str, upstream_message: str, status_code: int | None = None):
        self.upstream_message = upstream_message
        self.status_code = status_code
        super().__init__(
            f"Model failed: {upstream_message}",
            endpoint,
            {"status_code": status_code},
        )


class ModerationUnavailable(PostGuardError):
    """A screening run could not reach a verdict.

    Attributes:
        model_name: Classifier whose call failed
        cause: The underlying ModelClientError
        report: Outcomes recorded before the failure, including the failed one
    """

    def __init__(
        self,
        model_name: str,
        cause: ModelClientError,
        report: "ModerationReport",
    ):
        self.model_name = model_name
        self.cause = cause
        self.report = report
        super().__init__(
            f"{model_name}: {cause.message}",
            {"model": model_name, **cause.details},
        )


class DecisionShapeMismatch(PostGuardError):
    """A decision rule received a raw result it cannot interpret.

    Never escapes a classifier descriptor: it is converted into a
    non-flagging decision with a diagnostic.
    """
