"""
Shared error handling for the Gitorum forum service.

Every failure surfaced by the core is one of a small closed set of kinds so
that callers can map each kind to exactly one rendering.
"""

from typing import Dict, Any, Optional

from opentelemetry import trace
from pydantic import BaseModel


RATE_LIMIT_MARKER = "rate limit"


class ErrorResponse(BaseModel):
    """Standard error response format."""

    trace_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class ForumError(Exception):
    """Base exception for the forum service."""

    status_code = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        trace_id = None
        current_span = trace.get_current_span()
        if current_span and current_span.is_recording():
            span_context = current_span.get_span_context()
            if span_context.trace_id != 0:
                trace_id = f"{span_context.trace_id:032x}"

        return ErrorResponse(
            trace_id=trace_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class ConfigurationError(ForumError):
    """A required setting is missing."""

    status_code = 500

    def __init__(self, message: str = "Missing configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class CredentialUnavailableError(ForumError):
    """No credential could be obtained for an operation that needs one."""

    status_code = 401

    def __init__(self, message: str = "Not authenticated", details: Optional[Dict[str, Any]] = None):
        super().__init__("CREDENTIAL_UNAVAILABLE", message, details)


class RateLimitError(ForumError):
    """Upstream rate limit, raised once credential rotation has been exhausted."""

    status_code = 503

    def __init__(self, message: str = "GitHub API rate limit exceeded", details: Optional[Dict[str, Any]] = None):
        super().__init__("RATE_LIMITED", message, details)


class UpstreamError(ForumError):
    """Transport, status or payload failure talking to GitHub."""

    status_code = 502

    def __init__(self, service: str, message: str = "Upstream error", details: Optional[Dict[str, Any]] = None):
        super().__init__("UPSTREAM_ERROR", f"{service}: {message}", details)


class NotFoundError(ForumError):
    """Requested category or thread does not exist."""

    status_code = 404

    def __init__(self, message: str = "Not found", details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", message, details)


def as_rate_limit(exc: BaseException) -> Optional[RateLimitError]:
    """Return a RateLimitError for a rate-limit failure, None otherwise."""
    if isinstance(exc, RateLimitError):
        return exc
    if RATE_LIMIT_MARKER in str(exc).lower():
        return RateLimitError(str(exc), details={"error": type(exc).__name__})
    return None
