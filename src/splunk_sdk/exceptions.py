"""
Custom exceptions for the Splunk SDK.

Every error raised by the SDK derives from SplunkError. Errors reported by
the server carry the status code and the messages Splunk returned in the
response body.
"""

from typing import Dict, List, Optional, Type

from .models import Message


class SplunkError(Exception):
    """Base exception for all Splunk SDK errors."""

    pass


class InvalidDataError(SplunkError, ValueError):
    """Raised when a REST value cannot be converted to its declared type."""

    pass


class MissingArgumentError(SplunkError, ValueError):
    """Raised when a required request argument has no value."""

    pass


class RequestError(SplunkError):
    """Raised when Splunk answers with an unexpected HTTP status."""

    def __init__(self, status: int, reason: str = "", details: Optional[List[Message]] = None):
        self.status = status
        self.reason = reason
        self.details = list(details or [])

        if self.details:
            text = "\n".join(str(message) for message in self.details)
        else:
            text = f"{status} {reason}".strip()

        super().__init__(text)


class BadRequestError(RequestError):
    """400 Bad Request."""

    pass


class AuthenticationFailureError(RequestError):
    """401 Unauthorized: the session key or credentials were rejected."""

    pass


class UnauthorizedError(RequestError):
    """403 Forbidden: the user lacks the capability for the request."""

    pass


class ResourceNotFoundError(RequestError):
    """404 Not Found."""

    pass


class InternalServerError(RequestError):
    """500 Internal Server Error."""

    pass


class ServiceUnavailableError(RequestError):
    """503 Service Unavailable."""

    pass


STATUS_ERRORS: Dict[int, Type[RequestError]] = {
    400: BadRequestError,
    401: AuthenticationFailureError,
    403: UnauthorizedError,
    404: ResourceNotFoundError,
    500: InternalServerError,
    503: ServiceUnavailableError,
}


def error_for_status(status: int, reason: str = "", details: Optional[List[Message]] = None) -> RequestError:
    """Build the RequestError subclass matching an HTTP status."""
    error_class = STATUS_ERRORS.get(status, RequestError)
    return error_class(status, reason, details)


class JobFailedError(SplunkError):
    """Raised when results are requested from a search job that failed."""

    def __init__(self, sid: str, messages: Optional[Dict[str, object]] = None):
        self.sid = sid
        self.messages = messages or {}
        detail = f": {self.messages}" if self.messages else ""
        super().__init__(f"Search job {sid} failed{detail}")


class JobTimeoutError(SplunkError):
    """Raised when a search job does not reach a dispatch state in time."""

    pass


class RecordingOutOfSyncError(SplunkError):
    """Raised when a mock playback session diverges from its recording."""

    pass
