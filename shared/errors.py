"""
Shared error handling for the OneMap Token Proxy.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str


class TokenProxyException(Exception):
    """Base exception for token proxy services."""

    status_code: int = 500

    def __init__(
        self,
        code: str,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> Dict[str, Any]:
        """Convert to the JSON body returned to the caller."""
        return ErrorResponse(error=self.message).model_dump()


class ServerConfigurationError(TokenProxyException):
    """Required server-side configuration (credentials) is missing."""

    def __init__(
        self,
        message: str = "Server configuration error: Missing OneMap credentials.",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__("SERVER_CONFIGURATION_ERROR", message, 500, details)


class MissingParameter(TokenProxyException):
    """A required request parameter was not supplied."""

    def __init__(self, message: str = "Missing token parameter.", details: Optional[Dict[str, Any]] = None):
        super().__init__("MISSING_PARAMETER", message, 400, details)


class InvalidTokenFormat(TokenProxyException):
    """The supplied token could not be decoded."""

    def __init__(self, message: str = "Invalid token format.", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_TOKEN_FORMAT", message, 400, details)


class NotFound(TokenProxyException):
    """No route matches the request path and method."""

    def __init__(self, message: str = "Not Found", details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", message, 404, details)


class InternalError(TokenProxyException):
    """Catch-all for failures that have no more specific kind."""

    def __init__(self, message: str = "Internal server error", details: Optional[Dict[str, Any]] = None):
        super().__init__("INTERNAL_ERROR", message, 500, details)


class UpstreamError(TokenProxyException):
    """The upstream auth service answered with a non-success status.

    The upstream body is handed back to the caller verbatim, with the
    upstream status code.
    """

    def __init__(self, status_code: int, body: Any, service: str = "onemap"):
        self.body = body
        super().__init__(
            "UPSTREAM_ERROR",
            f"{service}: upstream responded with {status_code}",
            status_code,
            {"service": service, "status_code": status_code},
        )

    def to_response(self) -> Any:
        return self.body
