"""
Standardized exceptions for routing engine requests.

Engine integrations (route, matrix, isochrone) catch these and reinterpret
them. Every exception carries:
- A unique error code for client-side handling
- The HTTP status code of the failed request, when one was received
- Detailed error messages with context
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel


class ErrorDetail(BaseModel):
    """Serializable error description."""
    code: str
    message: str
    status_code: Optional[int] = None
    timestamp: str
    details: Optional[Dict[str, Any]] = None


# =============================================================================
# Base Exception Class
# =============================================================================

class RoutingClientException(Exception):
    """Base exception for all request client errors."""

    error_code: str = "ROUTING_ERROR"
    message: str = "Routing engine request failed"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
    ):
        self.message = message or self.message
        self.status_code = status_code
        self.details = details
        if error_code:
            self.error_code = error_code
        super().__init__(self.message)

    def to_detail(self) -> ErrorDetail:
        """Convert exception to a serializable error description."""
        return ErrorDetail(
            code=self.error_code,
            message=self.message,
            status_code=self.status_code,
            timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            details=self.details,
        )


# =============================================================================
# Request Errors
# =============================================================================

class APIError(RoutingClientException):
    """The routing engine answered with an error, or never answered."""
    error_code = "ROUTING_API_ERROR"
    message = "Routing engine API error"


class ClientError(RoutingClientException):
    """The request could not be built, nothing was sent."""
    error_code = "ROUTING_CLIENT_ERROR"
    message = "Request setup failed"

    def __init__(self, error_name: str, error_message: str):
        super().__init__(
            message=f"Request failed with error {error_name}. Message: {error_message}",
            details={"error": error_name, "error_message": error_message},
        )
