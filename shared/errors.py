"""
Shared error handling for the Image Cache Gateway.

Every gateway error carries the HTTP status and plain-text message that the
client sees. Internal detail (paths, upstream errors) goes in ``details`` and
is only ever logged.
"""

from typing import Dict, Any, Optional


class CacheGatewayError(Exception):
    """Base exception for gateway operations."""

    status_code: int = 500
    default_message: str = "Internal Server Error"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    @property
    def code(self) -> str:
        """Stable identifier used for logs and metrics."""
        return type(self).__name__


class InvalidResourceKeyError(CacheGatewayError):
    """Request path does not start with a numeric resource key."""

    status_code = 404
    default_message = "Not Found"


class MethodNotAllowedError(CacheGatewayError):
    """Valid key but unsupported HTTP method."""

    status_code = 405
    default_message = "Method not allowed"


class EntryNotFoundError(CacheGatewayError):
    """No cache entry exists for the key."""

    status_code = 404
    default_message = "Not Found"


class UpstreamUnavailableError(CacheGatewayError):
    """Upstream could not supply the resource (miss or transport failure)."""

    status_code = 404
    default_message = "Not Found"


class EmptyBodyError(CacheGatewayError):
    """PUT request carried no payload."""

    status_code = 400
    default_message = "Empty body"


class StorageError(CacheGatewayError):
    """Unexpected filesystem failure while writing or deleting an entry."""

    status_code = 500
    default_message = "Internal Server Error"
