"""Exception hierarchy for the VALR client.

HTTP failures are classified once by the transport and raised as one of the
``ValrApiError`` subclasses. WebSocket failures are never raised out of the
session's callbacks; they are delivered as ERROR events carrying one of the
``ValrWebSocketError`` subclasses.
"""
from typing import Any, Dict, List, Optional


class ValrError(Exception):
    """Base class for all VALR client errors."""
    pass


class ValrConfigurationError(ValrError):
    """Raised for missing or partial configuration at construction time."""
    pass


class InvalidCredentialsError(ValrConfigurationError):
    """Raised when an API key or secret is not a 64-character hex string."""
    pass


class ValrApiError(ValrError):
    """A request reached the API layer and failed.

    Attributes:
        status_code: HTTP status, or None if no response was received
        response: Parsed response body (or raw text) when available
    """

    def __init__(self, message: str, status_code: Optional[int] = None, response: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class ValrAuthenticationError(ValrApiError):
    """Server rejected the signed request (401/403)."""
    pass


class ValrRateLimitError(ValrApiError):
    """Server signalled throttling (429 or rate-limited header)."""
    pass


class ValrValidationError(ValrApiError):
    """Server-side request validation failed (400)."""

    def __init__(self, message: str, errors: Optional[Dict[str, List[str]]] = None, status_code: Optional[int] = 400, response: Any = None):
        super().__init__(message, status_code=status_code, response=response)
        self.errors = errors


class ValrNetworkError(ValrApiError):
    """No HTTP response was received (DNS, connect, timeout)."""
    pass


class ValrWebSocketError(ValrError):
    pass


class NotConnectedError(ValrWebSocketError):
    pass


class MessageParseError(ValrWebSocketError):
    """Inbound frame could not be decoded as JSON."""
    pass


class MaxReconnectAttemptsError(ValrWebSocketError):
    pass
