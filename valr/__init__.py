"""
VALR Exchange API client.

Typed access to the VALR REST and WebSocket APIs featuring:
- HMAC-SHA512 request signing (X-VALR-* headers), sub-account impersonation
- Signed query strings sent byte-for-byte as signed
- Typed errors for authentication, rate-limit, validation and network failures
- Sync (requests) and async (aiohttp) REST transports
- Resilient WebSocket sessions: handshake auth, auto-subscribe, keep-alive
  pings and fixed-delay reconnection
- Structured logging via loguru
- Configuration-driven (YAML)

Core Modules:
    request_signer: Signature computation and credential validation
    http_client: Synchronous transport and error classification
    async_http_client: aiohttp transport
    api: Endpoint groups (public, account, trading, wallets, health)
    client: ValrClient and AsyncValrClient facades
    ws_client: WebSocket session state machine
    ws_account: Account WebSocket
    ws_trade: Trade WebSocket
    rate_limit_policy: Optional client-side request pacing
    config: Configuration loading
    secrets: Credential management

Example:
    >>> from valr.client import ValrClient
    >>> from valr.secrets import load_credentials
    >>>
    >>> client = ValrClient.from_credentials(load_credentials())
    >>> client.account.get_balances()
"""

from .client import AsyncValrClient, ValrClient
from .errors import (
    InvalidCredentialsError,
    MaxReconnectAttemptsError,
    MessageParseError,
    NotConnectedError,
    ValrApiError,
    ValrAuthenticationError,
    ValrConfigurationError,
    ValrError,
    ValrNetworkError,
    ValrRateLimitError,
    ValrValidationError,
    ValrWebSocketError,
)
from .request_signer import compute_signature, get_timestamp, sign_request, validate_credentials, SigningInput
from .ws_account import AccountEvent, AccountWebSocket
from .ws_client import SessionEvent, SessionState, Subscription
from .ws_trade import TradeEvent, TradeWebSocket

__version__ = "0.1.0"
__all__ = [
    "ValrClient",
    "AsyncValrClient",
    "AccountWebSocket",
    "TradeWebSocket",
    "AccountEvent",
    "TradeEvent",
    "SessionEvent",
    "SessionState",
    "Subscription",
    "SigningInput",
    "compute_signature",
    "sign_request",
    "get_timestamp",
    "validate_credentials",
    "ValrError",
    "ValrConfigurationError",
    "InvalidCredentialsError",
    "ValrApiError",
    "ValrAuthenticationError",
    "ValrRateLimitError",
    "ValrValidationError",
    "ValrNetworkError",
    "ValrWebSocketError",
    "NotConnectedError",
    "MessageParseError",
    "MaxReconnectAttemptsError",
]
