"""VALR API constants: endpoints, header names, rate limits and WebSocket event sets."""

API_BASE_URL = "https://api.valr.com"
WS_BASE_URL = "wss://api.valr.com"

WS_ACCOUNT_PATH = "/ws/account"
WS_TRADE_PATH = "/ws/trade"

# Header names used for request authentication
HEADER_API_KEY = "X-VALR-API-KEY"
HEADER_SIGNATURE = "X-VALR-SIGNATURE"
HEADER_TIMESTAMP = "X-VALR-TIMESTAMP"
HEADER_SUB_ACCOUNT_ID = "X-VALR-SUB-ACCOUNT-ID"
HEADER_RATE_LIMITED = "x-valr-ratelimited"

CONTENT_TYPE_JSON = "application/json"

# Published quotas (per minute unless noted)
RATE_LIMITS = {
    "per_key_per_minute": 2000,
    "per_ip_per_minute": 1200,
    "ws_connections_per_minute": 60,
    # per second
    "endpoints": {
        "/v1/public/time": 20,
        "/v1/public/status": 20,
        "/v1/batch/orders": 400,
        "/v1/orders/order": 450,
        "/v1/orders/limit": 400,
        "/v1/orders/market": 400,
        "/v1/orders/modify": 400,
        "/v1/account/subaccount": 1,
        "/v1/account/subaccounts/transfer": 20,
    },
}

# Keep-alive and reconnect defaults for WebSocket sessions
WS_PING_INTERVAL_SECONDS = 30.0
WS_RECONNECT_DELAY_SECONDS = 5.0
WS_ABNORMAL_CLOSURE = 1006

ACCOUNT_DEFAULT_EVENTS = (
    "INSTANT_ORDER_COMPLETED",
    "ORDER_PROCESSED",
    "ORDER_STATUS_UPDATE",
    "BALANCE_UPDATE",
    "NEW_ACCOUNT_TRADE",
    "OPEN_ORDERS_UPDATE",
    "NEW_PENDING_RECEIVE",
    "SEND_STATUS_UPDATE",
    "FAILED_CANCEL_ORDER",
)
