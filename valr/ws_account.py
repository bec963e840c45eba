"""Account WebSocket: real-time order, balance and trade updates for one account.

Example:
    >>> ws = AccountWebSocket(api_key=key, api_secret=secret)
    >>> ws.on(AccountEvent.BALANCE_UPDATE, lambda update: print(update["data"]))
    >>> ws.on(SessionEvent.RECONNECTING, lambda attempt: print("retry", attempt))
    >>> ws.connect()
"""
from enum import Enum
from typing import Optional

from .config import WebSocketConfig
from .constants import ACCOUNT_DEFAULT_EVENTS, WS_ACCOUNT_PATH
from .ws_client import SessionProfile, Subscription, ValrWebSocketClient


class AccountEvent(Enum):
    """Typed account events; each handler receives the decoded message."""

    ORDER_PROCESSED = "order:processed"
    ORDER_STATUS_UPDATE = "order:statusUpdate"
    BALANCE_UPDATE = "balance:update"
    NEW_TRADE = "trade:new"


ACCOUNT_PROFILE = SessionProfile(
    path=WS_ACCOUNT_PATH,
    requires_credentials=True,
    default_subscriptions=tuple(Subscription(event=name) for name in ACCOUNT_DEFAULT_EVENTS),
    events=AccountEvent,
    dispatch={
        "ORDER_PROCESSED": AccountEvent.ORDER_PROCESSED,
        "ORDER_STATUS_UPDATE": AccountEvent.ORDER_STATUS_UPDATE,
        "BALANCE_UPDATE": AccountEvent.BALANCE_UPDATE,
        "NEW_ACCOUNT_TRADE": AccountEvent.NEW_TRADE,
    },
)


class AccountWebSocket(ValrWebSocketClient):
    """Authenticated account stream.

    Credentials are mandatory. Once authenticated the session subscribes to
    every account event type; other tags (SUBSCRIBED, OPEN_ORDERS_UPDATE, ...)
    are only delivered through ``SessionEvent.MESSAGE``.
    """

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        *,
        subaccount_id: Optional[str] = None,
        config: Optional[WebSocketConfig] = None,
        connector=None,
    ):
        super().__init__(
            ACCOUNT_PROFILE,
            api_key=api_key,
            api_secret=api_secret,
            subaccount_id=subaccount_id,
            config=config,
            connector=connector,
        )
