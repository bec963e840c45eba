"""Trade WebSocket: order books, market summaries and trades per currency pair."""
from enum import Enum
from typing import Optional, Sequence

from .config import WebSocketConfig
from .constants import WS_TRADE_PATH
from .ws_client import SessionProfile, Subscription, ValrWebSocketClient


class TradeEvent(Enum):
    """Typed market-data events; each handler receives the decoded message."""

    ORDERBOOK_UPDATE = "orderbook:update"
    MARKET_SUMMARY = "market:summary"
    NEW_TRADE = "trade:new"


TRADE_PROFILE = SessionProfile(
    path=WS_TRADE_PATH,
    requires_credentials=False,
    events=TradeEvent,
    dispatch={
        "AGGREGATED_ORDERBOOK_UPDATE": TradeEvent.ORDERBOOK_UPDATE,
        "FULL_ORDERBOOK_UPDATE": TradeEvent.ORDERBOOK_UPDATE,
        "MARKET_SUMMARY_UPDATE": TradeEvent.MARKET_SUMMARY,
        "NEW_TRADE": TradeEvent.NEW_TRADE,
    },
)


class TradeWebSocket(ValrWebSocketClient):
    """Market data stream; credentials are optional.

    Nothing is subscribed automatically. Subscribe from a CONNECTED handler:

        async def on_connected():
            await ws.subscribe_to_order_book(["BTCZAR"])

        ws.on(SessionEvent.CONNECTED, on_connected)
        ws.on(TradeEvent.ORDERBOOK_UPDATE, print)
        ws.connect()
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        *,
        subaccount_id: Optional[str] = None,
        config: Optional[WebSocketConfig] = None,
        connector=None,
    ):
        super().__init__(
            TRADE_PROFILE,
            api_key=api_key,
            api_secret=api_secret,
            subaccount_id=subaccount_id,
            config=config,
            connector=connector,
        )

    async def _subscribe_pairs(self, event: str, pairs: Sequence[str]) -> None:
        await self.subscribe([Subscription(event=event, pairs=tuple(pairs))])

    async def subscribe_to_order_book(self, pairs: Sequence[str]) -> None:
        """Aggregated order book updates."""
        await self._subscribe_pairs("AGGREGATED_ORDERBOOK_UPDATE", pairs)

    async def subscribe_to_full_order_book(self, pairs: Sequence[str]) -> None:
        await self._subscribe_pairs("FULL_ORDERBOOK_UPDATE", pairs)

    async def subscribe_to_market_summary(self, pairs: Sequence[str]) -> None:
        await self._subscribe_pairs("MARKET_SUMMARY_UPDATE", pairs)

    async def subscribe_to_trades(self, pairs: Sequence[str]) -> None:
        await self._subscribe_pairs("NEW_TRADE", pairs)

    async def subscribe_to_price_buckets(self, pairs: Sequence[str]) -> None:
        """OHLC bucket updates; delivered via SessionEvent.MESSAGE only."""
        await self._subscribe_pairs("NEW_TRADE_BUCKET", pairs)
