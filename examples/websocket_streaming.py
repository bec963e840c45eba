"""Streaming demo: account updates plus BTCZAR market data.

Shows:
1. Typed event handlers (sync and async)
2. Subscribing from the CONNECTED handler so reconnects resubscribe
3. Reconnect notifications
4. Clean shutdown on Ctrl+C
"""
import asyncio
import sys
from pathlib import Path

# Add parent directory to path so we can import the valr package
sys.path.insert(0, str(Path(__file__).parent.parent))

from valr.config import WebSocketConfig
from valr.errors import ValrConfigurationError
from valr.logging_setup import logger, setup_logging
from valr.secrets import load_credentials
from valr.ws_account import AccountEvent, AccountWebSocket
from valr.ws_client import SessionEvent
from valr.ws_trade import TradeEvent, TradeWebSocket


async def main():
    setup_logging(log_file=None, level="INFO", enable_console=True)
    config = WebSocketConfig(max_reconnect_attempts=10)

    trade = TradeWebSocket(config=config)

    async def on_trade_connected():
        await trade.subscribe_to_order_book(["BTCZAR"])
        await trade.subscribe_to_trades(["BTCZAR"])

    trade.on(SessionEvent.CONNECTED, on_trade_connected)
    trade.on(TradeEvent.ORDERBOOK_UPDATE, lambda msg: logger.info(f"Book: {len(msg['data'].get('Bids', []))} bids"))
    trade.on(TradeEvent.NEW_TRADE, lambda msg: logger.info(f"Trade: {msg['data']}"))
    trade.on(SessionEvent.RECONNECTING, lambda attempt: logger.warning(f"Trade socket retry #{attempt}"))
    trade.on(SessionEvent.ERROR, lambda err: logger.error(f"Trade socket: {err}"))

    sockets = [trade]
    try:
        creds = load_credentials()
        account = AccountWebSocket(creds.api_key, creds.api_secret, subaccount_id=creds.subaccount_id, config=config)
        account.on(AccountEvent.BALANCE_UPDATE, lambda msg: logger.info(f"Balance: {msg['data']}"))
        account.on(AccountEvent.ORDER_STATUS_UPDATE, lambda msg: logger.info(f"Order: {msg['data']}"))
        account.on(SessionEvent.AUTHENTICATED, lambda: logger.info("Account socket authenticated"))
        sockets.append(account)
    except ValrConfigurationError as e:
        logger.info(f"Account stream disabled: {e}")

    for ws in sockets:
        ws.connect()

    try:
        await asyncio.Event().wait()
    finally:
        for ws in sockets:
            await ws.close()
        logger.info("Sockets closed")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
