"""Resilient WebSocket session for the VALR streaming API.

A session owns at most one transport connection. Authentication happens at
the handshake: when credentials are configured, the X-VALR-* headers are
signed over ``GET`` + the socket path with an empty body. Inbound frames are
decoded and delivered as typed events; unintentional closes are retried on a
fixed delay.

State Transitions:
    IDLE -> CONNECTING -> OPEN -> AUTHENTICATED (credentials only) -> CLOSED
    CLOSED -> CONNECTING (reconnect) or stays CLOSED after disconnect()

Event ordering per connection:
    CONNECTED -> AUTHENTICATED -> auto-subscribe -> keep-alive pings
    ... MESSAGE (+ typed event) ...
    CLOSE -> DISCONNECTED -> RECONNECTING (when scheduled)

Handlers may be plain callables or coroutine functions. They run one at a
time on the session's reader task, so a handler can ``await ws.subscribe()``
or ``await ws.disconnect()`` directly. Exceptions raised by handlers are
logged and reported as ERROR events; they never tear the session down.
"""
import asyncio
import inspect
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Set, Tuple, Type, Union

import aiohttp
from aiohttp import WSMsgType

from .config import WebSocketConfig
from .constants import WS_ABNORMAL_CLOSURE
from .errors import (
    MaxReconnectAttemptsError,
    MessageParseError,
    NotConnectedError,
    ValrConfigurationError,
    ValrWebSocketError,
)
from .logging_setup import logger
from .request_signer import build_auth_headers, check_credentials

_CLOSE_TYPES = (WSMsgType.CLOSE, WSMsgType.CLOSING, WSMsgType.CLOSED)


class SessionState(Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    AUTHENTICATED = "authenticated"
    CLOSED = "closed"


class SessionEvent(Enum):
    """Lifecycle events every session emits.

    Handler arguments:
        CONNECTED, AUTHENTICATED, DISCONNECTED: none
        MESSAGE: the decoded message
        ERROR: a ValrWebSocketError
        CLOSE: close code (int) and reason (str)
        RECONNECTING: attempt number (int)
    """

    CONNECTED = "connected"
    AUTHENTICATED = "authenticated"
    MESSAGE = "message"
    ERROR = "error"
    CLOSE = "close"
    DISCONNECTED = "disconnected"
    RECONNECTING = "reconnecting"


@dataclass(frozen=True)
class Subscription:
    """One entry of a SUBSCRIBE / UNSUBSCRIBE command."""

    event: str
    pairs: Optional[Tuple[str, ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"event": self.event}
        if self.pairs is not None:
            payload["pairs"] = list(self.pairs)
        return payload


@dataclass(frozen=True)
class SessionProfile:
    """What distinguishes one kind of session from another.

    Attributes:
        path: Socket path appended to the base URL, also the signed path
        requires_credentials: Refuse construction without API key and secret
        default_subscriptions: Sent right after authentication
        events: Enum of the typed events this session kind emits
        dispatch: Inbound ``type`` tag -> member of ``events``
    """

    path: str
    requires_credentials: bool = False
    default_subscriptions: Tuple[Subscription, ...] = ()
    events: Optional[Type[Enum]] = None
    dispatch: Mapping[str, Enum] = field(default_factory=dict)


Handler = Callable[..., Union[None, Awaitable[None]]]
SubscriptionLike = Union[Subscription, Mapping[str, Any]]


class AiohttpConnector:
    """Opens WebSocket connections on a lazily created aiohttp ClientSession."""

    def __init__(self):
        self._session: Optional[aiohttp.ClientSession] = None

    async def __call__(self, url: str, headers: Dict[str, str]) -> aiohttp.ClientWebSocketResponse:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return await self._session.ws_connect(url, headers=headers)

    async def close(self) -> None:
        if self._session:
            await self._session.close()


class ValrWebSocketClient:
    """Connection manager shared by the account and trade sockets.

    Args:
        profile: Session kind (path, auth requirement, subscriptions, dispatch)
        api_key: 64-char hex API key (optional unless the profile requires it)
        api_secret: 64-char hex API secret
        subaccount_id: Subaccount to impersonate; included in the signature
        config: Reconnect / keep-alive settings
        connector: ``async (url, headers) -> transport``; defaults to aiohttp
    """

    def __init__(
        self,
        profile: SessionProfile,
        *,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        subaccount_id: Optional[str] = None,
        config: Optional[WebSocketConfig] = None,
        connector: Optional[Callable[[str, Dict[str, str]], Awaitable[Any]]] = None,
    ):
        has_credentials = check_credentials(api_key, api_secret)
        if profile.requires_credentials and not has_credentials:
            raise ValrConfigurationError(f"API key and secret are required for {profile.path}")

        self.profile = profile
        self.config = config or WebSocketConfig()
        self.path = profile.path
        self.url = f"{self.config.base_url.rstrip('/')}{profile.path}"
        self.subaccount_id = subaccount_id or None
        self._api_key = api_key
        self._api_secret = api_secret
        self._has_credentials = has_credentials

        self._owns_connector = connector is None
        self._connector = connector or AiohttpConnector()
        self._ws = None
        self._task: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()
        self._generation = 0
        self._ping_task: Optional[asyncio.Task] = None
        self._reconnect_handle: Optional[asyncio.TimerHandle] = None

        self._state = SessionState.IDLE
        self.reconnect_attempts = 0
        self._intentional_close = False

        self._events = set(SessionEvent)
        if profile.events is not None:
            self._events.update(profile.events)
        self._handlers: Dict[Enum, List[Handler]] = {}

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state in (SessionState.OPEN, SessionState.AUTHENTICATED)

    @property
    def is_authenticated(self) -> bool:
        return self._state is SessionState.AUTHENTICATED

    # -- event registration -------------------------------------------------

    def on(self, event: Enum, handler: Handler) -> Handler:
        """Register a handler; events outside this session's set are rejected."""
        if event not in self._events:
            raise ValueError(f"{event!r} is not emitted by {type(self).__name__}")
        self._handlers.setdefault(event, []).append(handler)
        return handler

    def off(self, event: Enum, handler: Handler) -> None:
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    async def _emit(self, event: Enum, *args: Any) -> None:
        for handler in list(self._handlers.get(event, ())):
            try:
                result = handler(*args)
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                logger.opt(exception=exc).error(f"{event.value} handler failed on {self.path}")
                if event is not SessionEvent.ERROR:
                    await self._emit(SessionEvent.ERROR, ValrWebSocketError(f"{event.value} handler failed: {exc}"))

    async def _emit_error(self, error: ValrWebSocketError) -> None:
        logger.error(f"{self.path}: {error}")
        await self._emit(SessionEvent.ERROR, error)

    # -- connection lifecycle -----------------------------------------------

    def connect(self) -> None:
        """Start connecting; no-op while connecting or open.

        Returns immediately. Completion is signalled by the CONNECTED (and,
        with credentials, AUTHENTICATED) events. Must be called with a
        running event loop.
        """
        if self._state in (SessionState.CONNECTING, SessionState.OPEN, SessionState.AUTHENTICATED):
            return

        self._intentional_close = False
        self._cancel_reconnect()
        self._state = SessionState.CONNECTING
        self._generation += 1
        task = asyncio.get_running_loop().create_task(self._run(self._generation))
        self._task = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def disconnect(self) -> None:
        """Close the connection and suppress reconnection until connect() is called.

        The session is CLOSED when this returns, so ``connect()`` may follow
        immediately. Safe to call repeatedly and from inside an event handler.
        """
        self._intentional_close = True
        self._cancel_reconnect()
        self._stop_keepalive()

        was_connecting = self._state is SessionState.CONNECTING
        self._state = SessionState.CLOSED
        ws, self._ws = self._ws, None
        if ws is not None:
            if not ws.closed:
                await ws.close()
        elif was_connecting:
            if self._task is not None and self._task is not asyncio.current_task():
                self._task.cancel()

    async def close(self) -> None:
        """Disconnect, wait for the reader tasks to finish and release the connector."""
        await self.disconnect()
        current = asyncio.current_task()
        pending = [task for task in self._tasks if task is not current]
        if pending:
            await asyncio.wait(pending)
        if self._owns_connector:
            await self._connector.close()

    def _handshake_headers(self) -> Dict[str, str]:
        if not self._has_credentials:
            return {}
        return build_auth_headers(
            self._api_key,
            self._api_secret,
            verb="GET",
            path=self.path,
            body="",
            subaccount_id=self.subaccount_id,
        )

    async def _run(self, generation: int) -> None:
        try:
            ws = await self._connector(self.url, self._handshake_headers())
        except Exception as exc:
            if generation == self._generation:
                self._state = SessionState.CLOSED
            await self._emit_error(ValrWebSocketError(f"Failed to connect: {exc}"))
            await self._handle_close(WS_ABNORMAL_CLOSURE, str(exc), generation)
            return

        if generation != self._generation or self._intentional_close:
            await ws.close()
            return

        self._ws = ws
        await self._handle_open(ws)
        code, reason = await self._read_loop(ws)
        await self._handle_close(code, reason, generation)

    async def _handle_open(self, ws) -> None:
        self._state = SessionState.OPEN
        self.reconnect_attempts = 0
        logger.info(f"WebSocket connected: {self.url}")
        await self._emit(SessionEvent.CONNECTED)

        if not self._has_credentials or self._ws is not ws:
            return

        # Handshake headers were accepted, so the socket is authenticated
        self._state = SessionState.AUTHENTICATED
        await self._emit(SessionEvent.AUTHENTICATED)
        if self._ws is not ws:
            return
        await self._on_authenticated()
        if self._ws is ws:
            self._start_keepalive()

    async def _on_authenticated(self) -> None:
        if not self.profile.default_subscriptions:
            return
        try:
            await self.subscribe(self.profile.default_subscriptions)
        except ValrWebSocketError as exc:
            await self._emit_error(exc)

    async def _read_loop(self, ws) -> Tuple[int, str]:
        while True:
            try:
                msg = await ws.receive()
            except Exception as exc:
                await self._emit_error(ValrWebSocketError(f"Receive failed: {exc}"))
                return WS_ABNORMAL_CLOSURE, str(exc)

            if msg.type in (WSMsgType.TEXT, WSMsgType.BINARY):
                await self._handle_message(msg.data)
            elif msg.type == WSMsgType.ERROR:
                await self._emit_error(ValrWebSocketError(str(msg.data)))
            elif msg.type in _CLOSE_TYPES:
                if msg.type == WSMsgType.CLOSE:
                    return msg.data or WS_ABNORMAL_CLOSURE, msg.extra or ""
                return ws.close_code or WS_ABNORMAL_CLOSURE, ""

    async def _handle_message(self, data: Union[str, bytes]) -> None:
        if isinstance(data, bytes):
            data = data.decode("utf-8", errors="replace")
        try:
            message = json.loads(data)
        except ValueError as exc:
            await self._emit_error(MessageParseError(f"Failed to parse message: {exc}"))
            return

        await self._emit(SessionEvent.MESSAGE, message)

        tag = message.get("type") if isinstance(message, dict) else None
        if isinstance(tag, str):
            event = self.profile.dispatch.get(tag)
            if event is not None:
                await self._emit(event, message)

    async def _handle_close(self, code: int, reason: str, generation: int) -> None:
        # A newer connect() owns state, keep-alive and reconnection
        current = generation == self._generation
        if current:
            # connected and authenticated drop together
            self._state = SessionState.CLOSED
            self._ws = None
            self._stop_keepalive()
        logger.info(f"WebSocket closed: {self.url} (code={code}, reason={reason!r})")

        await self._emit(SessionEvent.CLOSE, code, reason)
        await self._emit(SessionEvent.DISCONNECTED)

        # A handler may already have called connect() or disconnect()
        if (
            generation == self._generation
            and self._state is SessionState.CLOSED
            and not self._intentional_close
            and self.config.auto_reconnect
        ):
            await self._attempt_reconnect()

    # -- reconnection ---------------------------------------------------------

    async def _attempt_reconnect(self) -> None:
        max_attempts = self.config.max_reconnect_attempts
        if max_attempts is not None and self.reconnect_attempts >= max_attempts:
            await self._emit_error(MaxReconnectAttemptsError(f"Max reconnect attempts reached ({max_attempts})"))
            return

        self.reconnect_attempts += 1
        delay = self.config.reconnect_delay
        logger.warning(f"Reconnecting to {self.url} in {delay}s (attempt {self.reconnect_attempts})")
        await self._emit(SessionEvent.RECONNECTING, self.reconnect_attempts)

        if self._intentional_close or self._state is not SessionState.CLOSED:
            return
        self._reconnect_handle = asyncio.get_running_loop().call_later(delay, self._reconnect)

    def _reconnect(self) -> None:
        self._reconnect_handle = None
        if not self._intentional_close:
            self.connect()

    def _cancel_reconnect(self) -> None:
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None

    # -- keep-alive -------------------------------------------------------------

    def _start_keepalive(self) -> None:
        self._stop_keepalive()
        self._ping_task = asyncio.get_running_loop().create_task(self._keepalive())

    def _stop_keepalive(self) -> None:
        task, self._ping_task = self._ping_task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    async def _keepalive(self) -> None:
        while True:
            await asyncio.sleep(self.config.ping_interval)
            if not (self.is_connected and self.is_authenticated):
                return
            try:
                await self.send({"type": "PING"})
            except ValrWebSocketError as exc:
                await self._emit_error(exc)
                return

    # -- outbound -----------------------------------------------------------------

    async def send(self, message: Any) -> None:
        """Serialize (unless already a string) and write one text frame.

        Raises:
            NotConnectedError: If the socket is not open
        """
        ws = self._ws
        if ws is None or ws.closed or not self.is_connected:
            raise NotConnectedError("WebSocket is not connected")

        data = message if isinstance(message, str) else json.dumps(message)
        try:
            await ws.send_str(data)
        except (ConnectionError, RuntimeError, aiohttp.ClientError) as exc:
            raise ValrWebSocketError(f"Failed to send message: {exc}") from exc

    @staticmethod
    def _subscription_payload(subscriptions: Sequence[SubscriptionLike]) -> List[Dict[str, Any]]:
        return [s.to_dict() if isinstance(s, Subscription) else dict(s) for s in subscriptions]

    async def subscribe(self, subscriptions: Sequence[SubscriptionLike]) -> None:
        """Send a SUBSCRIBE command; acknowledgements arrive as MESSAGE events."""
        await self.send({"type": "SUBSCRIBE", "subscriptions": self._subscription_payload(subscriptions)})

    async def unsubscribe(self, subscriptions: Sequence[SubscriptionLike]) -> None:
        await self.send({"type": "UNSUBSCRIBE", "subscriptions": self._subscription_payload(subscriptions)})
