"""EventSub websocket listener: connect, listen, dispatch and reconnect."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from loguru import logger

from streamlights.config.schema import Config
from streamlights.errors import CredentialError, QueueClosedError, ReconnectExhaustedError
from streamlights.eventsub.events import EventType, parse_event
from streamlights.eventsub.framing import FrameKind, MessageAssembler
from streamlights.eventsub.messages import (
    EventSubMessage,
    MessageType,
    NotificationMessage,
    ReconnectMessage,
    RevocationMessage,
    WelcomeMessage,
    decode_message,
)
from streamlights.eventsub.session import ListenerState, Session, SessionStatus
from streamlights.eventsub.subscriptions import build_subscription_requests
from streamlights.eventsub.transport import DuplexTransport, WebSocketTransport
from streamlights.utils.helpers import now_ms

if TYPE_CHECKING:
    from streamlights.router.router import NotificationRouter
    from streamlights.twitch.auth import CredentialGuard
    from streamlights.twitch.helix import HelixClient

TransportFactory = Callable[[], DuplexTransport]
SleepFn = Callable[[float], Awaitable[Any]]

NORMAL_CLOSURE = 1000


class HandlerStatus(StrEnum):
    OK = "ok"
    RECOVERABLE = "recoverable"
    FATAL = "fatal"


@dataclass(slots=True)
class HandlerResult:
    """Outcome of handling one message or one receive step."""

    status: HandlerStatus = HandlerStatus.OK
    reason: str = ""
    error: BaseException | None = None

    @classmethod
    def ok(cls, reason: str = "") -> "HandlerResult":
        return cls(HandlerStatus.OK, reason)

    @classmethod
    def recoverable(cls, reason: str, error: BaseException | None = None) -> "HandlerResult":
        return cls(HandlerStatus.RECOVERABLE, reason, error)

    @classmethod
    def fatal(cls, reason: str, error: BaseException | None = None) -> "HandlerResult":
        return cls(HandlerStatus.FATAL, reason, error)


class EventSubListener:
    """
    Owns the single EventSub session.

    Messages are handled strictly in receive order; each handler finishes
    before the next frame is read. Transport failures and abnormal closes run
    the reconnect protocol against the default URL: a bounded number of
    attempts with a fixed delay between them. Running out of attempts closes
    the listener and raises `ReconnectExhaustedError`.
    """

    def __init__(
        self,
        *,
        guard: "CredentialGuard",
        helix: "HelixClient",
        router: "NotificationRouter",
        config: Config | None = None,
        transport_factory: TransportFactory | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.guard = guard
        self.helix = helix
        self.router = router
        self.config = config or Config()
        self._transport_factory = transport_factory or self._default_transport
        self._sleep = sleep
        self._assembler = MessageAssembler()
        self._transport: DuplexTransport | None = None
        self._session: Session | None = None
        self._state = ListenerState.CONNECTING
        self._stopping = False
        self.subscribed: list[str] = []
        self._messages_total = 0
        self._dropped_total = 0
        self._notifications_total = 0
        self._reconnects_total = 0
        self._last_message_ms = 0

    @property
    def state(self) -> ListenerState:
        return self._state

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def dev_mode(self) -> bool:
        return self.config.eventsub.dev_mode

    async def run(self, url: str | None = None) -> None:
        """Connect and listen until the listener is closed."""
        self._stopping = False
        target = url or self.config.eventsub.default_url()
        try:
            await self.validate_and_connect(target)
        except CredentialError:
            await self.close()
            raise
        except Exception as e:
            logger.warning(f"Initial EventSub connection to {target} failed: {e}")
            await self._reconnect(str(e))
        await self.listen()

    async def validate_and_connect(self, url: str) -> None:
        """Validate credentials, open the transport and start a fresh session."""
        if self._state != ListenerState.RECONNECTING:
            self._state = ListenerState.CONNECTING
        token = await self.guard.ensure_valid()
        headers = {
            "Client-Id": await self.guard.client_id(),
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        await self._close_transport(NORMAL_CLOSURE, "")
        transport = self._transport_factory()
        await transport.connect(url, headers)
        self._transport = transport
        self._assembler.reset()
        self._session = Session(url=url, status=SessionStatus.OPEN)
        self._state = ListenerState.OPEN
        logger.info(f"Connected to EventSub at {url}")

    async def listen(self) -> None:
        """Receive, reassemble and dispatch messages while the session is open."""
        while self._state == ListenerState.OPEN:
            result = await self._step()
            if result.status == HandlerStatus.OK:
                continue
            if self._stopping:
                break
            if result.status == HandlerStatus.FATAL:
                logger.error(f"EventSub listener stopped: {result.reason}")
                await self.close()
                if result.error is not None:
                    raise result.error
                return
            logger.warning(f"EventSub connection lost: {result.reason}")
            await self._reconnect(result.reason)

    async def handle_raw(self, raw: bytes) -> HandlerResult:
        """Decode one complete message and dispatch it; malformed input is dropped."""
        self._messages_total += 1
        self._last_message_ms = now_ms()
        if self.dev_mode:
            logger.debug(f"EventSub payload: {raw.decode('utf-8', errors='replace')}")
        try:
            message = decode_message(raw)
        except ValueError as e:
            self._dropped_total += 1
            logger.warning(f"Dropping malformed EventSub message: {e}")
            return HandlerResult.ok("dropped")
        return await self.handle_message(message)

    async def handle_message(self, message: EventSubMessage) -> HandlerResult:
        message_type = MessageType(message.metadata.message_type)
        if message_type == MessageType.WELCOME:
            return await self._on_welcome(message)  # type: ignore[arg-type]
        elif message_type == MessageType.KEEPALIVE:
            return HandlerResult.ok()
        elif message_type == MessageType.RECONNECT:
            return await self._on_reconnect(message)  # type: ignore[arg-type]
        elif message_type == MessageType.NOTIFICATION:
            return await self._on_notification(message)  # type: ignore[arg-type]
        elif message_type == MessageType.REVOCATION:
            return self._on_revocation(message)  # type: ignore[arg-type]
        return HandlerResult.ok("unhandled")

    async def close(self) -> None:
        """Shut the session down; no reconnect follows."""
        self._stopping = True
        self._state = ListenerState.CLOSED
        if self._session is not None:
            self._session = self._session.closed()
        await self._close_transport(NORMAL_CLOSURE, "Closing")
        logger.info("EventSub listener closed")

    def status_snapshot(self) -> dict[str, Any]:
        return {
            "state": self._state.value,
            "session": self._session.to_status() if self._session else None,
            "subscribed": list(self.subscribed),
            "messages_total": self._messages_total,
            "dropped_total": self._dropped_total,
            "notifications_total": self._notifications_total,
            "reconnects_total": self._reconnects_total,
            "last_message_ms": self._last_message_ms,
        }

    async def _step(self) -> HandlerResult:
        transport = self._transport
        if transport is None:
            return HandlerResult.recoverable("no transport")
        try:
            frame = await transport.receive()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            return HandlerResult.recoverable(f"receive failed: {e}", e)
        if frame.kind == FrameKind.CLOSE:
            self._assembler.reset()
            return HandlerResult.recoverable(
                f"connection closed code={frame.close_code} reason={frame.close_reason or '-'}"
            )
        try:
            raw = self._assembler.feed(frame)
        except ValueError as e:
            self._dropped_total += 1
            logger.warning(f"Dropping EventSub message: {e}")
            return HandlerResult.ok("dropped")
        if raw is None:
            return HandlerResult.ok()
        try:
            return await self.handle_raw(raw)
        except asyncio.CancelledError:
            raise
        except CredentialError as e:
            return HandlerResult.fatal(str(e), e)
        except Exception as e:
            logger.error(f"Unhandled error while handling EventSub message: {e}")
            return HandlerResult.recoverable(f"handler failed: {e}", e)

    async def _on_welcome(self, message: WelcomeMessage) -> HandlerResult:
        session = self._session or Session(url=self.config.eventsub.default_url())
        self._session = session.with_welcome(
            message.session.id,
            message.session.keepalive_timeout_seconds,
        )
        logger.info(f"EventSub session {message.session.id} ready")
        broadcaster_id = await self.helix.broadcaster_id()
        requests = build_subscription_requests(
            session_id=message.session.id,
            broadcaster_id=broadcaster_id,
            event_types=self.config.eventsub.event_types,
            version=self.config.eventsub.subscription_version,
            include_chat=self.dev_mode,
        )
        self.subscribed = []
        for request in requests:
            try:
                ok = await self.helix.create_subscription(request)
            except CredentialError as e:
                return HandlerResult.fatal(str(e), e)
            if ok:
                self.subscribed.append(request.type)
        return HandlerResult.ok(f"subscribed {len(self.subscribed)}/{len(requests)}")

    async def _on_reconnect(self, message: ReconnectMessage) -> HandlerResult:
        url = message.session.reconnect_url or self.config.eventsub.default_url()
        logger.info(f"EventSub requested reconnect to {url}")
        if self._session is not None:
            self._session = self._session.with_reconnect(url)
        self._state = ListenerState.RECONNECTING
        await self._close_transport(NORMAL_CLOSURE, "Reconnecting")
        try:
            await self.validate_and_connect(url)
        except CredentialError as e:
            return HandlerResult.fatal(str(e), e)
        except Exception as e:
            return HandlerResult.recoverable(f"reconnect to {url} failed: {e}", e)
        self._reconnects_total += 1
        return HandlerResult.ok("reconnected")

    async def _on_notification(self, message: NotificationMessage) -> HandlerResult:
        raw_type = message.event_type
        event_type = EventType.parse(raw_type)
        if event_type is None:
            logger.info(f"Ignoring notification for unsupported event type '{raw_type}'")
            return HandlerResult.ok("ignored")
        try:
            event = parse_event(event_type, message.event)
        except ValueError as e:
            self._dropped_total += 1
            logger.warning(f"Dropping {event_type} notification: {e}")
            return HandlerResult.ok("dropped")
        self._notifications_total += 1
        try:
            await self.router.dispatch(event_type, event)
        except QueueClosedError as e:
            return HandlerResult.fatal(f"command queue stopped: {e}")
        return HandlerResult.ok()

    def _on_revocation(self, message: RevocationMessage) -> HandlerResult:
        sub = message.subscription
        logger.warning(
            f"EventSub subscription revoked type={sub.get('type', '?')} status={sub.get('status', '?')}"
        )
        event_type = str(sub.get("type") or "")
        if event_type in self.subscribed:
            self.subscribed.remove(event_type)
        return HandlerResult.ok("revoked")

    async def _reconnect(self, reason: str) -> None:
        policy = self.config.reconnect
        attempts = max(1, int(policy.max_attempts))
        url = self.config.eventsub.default_url()
        self._state = ListenerState.RECONNECTING
        await self._close_transport(NORMAL_CLOSURE, "Reconnecting")
        last_error = reason
        for attempt in range(1, attempts + 1):
            logger.info(f"Attempting to reconnect... (attempt {attempt}/{attempts})")
            try:
                await self.validate_and_connect(url)
            except asyncio.CancelledError:
                raise
            except CredentialError:
                await self.close()
                raise
            except Exception as e:
                last_error = str(e)
                logger.warning(f"Reconnection attempt {attempt} failed: {e}")
                if attempt < attempts:
                    await self._sleep(policy.delay_seconds)
                continue
            self._reconnects_total += 1
            logger.info("Reconnected successfully")
            return
        self._state = ListenerState.CLOSED
        if self._session is not None:
            self._session = self._session.closed()
        logger.error(f"Giving up on EventSub after {attempts} reconnect attempts")
        raise ReconnectExhaustedError(attempts, last_error)

    async def _close_transport(self, code: int, reason: str) -> None:
        transport = self._transport
        self._transport = None
        self._assembler.reset()
        if transport is not None:
            await transport.close(code, reason)

    def _default_transport(self) -> DuplexTransport:
        eventsub = self.config.eventsub
        return WebSocketTransport(
            receive_buffer_size=eventsub.receive_buffer_size,
            open_timeout_seconds=eventsub.open_timeout_seconds,
        )
