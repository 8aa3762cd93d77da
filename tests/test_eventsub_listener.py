from __future__ import annotations

import json
from collections import deque
from typing import Any

import pytest

from streamlights.config.schema import EVENTSUB_URL, Config
from streamlights.errors import CredentialError, ReconnectExhaustedError
from streamlights.eventsub import (
    DuplexTransport,
    EventSubListener,
    EventType,
    Frame,
    FrameKind,
    ListenerState,
    Session,
)
from streamlights.eventsub.subscriptions import SubscriptionRequest


def _envelope(message_type: str, payload: dict[str, Any] | None = None) -> dict[str, Any]:
    return {
        "metadata": {
            "message_id": f"id-{message_type}",
            "message_type": message_type,
            "message_timestamp": "2024-01-01T00:00:00Z",
        },
        "payload": payload or {},
    }


def _frame(data: dict[str, Any]) -> Frame:
    return Frame(json.dumps(data).encode("utf-8"))


def _welcome(session_id: str) -> Frame:
    return _frame(_envelope("session_welcome", {"session": {"id": session_id, "status": "connected"}}))


def _reconnect(url: str) -> Frame:
    return _frame(_envelope("session_reconnect", {"session": {"id": "old", "reconnect_url": url}}))


def _notification(event_type: str, event: dict[str, Any]) -> Frame:
    return _frame(_envelope("notification", {"subscription": {"type": event_type}, "event": event}))


def _close(code: int = 1006) -> Frame:
    return Frame(b"", kind=FrameKind.CLOSE, close_code=code, close_reason="gone")


class _Hub:
    """Scripts what each successive connection receives."""

    def __init__(self, scripts: list[list[Frame]], *, fail_after: int | None = None) -> None:
        self.scripts = deque(scripts)
        self.fail_after = fail_after
        self.connects: list[tuple[str, dict[str, str]]] = []
        self.closes: list[tuple[int, str]] = []
        self.states_at_idle: list[ListenerState] = []
        self.sessions_at_connect: list[Session | None] = []
        self.listener: EventSubListener | None = None

    def factory(self) -> "_FakeTransport":
        return _FakeTransport(self)

    async def idle(self) -> None:
        assert self.listener is not None
        self.states_at_idle.append(self.listener.state)
        await self.listener.close()


class _FakeTransport(DuplexTransport):
    def __init__(self, hub: _Hub) -> None:
        self.hub = hub
        self._open = False
        self.frames: deque[Frame] = deque()

    @property
    def is_open(self) -> bool:
        return self._open

    async def connect(self, url: str, headers: dict[str, str]) -> None:
        self.hub.connects.append((url, dict(headers)))
        self.hub.sessions_at_connect.append(self.hub.listener.session if self.hub.listener else None)
        if self.hub.fail_after is not None and len(self.hub.connects) > self.hub.fail_after:
            raise OSError("connection refused")
        self._open = True
        self.frames = deque(self.hub.scripts.popleft() if self.hub.scripts else [])

    async def receive(self) -> Frame:
        if self.frames:
            return self.frames.popleft()
        await self.hub.idle()
        return Frame(b"", kind=FrameKind.CLOSE, close_reason="script finished")

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self.hub.closes.append((code, reason))
        self._open = False


class _FakeGuard:
    def __init__(self, *, error: Exception | None = None) -> None:
        self.error = error
        self.validations = 0

    async def ensure_valid(self) -> str:
        self.validations += 1
        if self.error is not None:
            raise self.error
        return "tok"

    async def client_id(self) -> str:
        return "cid"


class _FakeHelix:
    def __init__(self) -> None:
        self.requests: list[SubscriptionRequest] = []

    async def broadcaster_id(self) -> str:
        return "42"

    async def create_subscription(self, request: SubscriptionRequest) -> bool:
        self.requests.append(request)
        return request.type != "stream.offline"


class _FakeRouter:
    def __init__(self) -> None:
        self.calls: list[tuple[EventType, Any]] = []

    async def dispatch(self, event_type: EventType, event: Any) -> None:
        self.calls.append((event_type, event))


def _listener(hub: _Hub, *, guard: _FakeGuard | None = None) -> tuple[EventSubListener, _FakeHelix, _FakeRouter, list[float]]:
    helix = _FakeHelix()
    router = _FakeRouter()
    sleeps: list[float] = []

    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    listener = EventSubListener(
        guard=guard or _FakeGuard(),  # type: ignore[arg-type]
        helix=helix,  # type: ignore[arg-type]
        router=router,  # type: ignore[arg-type]
        config=Config(),
        transport_factory=hub.factory,
        sleep=_sleep,
    )
    hub.listener = listener
    return listener, helix, router, sleeps


@pytest.mark.asyncio
async def test_welcome_registers_one_subscription_per_event_type() -> None:
    hub = _Hub([[_welcome("abc123")]])
    listener, helix, _, _ = _listener(hub)

    await listener.run("ws://test/ws")

    config = Config()
    assert [r.type for r in helix.requests] == config.eventsub.event_types
    assert {r.session_id for r in helix.requests} == {"abc123"}
    assert listener.session is not None
    assert listener.session.session_id == "abc123"
    assert "stream.offline" not in listener.subscribed
    assert hub.connects[0][0] == "ws://test/ws"
    assert hub.connects[0][1] == {
        "Client-Id": "cid",
        "Authorization": "Bearer tok",
        "Content-Type": "application/json",
    }
    assert listener.state == ListenerState.CLOSED


@pytest.mark.asyncio
async def test_unknown_event_type_is_dropped_and_session_stays_open() -> None:
    hub = _Hub([[_welcome("abc123"), _notification("channel.follow", {"user_name": "x"})]])
    listener, _, router, _ = _listener(hub)

    await listener.run("ws://test/ws")

    assert router.calls == []
    assert hub.states_at_idle == [ListenerState.OPEN]


@pytest.mark.asyncio
async def test_malformed_messages_are_dropped_without_reconnect() -> None:
    hub = _Hub(
        [
            [
                _welcome("abc123"),
                Frame(b"{broken"),
                _frame({"metadata": {"message_type": "session_party"}}),
                _notification("channel.cheer", {"bits": "oops"}),
            ]
        ]
    )
    listener, _, router, sleeps = _listener(hub)

    await listener.run("ws://test/ws")

    assert len(router.calls) == 1
    assert router.calls[0][0] == EventType.CHEER
    assert router.calls[0][1].bits == 0
    assert len(hub.connects) == 1
    assert sleeps == []
    assert listener.status_snapshot()["dropped_total"] == 2


@pytest.mark.asyncio
async def test_notifications_are_dispatched_in_receive_order() -> None:
    frames = [_welcome("abc123")] + [
        _notification("channel.cheer", {"user_name": f"u{i}", "bits": i}) for i in range(1, 6)
    ]
    hub = _Hub([frames])
    listener, _, router, _ = _listener(hub)

    await listener.run("ws://test/ws")

    assert [event.bits for _, event in router.calls] == [1, 2, 3, 4, 5]


@pytest.mark.asyncio
async def test_fragmented_message_is_reassembled() -> None:
    raw = json.dumps(
        _envelope(
            "notification",
            {
                "subscription": {"type": "channel.channel_points_custom_reward_redemption.add"},
                "event": {
                    "user_name": "viewer",
                    "user_input": "#FF00FF",
                    "reward": {"id": "r", "title": "Change left lamp color"},
                },
            },
        )
    ).encode("utf-8")
    chunks = [raw[i : i + 16] for i in range(0, len(raw), 16)]
    frames = [Frame(c, end_of_message=False) for c in chunks[:-1]] + [Frame(chunks[-1])]
    hub = _Hub([[_welcome("abc123")] + frames])
    listener, _, router, _ = _listener(hub)

    await listener.run("ws://test/ws")

    assert len(router.calls) == 1
    event_type, event = router.calls[0]
    assert event_type == EventType.REWARD_REDEMPTION
    assert event.user_input == "#FF00FF"


@pytest.mark.asyncio
async def test_reconnect_message_moves_to_new_url_and_resubscribes() -> None:
    hub = _Hub(
        [
            [_welcome("abc123"), _reconnect("wss://edge.example/ws")],
            [_welcome("def456")],
        ]
    )
    listener, helix, _, sleeps = _listener(hub)

    await listener.run("ws://test/ws")

    assert [url for url, _ in hub.connects] == ["ws://test/ws", "wss://edge.example/ws"]
    assert (1000, "Reconnecting") in hub.closes
    sessions = [r.session_id for r in helix.requests]
    per_session = len(Config().eventsub.event_types)
    assert sessions == ["abc123"] * per_session + ["def456"] * per_session
    assert listener.session is not None
    assert listener.session.session_id == "def456"
    assert sleeps == []
    previous = hub.sessions_at_connect[1]
    assert previous is not None
    assert previous.session_id == "abc123"
    assert previous.reconnect_url == "wss://edge.example/ws"
    assert listener.session.reconnect_url is None


@pytest.mark.asyncio
async def test_abnormal_close_reconnects_to_default_url() -> None:
    hub = _Hub([[_welcome("abc123"), _close()], [_welcome("def456")]])
    listener, _, _, sleeps = _listener(hub)

    await listener.run("ws://test/ws")

    assert [url for url, _ in hub.connects] == ["ws://test/ws", EVENTSUB_URL]
    assert listener.status_snapshot()["reconnects_total"] == 1
    assert sleeps == []


@pytest.mark.asyncio
async def test_reconnect_exhaustion_closes_and_raises() -> None:
    hub = _Hub([[_welcome("abc123"), _close()]], fail_after=1)
    listener, _, _, sleeps = _listener(hub)

    with pytest.raises(ReconnectExhaustedError) as exc_info:
        await listener.run("ws://test/ws")

    assert exc_info.value.attempts == 5
    assert [url for url, _ in hub.connects[1:]] == [EVENTSUB_URL] * 5
    assert sleeps == [2.5, 2.5, 2.5, 2.5]
    assert listener.state == ListenerState.CLOSED


@pytest.mark.asyncio
async def test_missing_refresh_token_is_fatal() -> None:
    hub = _Hub([[_welcome("abc123")]])
    guard = _FakeGuard(error=CredentialError("OAuth token is invalid, and no refresh token is available."))
    listener, _, _, sleeps = _listener(hub, guard=guard)

    with pytest.raises(CredentialError):
        await listener.run("ws://test/ws")

    assert hub.connects == []
    assert sleeps == []
    assert listener.state == ListenerState.CLOSED
