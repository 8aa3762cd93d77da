"""EventSub session value and listener states."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from enum import StrEnum
from typing import Any

from streamlights.utils.helpers import now_ms


class SessionStatus(StrEnum):
    """Lifecycle of one EventSub session."""

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class ListenerState(StrEnum):
    """High-level state of the EventSub listener."""

    CONNECTING = "connecting"
    OPEN = "open"
    RECONNECTING = "reconnecting"
    CLOSED = "closed"


@dataclass(frozen=True, slots=True)
class Session:
    """One logical websocket session; replaced, never mutated."""

    url: str
    session_id: str = ""
    status: SessionStatus = SessionStatus.CONNECTING
    reconnect_url: str | None = None
    keepalive_timeout_seconds: int | None = None
    connected_at_ms: int = field(default_factory=now_ms)

    def with_welcome(self, session_id: str, keepalive_timeout_seconds: int | None = None) -> "Session":
        return replace(
            self,
            session_id=session_id,
            status=SessionStatus.OPEN,
            keepalive_timeout_seconds=keepalive_timeout_seconds,
        )

    def with_reconnect(self, reconnect_url: str) -> "Session":
        return replace(self, reconnect_url=reconnect_url)

    def closed(self) -> "Session":
        return replace(self, status=SessionStatus.CLOSED)

    def to_status(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data
