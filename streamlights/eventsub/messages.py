"""EventSub websocket message envelope."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Union


class MessageType(StrEnum):
    """`metadata.message_type` values sent over the EventSub websocket."""

    WELCOME = "session_welcome"
    KEEPALIVE = "session_keepalive"
    RECONNECT = "session_reconnect"
    NOTIFICATION = "notification"
    REVOCATION = "revocation"


@dataclass(slots=True)
class MessageMetadata:
    message_id: str
    message_type: str
    message_timestamp: str
    subscription_type: str = ""
    subscription_version: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MessageMetadata":
        return cls(
            message_id=str(data.get("message_id") or ""),
            message_type=str(data.get("message_type") or ""),
            message_timestamp=str(data.get("message_timestamp") or ""),
            subscription_type=str(data.get("subscription_type") or ""),
            subscription_version=str(data.get("subscription_version") or ""),
        )


@dataclass(slots=True)
class SessionInfo:
    """`payload.session` of welcome and reconnect messages."""

    id: str
    status: str = ""
    keepalive_timeout_seconds: int | None = None
    reconnect_url: str | None = None
    connected_at: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SessionInfo":
        keepalive = data.get("keepalive_timeout_seconds")
        try:
            keepalive_s = int(keepalive) if keepalive is not None else None
        except (TypeError, ValueError):
            keepalive_s = None
        reconnect_url = data.get("reconnect_url")
        return cls(
            id=str(data.get("id") or ""),
            status=str(data.get("status") or ""),
            keepalive_timeout_seconds=keepalive_s,
            reconnect_url=str(reconnect_url) if reconnect_url else None,
            connected_at=str(data.get("connected_at") or ""),
        )


@dataclass(slots=True)
class WelcomeMessage:
    metadata: MessageMetadata
    session: SessionInfo


@dataclass(slots=True)
class KeepaliveMessage:
    metadata: MessageMetadata


@dataclass(slots=True)
class ReconnectMessage:
    metadata: MessageMetadata
    session: SessionInfo


@dataclass(slots=True)
class NotificationMessage:
    metadata: MessageMetadata
    subscription: dict[str, Any] = field(default_factory=dict)
    event: dict[str, Any] = field(default_factory=dict)

    @property
    def event_type(self) -> str:
        """Event type from the subscription block, falling back to metadata."""
        return str(self.subscription.get("type") or self.metadata.subscription_type or "").strip()


@dataclass(slots=True)
class RevocationMessage:
    metadata: MessageMetadata
    subscription: dict[str, Any] = field(default_factory=dict)


EventSubMessage = Union[
    WelcomeMessage,
    KeepaliveMessage,
    ReconnectMessage,
    NotificationMessage,
    RevocationMessage,
]


def decode_message(raw: bytes | str) -> EventSubMessage:
    """Decode one reassembled websocket message."""
    text = raw.decode("utf-8") if isinstance(raw, (bytes, bytearray)) else str(raw)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"invalid message json: {e}") from e
    return parse_message(data)


def parse_message(data: Any) -> EventSubMessage:
    """Map a raw envelope dict onto its typed message."""
    if not isinstance(data, dict):
        raise ValueError("message must be a JSON object")
    raw_metadata = data.get("metadata")
    if not isinstance(raw_metadata, dict):
        raise ValueError("message metadata is required")
    metadata = MessageMetadata.from_dict(raw_metadata)
    if not metadata.message_type:
        raise ValueError("metadata.message_type is required")
    payload = data.get("payload")
    if not isinstance(payload, dict):
        payload = {}

    try:
        message_type = MessageType(metadata.message_type)
    except ValueError:
        raise ValueError(f"unknown message type: {metadata.message_type}") from None

    if message_type == MessageType.WELCOME:
        return WelcomeMessage(metadata=metadata, session=_session(payload, required=True))
    if message_type == MessageType.KEEPALIVE:
        return KeepaliveMessage(metadata=metadata)
    if message_type == MessageType.RECONNECT:
        session = _session(payload, required=True)
        if not session.reconnect_url:
            raise ValueError("session_reconnect without reconnect_url")
        return ReconnectMessage(metadata=metadata, session=session)
    if message_type == MessageType.NOTIFICATION:
        subscription = payload.get("subscription")
        event = payload.get("event")
        return NotificationMessage(
            metadata=metadata,
            subscription=subscription if isinstance(subscription, dict) else {},
            event=event if isinstance(event, dict) else {},
        )
    subscription = payload.get("subscription")
    return RevocationMessage(
        metadata=metadata,
        subscription=subscription if isinstance(subscription, dict) else {},
    )


def _session(payload: dict[str, Any], *, required: bool) -> SessionInfo:
    raw = payload.get("session")
    if not isinstance(raw, dict):
        if required:
            raise ValueError("payload.session is required")
        raw = {}
    session = SessionInfo.from_dict(raw)
    if required and not session.id:
        raise ValueError("payload.session.id is required")
    return session
