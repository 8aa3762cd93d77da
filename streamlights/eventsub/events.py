"""Typed EventSub notification events."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Union


class EventType(StrEnum):
    """EventSub subscription types the router understands."""

    REWARD_REDEMPTION = "channel.channel_points_custom_reward_redemption.add"
    CHAT_MESSAGE = "channel.chat.message"
    SUBSCRIBE = "channel.subscribe"
    SUBSCRIPTION_GIFT = "channel.subscription.gift"
    SUBSCRIPTION_MESSAGE = "channel.subscription.message"
    CHEER = "channel.cheer"
    STREAM_ONLINE = "stream.online"
    STREAM_OFFLINE = "stream.offline"

    @classmethod
    def parse(cls, value: str) -> "EventType | None":
        try:
            return cls(str(value or "").strip())
        except ValueError:
            return None


@dataclass(slots=True)
class RewardRedemptionEvent:
    user_name: str
    user_input: str
    reward_id: str
    reward_title: str


@dataclass(slots=True)
class ChatMessageEvent:
    chatter_user_name: str
    text: str


@dataclass(slots=True)
class SubscriptionEvent:
    user_name: str
    tier: str
    is_gift: bool = False


@dataclass(slots=True)
class GiftedSubscriptionEvent:
    user_name: str
    total: int
    tier: str
    cumulative_total: int | None = None
    is_anonymous: bool = False


@dataclass(slots=True)
class ResubscriptionEvent:
    user_name: str
    tier: str
    message: str = ""
    cumulative_months: int = 0


@dataclass(slots=True)
class CheerEvent:
    user_name: str
    bits: int
    message: str = ""
    is_anonymous: bool = False


@dataclass(slots=True)
class StreamStatusEvent:
    broadcaster_user_name: str
    online: bool
    extra: dict[str, Any] = field(default_factory=dict)


NotificationEvent = Union[
    RewardRedemptionEvent,
    ChatMessageEvent,
    SubscriptionEvent,
    GiftedSubscriptionEvent,
    ResubscriptionEvent,
    CheerEvent,
    StreamStatusEvent,
]


def parse_event(event_type: EventType, body: dict[str, Any]) -> NotificationEvent:
    """Build the typed event for one notification body."""
    if not isinstance(body, dict):
        raise ValueError(f"event body for {event_type} must be an object")

    if event_type == EventType.REWARD_REDEMPTION:
        reward = body.get("reward") if isinstance(body.get("reward"), dict) else {}
        return RewardRedemptionEvent(
            user_name=_user_name(body),
            user_input=_text(body.get("user_input")),
            reward_id=_text(reward.get("id")),
            reward_title=_text(reward.get("title")),
        )
    if event_type == EventType.CHAT_MESSAGE:
        message = body.get("message")
        text = message.get("text") if isinstance(message, dict) else message
        return ChatMessageEvent(
            chatter_user_name=_text(body.get("chatter_user_name") or body.get("chatter_user_login")),
            text=_text(text),
        )
    if event_type == EventType.SUBSCRIBE:
        return SubscriptionEvent(
            user_name=_user_name(body),
            tier=_text(body.get("tier")),
            is_gift=bool(body.get("is_gift")),
        )
    if event_type == EventType.SUBSCRIPTION_GIFT:
        anonymous = bool(body.get("is_anonymous"))
        return GiftedSubscriptionEvent(
            user_name="" if anonymous else _user_name(body),
            total=_to_int(body.get("total"), 1),
            tier=_text(body.get("tier")),
            cumulative_total=_to_int(body.get("cumulative_total"), 0) if body.get("cumulative_total") is not None else None,
            is_anonymous=anonymous,
        )
    if event_type == EventType.SUBSCRIPTION_MESSAGE:
        message = body.get("message")
        return ResubscriptionEvent(
            user_name=_user_name(body),
            tier=_text(body.get("tier")),
            message=_text(message.get("text") if isinstance(message, dict) else message),
            cumulative_months=_to_int(body.get("cumulative_months"), 0),
        )
    if event_type == EventType.CHEER:
        anonymous = bool(body.get("is_anonymous"))
        return CheerEvent(
            user_name="" if anonymous else _user_name(body),
            bits=_to_int(body.get("bits"), 0),
            message=_text(body.get("message")),
            is_anonymous=anonymous,
        )
    if event_type in {EventType.STREAM_ONLINE, EventType.STREAM_OFFLINE}:
        return StreamStatusEvent(
            broadcaster_user_name=_text(body.get("broadcaster_user_name")),
            online=event_type == EventType.STREAM_ONLINE,
            extra={k: v for k, v in body.items() if k in {"type", "started_at", "id"}},
        )
    raise ValueError(f"unsupported event type: {event_type}")


def _user_name(body: dict[str, Any]) -> str:
    return _text(body.get("user_name") or body.get("user_login"))


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _to_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default
