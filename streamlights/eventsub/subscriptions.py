"""EventSub subscription requests issued for each new session."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from streamlights.eventsub.events import EventType


@dataclass(slots=True)
class SubscriptionRequest:
    """Body of one `POST /helix/eventsub/subscriptions` call."""

    type: str
    version: str
    condition: dict[str, str]
    session_id: str
    method: str = "websocket"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "version": self.version,
            "condition": dict(self.condition),
            "transport": {"method": self.method, "session_id": self.session_id},
        }


def build_condition(event_type: str, broadcaster_id: str) -> dict[str, str]:
    """Condition block for one event type; chat messages are read as the broadcaster."""
    condition = {"broadcaster_user_id": broadcaster_id}
    if event_type == EventType.CHAT_MESSAGE:
        condition["user_id"] = broadcaster_id
    return condition


def build_subscription_requests(
    *,
    session_id: str,
    broadcaster_id: str,
    event_types: list[str],
    version: str = "1",
    include_chat: bool = False,
) -> list[SubscriptionRequest]:
    """One request per configured event type, deduplicated, in configured order."""
    types = [str(t).strip() for t in event_types if str(t).strip()]
    if include_chat and EventType.CHAT_MESSAGE.value not in types:
        types.append(EventType.CHAT_MESSAGE.value)
    seen: set[str] = set()
    requests: list[SubscriptionRequest] = []
    for event_type in types:
        if event_type in seen:
            continue
        seen.add(event_type)
        requests.append(
            SubscriptionRequest(
                type=event_type,
                version=version,
                condition=build_condition(event_type, broadcaster_id),
                session_id=session_id,
            )
        )
    return requests
