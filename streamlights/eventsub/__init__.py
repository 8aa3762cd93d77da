"""EventSub websocket protocol: messages, framing, subscriptions and the listener."""

from streamlights.eventsub.events import EventType, NotificationEvent, parse_event
from streamlights.eventsub.framing import Frame, FrameKind, MessageAssembler
from streamlights.eventsub.listener import EventSubListener, HandlerResult, HandlerStatus
from streamlights.eventsub.messages import MessageType, decode_message, parse_message
from streamlights.eventsub.session import ListenerState, Session, SessionStatus
from streamlights.eventsub.subscriptions import SubscriptionRequest, build_subscription_requests
from streamlights.eventsub.transport import DuplexTransport, WebSocketTransport

__all__ = [
    "DuplexTransport",
    "EventSubListener",
    "EventType",
    "Frame",
    "FrameKind",
    "HandlerResult",
    "HandlerStatus",
    "ListenerState",
    "MessageAssembler",
    "MessageType",
    "NotificationEvent",
    "Session",
    "SessionStatus",
    "SubscriptionRequest",
    "WebSocketTransport",
    "build_subscription_requests",
    "decode_message",
    "parse_event",
    "parse_message",
]
