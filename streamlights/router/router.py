"""Maps typed EventSub notifications onto lamp commands and chat replies."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from loguru import logger

from streamlights.config.schema import LampsConfig
from streamlights.eventsub.events import (
    ChatMessageEvent,
    CheerEvent,
    EventType,
    GiftedSubscriptionEvent,
    NotificationEvent,
    ResubscriptionEvent,
    RewardRedemptionEvent,
    StreamStatusEvent,
    SubscriptionEvent,
)
from streamlights.lamps.commands import ALL_LAMPS, Command, RunEffect, SetColor
from streamlights.lamps.queue import CommandQueue
from streamlights.router.colors import ColorResolver, clean_user_input, invalid_effect_message
from streamlights.router.palettes import EventCategory, PaletteTable

ChatSender = Callable[[str], Awaitable[Any]]


@dataclass(slots=True)
class RouteResult:
    """Commands to enqueue, in order, and chat lines to post."""

    commands: list[Command] = field(default_factory=list)
    replies: list[str] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.commands and not self.replies


class NotificationRouter:
    """
    Pure mapping from `(event_type, event)` to a `RouteResult`.

    `route` holds no state beyond the color and palette tables; `dispatch`
    feeds the result into the command queue and the chat sender.
    """

    def __init__(
        self,
        queue: CommandQueue,
        *,
        colors: ColorResolver | None = None,
        palettes: PaletteTable,
        lamps: LampsConfig | None = None,
        dev_mode: bool = False,
        send_chat: ChatSender | None = None,
    ) -> None:
        self.queue = queue
        self.colors = colors or ColorResolver()
        self.palettes = palettes
        self.lamps = lamps or LampsConfig()
        self.dev_mode = dev_mode
        self._send_chat = send_chat

    def route(self, event_type: EventType, event: NotificationEvent) -> RouteResult:
        if event_type == EventType.REWARD_REDEMPTION:
            return self._reward_redemption(event)  # type: ignore[arg-type]
        elif event_type == EventType.SUBSCRIBE:
            return self._subscribe(event)  # type: ignore[arg-type]
        elif event_type == EventType.SUBSCRIPTION_GIFT:
            return self._celebrate(EventCategory.GIFTED_SUBSCRIPTION, event)
        elif event_type == EventType.SUBSCRIPTION_MESSAGE:
            return self._celebrate(EventCategory.RESUBSCRIPTION, event)
        elif event_type == EventType.CHEER:
            return self._celebrate(EventCategory.CHEER, event)
        elif event_type == EventType.CHAT_MESSAGE:
            return self._chat_message(event)  # type: ignore[arg-type]
        elif event_type in (EventType.STREAM_ONLINE, EventType.STREAM_OFFLINE):
            return self._stream_status(event)  # type: ignore[arg-type]
        logger.warning(f"No route for event type {event_type}")
        return RouteResult()

    async def dispatch(self, event_type: EventType, event: NotificationEvent) -> RouteResult:
        """Route one event, enqueue its commands in order and post its replies."""
        result = self.route(event_type, event)
        for command in result.commands:
            await self.queue.enqueue(command)
        for reply in result.replies:
            await self.send_reply(reply)
        return result

    async def send_reply(self, message: str) -> None:
        if self._send_chat is None:
            logger.info(f"Chat reply (no sender configured): {message}")
            return
        await self._send_chat(message)

    def _reward_redemption(self, event: RewardRedemptionEvent) -> RouteResult:
        lamp = self.lamps.reward_lamps.get(event.reward_title)
        if lamp is None:
            logger.info(f"Ignoring redemption of unmapped reward '{event.reward_title}' by {event.user_name}")
            return RouteResult()
        logger.info(f"{event.user_name} redeemed '{event.reward_title}' with '{event.user_input}'")
        return self._color_command(lamp, event.user_input, event.user_name)

    def _subscribe(self, event: SubscriptionEvent) -> RouteResult:
        if event.is_gift:
            # the gift itself is celebrated by channel.subscription.gift
            logger.info(f"{event.user_name} received a gifted subscription")
        return self._celebrate(EventCategory.SUBSCRIPTION, event)

    def _celebrate(self, category: EventCategory, event: NotificationEvent) -> RouteResult:
        palette, colors = self.palettes.for_category(category)
        logger.info(f"Playing '{palette}' for {category} from {_who(event)}")
        return RouteResult(
            commands=[
                RunEffect(
                    lamp=ALL_LAMPS,
                    palette=palette,
                    colors=colors,
                    duration_ms=self.lamps.effect_duration_ms,
                )
            ]
        )

    def _chat_message(self, event: ChatMessageEvent) -> RouteResult:
        if not self.dev_mode:
            return RouteResult()
        text = event.text.strip()
        if not text or len(text) >= self.lamps.max_chat_command_chars:
            return RouteResult()
        parts = text.split()
        if len(parts) < 2:
            return RouteResult()
        verb, argument = parts[0].lower(), parts[1]
        lamp = self.lamps.chat_lamp
        if verb == "color":
            return self._color_command(lamp, argument, event.chatter_user_name)
        if verb == "effect":
            return self._effect_command(lamp, argument, event.chatter_user_name)
        return RouteResult()

    def _color_command(self, lamp: str, user_input: str, username: str) -> RouteResult:
        color, reply = self.colors.resolve(clean_user_input(user_input), username)
        return RouteResult(
            commands=[SetColor(lamp=lamp, color=color)],
            replies=[reply] if reply else [],
        )

    def _effect_command(self, lamp: str, effect: str, username: str) -> RouteResult:
        palette, colors, found = self.palettes.resolve(effect)
        replies: list[str] = []
        if not found:
            logger.info(f"Effect '{effect}' from {username} is not a known palette")
            replies.append(invalid_effect_message(username, effect, self.palettes.names()))
        return RouteResult(
            commands=[
                RunEffect(
                    lamp=lamp,
                    palette=palette,
                    colors=colors,
                    duration_ms=self.lamps.effect_duration_ms,
                )
            ],
            replies=replies,
        )

    def _stream_status(self, event: StreamStatusEvent) -> RouteResult:
        state = "online" if event.online else "offline"
        logger.info(f"Stream {state}: {event.broadcaster_user_name}")
        return RouteResult()


def _who(event: NotificationEvent) -> str:
    if isinstance(event, (GiftedSubscriptionEvent, CheerEvent)) and event.is_anonymous:
        return "anonymous"
    if isinstance(event, (SubscriptionEvent, GiftedSubscriptionEvent, ResubscriptionEvent, CheerEvent)):
        return event.user_name or "unknown"
    return "unknown"
