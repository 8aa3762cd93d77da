"""Helix REST client for subscription registration and chat replies."""

from __future__ import annotations

from typing import Any, Callable

import httpx
from loguru import logger

from streamlights.config.store import ConfigStore
from streamlights.eventsub.subscriptions import SubscriptionRequest
from streamlights.twitch.auth import CredentialGuard

ClientFactory = Callable[[], httpx.AsyncClient]

CHANNEL_ID_KEY = "ChannelId"

HELIX_PATHS = {
    "AddSubscription": "/eventsub/subscriptions",
    "ChatMessage": "/chat/messages",
}


class HelixClient:
    """Posts JSON to Helix with the current bearer token; retries once after a 401."""

    def __init__(
        self,
        store: ConfigStore,
        guard: CredentialGuard,
        *,
        base_url: str = "https://api.twitch.tv/helix",
        timeout_seconds: float = 10.0,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self.store = store
        self.guard = guard
        self.base_url = str(base_url or "").rstrip("/")
        self.timeout_seconds = max(0.5, float(timeout_seconds))
        self._client_factory = client_factory or self._default_client

    async def broadcaster_id(self) -> str:
        return (await self.store.get_str(CHANNEL_ID_KEY)).strip()

    async def post(self, kind: str, body: dict[str, Any]) -> httpx.Response:
        path = HELIX_PATHS.get(kind)
        if path is None:
            raise ValueError(f"The type '{kind}' is not valid.")
        url = f"{self.base_url}{path}"
        async with self._client_factory() as client:
            resp = await client.post(url, json=body, headers=await self._headers())
            if resp.status_code == 401:
                logger.warning("OAuth token is invalid or expired. Attempting to refresh...")
                await self.guard.refresh()
                resp = await client.post(url, json=body, headers=await self._headers())
        return resp

    async def create_subscription(self, request: SubscriptionRequest) -> bool:
        try:
            resp = await self.post("AddSubscription", request.to_dict())
        except httpx.HTTPError as e:
            logger.warning(f"Subscription request for {request.type} failed: {e}")
            return False
        if resp.is_success:
            logger.info(f"Subscribed to EventSub event: {request.type}")
            return True
        logger.warning(
            f"Failed to subscribe to EventSub event: {request.type} "
            f"status={resp.status_code} body={_short_body(resp)}"
        )
        return False

    async def send_chat_message(self, message: str) -> bool:
        broadcaster_id = await self.broadcaster_id()
        body = {
            "broadcaster_id": broadcaster_id,
            "sender_id": broadcaster_id,
            "message": message,
        }
        try:
            resp = await self.post("ChatMessage", body)
        except httpx.HTTPError as e:
            logger.warning(f"Failed to send chat message: {e}")
            return False
        if not resp.is_success:
            logger.warning(f"Failed to send chat message. Status code: {resp.status_code}")
            return False
        return True

    async def _headers(self) -> dict[str, str]:
        return {
            "Client-Id": await self.guard.client_id(),
            "Authorization": f"Bearer {await self.guard.access_token()}",
            "Content-Type": "application/json",
        }

    def _default_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout_seconds)


def _short_body(resp: httpx.Response, limit: int = 200) -> str:
    text = resp.text or ""
    return text if len(text) <= limit else text[: limit - 3] + "..."
