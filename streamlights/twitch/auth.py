"""Bearer token validation and refresh for Twitch calls."""

from __future__ import annotations

import asyncio
from typing import Callable

import httpx
from loguru import logger

from streamlights.config.store import ConfigStore
from streamlights.errors import CredentialError

ClientFactory = Callable[[], httpx.AsyncClient]

ACCESS_TOKEN_KEY = "AccessToken"
REFRESH_TOKEN_KEY = "RefreshToken"
CLIENT_ID_KEY = "ClientId"
CLIENT_SECRET_KEY = "ClientSecret"


class CredentialGuard:
    """Keeps the stored access token valid, refreshing and persisting it when needed."""

    def __init__(
        self,
        store: ConfigStore,
        *,
        oauth_base_url: str = "https://id.twitch.tv/oauth2",
        timeout_seconds: float = 10.0,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self.store = store
        self.oauth_base_url = str(oauth_base_url or "").rstrip("/")
        self.timeout_seconds = max(0.5, float(timeout_seconds))
        self._client_factory = client_factory or self._default_client
        self._refresh_lock = asyncio.Lock()

    async def access_token(self) -> str:
        return (await self.store.get_str(ACCESS_TOKEN_KEY)).strip()

    async def client_id(self) -> str:
        return (await self.store.get_str(CLIENT_ID_KEY)).strip()

    async def ensure_valid(self) -> str:
        """Return a token that passed validation, refreshing it first when it did not."""
        token = await self.access_token()
        if token and await self.validate(token):
            return token
        logger.warning("AccessToken is invalid, refreshing for a new token...")
        return await self.refresh()

    async def validate(self, token: str) -> bool:
        headers = {"Authorization": f"OAuth {token}"}
        async with self._client_factory() as client:
            resp = await client.get(f"{self.oauth_base_url}/validate", headers=headers)
        if resp.status_code == 200:
            return True
        if resp.status_code == 401:
            return False
        resp.raise_for_status()
        return False

    async def refresh(self) -> str:
        """Exchange the refresh token for a new access token and persist it."""
        async with self._refresh_lock:
            refresh_token = (await self.store.get_str(REFRESH_TOKEN_KEY)).strip()
            if not refresh_token:
                raise CredentialError("OAuth token is invalid, and no refresh token is available.")
            form = {
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
                "client_id": await self.client_id(),
                "client_secret": (await self.store.get_str(CLIENT_SECRET_KEY)).strip(),
            }
            try:
                async with self._client_factory() as client:
                    resp = await client.post(f"{self.oauth_base_url}/token", data=form)
            except httpx.HTTPError as e:
                raise CredentialError(f"Failed to refresh the OAuth token: {e}") from e
            if resp.status_code != 200:
                raise CredentialError(f"Failed to refresh the OAuth token (status {resp.status_code}).")
            data = resp.json()
            access_token = str((data or {}).get("access_token") or "").strip()
            if not access_token:
                raise CredentialError("Failed to refresh the OAuth token.")
            updates = {ACCESS_TOKEN_KEY: access_token}
            rotated = str((data or {}).get("refresh_token") or "").strip()
            if rotated and rotated != refresh_token:
                updates[REFRESH_TOKEN_KEY] = rotated
            await self.store.update_many(updates)
            logger.info("AccessToken refreshed")
            return access_token

    def _default_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout_seconds)
