"""Flat JSON key/value store for credentials and bridge settings."""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path
from typing import Any

from loguru import logger

from streamlights.utils.helpers import mask_value

DEFAULT_SETTINGS: dict[str, str] = {
    "bridgeIp": "",
    "bridgeId": "",
    "AppKey": "",
    "HueStreamingClientKey": "",
    "AccessToken": "",
    "RefreshToken": "",
    "ClientSecret": "",
    "ClientId": "",
    "ChannelId": "",
    "RedirectUri": "http://localhost:8004/callback/",
    "ApplicationVersion": "0.0.1",
}

SENSITIVE_KEYS = frozenset(
    {
        "bridgeIp",
        "bridgeId",
        "HueStreamingClientKey",
        "AccessToken",
        "RefreshToken",
        "ClientSecret",
        "ClientId",
        "AppKey",
    }
)


class ConfigStore:
    """
    Single-file JSON document with a lazily loaded in-process cache.

    Loading and writing share one asyncio lock, so at most one writer touches
    the file at a time. Writes go to a sibling temp file that replaces the
    target in one rename; the cache only changes after the rename succeeded.
    """

    def __init__(
        self,
        path: Path | str,
        *,
        defaults: dict[str, str] | None = None,
        create: bool = True,
    ) -> None:
        self.path = Path(path).expanduser()
        self._lock = asyncio.Lock()
        self._cache: dict[str, Any] | None = None
        if create and not self.path.exists():
            self._initialize(dict(DEFAULT_SETTINGS if defaults is None else defaults))

    async def get(self, key: str, default: Any = None) -> Any:
        data = await self._load()
        return data.get(key, default)

    async def get_str(self, key: str, default: str = "") -> str:
        value = await self.get(key)
        if value is None:
            return default
        return str(value)

    async def update(self, key: str, value: Any) -> None:
        """Set one key and persist the whole document before refreshing the cache."""
        await self._load()
        async with self._lock:
            current = dict(self._cache or {})
            current[key] = value
            try:
                await asyncio.to_thread(self._write_atomic, current)
            except OSError as e:
                logger.error(f"Error writing settings file {self.path}: {e}")
                raise
            self._cache = current

    async def update_many(self, values: dict[str, Any]) -> None:
        await self._load()
        async with self._lock:
            current = dict(self._cache or {})
            current.update(values)
            try:
                await asyncio.to_thread(self._write_atomic, current)
            except OSError as e:
                logger.error(f"Error writing settings file {self.path}: {e}")
                raise
            self._cache = current

    async def as_dict(self) -> dict[str, str]:
        data = await self._load()
        return {str(k): "" if v is None else str(v) for k, v in data.items()}

    async def masked(self, sensitive_keys: frozenset[str] | set[str] = SENSITIVE_KEYS) -> dict[str, str]:
        data = await self.as_dict()
        return {
            key: (mask_value(value) if key in sensitive_keys else value)
            for key, value in data.items()
        }

    async def reload(self) -> None:
        """Drop the cache so the next read goes back to disk."""
        async with self._lock:
            self._cache = None

    async def _load(self) -> dict[str, Any]:
        cached = self._cache
        if cached is not None:
            return cached
        async with self._lock:
            if self._cache is None:
                self._cache = self._read_file()
            return self._cache

    def _read_file(self) -> dict[str, Any]:
        try:
            with self.path.open(encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Error reading settings file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Settings file {self.path} is not a JSON object, ignoring it")
            return {}
        return data

    def _initialize(self, defaults: dict[str, str]) -> None:
        try:
            self._write_atomic(defaults)
            logger.info(f"Created settings file {self.path}")
        except OSError as e:
            logger.warning(f"Could not create settings file {self.path}: {e}")

    def _write_atomic(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(f"{self.path.name}.tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, self.path)
