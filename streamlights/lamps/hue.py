"""Thin Hue bridge client satisfying the device command port."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

import httpx
from loguru import logger

from streamlights.errors import DeviceError, LampNotFoundError
from streamlights.lamps.color import RGBColor
from streamlights.lamps.port import DeviceCommandPort

ClientFactory = Callable[[], httpx.AsyncClient]


class HueBridgePort(DeviceCommandPort):
    """Sets light colors through the bridge CLIP v2 REST API."""

    name = "hue"

    def __init__(
        self,
        *,
        bridge_ip: str,
        app_key: str,
        lamp_names: dict[str, str],
        verify: str | bool = False,
        timeout_seconds: float = 5.0,
        client_factory: ClientFactory | None = None,
        sleep: Callable[[float], Any] = asyncio.sleep,
    ) -> None:
        self.bridge_ip = str(bridge_ip or "").strip()
        self.app_key = str(app_key or "").strip()
        self.lamp_names = dict(lamp_names)
        self.verify = verify
        self.timeout_seconds = max(0.5, float(timeout_seconds))
        self._client_factory = client_factory or self._default_client
        self._sleep = sleep
        self._client: httpx.AsyncClient | None = None
        self._light_ids: dict[str, str] = {}

    @property
    def base_url(self) -> str:
        return f"https://{self.bridge_ip}/clip/v2/resource"

    async def start(self) -> None:
        if not self.bridge_ip or not self.app_key:
            raise DeviceError("bridgeIp and AppKey must be configured for the Hue port")
        if self._client is None:
            self._client = self._client_factory()
        await self.refresh_lights()

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def refresh_lights(self) -> dict[str, str]:
        """Map light names to bridge ids."""
        data = await self._request("GET", f"{self.base_url}/light")
        lights: dict[str, str] = {}
        for item in data.get("data") or []:
            name = str(((item.get("metadata") or {}).get("name")) or "").strip()
            light_id = str(item.get("id") or "").strip()
            if name and light_id:
                lights[name] = light_id
        self._light_ids = lights
        if not lights:
            logger.warning("Hue bridge reported no lights")
        else:
            logger.info(f"Hue bridge lights: {', '.join(sorted(lights))}")
        return dict(lights)

    async def set_color(self, lamp: str, color: RGBColor) -> None:
        light_id = self._resolve_light(lamp)
        await self._put_color(light_id, color)

    async def run_effect(self, lamp: str, colors: list[RGBColor], duration_ms: int) -> None:
        if not colors:
            return
        targets = list(self.lamp_names) if lamp == "*" else [lamp]
        light_ids = [self._resolve_light(target) for target in targets]
        step_s = max(0.05, float(duration_ms) / 1000.0 / len(colors))
        for color in colors:
            for light_id in light_ids:
                await self._put_color(light_id, color)
            await self._sleep(step_s)

    def _resolve_light(self, lamp: str) -> str:
        name = self.lamp_names.get(lamp)
        if name is None:
            raise LampNotFoundError(lamp)
        light_id = self._light_ids.get(name)
        if light_id is None:
            raise LampNotFoundError(name)
        return light_id

    async def _put_color(self, light_id: str, color: RGBColor) -> None:
        x, y, brightness = color.to_xy()
        body = {
            "on": {"on": True},
            "color": {"xy": {"x": x, "y": y}},
            "dimming": {"brightness": max(1.0, round(brightness * 100.0, 1))},
        }
        await self._request("PUT", f"{self.base_url}/light/{light_id}", json=body)

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        if self._client is None:
            self._client = self._client_factory()
        headers = {"hue-application-key": self.app_key}
        try:
            resp = await self._client.request(method, url, headers=headers, **kwargs)
            resp.raise_for_status()
        except httpx.TimeoutException as e:
            raise DeviceError(f"hue bridge timeout: {e}") from e
        except httpx.HTTPError as e:
            raise DeviceError(f"hue bridge request failed: {e}") from e
        data = resp.json()
        return data if isinstance(data, dict) else {}

    def _default_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout_seconds, verify=self.verify)
