from __future__ import annotations

import json

import httpx
import pytest

from streamlights.errors import DeviceError, LampNotFoundError
from streamlights.lamps import HueBridgePort, RGBColor

LIGHTS = {
    "data": [
        {"id": "id-left", "metadata": {"name": "room_streaming_left_lamp"}},
        {"id": "id-right", "metadata": {"name": "room_streaming_right_lamp"}},
        {"id": "id-other", "metadata": {"name": "kitchen"}},
    ]
}


def _port(handler, sleeps: list[float] | None = None) -> HueBridgePort:  # type: ignore[no-untyped-def]
    recorded = sleeps if sleeps is not None else []

    async def _sleep(seconds: float) -> None:
        recorded.append(seconds)

    return HueBridgePort(
        bridge_ip="10.0.0.2",
        app_key="key",
        lamp_names={"left": "room_streaming_left_lamp", "right": "room_streaming_right_lamp"},
        client_factory=lambda: httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        sleep=_sleep,
    )


@pytest.mark.asyncio
async def test_hue_port_sets_color_on_named_light() -> None:
    puts: list[tuple[str, dict]] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["hue-application-key"] == "key"
        if request.method == "GET":
            return httpx.Response(200, json=LIGHTS)
        puts.append((request.url.path, json.loads(request.content)))
        return httpx.Response(200, json={"data": []})

    port = _port(_handler)
    await port.start()
    await port.set_color("left", RGBColor(255, 0, 0))
    await port.close()

    assert puts[0][0] == "/clip/v2/resource/light/id-left"
    assert puts[0][1]["on"] == {"on": True}
    assert set(puts[0][1]["color"]["xy"]) == {"x", "y"}


@pytest.mark.asyncio
async def test_hue_port_effect_steps_through_all_lamps() -> None:
    puts: list[str] = []
    sleeps: list[float] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json=LIGHTS)
        puts.append(request.url.path.rsplit("/", 1)[-1])
        return httpx.Response(200, json={})

    port = _port(_handler, sleeps)
    await port.start()
    await port.run_effect("*", [RGBColor(255, 0, 0), RGBColor(0, 0, 255)], 1000)

    assert puts == ["id-left", "id-right", "id-left", "id-right"]
    assert sleeps == [0.5, 0.5]


@pytest.mark.asyncio
async def test_hue_port_unknown_lamp_and_bridge_errors() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json=LIGHTS)
        return httpx.Response(503)

    port = _port(_handler)
    await port.start()

    with pytest.raises(LampNotFoundError):
        await port.set_color("middle", RGBColor(0, 0, 0))
    with pytest.raises(DeviceError):
        await port.set_color("right", RGBColor(0, 0, 0))


@pytest.mark.asyncio
async def test_hue_port_requires_bridge_settings() -> None:
    port = HueBridgePort(bridge_ip="", app_key="", lamp_names={})

    with pytest.raises(DeviceError):
        await port.start()
