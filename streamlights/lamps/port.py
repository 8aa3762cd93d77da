"""Device command port contract used by the lamp queue."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any

from streamlights.errors import LampNotFoundError
from streamlights.lamps.color import RGBColor


class DeviceCommandPort(ABC):
    """Abstract lamp controller contract."""

    name: str = "base"

    async def start(self) -> None:
        """Acquire controller resources."""

    async def close(self) -> None:
        """Release controller resources."""

    @abstractmethod
    async def set_color(self, lamp: str, color: RGBColor) -> None:
        """Set one lamp to a color."""

    @abstractmethod
    async def run_effect(self, lamp: str, colors: list[RGBColor], duration_ms: int) -> None:
        """Play a color sequence on one lamp, or all lamps for '*'."""


class MemoryDevicePort(DeviceCommandPort):
    """In-memory port for local simulation and tests."""

    name = "memory"

    def __init__(
        self,
        *,
        lamps: list[str] | None = None,
        step_delay_s: float = 0.0,
    ) -> None:
        self.lamps = list(lamps or ["left", "right"])
        self.step_delay_s = max(0.0, float(step_delay_s))
        self.calls: list[tuple[Any, ...]] = []
        self.state: dict[str, RGBColor] = {}

    async def set_color(self, lamp: str, color: RGBColor) -> None:
        if lamp not in self.lamps:
            raise LampNotFoundError(lamp)
        self.calls.append(("set_color", lamp, color))
        self.state[lamp] = color

    async def run_effect(self, lamp: str, colors: list[RGBColor], duration_ms: int) -> None:
        targets = self.lamps if lamp == "*" else [lamp]
        for target in targets:
            if target not in self.lamps:
                raise LampNotFoundError(target)
        self.calls.append(("run_effect", lamp, tuple(colors), int(duration_ms)))
        for color in colors:
            for target in targets:
                self.state[target] = color
            if self.step_delay_s:
                await asyncio.sleep(self.step_delay_s)
