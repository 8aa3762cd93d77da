"""Explicit lamp command values and their interpreter."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from streamlights.lamps.color import RGBColor
from streamlights.lamps.port import DeviceCommandPort

ALL_LAMPS = "*"


@dataclass(frozen=True, slots=True)
class SetColor:
    """Set one lamp to a single color."""

    lamp: str
    color: RGBColor

    def describe(self) -> str:
        return f"set_color lamp={self.lamp} color={self.color.to_hex()}"


@dataclass(frozen=True, slots=True)
class RunEffect:
    """Play a palette on one lamp, or all lamps when lamp is '*'."""

    lamp: str
    palette: str
    colors: tuple[RGBColor, ...] = field(default_factory=tuple)
    duration_ms: int = 5000

    def describe(self) -> str:
        return (
            f"run_effect lamp={self.lamp} palette={self.palette} "
            f"colors={len(self.colors)} duration_ms={self.duration_ms}"
        )


Command = Union[SetColor, RunEffect]


async def execute_command(port: DeviceCommandPort, command: Command) -> None:
    """Run one command against the device port."""
    if isinstance(command, SetColor):
        await port.set_color(command.lamp, command.color)
    elif isinstance(command, RunEffect):
        await port.run_effect(command.lamp, list(command.colors), command.duration_ms)
    else:
        raise TypeError(f"unsupported lamp command: {type(command).__name__}")
