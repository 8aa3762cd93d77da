"""Lamp commands, device ports and the serializing command queue."""

from streamlights.lamps.color import RGBColor
from streamlights.lamps.commands import ALL_LAMPS, Command, RunEffect, SetColor, execute_command
from streamlights.lamps.hue import HueBridgePort
from streamlights.lamps.port import DeviceCommandPort, MemoryDevicePort
from streamlights.lamps.queue import CommandQueue

__all__ = [
    "ALL_LAMPS",
    "Command",
    "CommandQueue",
    "DeviceCommandPort",
    "HueBridgePort",
    "MemoryDevicePort",
    "RGBColor",
    "RunEffect",
    "SetColor",
    "execute_command",
]
