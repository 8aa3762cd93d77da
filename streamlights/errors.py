"""Exception types shared across streamlights modules."""

from __future__ import annotations


class StreamlightsError(Exception):
    """Base error for streamlights."""


class CredentialError(StreamlightsError):
    """Access token cannot be validated or refreshed."""


class ReconnectExhaustedError(StreamlightsError):
    """All reconnect attempts failed; the session is closed."""

    def __init__(self, attempts: int, last_error: str = "") -> None:
        self.attempts = attempts
        self.last_error = last_error
        detail = f": {last_error}" if last_error else ""
        super().__init__(f"reconnect failed after {attempts} attempts{detail}")


class QueueClosedError(StreamlightsError):
    """Command queue no longer accepts commands."""


class DeviceError(StreamlightsError):
    """Device controller rejected or failed a command."""


class LampNotFoundError(DeviceError):
    """Lamp identifier is unknown to the device controller."""

    def __init__(self, lamp: str) -> None:
        self.lamp = lamp
        super().__init__(f"lamp '{lamp}' not found")
