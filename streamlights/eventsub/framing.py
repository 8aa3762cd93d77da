"""Reassembly of websocket frames into complete messages."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class FrameKind(StrEnum):
    TEXT = "text"
    BINARY = "binary"
    CLOSE = "close"


@dataclass(frozen=True, slots=True)
class Frame:
    """One chunk received from the transport."""

    data: bytes
    end_of_message: bool = True
    kind: FrameKind = FrameKind.TEXT
    close_code: int | None = None
    close_reason: str = ""


class MessageAssembler:
    """Accumulates frame payloads until a frame marks the end of a message."""

    def __init__(self, *, max_message_bytes: int = 1024 * 1024) -> None:
        self.max_message_bytes = max(1, int(max_message_bytes))
        self._buffer = bytearray()

    @property
    def pending_bytes(self) -> int:
        return len(self._buffer)

    def feed(self, frame: Frame) -> bytes | None:
        """Append one frame; return the full message bytes on its last frame."""
        if frame.kind == FrameKind.CLOSE:
            raise ValueError("close frames carry no message data")
        self._buffer.extend(frame.data)
        if len(self._buffer) > self.max_message_bytes:
            size = len(self._buffer)
            self.reset()
            raise ValueError(f"message exceeds {self.max_message_bytes} bytes ({size})")
        if not frame.end_of_message:
            return None
        message = bytes(self._buffer)
        self.reset()
        return message

    def reset(self) -> None:
        self._buffer.clear()
