"""Duplex transport contract and websockets-backed client."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from collections.abc import AsyncIterator

from loguru import logger
from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed

from streamlights.eventsub.framing import Frame, FrameKind


class DuplexTransport(ABC):
    """Frame-level connection used by the EventSub listener."""

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """True while frames can be received."""

    @abstractmethod
    async def connect(self, url: str, headers: dict[str, str]) -> None:
        """Open the connection with handshake headers."""

    @abstractmethod
    async def receive(self) -> Frame:
        """Return the next frame; a close frame once the peer closed."""

    @abstractmethod
    async def close(self, code: int = 1000, reason: str = "") -> None:
        """Close gracefully; safe to call when already closed."""


class WebSocketTransport(DuplexTransport):
    """websockets client that exposes message fragments as bounded frames."""

    def __init__(
        self,
        *,
        receive_buffer_size: int = 1024,
        open_timeout_seconds: float = 10.0,
        max_message_bytes: int = 1024 * 1024,
    ) -> None:
        self.receive_buffer_size = max(64, int(receive_buffer_size))
        self.open_timeout_seconds = max(1.0, float(open_timeout_seconds))
        self.max_message_bytes = max_message_bytes
        self._ws: ClientConnection | None = None
        self._closed = True
        self._pending: deque[Frame] = deque()
        self._fragments: AsyncIterator[str | bytes] | None = None
        self._lookahead: str | bytes | None = None

    @property
    def is_open(self) -> bool:
        return self._ws is not None and not self._closed

    async def connect(self, url: str, headers: dict[str, str]) -> None:
        self._reset_stream()
        self._ws = await connect(
            url,
            additional_headers=headers,
            open_timeout=self.open_timeout_seconds,
            max_size=self.max_message_bytes,
        )
        self._closed = False
        logger.debug(f"EventSub websocket opened {url}")

    async def receive(self) -> Frame:
        if self._pending:
            return self._pending.popleft()
        ws = self._ws
        if ws is None or self._closed:
            return Frame(b"", kind=FrameKind.CLOSE, close_reason="not connected")
        try:
            if self._fragments is None:
                self._fragments = ws.recv_streaming().__aiter__()
                self._lookahead = await self._next_fragment()
            fragment = self._lookahead
            self._lookahead = await self._next_fragment()
        except ConnectionClosed as e:
            self._closed = True
            self._reset_stream()
            rcvd = e.rcvd
            return Frame(
                b"",
                kind=FrameKind.CLOSE,
                close_code=rcvd.code if rcvd else None,
                close_reason=rcvd.reason if rcvd else str(e),
            )
        last_fragment = self._lookahead is None
        if last_fragment:
            self._fragments = None
        if fragment is None:
            return Frame(b"", end_of_message=True)
        kind = FrameKind.TEXT if isinstance(fragment, str) else FrameKind.BINARY
        data = fragment.encode("utf-8") if isinstance(fragment, str) else bytes(fragment)
        self._split(data, kind=kind, end_of_message=last_fragment)
        return self._pending.popleft()

    async def close(self, code: int = 1000, reason: str = "") -> None:
        ws = self._ws
        self._ws = None
        self._closed = True
        self._reset_stream()
        if ws is None:
            return
        try:
            await ws.close(code=code, reason=reason)
        except Exception as e:
            logger.debug(f"EventSub websocket close failed: {e}")

    def _split(self, data: bytes, *, kind: FrameKind, end_of_message: bool) -> None:
        size = self.receive_buffer_size
        chunks = [data[i : i + size] for i in range(0, len(data), size)] or [b""]
        for idx, chunk in enumerate(chunks):
            is_last = end_of_message and idx == len(chunks) - 1
            self._pending.append(Frame(chunk, end_of_message=is_last, kind=kind))

    async def _next_fragment(self) -> str | bytes | None:
        if self._fragments is None:
            return None
        try:
            return await anext(self._fragments)
        except StopAsyncIteration:
            return None

    def _reset_stream(self) -> None:
        self._pending.clear()
        self._fragments = None
        self._lookahead = None
