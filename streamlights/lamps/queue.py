"""Bounded single-consumer queue that serializes lamp actuations."""

from __future__ import annotations

import asyncio
import time
from typing import Any

from loguru import logger

from streamlights.errors import QueueClosedError
from streamlights.lamps.commands import Command, execute_command
from streamlights.lamps.port import DeviceCommandPort


class CommandQueue:
    """
    FIFO channel between the notification router and the lamp controller.

    Every command, whatever produced it, runs to completion before the next
    one starts. A full queue makes `enqueue` wait for a free slot instead of
    dropping anything. A failing command is logged and the consumer moves on.
    """

    _SENTINEL = object()

    def __init__(self, port: DeviceCommandPort, *, capacity: int = 100) -> None:
        self.port = port
        self.capacity = max(1, int(capacity))
        self._queue: asyncio.Queue[Command | object] | None = None
        self._consumer_task: asyncio.Task[None] | None = None
        self._closed = False
        self._enqueued_total = 0
        self._executed_total = 0
        self._failed_total = 0
        self._in_flight = 0
        self._latency_total_ms = 0.0

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        if self._closed:
            raise QueueClosedError("command queue is stopped")
        if self._consumer_task is not None and not self._consumer_task.done():
            return
        if self._queue is None:
            self._queue = asyncio.Queue(maxsize=self.capacity)
        self._consumer_task = asyncio.create_task(self._consume())
        logger.debug(f"Command queue started capacity={self.capacity}")

    async def enqueue(self, command: Command | None) -> None:
        """Append a command, waiting for space when the queue is full."""
        if command is None:
            raise ValueError("command is required")
        if self._closed:
            raise QueueClosedError("command queue is stopped")
        self.start()
        queue = self._queue
        if queue is None:
            raise QueueClosedError("command queue is not initialized")
        await queue.put(command)
        self._enqueued_total += 1

    async def stop(self) -> None:
        """Stop accepting commands and wait until every queued command has run."""
        if self._closed:
            task = self._consumer_task
            if task is not None and not task.done():
                await asyncio.gather(task, return_exceptions=True)
            return
        self._closed = True
        queue = self._queue
        task = self._consumer_task
        if queue is not None and task is not None and not task.done():
            await queue.put(self._SENTINEL)
            await asyncio.gather(task, return_exceptions=True)
        logger.debug(
            f"Command queue stopped executed={self._executed_total} failed={self._failed_total}"
        )

    def pending(self) -> int:
        return self._queue.qsize() if self._queue is not None else 0

    def status_snapshot(self) -> dict[str, Any]:
        executed = self._executed_total + self._failed_total
        return {
            "capacity": self.capacity,
            "pending": self.pending(),
            "closed": self._closed,
            "in_flight": self._in_flight,
            "enqueued_total": self._enqueued_total,
            "executed_total": self._executed_total,
            "failed_total": self._failed_total,
            "avg_latency_ms": round(self._latency_total_ms / executed, 2) if executed else 0.0,
        }

    async def _consume(self) -> None:
        queue = self._queue
        if queue is None:
            return
        while True:
            item = await queue.get()
            if item is self._SENTINEL:
                queue.task_done()
                return
            self._in_flight += 1
            started = time.perf_counter()
            try:
                await execute_command(self.port, item)  # type: ignore[arg-type]
                self._executed_total += 1
            except Exception as e:
                self._failed_total += 1
                describe = getattr(item, "describe", None)
                label = describe() if callable(describe) else repr(item)
                logger.warning(f"Lamp command failed ({label}): {e}")
            finally:
                self._latency_total_ms += (time.perf_counter() - started) * 1000.0
                self._in_flight = max(0, self._in_flight - 1)
                queue.task_done()
