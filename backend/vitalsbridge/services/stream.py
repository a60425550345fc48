from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional, Set

from fastapi import WebSocket

from ..models import SensorSample

logger = logging.getLogger(__name__)


class StreamManager:
    """Manage live WebSocket subscribers."""

    def __init__(self, send_timeout: float = 2.0) -> None:
        self._lock = asyncio.Lock()
        self._connections: Set[WebSocket] = set()
        self.send_timeout = send_timeout

    async def subscribe(self, websocket: WebSocket) -> None:
        async with self._lock:
            self._connections.add(websocket)

    async def unsubscribe(self, websocket: WebSocket) -> None:
        async with self._lock:
            self._connections.discard(websocket)

    async def count(self) -> int:
        async with self._lock:
            return len(self._connections)

    async def broadcast(self, payload: Dict[str, Any]) -> None:
        """Send one payload to every subscriber, dropping the ones that fail or stall."""
        async with self._lock:
            targets = list(self._connections)

        if not targets:
            return

        stale: list[WebSocket] = []
        for websocket in targets:
            try:
                await asyncio.wait_for(websocket.send_json(payload), timeout=self.send_timeout)
            except Exception:
                stale.append(websocket)

        if not stale:
            return

        logger.info("dropping %d unresponsive subscriber(s)", len(stale))
        async with self._lock:
            for websocket in stale:
                self._connections.discard(websocket)


class EventBroadcaster:
    """Event sink for the ingestion pipeline.

    Events are queued without blocking and delivered by a background task;
    when the queue is full the oldest payload is dropped.
    """

    def __init__(self, stream: StreamManager, maxsize: int = 1024):
        self.stream = stream
        self._queue: asyncio.Queue[Dict[str, Any]] = asyncio.Queue(maxsize=maxsize)
        self._task: Optional[asyncio.Task] = None
        self.dropped = 0

    def start(self):
        if self._task and not self._task.done():
            return
        self._task = asyncio.create_task(self._runner())

    async def stop(self):
        if not self._task:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _runner(self):
        while True:
            payload = await self._queue.get()
            try:
                await self.stream.broadcast(payload)
            except Exception:
                logger.exception("broadcast of %s event failed", payload.get("type"))

    def _enqueue(self, payload: Dict[str, Any]) -> None:
        try:
            self._queue.put_nowait(payload)
        except asyncio.QueueFull:
            try:
                self._queue.get_nowait()
                self.dropped += 1
            except asyncio.QueueEmpty:
                pass
            self._queue.put_nowait(payload)

    def pending(self) -> int:
        return self._queue.qsize()

    def sensor_data(self, sample: SensorSample) -> None:
        self._enqueue({"type": "sensorData", "data": sample.payload()})

    def session_message(self, line: str) -> None:
        self._enqueue({"type": "sessionMessage", "data": line})
