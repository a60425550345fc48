from __future__ import annotations
import asyncio
import logging
from typing import AsyncGenerator

import serial

logger = logging.getLogger(__name__)


async def serial_lines(port: str, baud: int = 115200, timeout: float = 1.0) -> AsyncGenerator[str, None]:
    """Yield decoded lines from a serial device until cancelled.

    ``readline`` runs in a worker thread; an empty read means the timeout
    expired with nothing on the wire.
    """
    ser = serial.Serial(port, baud, timeout=timeout)
    logger.info("reading %s at %d baud", port, baud)
    try:
        while True:
            raw = await asyncio.to_thread(ser.readline)
            if not raw:
                continue
            line = raw.decode("utf-8", errors="ignore").strip()
            if line:
                yield line
    finally:
        try:
            ser.close()
        except Exception:
            logger.debug("error closing %s", port, exc_info=True)


async def replay_lines(path: str, delay: float = 0.0) -> AsyncGenerator[str, None]:
    """Yield the lines of a captured serial log, optionally paced by ``delay`` seconds."""
    with open(path, "r", encoding="utf-8", errors="ignore") as f:
        for raw in f:
            line = raw.strip()
            if not line:
                continue
            yield line
            if delay:
                await asyncio.sleep(delay)
