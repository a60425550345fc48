from __future__ import annotations
import logging
from contextlib import aclosing
from datetime import datetime, timezone
from typing import AsyncGenerator, Callable, Optional, Protocol
from ..models import Event, SensorSample, SessionEnd, SessionStart
from .classifier import classify
from .storage import SessionStore, StoreError
from .tracker import SessionTracker

logger = logging.getLogger(__name__)


class EventSink(Protocol):
    def sensor_data(self, sample: SensorSample) -> None: ...
    def session_message(self, line: str) -> None: ...


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class IngestionPipeline:
    """Feed device lines through classification, session tracking and persistence.

    Lines are handled one at a time, in order; this object is the only
    writer of the tracker and the store it is given.
    """

    def __init__(self, tracker: SessionTracker, store: SessionStore, sink: EventSink,
                 clock: Callable[[], datetime] = utc_now):
        self.tracker = tracker
        self.store = store
        self.sink = sink
        self.clock = clock
        self.lines_seen = 0

    def process_line(self, raw_line: str) -> Optional[Event]:
        event = classify(raw_line)
        if not event.line:
            return None
        self.lines_seen += 1

        if isinstance(event, SensorSample):
            self.sink.sensor_data(event)
            return event

        self.sink.session_message(event.line)

        if isinstance(event, SessionStart):
            self.tracker.on_start(event.name, self.clock())
            logger.info("session started for %r", event.name)
        elif isinstance(event, SessionEnd):
            record = self.tracker.on_end(event.duration, self.clock())
            if record is not None:
                try:
                    self.store.append(record)
                    logger.info("session for %r closed, duration %s", record.name, record.duration)
                except StoreError:
                    logger.exception("session for %r was not saved", record.name)
        else:
            logger.debug("unrecognized line: %s", event.line)
        return event

    async def run(self, lines: AsyncGenerator[str, None]) -> None:
        async with aclosing(lines):
            async for raw_line in lines:
                self.process_line(raw_line)
        logger.info("line source ended after %d lines", self.lines_seen)
