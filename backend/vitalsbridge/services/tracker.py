from __future__ import annotations
import logging
from datetime import datetime
from typing import Optional
from ..models import ActiveSession, SessionRecord

logger = logging.getLogger(__name__)

class SessionTracker:
    """Single-slot session state machine: idle, or one active session."""

    def __init__(self):
        self._active: Optional[ActiveSession] = None

    @property
    def active(self) -> Optional[ActiveSession]:
        return self._active

    def on_start(self, name: str, now: datetime) -> None:
        if self._active:
            # a new greeting always wins; the interrupted session is not kept
            logger.info("discarding unfinished session for %r started at %s",
                        self._active.name, self._active.started_at.isoformat())
        self._active = ActiveSession(name=name, started_at=now)

    def on_end(self, duration: Optional[str], now: datetime) -> Optional[SessionRecord]:
        if not self._active:
            logger.debug("farewell without an active session, ignored")
            return None
        st = self._active
        self._active = None
        return SessionRecord(
            name=st.name,
            start_time=st.started_at,
            end_time=now,
            duration=duration,
        )
