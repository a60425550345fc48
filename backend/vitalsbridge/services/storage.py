from __future__ import annotations
import json
import logging
import os
import tempfile
import threading
from datetime import datetime
from typing import List
from pydantic import TypeAdapter, ValidationError
from ..models import SessionRecord

logger = logging.getLogger(__name__)

_records_adapter = TypeAdapter(List[SessionRecord])


class StoreError(Exception):
    """The session log could not be written."""


class SessionStore:
    """Append-only session log kept as one JSON array on disk.

    The in-memory list mirrors the file and is only extended after the file
    has been replaced, so it never holds a record that is not on disk.
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()
        self._records: List[SessionRecord] = []
        self._loaded = False

    def load_all(self) -> List[SessionRecord]:
        with self._lock:
            self._records = self._read()
            self._loaded = True
            records = list(self._records)
        logger.info("loaded %d sessions from %s", len(records), self.path)
        return records

    def _read(self) -> List[SessionRecord]:
        try:
            with open(self.path, "rb") as f:
                content = f.read()
        except FileNotFoundError:
            return []
        except OSError:
            logger.warning("session log %s is unreadable, starting empty", self.path, exc_info=True)
            return []

        if not content.strip():
            return []
        try:
            return _records_adapter.validate_json(content)
        except ValidationError as e:
            logger.warning("session log %s is corrupt (%d errors), starting empty",
                           self.path, e.error_count())
        except ValueError:
            # undecodable bytes
            logger.warning("session log %s is not valid UTF-8 JSON, starting empty", self.path)
        self._move_aside()
        return []

    def _move_aside(self) -> None:
        target = f"{self.path}.corrupt-{datetime.now().strftime('%Y%m%d%H%M%S')}"
        try:
            os.replace(self.path, target)
            logger.warning("corrupt session log kept as %s", target)
        except OSError:
            logger.warning("could not move corrupt session log %s aside", self.path, exc_info=True)

    def append(self, record: SessionRecord) -> None:
        with self._lock:
            if not self._loaded:
                # never replace the file without what is already in it
                self._records = self._read()
                self._loaded = True
            records = self._records + [record]
            try:
                self._write(records)
            except OSError as e:
                raise StoreError(f"failed to persist session for {record.name!r}: {e}") from e
            self._records = records

    def _write(self, records: List[SessionRecord]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        payload = json.dumps(
            _records_adapter.dump_python(records, mode="json", by_alias=True),
            indent=2,
        )
        fd, tmp = tempfile.mkstemp(prefix=".sessions-", suffix=".tmp", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path)
        except BaseException:
            try:
                os.unlink(tmp)
            except OSError:
                pass
            raise

    def read_all(self) -> List[SessionRecord]:
        with self._lock:
            return list(self._records)
