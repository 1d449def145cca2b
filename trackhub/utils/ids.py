# trackhub id + timestamp helpers
# Rev 0.1.0

from __future__ import annotations
import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


class MonotonicClock:
    """
    ISO-8601 UTC timestamps that never repeat or go backwards within one
    process, so two successive updates always get distinct, ordered
    updated_at values.
    """

    def __init__(self, now: Optional[Callable[[], datetime]] = None):
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._last: Optional[datetime] = None
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            current = self._now()
            if self._last is not None and current <= self._last:
                current = self._last + timedelta(microseconds=1)
            self._last = current
            return current

    def now_iso(self) -> str:
        return self.now().isoformat(timespec="microseconds")
