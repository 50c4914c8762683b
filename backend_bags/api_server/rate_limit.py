"""
Process-wide request quota ("rate gate").

One shared budget (default 1000 requests per 24h window) for every gated
endpoint and caller. The window resets lazily: the first admit() after the
reset instant starts a new window. Check-and-increment is atomic under a lock
so concurrent requests cannot overshoot the ceiling.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from backend_bags.claims.models import iso_utc

DEFAULT_LIMIT = 1000
DEFAULT_WINDOW_SEC = 24 * 60 * 60


@dataclass(frozen=True)
class RateWindowState:
    """Snapshot of the gate for responses."""

    used: int
    total: int
    reset_at: float  # Unix seconds

    @property
    def remaining(self) -> int:
        return max(0, self.total - self.used)

    @property
    def reset_time_iso(self) -> str:
        return iso_utc(datetime.fromtimestamp(self.reset_at, tz=timezone.utc))

    def to_dict(self) -> dict[str, object]:
        return {
            "used": self.used,
            "remaining": self.remaining,
            "total": self.total,
            "resetTime": self.reset_time_iso,
        }


class RateGate:
    """Fixed-window counter with a lazy reset. Thread-safe."""

    def __init__(
        self,
        limit: int = DEFAULT_LIMIT,
        window_sec: float = DEFAULT_WINDOW_SEC,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if limit < 1:
            raise ValueError("limit must be at least 1")
        if window_sec <= 0:
            raise ValueError("window_sec must be positive")
        self._limit = limit
        self._window = window_sec
        self._clock = clock
        self._lock = threading.Lock()
        self._count = 0
        self._reset_at = clock() + window_sec

    def _roll_window(self, now: float) -> None:
        if now > self._reset_at:
            self._count = 0
            self._reset_at = now + self._window

    def admit(self) -> bool:
        """Consume one unit of quota. False (state unchanged) once the ceiling is reached."""
        with self._lock:
            self._roll_window(self._clock())
            if self._count >= self._limit:
                return False
            self._count += 1
            return True

    def snapshot(self) -> RateWindowState:
        """Current usage; does not consume quota or roll the window."""
        with self._lock:
            return RateWindowState(used=self._count, total=self._limit, reset_at=self._reset_at)
