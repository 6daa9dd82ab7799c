"""In-memory sliding window counter of failed admin logins."""

from __future__ import annotations

import time
from collections import deque
from threading import Lock
from typing import Deque


class SlidingWindowLoginThrottle:
    """Thread-safe failed-login tracker keyed by client address."""

    def __init__(self, max_failures: int, window_seconds: int) -> None:
        """Initialise limiter parameters and per-key failure history."""
        self._max_failures = max_failures
        self._window = window_seconds
        self._failures: dict[str, Deque[float]] = {}
        self._lock = Lock()

    def is_blocked(self, key: str) -> bool:
        """Return ``True`` once ``key`` has used up its failures inside the window."""
        now = time.time()
        with self._lock:
            return self._trim(key, now) >= self._max_failures

    def record_failure(self, key: str) -> None:
        now = time.time()
        with self._lock:
            self._trim(key, now)
            self._failures.setdefault(key, deque()).append(now)

    def reset(self, key: str) -> None:
        with self._lock:
            self._failures.pop(key, None)

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._failures)

    def _trim(self, key: str, now: float) -> int:
        """Drop expired failures for ``key`` and return how many remain; empty keys are forgotten."""
        queue = self._failures.get(key)
        if queue is None:
            return 0
        while queue and now - queue[0] > self._window:
            queue.popleft()
        if not queue:
            del self._failures[key]
            return 0
        return len(queue)
