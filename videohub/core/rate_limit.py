from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable
from time import monotonic

from fastapi import Request

from videohub.core.errors import APIError
from videohub.core.settings import get_settings

logger = logging.getLogger(__name__)


class InMemoryRateLimiter:
    """Sliding-window counter per key; keys idle for a full window are dropped."""

    def __init__(
        self,
        *,
        window_seconds: int,
        max_requests: int,
        clock: Callable[[], float] = monotonic,
    ) -> None:
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self._clock = clock
        self._events: dict[str, deque[float]] = {}
        self._lock = threading.Lock()
        self._next_sweep = clock() + window_seconds

    def hit(self, key: str) -> bool:
        now = self._clock()
        cutoff = now - self.window_seconds
        with self._lock:
            if now >= self._next_sweep:
                self._sweep(cutoff)
                self._next_sweep = now + self.window_seconds

            events = self._events.setdefault(key, deque())
            while events and events[0] <= cutoff:
                events.popleft()
            if len(events) >= self.max_requests:
                return False
            events.append(now)
            return True

    def _sweep(self, cutoff: float) -> None:
        idle_keys = [key for key, events in self._events.items() if not events or events[-1] <= cutoff]
        for key in idle_keys:
            del self._events[key]
        if idle_keys:
            logger.debug("Rate limiter dropped idle keys count=%s", len(idle_keys))

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._events)

    def reset(self) -> None:
        with self._lock:
            self._events.clear()


settings = get_settings()
auth_limiter = InMemoryRateLimiter(
    window_seconds=settings.auth_rate_limit_window_seconds,
    max_requests=settings.auth_rate_limit_max_requests,
)


def enforce_auth_rate_limit(request: Request) -> None:
    client_ip = request.client.host if request.client else "unknown"
    key = f"{client_ip}:{request.url.path}"
    logger.debug("Rate limit check key=%s", key)
    if not auth_limiter.hit(key):
        logger.warning("Rate limit exceeded for key=%s", key)
        raise APIError("Too many authentication requests", status_code=429, code="rate_limited")
