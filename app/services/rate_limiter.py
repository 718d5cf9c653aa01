"""
Request rate limiting behind an injectable interface.

The default implementation is an in-process fixed-window counter. It is a
best-effort per-process limit; a multi-process deployment swaps in another
``RateLimiter`` (e.g. backed by a shared cache) through ``set_rate_limiter``.
Internal failures fail open: the error is logged and the request is allowed.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol

from app.core.config import settings

logger = logging.getLogger(__name__)


class RateLimiter(Protocol):
    def check(self, key: str) -> bool:
        """Record one operation for ``key``; False when over the limit."""
        ...


@dataclass
class _Window:
    count: int
    reset_at: float


class FixedWindowRateLimiter:
    """Fixed window counter keyed by client or user id"""

    def __init__(
        self,
        max_requests: int = None,
        window_seconds: float = None,
        clock: Callable[[], float] = time.monotonic,
        sweep_threshold: int = 10000,
    ):
        self.max_requests = max_requests or settings.RATE_LIMIT_MAX_REQUESTS
        self.window_seconds = window_seconds or settings.RATE_LIMIT_WINDOW_SECONDS
        self._clock = clock
        self.sweep_threshold = sweep_threshold
        self._windows: Dict[str, _Window] = {}
        self._lock = threading.Lock()

    def check(self, key: str) -> bool:
        try:
            return self._check(key)
        except Exception:
            logger.exception("Rate limiter failed for %s, allowing request", key)
            return True

    def _check(self, key: str) -> bool:
        now = self._clock()
        with self._lock:
            if len(self._windows) >= self.sweep_threshold:
                self._evict_expired(now)

            window = self._windows.get(key)

            # First request, or window expired: reset lazily
            if window is None or now > window.reset_at:
                self._windows[key] = _Window(count=1, reset_at=now + self.window_seconds)
                return True

            if window.count >= self.max_requests:
                return False

            window.count += 1
            return True

    def _evict_expired(self, now: float) -> None:
        expired = [key for key, window in self._windows.items() if now > window.reset_at]
        for key in expired:
            del self._windows[key]
        if expired:
            logger.debug("Evicted %d expired rate limit windows", len(expired))

    def reset(self, key: Optional[str] = None) -> None:
        with self._lock:
            if key is None:
                self._windows.clear()
            else:
                self._windows.pop(key, None)


_rate_limiter: RateLimiter = FixedWindowRateLimiter()


def get_rate_limiter() -> RateLimiter:
    return _rate_limiter


def set_rate_limiter(limiter: RateLimiter) -> None:
    global _rate_limiter
    _rate_limiter = limiter
