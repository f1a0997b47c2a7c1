"""
Memory-based fixed-window rate limiter, one instance per application.
"""
import threading
import time
from typing import Callable, Dict, Tuple

from fastapi import Request

from topup.errors import RateLimitError


class RateLimiter:
    """Fixed-window request counter keyed by client IP."""

    def __init__(self, requests: int, window: int, clock: Callable[[], float] = time.time):
        self.requests = requests
        self.window = window
        self._clock = clock
        self._lock = threading.Lock()
        # {ip: (window_start, count)}
        self._store: Dict[str, Tuple[float, int]] = {}

    def hit(self, key: str) -> None:
        """Count one request for ``key``; raise 429 once the window is full."""
        now = self._clock()
        with self._lock:
            start, count = self._store.get(key, (now, 0))
            if now - start > self.window:
                start, count = now, 0
            if count >= self.requests:
                raise RateLimitError(f"Rate limit exceeded. Try again in {int(self.window - (now - start))} seconds.")
            self._store[key] = (start, count + 1)


def rate_limit(limiter_name: str):
    """FastAPI dependency bound to the limiter stored at ``app.state.<limiter_name>``.

    Example: Depends(rate_limit("create_order_limiter"))
    """
    def limiter(request: Request) -> bool:
        ip = request.client.host if request.client else "unknown"
        getattr(request.app.state, limiter_name).hit(ip)
        return True

    return limiter
