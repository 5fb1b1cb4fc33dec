"""Rate limiting and seed caching scoped to a service instance."""

import logging
import time
from collections import deque
from typing import Any, Callable, Deque, Dict, Optional

from .config import config
from .errors import RateLimitExceeded

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """Allow at most `limit` attempts per key within a trailing window."""

    def __init__(self, limit: Optional[int] = None, window_seconds: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.limit = limit or config.GENERATION_RATE_LIMIT
        self.window_seconds = window_seconds or config.GENERATION_RATE_WINDOW_SECONDS
        self.clock = clock
        self._attempts: Dict[str, Deque[float]] = {}
        self._last_sweep = clock()

    def _sweep(self, now: float) -> None:
        """Forget idle keys, at most once per window."""
        if now - self._last_sweep < self.window_seconds:
            return
        self._last_sweep = now
        stale = [key for key, attempts in self._attempts.items()
                 if not attempts or now - attempts[-1] >= self.window_seconds]
        for key in stale:
            del self._attempts[key]

    def _prune(self, key: str, now: float) -> Deque[float]:
        """Drop attempts outside the window; keys with none left are forgotten."""
        attempts = self._attempts.get(key)
        if attempts is None:
            return deque()
        while attempts and now - attempts[0] >= self.window_seconds:
            attempts.popleft()
        if not attempts:
            del self._attempts[key]
        return attempts

    def check(self, key: str) -> None:
        """Record an attempt for key, raising RateLimitExceeded when over the limit."""
        now = self.clock()
        self._sweep(now)
        attempts = self._prune(key, now)

        if len(attempts) >= self.limit:
            retry_after = self.window_seconds - (now - attempts[0])
            logger.warning(f"Rate limit hit for {key}: {len(attempts)} attempts in {self.window_seconds:g}s")
            raise RateLimitExceeded(key, retry_after)

        attempts.append(now)
        self._attempts[key] = attempts

    def remaining(self, key: str) -> int:
        return max(0, self.limit - len(self._prune(key, self.clock())))

    def __len__(self) -> int:
        """Number of keys with attempts still being tracked."""
        return len(self._attempts)

    def reset(self, key: Optional[str] = None) -> None:
        if key is None:
            self._attempts.clear()
        else:
            self._attempts.pop(key, None)


class SeedCache:
    """Generated workouts keyed by seed token and input digest."""

    def __init__(self, max_entries: int = 1024):
        self.max_entries = max_entries
        self._entries: Dict[str, Any] = {}

    def get(self, token: str) -> Optional[Any]:
        return self._entries.get(token)

    def put(self, token: str, value: Any) -> None:
        if token not in self._entries and len(self._entries) >= self.max_entries:
            # Drop the oldest insertion
            self._entries.pop(next(iter(self._entries)))
        self._entries[token] = value

    def __contains__(self, token: str) -> bool:
        return token in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()
