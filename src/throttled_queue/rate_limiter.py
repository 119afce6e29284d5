"""
Rate limiters for the throttled queue.

The queue only needs two capabilities from a limiter, described by the
``RateLimiter`` protocol: take N tokens now, and report how long until N
tokens are available. Three in-memory implementations are provided:

- TokenBucketLimiter: bucket refilled continuously, allows bursts up to its size
- FixedWindowLimiter: N tokens per calendar-aligned window
- RollingWindowLimiter: N tokens in any trailing window (sliding window)

Delays are reported in milliseconds; clocks are read in seconds.
"""

import math
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Protocol, Tuple, Union, runtime_checkable

Clock = Callable[[], float]
Interval = Union[str, int, float]

_INTERVAL_MS: Dict[str, float] = {
    "ms": 1.0,
    "millisecond": 1.0,
    "sec": 1000.0,
    "second": 1000.0,
    "min": 60_000.0,
    "minute": 60_000.0,
    "hour": 3_600_000.0,
    "day": 86_400_000.0,
}


@runtime_checkable
class RateLimiter(Protocol):
    """Capability interface the ThrottledQueue admits jobs through."""

    def try_remove_tokens(self, count: int) -> bool:
        """Atomically take ``count`` tokens if they are available now."""
        ...

    def get_delay_for_tokens(self, count: int) -> float:
        """Milliseconds until ``count`` tokens will be available."""
        ...


def interval_to_ms(interval: Interval) -> float:
    """
    Convert an interval to milliseconds.

    Accepts a unit name ("sec", "min", "hour", "day", ...) or a positive
    number of milliseconds.
    """
    if isinstance(interval, str):
        try:
            return _INTERVAL_MS[interval.lower().strip()]
        except KeyError:
            raise ValueError(f"Unknown interval: {interval!r}") from None
    if isinstance(interval, bool) or not isinstance(interval, (int, float)) or interval <= 0:
        raise ValueError(f"interval must be a unit name or a positive number of ms, got {interval!r}")
    return float(interval)


def _check_count(count: int, capacity: float) -> None:
    if count < 0:
        raise ValueError(f"token count must not be negative, got {count}")
    if count > capacity:
        raise ValueError(f"Requested {count} tokens but the limiter never holds more than {capacity:g}")


class TokenBucketLimiter:
    """
    Token bucket refilled continuously at ``tokens_per_interval`` per ``interval``.

    The bucket starts full and never holds more than ``bucket_size`` tokens.
    Thread-safe.
    """

    def __init__(
        self,
        bucket_size: int,
        tokens_per_interval: float,
        interval: Interval = "sec",
        clock: Clock = time.monotonic,
    ):
        if bucket_size < 1:
            raise ValueError("bucket_size must be at least 1")
        if tokens_per_interval <= 0:
            raise ValueError("tokens_per_interval must be positive")
        self.bucket_size = bucket_size
        self.tokens_per_interval = tokens_per_interval
        self.interval_ms = interval_to_ms(interval)
        self._clock = clock
        self._content = float(bucket_size)
        self._last_refill = clock()
        self._lock = threading.Lock()

    def _refill(self) -> None:
        """Add tokens earned since the last refill. Assumes lock is held."""
        now = self._clock()
        elapsed_ms = max(0.0, (now - self._last_refill) * 1000.0)
        self._last_refill = now
        earned = elapsed_ms * self.tokens_per_interval / self.interval_ms
        self._content = min(float(self.bucket_size), self._content + earned)

    @property
    def content(self) -> float:
        """Tokens currently in the bucket."""
        with self._lock:
            self._refill()
            return self._content

    def try_remove_tokens(self, count: int) -> bool:
        _check_count(count, self.bucket_size)
        with self._lock:
            self._refill()
            if self._content < count:
                return False
            self._content -= count
            return True

    def get_delay_for_tokens(self, count: int) -> float:
        _check_count(count, self.bucket_size)
        with self._lock:
            self._refill()
            missing = count - self._content
            if missing <= 0:
                return 0.0
            return missing * self.interval_ms / self.tokens_per_interval


class FixedWindowLimiter:
    """
    Allows ``tokens_per_interval`` tokens per window.

    Windows are aligned to multiples of the interval on the limiter's clock;
    the budget resets at every window boundary. Thread-safe.
    """

    def __init__(self, tokens_per_interval: int, interval: Interval = "sec", clock: Clock = time.monotonic):
        if tokens_per_interval < 1:
            raise ValueError("tokens_per_interval must be at least 1")
        self.tokens_per_interval = tokens_per_interval
        self.interval_ms = interval_to_ms(interval)
        self._clock = clock
        self._window_start_ms = self._current_window_start(self._clock() * 1000.0)
        self._used = 0
        self._lock = threading.Lock()

    def _current_window_start(self, now_ms: float) -> float:
        return math.floor(now_ms / self.interval_ms) * self.interval_ms

    def _roll(self) -> float:
        """Reset the counter if a new window began. Assumes lock is held."""
        now_ms = self._clock() * 1000.0
        window_start = self._current_window_start(now_ms)
        if window_start != self._window_start_ms:
            self._window_start_ms = window_start
            self._used = 0
        return now_ms

    @property
    def remaining(self) -> int:
        """Tokens left in the current window."""
        with self._lock:
            self._roll()
            return self.tokens_per_interval - self._used

    def try_remove_tokens(self, count: int) -> bool:
        _check_count(count, self.tokens_per_interval)
        with self._lock:
            self._roll()
            if self._used + count > self.tokens_per_interval:
                return False
            self._used += count
            return True

    def get_delay_for_tokens(self, count: int) -> float:
        _check_count(count, self.tokens_per_interval)
        with self._lock:
            now_ms = self._roll()
            if self._used + count <= self.tokens_per_interval:
                return 0.0
            return max(0.0, self._window_start_ms + self.interval_ms - now_ms)


@dataclass
class SlidingWindow:
    """A sliding window counter of (timestamp, count) entries."""
    window_size_seconds: float = 1.0
    _entries: List[Tuple[float, int]] = field(default_factory=list)

    def _cleanup(self, now: float) -> None:
        """Remove entries outside the current window."""
        cutoff = now - self.window_size_seconds
        self._entries = [e for e in self._entries if e[0] > cutoff]

    def add(self, count: int, timestamp: float) -> None:
        """Add count to the window."""
        self._cleanup(timestamp)
        self._entries.append((timestamp, count))

    def get_total(self, timestamp: float) -> int:
        """Get total count in the current window."""
        self._cleanup(timestamp)
        return sum(e[1] for e in self._entries)

    def get_time_until_free(self, count: int, limit: int, timestamp: float) -> float:
        """Seconds until ``count`` more fits under ``limit``, as old entries expire."""
        self._cleanup(timestamp)
        excess = sum(e[1] for e in self._entries) + count - limit
        if excess <= 0:
            return 0.0
        freed = 0
        for entry_time, entry_count in self._entries:
            freed += entry_count
            if freed >= excess:
                return max(0.0, (entry_time + self.window_size_seconds) - timestamp)
        return self.window_size_seconds


class RollingWindowLimiter:
    """
    Allows ``tokens_per_interval`` tokens within any trailing ``interval``.

    Thread-safe.
    """

    def __init__(self, tokens_per_interval: int, interval: Interval = "sec", clock: Clock = time.monotonic):
        if tokens_per_interval < 1:
            raise ValueError("tokens_per_interval must be at least 1")
        self.tokens_per_interval = tokens_per_interval
        self.interval_ms = interval_to_ms(interval)
        self._clock = clock
        self._window = SlidingWindow(window_size_seconds=self.interval_ms / 1000.0)
        self._lock = threading.Lock()

    @property
    def remaining(self) -> int:
        """Tokens that could be taken right now."""
        with self._lock:
            return self.tokens_per_interval - self._window.get_total(self._clock())

    def try_remove_tokens(self, count: int) -> bool:
        _check_count(count, self.tokens_per_interval)
        with self._lock:
            now = self._clock()
            if self._window.get_total(now) + count > self.tokens_per_interval:
                return False
            if count:
                self._window.add(count, now)
            return True

    def get_delay_for_tokens(self, count: int) -> float:
        _check_count(count, self.tokens_per_interval)
        with self._lock:
            seconds = self._window.get_time_until_free(count, self.tokens_per_interval, self._clock())
            return seconds * 1000.0


def is_rate_limiter(candidate: object) -> bool:
    """True if ``candidate`` provides callable versions of both capabilities."""
    if candidate is None or not isinstance(candidate, RateLimiter):
        return False
    return callable(getattr(candidate, "try_remove_tokens", None)) and callable(
        getattr(candidate, "get_delay_for_tokens", None)
    )
