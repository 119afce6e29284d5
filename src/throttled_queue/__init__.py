"""
throttled_queue: in-process asyncio job scheduler with priorities,
concurrency limits, start spacing and rate limiting.
"""

from throttled_queue.errors import (
    ConfigurationError,
    InvalidPriorityError,
    JobTimeoutError,
    ThrottledQueueError,
)
from throttled_queue.events import EventEmitter, QueueEvent
from throttled_queue.queue import DEFAULT_PRIORITY, Priority, PriorityQueue, QueueState
from throttled_queue.rate_limiter import (
    FixedWindowLimiter,
    RateLimiter,
    RollingWindowLimiter,
    TokenBucketLimiter,
)
from throttled_queue.config import (
    JobOptions,
    QueueOptions,
    configure_logging,
    load_queue_options,
    resolve_timeout_ms,
)
from throttled_queue.scheduling import ThrottledQueue

__all__ = [
    "ConfigurationError",
    "DEFAULT_PRIORITY",
    "EventEmitter",
    "FixedWindowLimiter",
    "InvalidPriorityError",
    "JobOptions",
    "JobTimeoutError",
    "Priority",
    "PriorityQueue",
    "QueueEvent",
    "QueueOptions",
    "QueueState",
    "RateLimiter",
    "RollingWindowLimiter",
    "ThrottledQueue",
    "ThrottledQueueError",
    "TokenBucketLimiter",
    "configure_logging",
    "load_queue_options",
    "resolve_timeout_ms",
]
