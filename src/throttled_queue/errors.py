"""Error types raised by the throttled queue.

Job failures are never wrapped: whatever the job's work raises reaches the
caller unchanged. The types below cover configuration problems and the
synthetic timeout failure.
"""

from __future__ import annotations

import asyncio
from typing import Any


class ThrottledQueueError(Exception):
    """Base class for throttled queue errors."""


class ConfigurationError(ThrottledQueueError):
    """Raised when a queue is constructed or configured with invalid values."""


class InvalidPriorityError(ThrottledQueueError, ValueError):
    def __init__(self, priority: Any):
        self.priority = priority
        super().__init__(f"priority must be an integer in [0, 9], got {priority!r}")


class JobTimeoutError(ThrottledQueueError, asyncio.TimeoutError):
    """A running job did not finish within its effective timeout."""

    def __init__(self, timeout_ms: float, job_id: Any = None):
        self.timeout_ms = timeout_ms
        self.job_id = job_id
        shown = int(timeout_ms) if float(timeout_ms).is_integer() else timeout_ms
        super().__init__(f"timeout after {shown} ms")
