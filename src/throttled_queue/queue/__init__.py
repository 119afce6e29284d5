"""
Priority Queue Subsystem.

Maintains one FIFO bucket per priority level (0-9, lower = served first).

Key Components:
- PriorityQueue: Bucketed queue with enqueue/dequeue notifications
- QueueState: Queue depth breakdown by priority
- Priority: Names for common priority levels

The queue is a pure data structure - it does NOT implement admission
policy. That is the responsibility of the ThrottledQueue.
"""

from throttled_queue.queue.models import (
    DEFAULT_PRIORITY,
    MAX_PRIORITY,
    MIN_PRIORITY,
    PRIORITY_LEVELS,
    Priority,
    QueueState,
    validate_priority,
)
from throttled_queue.queue.priority_queue import PriorityQueue

__all__ = [
    "DEFAULT_PRIORITY",
    "MAX_PRIORITY",
    "MIN_PRIORITY",
    "PRIORITY_LEVELS",
    "Priority",
    "PriorityQueue",
    "QueueState",
    "validate_priority",
]
