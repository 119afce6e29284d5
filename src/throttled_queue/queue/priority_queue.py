"""
Priority queue for job admission.

Keeps one FIFO bucket per priority level (0 = served first, 9 = last).
"""

import logging
from collections import deque
from typing import Any, Deque, List, Optional, Tuple

from throttled_queue.events import EventEmitter, QueueEvent
from throttled_queue.queue.models import (
    DEFAULT_PRIORITY,
    PRIORITY_LEVELS,
    QueueState,
    validate_priority,
)

logger = logging.getLogger(__name__)


class PriorityQueue(EventEmitter):
    """
    Bucketed priority queue with enqueue/dequeue notifications.

    Layout:
        buckets[0] = deque([item, item, ...])   # served first
        ...
        buckets[9] = deque([...])               # served last

    Design principles:
    - Pure container - no scheduling policy
    - Strict priority, FIFO within a bucket, no aging. A steady stream of
      low-numbered items starves higher-numbered buckets.
    - Not thread-safe; meant to be owned by a single event loop
    - Emits ``enqueue(item, priority)`` and ``dequeue(item, priority)``
    """

    def __init__(self):
        super().__init__()
        self._buckets: List[Deque[Any]] = [deque() for _ in range(PRIORITY_LEVELS)]

    def enqueue(self, item: Any, priority: int = DEFAULT_PRIORITY) -> None:
        """
        Append an item to the tail of its priority bucket.

        Args:
            item: Anything; the queue does not inspect it
            priority: Bucket index in [0, 9]

        Raises:
            InvalidPriorityError: If priority is out of range or not an int
        """
        priority = validate_priority(priority)
        self._buckets[priority].append(item)
        self.emit(QueueEvent.ENQUEUE, item, priority)

    def dequeue(self, priority: Optional[int] = None) -> Optional[Any]:
        """
        Remove and return the next item.

        Args:
            priority: If specified, only dequeue from this bucket (0 included).
                     If None, dequeue from the lowest-numbered non-empty bucket.

        Returns:
            The item, or None if nothing is available
        """
        result = self._dequeue_with_priority(priority)
        if result is None:
            return None
        return result[0]

    def _dequeue_with_priority(self, priority: Optional[int]) -> Optional[Tuple[Any, int]]:
        if priority is not None:
            priority = validate_priority(priority)
            candidates = [priority]
        else:
            candidates = range(PRIORITY_LEVELS)

        for p in candidates:
            bucket = self._buckets[p]
            if bucket:
                item = bucket.popleft()
                self.emit(QueueEvent.DEQUEUE, item, p)
                return item, p
        return None

    def peek(self, priority: Optional[int] = None) -> Optional[Tuple[Any, int]]:
        """
        Look at the next item without removing it.

        Returns:
            Tuple of (item, priority) or None if nothing is queued
        """
        if priority is not None:
            priority = validate_priority(priority)
            candidates = [priority]
        else:
            candidates = range(PRIORITY_LEVELS)

        for p in candidates:
            if self._buckets[p]:
                return self._buckets[p][0], p
        return None

    def get_size(self, priority: Optional[int] = None) -> int:
        """Number of items in one bucket, or in all buckets if priority is None."""
        if priority is not None:
            return len(self._buckets[validate_priority(priority)])
        return sum(len(bucket) for bucket in self._buckets)

    @property
    def size(self) -> int:
        return self.get_size()

    def __len__(self) -> int:
        return self.get_size()

    def is_empty(self) -> bool:
        return not any(self._buckets)

    def get_state(self) -> QueueState:
        """Snapshot of the depth of every bucket."""
        return QueueState(depths=tuple(len(bucket) for bucket in self._buckets))

    def clear(self) -> List[Any]:
        """
        Drop every queued item. No per-item events are emitted.

        Returns:
            The dropped items, in dequeue order
        """
        dropped = [item for bucket in self._buckets for item in bucket]
        for bucket in self._buckets:
            bucket.clear()
        if dropped:
            logger.debug("Cleared %d queued item(s)", len(dropped))
        return dropped
