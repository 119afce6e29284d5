"""
Data models for the priority queue subsystem.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Tuple

from throttled_queue.errors import InvalidPriorityError

PRIORITY_LEVELS = 10
MIN_PRIORITY = 0
MAX_PRIORITY = PRIORITY_LEVELS - 1
DEFAULT_PRIORITY = 5


class Priority(IntEnum):
    """
    Named priority levels.

    Lower numeric values = served earlier. Any integer in [0, 9] is a valid
    priority; these names only label the common levels.
    """
    HIGHEST = 0
    HIGH = 2
    NORMAL = 5
    LOW = 7
    LOWEST = 9

    @classmethod
    def from_string(cls, value: str) -> "Priority":
        """
        Convert string priority to Priority enum.

        Maps (case-insensitive):
        - "highest", "critical" → HIGHEST
        - "high", "h" → HIGH
        - "normal", "medium", "mid", "n", "m" → NORMAL
        - "low", "l" → LOW
        - "lowest", "background" → LOWEST
        """
        value_lower = value.lower().strip()

        if value_lower in ("highest", "critical"):
            return cls.HIGHEST
        elif value_lower in ("high", "h"):
            return cls.HIGH
        elif value_lower in ("normal", "medium", "mid", "n", "m"):
            return cls.NORMAL
        elif value_lower in ("low", "l"):
            return cls.LOW
        elif value_lower in ("lowest", "background"):
            return cls.LOWEST
        raise InvalidPriorityError(value)


def validate_priority(priority: Any) -> int:
    """
    Return ``priority`` as a plain int, or raise InvalidPriorityError.

    Out-of-range values are rejected rather than clamped. ``bool`` is not
    accepted even though it is an int subclass.
    """
    if isinstance(priority, bool) or not isinstance(priority, int):
        raise InvalidPriorityError(priority)
    if not MIN_PRIORITY <= priority <= MAX_PRIORITY:
        raise InvalidPriorityError(priority)
    return int(priority)


@dataclass
class QueueState:
    """
    Queue depth breakdown by priority level.

    ``depths[p]`` is the number of items waiting in bucket ``p``.
    """

    depths: Tuple[int, ...] = field(default_factory=lambda: (0,) * PRIORITY_LEVELS)

    @property
    def total(self) -> int:
        """Total number of items across all priority levels."""
        return sum(self.depths)

    def __repr__(self) -> str:
        busy = {p: n for p, n in enumerate(self.depths) if n}
        return f"QueueState(depths={busy}, total={self.total})"
