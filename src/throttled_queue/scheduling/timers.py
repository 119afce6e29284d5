"""
Timer bookkeeping for the admission loop: the single retry deadline and the
pause state.
"""

import asyncio
import enum
from dataclasses import dataclass
from typing import Callable, Optional


class Deadline:
    """
    Holds at most one pending timer.

    Arming a new deadline always cancels the previous one first, so callers
    never end up with two retries racing each other.
    """

    def __init__(self) -> None:
        self._handle: Optional[asyncio.TimerHandle] = None

    def arm(self, delay_ms: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(max(0.0, delay_ms) / 1000.0, self._fire, callback)
        return self._handle

    def _fire(self, callback: Callable[[], None]) -> None:
        self._handle = None
        callback()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    @property
    def when(self) -> Optional[float]:
        """Loop time the pending timer fires at, or None."""
        return self._handle.when() if self._handle is not None else None


class PauseMode(enum.Enum):
    NOT_PAUSED = "not_paused"
    PAUSED_UNTIL = "paused_until"
    PAUSED_INDEFINITELY = "paused_indefinitely"


@dataclass(frozen=True)
class PauseState:
    mode: PauseMode = PauseMode.NOT_PAUSED
    until: Optional[float] = None  # loop time, only for PAUSED_UNTIL

    @classmethod
    def not_paused(cls) -> "PauseState":
        return cls()

    @classmethod
    def paused_until(cls, until: float) -> "PauseState":
        return cls(PauseMode.PAUSED_UNTIL, until)

    @classmethod
    def indefinitely(cls) -> "PauseState":
        return cls(PauseMode.PAUSED_INDEFINITELY)

    @property
    def is_paused(self) -> bool:
        return self.mode is not PauseMode.NOT_PAUSED

    def is_active(self, now: float) -> bool:
        """True if admission is still held back at clock time ``now``."""
        if self.mode is PauseMode.PAUSED_UNTIL:
            return now < self.until
        return self.mode is PauseMode.PAUSED_INDEFINITELY
