"""
Job record tracked by the ThrottledQueue between ``add`` and its outcome.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Union

from throttled_queue.config import JobOptions

Work = Callable[[], Union[Awaitable[Any], Any]]


@dataclass
class Job:
    """
    One submitted unit of work.

    ``future`` is handed back to the caller of ``add``. Once ``settled`` is
    set, later outcomes (a natural completion arriving after a timeout) are
    discarded.
    """

    options: JobOptions
    work: Work
    future: asyncio.Future
    enqueued_at: float
    started_at: Optional[float] = None
    timeout_handle: Optional[asyncio.TimerHandle] = None
    task: Optional[asyncio.Future] = field(default=None, repr=False)
    settled: bool = False

    @property
    def job_id(self) -> Any:
        return self.options.job_id

    @property
    def priority(self) -> int:
        return self.options.priority

    def cancel_timeout(self) -> None:
        if self.timeout_handle is not None:
            self.timeout_handle.cancel()
            self.timeout_handle = None

    def resolve(self, result: Any) -> None:
        """Deliver a success value unless the caller already cancelled the future."""
        if not self.future.done():
            self.future.set_result(result)

    def reject(self, error: BaseException) -> None:
        if self.future.done():
            return
        if isinstance(error, asyncio.CancelledError):
            self.future.cancel()
        else:
            self.future.set_exception(error)
