"""
Throttled job queue.

Admits async jobs under three constraints at once: a cap on concurrently
running jobs, a minimum spacing between job starts, and the token budget of
a rate limiter. Among admissible jobs the lowest priority number runs first,
FIFO within a priority.
"""

import asyncio
import functools
import inspect
import logging
import time
from typing import Hashable, List, Optional, Union

from throttled_queue.config import JobOptions, QueueOptions
from throttled_queue.errors import ConfigurationError, JobTimeoutError
from throttled_queue.events import EventEmitter, QueueEvent
from throttled_queue.queue import DEFAULT_PRIORITY, PriorityQueue, QueueState
from throttled_queue.rate_limiter import RateLimiter, is_rate_limiter
from throttled_queue.scheduling.job import Job, Work
from throttled_queue.scheduling.timers import Deadline, PauseMode, PauseState

logger = logging.getLogger(__name__)

TOKENS_PER_JOB = 1


class ThrottledQueue(EventEmitter):
    """
    Priority job scheduler gated by concurrency, start spacing and a rate limiter.

    Events (register with ``on``):
        enqueue(job_id, priority), dequeue(job_id, priority), execute(job_id),
        done(result, job_id), failed(error, job_id)

    Usage::

        limiter = TokenBucketLimiter(bucket_size=10, tokens_per_interval=1, interval="sec")
        queue = ThrottledQueue(limiter, max_concurrent=2, min_delay_ms=100)
        result = await queue.add(fetch_page, job_id="page-1", priority=3)

    All methods must be called from the thread running the event loop; the
    queue holds no locks.
    """

    def __init__(
        self,
        rate_limiter: RateLimiter,
        max_concurrent: int = 1,
        min_delay_ms: float = 0,
        timeout_ms: float = 0,
        *,
        options: Optional[QueueOptions] = None,
    ):
        if not is_rate_limiter(rate_limiter):
            raise ConfigurationError(
                "rate_limiter must provide try_remove_tokens() and get_delay_for_tokens(), "
                f"got {type(rate_limiter).__name__}"
            )
        super().__init__()

        if options is None:
            options = QueueOptions(max_concurrent=max_concurrent, min_delay_ms=min_delay_ms, timeout_ms=timeout_ms)
        self._options = options.validate()
        self._limiter = rate_limiter

        self._running = 0
        self._pause = PauseState.not_paused()
        self._last_executed: Optional[float] = None
        self._deadline = Deadline()
        self._wake_handle: Optional[asyncio.Handle] = None
        self._clock = time.monotonic

        self._queue = PriorityQueue()
        self._queue.on(QueueEvent.ENQUEUE, lambda job, p: self.emit(QueueEvent.ENQUEUE, job.job_id, p))
        self._queue.on(QueueEvent.DEQUEUE, lambda job, p: self.emit(QueueEvent.DEQUEUE, job.job_id, p))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add(
        self,
        work: Work,
        job_id: Optional[Hashable] = None,
        priority: Union[int, str] = DEFAULT_PRIORITY,
        timeout_ms: Optional[float] = None,
    ) -> asyncio.Future:
        """
        Queue ``work`` for execution.

        Args:
            work: Zero-argument callable returning an awaitable (usually an
                  async function). A plain return value counts as success.
            job_id: Opaque identifier echoed in events
            priority: 0 (first) to 9 (last), or a level name such as "high"
            timeout_ms: Per-job timeout; None or 0 falls back to the queue default

        Returns:
            Future resolving to the work's result, or failing with its
            exception or a JobTimeoutError

        Must be called with a running event loop.
        """
        options = JobOptions.create(job_id=job_id, priority=priority, timeout_ms=timeout_ms)
        loop = asyncio.get_running_loop()
        job = Job(options=options, work=work, future=loop.create_future(), enqueued_at=self._clock())

        was_empty = self._queue.is_empty()
        self._queue.enqueue(job, options.priority)
        logger.debug("Queued job %s with priority %d (depth=%d)", job.job_id, job.priority, self._queue.size)

        if was_empty:
            self._wake()
        return job.future

    def pause(self, duration_ms: Optional[float] = None) -> None:
        """
        Stop admitting jobs.

        Args:
            duration_ms: Pause length; None pauses until ``start()`` is called

        Running jobs are not affected.
        """
        if duration_ms is None:
            self._pause = PauseState.indefinitely()
            logger.info("Queue paused until resumed")
            return

        if isinstance(duration_ms, bool) or not isinstance(duration_ms, (int, float)) or duration_ms < 0:
            raise ValueError(f"duration_ms must be a non-negative number or None, got {duration_ms!r}")
        self._pause = PauseState.paused_until(self._clock() + duration_ms / 1000.0)
        logger.info("Queue paused for %s ms", duration_ms)
        if not self._queue.is_empty():
            self._wake()

    def start(self) -> None:
        """Clear any pause and run an admission pass right away."""
        if self._pause.is_paused:
            logger.info("Queue resumed")
        self._pause = PauseState.not_paused()
        if not self._queue.is_empty():
            self._deadline.arm(0, self._next)

    def get_size(self, priority: Optional[int] = None) -> int:
        """Number of queued (not yet running) jobs, optionally for one priority."""
        return self._queue.get_size(priority)

    @property
    def size(self) -> int:
        return self._queue.size

    def get_state(self) -> QueueState:
        return self._queue.get_state()

    def clear(self) -> List[Hashable]:
        """
        Drop every queued job. Running jobs are not affected.

        The futures of dropped jobs are cancelled so nobody waits on them
        forever.

        Returns:
            The ids of the dropped jobs
        """
        dropped: List[Job] = self._queue.clear()
        for job in dropped:
            job.settled = True
            job.future.cancel()
        if dropped:
            logger.info("Cleared %d queued job(s)", len(dropped))
        return [job.job_id for job in dropped]

    @property
    def running_count(self) -> int:
        return self._running

    @property
    def is_paused(self) -> bool:
        return self._pause.is_active(self._clock())

    @property
    def pause_state(self) -> PauseState:
        return self._pause

    @property
    def options(self) -> QueueOptions:
        return self._options

    # ------------------------------------------------------------------
    # Admission loop
    # ------------------------------------------------------------------

    def _wake(self) -> None:
        """Schedule one admission pass on the next loop iteration, coalescing repeated wakes."""
        if self._wake_handle is not None:
            return
        loop = asyncio.get_running_loop()
        self._wake_handle = loop.call_soon(self._on_wake)

    def _on_wake(self) -> None:
        self._wake_handle = None
        self._next()

    def _next(self) -> None:
        """
        Admit jobs until a constraint stops us.

        Each iteration makes one admission decision:
        1. Paused indefinitely -> drop the retry timer and idle.
        2. Paused until t -> retry at t.
        3. Too soon after the last start -> retry when min_delay_ms has passed.
        4. Nothing queued or no free slot -> idle until a submission/completion.
        5. Rate limiter grants a token -> start the head job and loop again;
           otherwise retry when the limiter expects a token.
        """
        while True:
            now = self._clock()

            if self._pause.mode is PauseMode.PAUSED_INDEFINITELY:
                self._deadline.cancel()
                return

            if self._pause.mode is PauseMode.PAUSED_UNTIL:
                if now < self._pause.until:
                    self._deadline.arm((self._pause.until - now) * 1000.0, self._next)
                    return
                self._pause = PauseState.not_paused()
                logger.info("Pause elapsed, resuming admission")

            min_delay_ms = self._options.min_delay_ms
            if min_delay_ms and self._last_executed is not None:
                elapsed_ms = (now - self._last_executed) * 1000.0
                if elapsed_ms < min_delay_ms:
                    self._deadline.arm(min_delay_ms - elapsed_ms, self._next)
                    return

            if self._queue.is_empty() or self._running >= self._options.max_concurrent:
                return

            if not self._limiter.try_remove_tokens(TOKENS_PER_JOB):
                delay_ms = self._limiter.get_delay_for_tokens(TOKENS_PER_JOB)
                logger.debug("Rate limited, retrying admission in %.1f ms", delay_ms)
                self._deadline.arm(delay_ms, self._next)
                return

            self._execute(self._queue.dequeue(), now)

    def _execute(self, job: Job, now: float) -> None:
        self._running += 1
        self._last_executed = now
        job.started_at = now

        self.emit(QueueEvent.EXECUTE, job.job_id)
        logger.debug(
            "Executing job %s (priority=%d, waited %.1f ms, running=%d/%d)",
            job.job_id,
            job.priority,
            (now - job.enqueued_at) * 1000.0,
            self._running,
            self._options.max_concurrent,
        )

        loop = asyncio.get_running_loop()
        timeout_ms = job.options.effective_timeout_ms(self._options)
        if timeout_ms:
            job.timeout_handle = loop.call_later(timeout_ms / 1000.0, self._on_timeout, job, timeout_ms)

        try:
            outcome = job.work()
        except Exception as e:
            task = loop.create_future()
            task.set_exception(e)
        else:
            if inspect.isawaitable(outcome):
                task = asyncio.ensure_future(outcome)
            else:
                task = loop.create_future()
                task.set_result(outcome)

        job.task = task
        task.add_done_callback(functools.partial(self._on_work_done, job))

    # ------------------------------------------------------------------
    # Job outcomes
    # ------------------------------------------------------------------

    def _on_work_done(self, job: Job, task: asyncio.Future) -> None:
        if job.settled:
            # Timed out earlier; retrieve the outcome so asyncio does not report it.
            if not task.cancelled():
                task.exception()
            logger.debug("Discarding late outcome of timed out job %s", job.job_id)
            return

        job.settled = True
        job.cancel_timeout()

        if task.cancelled():
            error: Optional[BaseException] = asyncio.CancelledError()
        else:
            error = task.exception()

        if error is None:
            result = task.result()
            logger.debug("Job %s done in %.1f ms", job.job_id, self._run_time_ms(job))
            self.emit(QueueEvent.DONE, result, job.job_id)
            job.resolve(result)
        else:
            logger.debug("Job %s failed after %.1f ms: %r", job.job_id, self._run_time_ms(job), error)
            self.emit(QueueEvent.FAILED, error, job.job_id)
            job.reject(error)

        self._release()

    def _on_timeout(self, job: Job, timeout_ms: float) -> None:
        if job.settled:
            return
        job.settled = True
        job.timeout_handle = None

        error = JobTimeoutError(timeout_ms, job.job_id)
        logger.warning("Job %s timed out after %s ms", job.job_id, timeout_ms)
        self.emit(QueueEvent.FAILED, error, job.job_id)
        job.reject(error)

        self._release()

    def _run_time_ms(self, job: Job) -> float:
        return (self._clock() - job.started_at) * 1000.0

    def _release(self) -> None:
        self._running -= 1
        self._wake()

    def __repr__(self) -> str:
        return (
            f"ThrottledQueue(queued={self._queue.size}, running={self._running}, "
            f"max_concurrent={self._options.max_concurrent}, paused={self.is_paused})"
        )
