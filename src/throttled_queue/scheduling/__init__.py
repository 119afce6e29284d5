"""
Admission scheduling for throttled queues.

Key Components:
- ThrottledQueue: the admission loop and job lifecycle
- Job: record of one submitted unit of work
- Deadline / PauseState: retry timer and pause bookkeeping
"""

from throttled_queue.scheduling.job import Job
from throttled_queue.scheduling.throttled_queue import ThrottledQueue
from throttled_queue.scheduling.timers import Deadline, PauseMode, PauseState

__all__ = [
    "Deadline",
    "Job",
    "PauseMode",
    "PauseState",
    "ThrottledQueue",
]
