"""Scheduler package for triggering sync passes."""

from .pass_scheduler import PassScheduler, SchedulerError

__all__ = [
    "PassScheduler",
    "SchedulerError"
]
