"""Scheduler that keeps triggering passes until a queue is finished."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.events import EVENT_JOB_EXECUTED, EVENT_JOB_ERROR, EVENT_JOB_MISSED

from ..core import FileSynchronizer, PassResult, ProcessQueueResult
from ..utils.logging import get_logger, log_async_execution_time


class SchedulerError(Exception):
    """Raised when scheduler operations fail."""
    pass


class PassScheduler:
    """Schedules processing passes for registered queues.

    A pass ending in ``batch`` schedules a continuation pass after a short
    delay. A pass ending in ``all`` stops the chain until the queue is
    triggered again, either manually or by its optional polling interval.
    The pass job, the polling job and manual triggers of one queue share a
    lock, so two passes over the same queue never overlap.
    """

    def __init__(self, continuation_delay_seconds: float = 5.0):
        """Initialize pass scheduler.

        Args:
            continuation_delay_seconds: Delay before a continuation pass
        """
        self.continuation_delay_seconds = continuation_delay_seconds
        self.logger = get_logger(self.__class__.__name__)

        self.scheduler = AsyncIOScheduler(
            job_defaults={
                'coalesce': True,  # Combine multiple pending executions
                'max_instances': 1,  # Only one pass per queue at a time
                'misfire_grace_time': 300
            }
        )

        self.synchronizers: Dict[str, FileSynchronizer] = {}
        self.job_stats: Dict[str, Dict[str, Any]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

        self.scheduler.add_listener(self._job_executed, EVENT_JOB_EXECUTED)
        self.scheduler.add_listener(self._job_error, EVENT_JOB_ERROR)
        self.scheduler.add_listener(self._job_missed, EVENT_JOB_MISSED)

        self.logger.info("Pass scheduler initialized", continuation_delay_seconds=continuation_delay_seconds)

    @property
    def is_running(self) -> bool:
        return self.scheduler.running

    async def start(self):
        """Start the scheduler."""
        if self.scheduler.running:
            self.logger.warning("Scheduler is already running")
            return

        try:
            self.scheduler.start()
            self.logger.info("Pass scheduler started", queues=len(self.synchronizers))
        except Exception as e:
            self.logger.error("Failed to start scheduler", error=str(e))
            raise SchedulerError(f"Failed to start scheduler: {e}") from e

    async def stop(self, wait: bool = True):
        """Stop the scheduler.

        Args:
            wait: Whether to wait for running passes to complete
        """
        if not self.scheduler.running:
            self.logger.warning("Scheduler is not running")
            return

        try:
            self.scheduler.shutdown(wait=wait)
            self.logger.info("Pass scheduler stopped")
        except Exception as e:
            self.logger.error("Error stopping scheduler", error=str(e))

    def register_queue(
        self,
        synchronizer: FileSynchronizer,
        poll_interval_minutes: Optional[int] = None
    ) -> str:
        """Register a queue and schedule its first pass.

        Args:
            synchronizer: Synchronizer owning the queue
            poll_interval_minutes: Also re-check the queue on this interval

        Returns:
            Job ID
        """
        job_id = self._get_job_id(synchronizer.queue_name)

        if job_id in self.synchronizers:
            raise SchedulerError(f"Queue already registered: {synchronizer.queue_name}")

        self.synchronizers[job_id] = synchronizer
        self._locks[job_id] = asyncio.Lock()
        self.job_stats[job_id] = {
            "queue_name": synchronizer.queue_name,
            "created_at": datetime.now(timezone.utc),
            "last_run": None,
            "run_count": 0,
            "complete_count": 0,
            "error_count": 0,
            "last_result": None
        }

        if poll_interval_minutes:
            self.scheduler.add_job(
                func=self._execute_pass,
                trigger=IntervalTrigger(minutes=poll_interval_minutes),
                args=[job_id],
                id=f"{job_id}_poll",
                name=f"Poll: {synchronizer.queue_name}",
                replace_existing=True
            )

        self.schedule_pass(job_id)

        self.logger.info(
            "Queue registered",
            job_id=job_id,
            queue_name=synchronizer.queue_name,
            poll_interval_minutes=poll_interval_minutes
        )

        return job_id

    def unregister_queue(self, queue_name: str) -> bool:
        """Remove a queue and its pending jobs."""
        job_id = self._get_job_id(queue_name)

        if job_id not in self.synchronizers:
            self.logger.warning("Queue not found for removal", queue_name=queue_name)
            return False

        for scheduled_id in (job_id, f"{job_id}_poll"):
            if self.scheduler.get_job(scheduled_id):
                self.scheduler.remove_job(scheduled_id)

        del self.synchronizers[job_id]
        del self.job_stats[job_id]
        del self._locks[job_id]

        self.logger.info("Queue unregistered", queue_name=queue_name)

        return True

    def schedule_pass(self, job_id: str, delay_seconds: float = 0.0):
        """Schedule a single pass for a registered queue."""
        if job_id not in self.synchronizers:
            raise SchedulerError(f"No queue registered for job {job_id}")

        run_date = datetime.now(timezone.utc) + timedelta(seconds=delay_seconds)

        return self.scheduler.add_job(
            func=self._execute_pass,
            trigger=DateTrigger(run_date=run_date),
            args=[job_id],
            id=job_id,
            name=f"Sync pass: {self.synchronizers[job_id].queue_name}",
            replace_existing=True
        )

    @log_async_execution_time
    async def trigger_pass(self, queue_name: str) -> ProcessQueueResult:
        """Run a pass immediately for a registered queue."""
        job_id = self._get_job_id(queue_name)

        if job_id not in self.synchronizers:
            raise SchedulerError(f"Queue not registered: {queue_name}")

        return await self._execute_pass(job_id)

    def get_job_status(self, queue_name: str) -> Optional[Dict[str, Any]]:
        """Get status information for a queue's job."""
        job_id = self._get_job_id(queue_name)

        if job_id not in self.job_stats:
            return None

        stats = self.job_stats[job_id].copy()
        job = self.scheduler.get_job(job_id)
        stats.update({
            "job_id": job_id,
            "next_run": getattr(job, "next_run_time", None),
            "is_scheduled": job is not None
        })

        return stats

    def get_all_job_statuses(self) -> List[Dict[str, Any]]:
        return [self.get_job_status(stats["queue_name"]) for stats in self.job_stats.values()]

    async def _execute_pass(self, job_id: str) -> ProcessQueueResult:
        """Run one pass and schedule a continuation if the batch ceiling was hit.

        Waits for any pass already running over the same queue, so each pass
        starts from the snapshot the previous one stored.
        """
        synchronizer = self.synchronizers[job_id]
        lock = self._locks[job_id]

        if lock.locked():
            self.logger.info("Waiting for running sync pass", job_id=job_id)

        async with lock:
            self.logger.info("Executing sync pass", job_id=job_id, queue_name=synchronizer.queue_name)
            result = await synchronizer.run_pass()

        if result.finished == PassResult.BATCH:
            self.schedule_pass(job_id, delay_seconds=self.continuation_delay_seconds)
            self.logger.info(
                "Continuation pass scheduled",
                job_id=job_id,
                delay_seconds=self.continuation_delay_seconds,
                remaining=result.stats.remaining
            )
        else:
            self.logger.info("Queue fully processed", job_id=job_id, queue_name=synchronizer.queue_name)

        return result

    def _get_job_id(self, queue_name: str) -> str:
        return f"sync_queue_{queue_name}"

    def _job_stats_for(self, event_job_id: str) -> Optional[Dict[str, Any]]:
        return self.job_stats.get(event_job_id.removesuffix("_poll"))

    def _job_executed(self, event):
        """Handle job execution event."""
        stats = self._job_stats_for(event.job_id)
        if stats is None:
            return

        stats["last_run"] = datetime.now(timezone.utc)
        stats["run_count"] += 1

        result = getattr(event, "retval", None)
        if isinstance(result, ProcessQueueResult):
            stats["last_result"] = {
                "finished": result.finished.value,
                "attempted": result.stats.attempted,
                "newly_synced": result.stats.newly_synced,
                "errored": result.stats.errored,
                "remaining": result.stats.remaining
            }
            if result.finished == PassResult.ALL:
                stats["complete_count"] += 1

    def _job_error(self, event):
        """Handle job error event."""
        stats = self._job_stats_for(event.job_id)
        if stats is not None:
            stats["last_run"] = datetime.now(timezone.utc)
            stats["run_count"] += 1
            stats["error_count"] += 1
            stats["last_result"] = {"error_message": str(event.exception)}

        self.logger.error(
            "Scheduled sync pass failed",
            job_id=event.job_id,
            error=str(event.exception)
        )

    def _job_missed(self, event):
        """Handle job missed event."""
        self.logger.warning(
            "Scheduled sync pass missed",
            job_id=event.job_id,
            scheduled_run_time=event.scheduled_run_time
        )
