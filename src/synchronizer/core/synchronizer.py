"""Drives repeated processing passes over a stored sync queue."""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Iterable, List, Optional

from .errors import QueuePersistenceError
from .interfaces import FileRepository, TransferClient
from .models import SyncItemStatus, SyncQueue, SyncQueueItem, count_by_status, validate_sync_queue
from .queue_processor import PassResult, ProcessQueueResult, process_queue
from ..utils.logging import get_logger, log_async_execution_time

if TYPE_CHECKING:
    from ..database.service import DatabaseService


def promote_newly_synced(sync_queue: Iterable[SyncQueueItem]) -> SyncQueue:
    """Move newly synced items to the final synced status."""
    return [
        item.mark_synced() if item.status == SyncItemStatus.NEWLY_SYNCED else item
        for item in sync_queue
    ]


@dataclass
class SyncRunSummary:
    """Result of running passes until a queue is done."""

    queue_name: str
    passes: int = 0
    finished: Optional[PassResult] = None
    files_synced: int = 0
    files_errored: int = 0
    bytes_attempted: int = 0
    pass_results: List[ProcessQueueResult] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return self.finished == PassResult.ALL


class FileSynchronizer:
    """Runs processing passes over a named queue kept in the database.

    Each pass loads the last stored snapshot, so a crashed or interrupted run
    resumes from whatever the previous pass persisted.
    """

    def __init__(
        self,
        database_service: "DatabaseService",
        transfer_client: TransferClient,
        file_repository: FileRepository,
        queue_name: str = "default",
        max_batch_size_bytes: Optional[int] = None,
        continuation_delay_seconds: float = 0.0
    ):
        """Initialize the synchronizer.

        Args:
            database_service: Database service holding queue snapshots
            transfer_client: Destination transfer capability
            file_repository: Repository recording transferred file metadata
            queue_name: Name of the stored queue to process
            max_batch_size_bytes: Batch ceiling per pass
            continuation_delay_seconds: Pause between consecutive passes
        """
        self.db_service = database_service
        self.transfer_client = transfer_client
        self.file_repository = file_repository
        self.queue_name = queue_name
        self.max_batch_size_bytes = max_batch_size_bytes
        self.continuation_delay_seconds = continuation_delay_seconds
        self.logger = get_logger(self.__class__.__name__)

        self.logger.info("File synchronizer initialized", queue_name=queue_name)

    def replace_queue(self, items: Iterable[SyncQueueItem]) -> SyncQueue:
        """Store a queue handed in by the reconciliation step."""
        sync_queue = validate_sync_queue(items)
        self.db_service.save_sync_queue(self.queue_name, sync_queue)

        self.logger.info(
            "Sync queue replaced",
            queue_name=self.queue_name,
            status_counts=count_by_status(sync_queue)
        )

        return sync_queue

    def get_queue(self) -> SyncQueue:
        return self.db_service.load_sync_queue(self.queue_name)

    async def _save_queue(self, sync_queue: SyncQueue) -> None:
        self.db_service.save_sync_queue(self.queue_name, sync_queue)

    @log_async_execution_time
    async def run_pass(self) -> ProcessQueueResult:
        """Run one processing pass over the stored queue.

        Raises:
            QueuePersistenceError: If the updated queue could not be stored
        """
        sync_queue = self.get_queue()
        started_at = datetime.utcnow()

        try:
            result = await process_queue(
                sync_queue,
                transfer_client=self.transfer_client,
                file_repository=self.file_repository,
                update_sync_queue=self._save_queue,
                logger=self.logger.bind(queue_name=self.queue_name),
                max_batch_size_bytes=self.max_batch_size_bytes
            )
        except QueuePersistenceError as e:
            self._log_pass(started_at, error_message=str(e))
            raise

        self._log_pass(started_at, result=result)

        return result

    @log_async_execution_time
    async def sync_until_complete(self, max_passes: int = 1000) -> SyncRunSummary:
        """Run passes until the queue has no pending item left.

        Args:
            max_passes: Upper bound on the number of passes

        Returns:
            SyncRunSummary across all passes run
        """
        summary = SyncRunSummary(queue_name=self.queue_name)

        while summary.passes < max_passes:
            result = await self.run_pass()

            summary.passes += 1
            summary.finished = result.finished
            summary.files_synced += result.stats.newly_synced
            summary.files_errored += result.stats.errored
            summary.bytes_attempted += result.stats.bytes_attempted
            summary.pass_results.append(result)

            if result.finished == PassResult.ALL:
                break

            if self.continuation_delay_seconds > 0:
                await asyncio.sleep(self.continuation_delay_seconds)

        if not summary.is_complete:
            self.logger.warning(
                "Stopped before queue was fully processed",
                queue_name=self.queue_name,
                passes=summary.passes
            )

        self.logger.info(
            "Sync run finished",
            queue_name=self.queue_name,
            passes=summary.passes,
            finished=summary.finished.value if summary.finished else None,
            files_synced=summary.files_synced,
            files_errored=summary.files_errored
        )

        return summary

    def acknowledge_synced(self) -> SyncQueue:
        """Promote newly synced items in the stored queue to synced."""
        sync_queue = promote_newly_synced(self.get_queue())
        self.db_service.save_sync_queue(self.queue_name, sync_queue)
        return sync_queue

    def requeue_errored(self) -> SyncQueue:
        """Put errored items back to pending so the next pass retries them."""
        sync_queue = [
            item.mark_pending() if item.status == SyncItemStatus.ERRORED else item
            for item in self.get_queue()
        ]
        self.db_service.save_sync_queue(self.queue_name, sync_queue)

        self.logger.info("Errored items requeued", queue_name=self.queue_name)

        return sync_queue

    def get_errored_items(self) -> SyncQueue:
        return [item for item in self.get_queue() if item.status == SyncItemStatus.ERRORED]

    def _log_pass(
        self,
        started_at: datetime,
        result: Optional[ProcessQueueResult] = None,
        error_message: Optional[str] = None
    ) -> None:
        """Log pass result to database."""
        duration = int((datetime.utcnow() - started_at).total_seconds())

        try:
            if result is not None:
                log_fields = dict(
                    finished=result.finished.value,
                    files_attempted=result.stats.attempted,
                    files_synced=result.stats.newly_synced,
                    files_errored=result.stats.errored,
                    files_remaining=result.stats.remaining,
                    bytes_attempted=result.stats.bytes_attempted,
                    execution_time_seconds=duration
                )
            else:
                log_fields = dict(
                    error_message=error_message,
                    execution_time_seconds=duration
                )

            self.db_service.log_sync_pass(self.queue_name, **log_fields)
        except Exception as e:
            self.logger.warning(
                "Failed to log sync pass",
                queue_name=self.queue_name,
                error=str(e)
            )
