"""Bounded-batch processing of a sync queue."""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

import structlog

from .batch import BatchAccumulator
from .errors import QueuePersistenceError
from .interfaces import FileRepository, TransferClient, UpdateSyncQueue
from .models import SyncQueue, SyncQueueItem, validate_sync_queue
from .transfer import TransferExecutor, describe_error
from ..utils.logging import get_logger


class PassResult(str, Enum):
    """How a processing pass ended."""
    ALL = "all"      # no pending item was left behind
    BATCH = "batch"  # stopped at the batch ceiling, another pass is needed


@dataclass
class PassStats:
    """Counters for one processing pass."""

    attempted: int = 0
    newly_synced: int = 0
    errored: int = 0
    skipped: int = 0
    remaining: int = 0
    bytes_attempted: int = 0
    duration: float = 0.0


@dataclass
class ProcessQueueResult:
    """Outcome of a processing pass."""

    finished: PassResult
    sync_queue: SyncQueue = field(default_factory=list)
    stats: PassStats = field(default_factory=PassStats)

    @property
    def is_complete(self) -> bool:
        return self.finished == PassResult.ALL


class QueueProcessor:
    """Drives one pass over a sync queue.

    Items are attempted strictly in queue order, one at a time. Only pending
    items are considered; every other status is copied through untouched.
    The pass stops before the first pending item that would push the
    attempted bytes over the batch ceiling, and the updated queue is handed
    to the persistence callback exactly once.
    """

    def __init__(
        self,
        transfer_client: TransferClient,
        file_repository: FileRepository,
        update_sync_queue: UpdateSyncQueue,
        logger: Optional[structlog.stdlib.BoundLogger] = None,
        max_batch_size_bytes: Optional[int] = None
    ):
        """Initialize queue processor.

        Args:
            transfer_client: Destination transfer capability
            file_repository: Repository recording transferred file metadata
            update_sync_queue: Callback that durably stores the queue snapshot
            logger: Structured logger, defaults to this class's logger
            max_batch_size_bytes: Batch ceiling, defaults to MAX_BATCH_SIZE_BYTES
        """
        self.logger = logger or get_logger(self.__class__.__name__)
        self.update_sync_queue = update_sync_queue
        self.max_batch_size_bytes = max_batch_size_bytes
        self.executor = TransferExecutor(transfer_client, file_repository, logger=self.logger)

        # Fail fast on an invalid ceiling
        BatchAccumulator(max_batch_size_bytes)

    async def process(self, sync_queue: Iterable[SyncQueueItem]) -> ProcessQueueResult:
        """Run a single pass over the queue.

        Args:
            sync_queue: Current queue snapshot, left unmodified

        Returns:
            ProcessQueueResult with the new snapshot and pass outcome

        Raises:
            QueuePersistenceError: If the updated queue could not be stored
            DuplicateQueueItemError: If two items share an id
        """
        start_time = time.time()
        items = validate_sync_queue(sync_queue)
        accumulator = BatchAccumulator(self.max_batch_size_bytes)
        stats = PassStats()
        updated_queue: SyncQueue = []
        finished = PassResult.ALL

        self.logger.info(
            "Starting sync queue pass",
            queue_length=len(items),
            max_batch_size_bytes=accumulator.max_batch_size_bytes
        )

        for index, item in enumerate(items):
            if not item.is_pending:
                stats.skipped += 1
                updated_queue.append(item)
                continue

            if not accumulator.can_attempt(item.size_in_bytes):
                self.logger.info(
                    "Batch size limit reached, deferring remaining items",
                    item_id=item.id,
                    running_total=accumulator.running_total,
                    size_in_bytes=item.size_in_bytes
                )
                finished = PassResult.BATCH
                updated_queue.extend(items[index:])
                break

            accumulator.record_attempt(item.size_in_bytes)
            outcome = await self.executor.execute(item)
            updated_queue.append(outcome.item)

            if outcome.success:
                stats.newly_synced += 1
            else:
                stats.errored += 1

        stats.attempted = accumulator.attempted_count
        stats.bytes_attempted = accumulator.running_total
        stats.remaining = sum(1 for item in updated_queue if item.is_pending)

        await self._persist(updated_queue)

        stats.duration = time.time() - start_time

        self.logger.info(
            "Sync queue pass completed",
            finished=finished.value,
            attempted=stats.attempted,
            newly_synced=stats.newly_synced,
            errored=stats.errored,
            remaining=stats.remaining,
            bytes_attempted=stats.bytes_attempted,
            duration=f"{stats.duration:.2f}s"
        )

        return ProcessQueueResult(finished=finished, sync_queue=updated_queue, stats=stats)

    async def _persist(self, updated_queue: SyncQueue) -> None:
        """Store the full queue snapshot; failure here ends the pass loudly."""
        try:
            await self.update_sync_queue(list(updated_queue))
        except Exception as e:
            self.logger.error(
                "Failed to persist sync queue",
                queue_length=len(updated_queue),
                error=describe_error(e)
            )
            raise QueuePersistenceError(
                f"Failed to persist sync queue: {describe_error(e)}",
                queue_length=len(updated_queue)
            ) from e


async def process_queue(
    sync_queue: Iterable[SyncQueueItem],
    transfer_client: TransferClient,
    file_repository: FileRepository,
    update_sync_queue: UpdateSyncQueue,
    logger: Optional[structlog.stdlib.BoundLogger] = None,
    max_batch_size_bytes: Optional[int] = None
) -> ProcessQueueResult:
    """Run one bounded-batch pass over a sync queue.

    Args:
        sync_queue: Current queue snapshot
        transfer_client: Destination transfer capability
        file_repository: Repository recording transferred file metadata
        update_sync_queue: Callback that durably stores the queue snapshot
        logger: Structured logger
        max_batch_size_bytes: Batch ceiling, defaults to MAX_BATCH_SIZE_BYTES

    Returns:
        ProcessQueueResult whose ``finished`` is ``all`` or ``batch``
    """
    processor = QueueProcessor(
        transfer_client=transfer_client,
        file_repository=file_repository,
        update_sync_queue=update_sync_queue,
        logger=logger,
        max_batch_size_bytes=max_batch_size_bytes
    )
    return await processor.process(sync_queue)
