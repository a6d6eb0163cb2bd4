"""Core sync queue processing package."""

from .errors import SyncQueueError, QueuePersistenceError, DuplicateQueueItemError
from .models import (
    SyncItemStatus,
    SyncQueueItem,
    SyncQueue,
    validate_sync_queue,
    parse_sync_queue,
    dump_sync_queue,
    count_by_status
)
from .interfaces import TransferClient, FileRepository, UpdateSyncQueue, RemoteFileRecord
from .batch import BatchAccumulator
from .transfer import TransferExecutor, TransferOutcome
from .queue_processor import (
    QueueProcessor,
    PassResult,
    PassStats,
    ProcessQueueResult,
    process_queue
)
from .queue_file import QueueFileError, load_queue_file, dump_queue_file
from .synchronizer import FileSynchronizer, SyncRunSummary, promote_newly_synced

__all__ = [
    "SyncQueueError",
    "QueuePersistenceError",
    "DuplicateQueueItemError",
    "SyncItemStatus",
    "SyncQueueItem",
    "SyncQueue",
    "validate_sync_queue",
    "parse_sync_queue",
    "dump_sync_queue",
    "count_by_status",
    "TransferClient",
    "FileRepository",
    "UpdateSyncQueue",
    "RemoteFileRecord",
    "BatchAccumulator",
    "TransferExecutor",
    "TransferOutcome",
    "QueueProcessor",
    "PassResult",
    "PassStats",
    "ProcessQueueResult",
    "process_queue",
    "QueueFileError",
    "load_queue_file",
    "dump_queue_file",
    "FileSynchronizer",
    "SyncRunSummary",
    "promote_newly_synced"
]
