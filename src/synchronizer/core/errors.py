"""Exceptions raised by the sync queue core."""

from typing import List


class SyncQueueError(Exception):
    """Base exception for sync queue errors."""
    pass


class QueuePersistenceError(SyncQueueError):
    """Raised when the updated queue could not be stored after a pass."""

    def __init__(self, message: str, queue_length: int = 0):
        super().__init__(message)
        self.queue_length = queue_length


class DuplicateQueueItemError(SyncQueueError, ValueError):
    """Raised when a queue contains the same item id more than once."""

    def __init__(self, duplicate_ids: List[str]):
        super().__init__(f"Duplicate sync queue item ids: {', '.join(duplicate_ids)}")
        self.duplicate_ids = duplicate_ids
