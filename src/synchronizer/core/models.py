"""Sync queue data model."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from .errors import DuplicateQueueItemError


class SyncItemStatus(str, Enum):
    """Status of a single sync queue item."""
    PENDING = "pending"
    NEWLY_SYNCED = "newly-synced"
    ERRORED = "errored"
    SYNCED = "synced"  # written by the post-sync promotion step, never by the processor


class SyncQueueItem(BaseModel):
    """One file awaiting (or done with) transfer to the destination."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        use_enum_values=False
    )

    id: str
    type: Literal["file"] = "file"
    name: str
    absolute_path: str
    size_in_bytes: int = Field(..., ge=0)
    last_modified_date: Optional[datetime] = None
    content_hash: Optional[str] = None
    status: SyncItemStatus = SyncItemStatus.PENDING
    error_message: Optional[str] = None
    parent_id: Optional[str] = None
    should_index: bool = False

    @model_validator(mode="after")
    def check_error_message(self) -> "SyncQueueItem":
        """An error message is present if and only if the item errored."""
        if self.status == SyncItemStatus.ERRORED and not self.error_message:
            raise ValueError(f"Errored item {self.id!r} requires an error message")
        if self.status != SyncItemStatus.ERRORED and self.error_message is not None:
            raise ValueError(f"Item {self.id!r} has an error message but status is {self.status.value!r}")
        return self

    @property
    def is_pending(self) -> bool:
        return self.status == SyncItemStatus.PENDING

    def mark_newly_synced(self) -> "SyncQueueItem":
        """Return a copy of this item flagged as newly synced."""
        return self.model_copy(update={"status": SyncItemStatus.NEWLY_SYNCED, "error_message": None})

    def mark_errored(self, error_message: str) -> "SyncQueueItem":
        """Return a copy of this item flagged as errored."""
        return self.model_copy(update={
            "status": SyncItemStatus.ERRORED,
            "error_message": error_message or "Unknown error"
        })

    def mark_pending(self) -> "SyncQueueItem":
        """Return a copy of this item queued for another attempt."""
        return self.model_copy(update={"status": SyncItemStatus.PENDING, "error_message": None})

    def mark_synced(self) -> "SyncQueueItem":
        """Return a copy of this item promoted to the final synced status."""
        return self.model_copy(update={"status": SyncItemStatus.SYNCED, "error_message": None})

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase dictionary used for storage."""
        return self.model_dump(by_alias=True, mode="json")


SyncQueue = List[SyncQueueItem]


def validate_sync_queue(items: Iterable[SyncQueueItem]) -> SyncQueue:
    """Return the items as a queue list, rejecting duplicate ids."""
    queue = list(items)
    seen = set()
    duplicates = []

    for item in queue:
        if item.id in seen:
            duplicates.append(item.id)
        seen.add(item.id)

    if duplicates:
        raise DuplicateQueueItemError(duplicates)

    return queue


def parse_sync_queue(raw_items: Iterable[Dict[str, Any]]) -> SyncQueue:
    """Build a validated queue from stored dictionaries."""
    return validate_sync_queue(SyncQueueItem.model_validate(raw) for raw in raw_items)


def dump_sync_queue(sync_queue: Iterable[SyncQueueItem]) -> List[Dict[str, Any]]:
    """Convert a queue to a list of storage dictionaries."""
    return [item.to_dict() for item in sync_queue]


def count_by_status(sync_queue: Iterable[SyncQueueItem]) -> Dict[str, int]:
    """Count queue items per status value."""
    counts: Dict[str, int] = {}
    for item in sync_queue:
        counts[item.status.value] = counts.get(item.status.value, 0) + 1
    return counts
