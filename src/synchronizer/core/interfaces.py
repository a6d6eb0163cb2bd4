"""Capability contracts consumed by the queue processor."""

from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, List, Optional, Protocol, runtime_checkable

from .models import SyncQueue, SyncQueueItem


@dataclass
class RemoteFileRecord:
    """A file known to the destination, as tracked by the file repository."""

    item_id: str
    remote_id: str
    name: str
    absolute_path: str
    size_in_bytes: int
    content_hash: Optional[str] = None
    parent_id: Optional[str] = None
    should_index: bool = False
    source: Optional[str] = None
    synced_at: Optional[datetime] = None


@runtime_checkable
class TransferClient(Protocol):
    """Moves one item's content to the destination store."""

    name: str

    async def transfer_file(self, item: SyncQueueItem) -> str:
        """Transfer the item and return the destination's id for it."""
        ...


@runtime_checkable
class FileRepository(Protocol):
    """Stores metadata about transferred files.

    Only ``update_file_metadata`` is used by the queue processor. Listing and
    deletion serve the reconciliation step that builds the queue.
    """

    async def update_file_metadata(self, item: SyncQueueItem, remote_id: str) -> None:
        ...

    async def list_files(self, parent_id: Optional[str] = None) -> List[RemoteFileRecord]:
        ...

    async def delete_file(self, file_id: str) -> bool:
        ...


# Durably stores the full queue snapshot; must only return once stored.
UpdateSyncQueue = Callable[[SyncQueue], Awaitable[None]]
