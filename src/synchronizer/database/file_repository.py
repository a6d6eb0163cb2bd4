"""Database-backed file repository for the queue processor."""

from typing import List, Optional

from .service import DatabaseService
from ..core.interfaces import RemoteFileRecord
from ..core.models import SyncQueueItem
from ..utils.logging import get_logger


class DatabaseFileRepository:
    """Async file repository storing item to remote file mappings."""

    def __init__(self, database_service: DatabaseService, source: Optional[str] = None):
        """Initialize file repository.

        Args:
            database_service: Database service for persistence
            source: Name of the transfer client recorded with each file
        """
        self.db_service = database_service
        self.source = source
        self.logger = get_logger(self.__class__.__name__)

    async def update_file_metadata(self, item: SyncQueueItem, remote_id: str) -> None:
        self.db_service.record_remote_file(item, remote_id, source=self.source)

    async def list_files(self, parent_id: Optional[str] = None) -> List[RemoteFileRecord]:
        return [
            RemoteFileRecord(
                item_id=record.item_id,
                remote_id=record.remote_id,
                name=record.name,
                absolute_path=record.absolute_path,
                size_in_bytes=record.size_in_bytes,
                content_hash=record.content_hash,
                parent_id=record.parent_id,
                should_index=record.should_index,
                source=record.source,
                synced_at=record.synced_at
            )
            for record in self.db_service.list_remote_files(parent_id)
        ]

    async def delete_file(self, file_id: str) -> bool:
        deleted = self.db_service.delete_remote_file(file_id)
        if not deleted:
            self.logger.warning("Remote file record not found for deletion", item_id=file_id)
        return deleted
