"""High-level database service layer."""

from contextlib import contextmanager
from typing import List, Optional

from .database import DatabaseManager, get_db_manager
from .operations import (
    get_sync_queue_repository,
    get_remote_file_repository,
    get_sync_pass_log_repository
)
from .models import (
    RemoteFileCreate, RemoteFileResponse,
    SyncPassLogCreate, SyncPassLogResponse
)
from ..core.models import SyncQueue, SyncQueueItem, count_by_status, dump_sync_queue, parse_sync_queue
from ..utils.logging import get_logger, log_execution_time


logger = get_logger("database.service")


class DatabaseService:
    """High-level database service for sync queue storage."""

    def __init__(self, db_manager: Optional[DatabaseManager] = None):
        self.db_manager = db_manager or get_db_manager()

    @contextmanager
    def transaction(self):
        """Context manager for database transactions."""
        with self.db_manager.session_scope() as session:
            yield session

    # Queue operations

    @log_execution_time
    def load_sync_queue(self, queue_name: str) -> SyncQueue:
        """Load a stored queue snapshot; an unknown queue is empty."""
        with self.transaction() as session:
            repo = get_sync_queue_repository(session)
            queue = repo.get_by_name(queue_name)
            raw_items = list(queue.items or []) if queue else []

        return parse_sync_queue(raw_items)

    @log_execution_time
    def save_sync_queue(self, queue_name: str, sync_queue: SyncQueue) -> None:
        """Replace the stored snapshot with the full queue."""
        items = dump_sync_queue(sync_queue)
        status_counts = count_by_status(sync_queue)

        with self.transaction() as session:
            repo = get_sync_queue_repository(session)
            repo.replace(queue_name, items, status_counts)

    @log_execution_time
    def delete_sync_queue(self, queue_name: str) -> bool:
        """Delete a stored queue."""
        with self.transaction() as session:
            repo = get_sync_queue_repository(session)
            return repo.delete(queue_name)

    @log_execution_time
    def get_queue_names(self) -> List[str]:
        """Get names of all stored queues."""
        with self.transaction() as session:
            repo = get_sync_queue_repository(session)
            return [queue.name for queue in repo.get_all()]

    # Remote file operations

    @log_execution_time
    def record_remote_file(
        self,
        item: SyncQueueItem,
        remote_id: str,
        source: Optional[str] = None
    ) -> RemoteFileResponse:
        """Record which destination file an item was transferred to."""
        file_data = RemoteFileCreate(
            item_id=item.id,
            remote_id=remote_id,
            name=item.name,
            absolute_path=item.absolute_path,
            size_in_bytes=item.size_in_bytes,
            content_hash=item.content_hash,
            parent_id=item.parent_id,
            should_index=item.should_index,
            source=source,
            last_modified_date=item.last_modified_date
        )

        with self.transaction() as session:
            repo = get_remote_file_repository(session)
            record = repo.update_or_create(file_data)
            return RemoteFileResponse.model_validate(record)

    @log_execution_time
    def get_remote_file(self, item_id: str) -> Optional[RemoteFileResponse]:
        """Get the remote file record for an item."""
        with self.transaction() as session:
            repo = get_remote_file_repository(session)
            record = repo.get_by_item_id(item_id)
            return RemoteFileResponse.model_validate(record) if record else None

    @log_execution_time
    def list_remote_files(self, parent_id: Optional[str] = None) -> List[RemoteFileResponse]:
        """List remote file records."""
        with self.transaction() as session:
            repo = get_remote_file_repository(session)
            return [RemoteFileResponse.model_validate(r) for r in repo.get_all(parent_id)]

    @log_execution_time
    def delete_remote_file(self, item_id: str) -> bool:
        """Delete the remote file record for an item."""
        with self.transaction() as session:
            repo = get_remote_file_repository(session)
            return repo.delete(item_id)

    # Pass log operations

    @log_execution_time
    def log_sync_pass(self, queue_name: str, **fields) -> SyncPassLogResponse:
        """Record the outcome of a processing pass."""
        log_data = SyncPassLogCreate(queue_name=queue_name, **fields)

        with self.transaction() as session:
            repo = get_sync_pass_log_repository(session)
            pass_log = repo.create(log_data)
            return SyncPassLogResponse.model_validate(pass_log)

    @log_execution_time
    def get_recent_pass_logs(self, queue_name: str, limit: int = 10) -> List[SyncPassLogResponse]:
        """Get recent pass logs for a queue, newest first."""
        with self.transaction() as session:
            repo = get_sync_pass_log_repository(session)
            return [SyncPassLogResponse.model_validate(log) for log in repo.get_recent_logs(queue_name, limit)]
