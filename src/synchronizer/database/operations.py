"""Database operations and repository classes."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session
from sqlalchemy import desc

from .models import (
    SyncQueueModel, RemoteFileModel, SyncPassLogModel,
    RemoteFileCreate, SyncPassLogCreate
)
from ..utils.logging import get_logger, log_execution_time


logger = get_logger("database.operations")


class SyncQueueRepository:
    """Repository for stored queue snapshots."""

    def __init__(self, session: Session):
        self.session = session

    @log_execution_time
    def get_by_name(self, name: str) -> Optional[SyncQueueModel]:
        """Get a stored queue by name."""
        return self.session.query(SyncQueueModel).filter(SyncQueueModel.name == name).first()

    @log_execution_time
    def get_all(self) -> List[SyncQueueModel]:
        """Get all stored queues."""
        return self.session.query(SyncQueueModel).order_by(SyncQueueModel.name).all()

    @log_execution_time
    def replace(self, name: str, items: List[Dict[str, Any]], status_counts: Dict[str, int]) -> SyncQueueModel:
        """Replace a queue's snapshot, creating the queue if needed."""
        queue = self.get_by_name(name)

        if queue is None:
            queue = SyncQueueModel(name=name)
            self.session.add(queue)

        queue.items = items
        queue.item_count = len(items)
        queue.pending_count = status_counts.get("pending", 0)
        queue.errored_count = status_counts.get("errored", 0)
        queue.updated_at = datetime.utcnow()

        self.session.flush()

        logger.info(
            "Sync queue stored",
            queue_name=name,
            item_count=queue.item_count,
            pending_count=queue.pending_count
        )

        return queue

    @log_execution_time
    def delete(self, name: str) -> bool:
        """Delete a stored queue."""
        queue = self.get_by_name(name)
        if not queue:
            return False

        self.session.delete(queue)
        logger.info("Sync queue deleted", queue_name=name)

        return True


class RemoteFileRepository:
    """Repository for transferred file records."""

    def __init__(self, session: Session):
        self.session = session

    @log_execution_time
    def get_by_item_id(self, item_id: str) -> Optional[RemoteFileModel]:
        """Get a remote file record by queue item id."""
        return self.session.query(RemoteFileModel).filter(RemoteFileModel.item_id == item_id).first()

    @log_execution_time
    def get_all(self, parent_id: Optional[str] = None) -> List[RemoteFileModel]:
        """List remote file records, optionally under one parent."""
        query = self.session.query(RemoteFileModel)
        if parent_id is not None:
            query = query.filter(RemoteFileModel.parent_id == parent_id)
        return query.order_by(RemoteFileModel.item_id).all()

    @log_execution_time
    def update_or_create(self, file_data: RemoteFileCreate) -> RemoteFileModel:
        """Record the remote file for an item, replacing any earlier mapping."""
        record = self.get_by_item_id(file_data.item_id)

        if record is None:
            record = RemoteFileModel(item_id=file_data.item_id)
            self.session.add(record)

        for field, value in file_data.model_dump(exclude={"item_id"}).items():
            setattr(record, field, value)

        record.synced_at = datetime.utcnow()
        record.updated_at = datetime.utcnow()

        self.session.flush()

        logger.info(
            "Remote file recorded",
            item_id=record.item_id,
            remote_id=record.remote_id,
            name=record.name
        )

        return record

    @log_execution_time
    def delete(self, item_id: str) -> bool:
        """Delete the record for an item."""
        record = self.get_by_item_id(item_id)
        if not record:
            return False

        self.session.delete(record)
        logger.info("Remote file record deleted", item_id=item_id)

        return True


class SyncPassLogRepository:
    """Repository for pass log operations."""

    def __init__(self, session: Session):
        self.session = session

    @log_execution_time
    def create(self, log_data: SyncPassLogCreate) -> SyncPassLogModel:
        """Record a processing pass."""
        pass_log = SyncPassLogModel(**log_data.model_dump())

        self.session.add(pass_log)
        self.session.flush()

        return pass_log

    @log_execution_time
    def get_recent_logs(self, queue_name: str, limit: int = 10) -> List[SyncPassLogModel]:
        """Get recent pass logs for a queue."""
        return self.session.query(SyncPassLogModel).filter(
            SyncPassLogModel.queue_name == queue_name
        ).order_by(desc(SyncPassLogModel.id)).limit(limit).all()


# Repository factory functions

def get_sync_queue_repository(session: Session) -> SyncQueueRepository:
    """Get sync queue repository instance."""
    return SyncQueueRepository(session)


def get_remote_file_repository(session: Session) -> RemoteFileRepository:
    """Get remote file repository instance."""
    return RemoteFileRepository(session)


def get_sync_pass_log_repository(session: Session) -> SyncPassLogRepository:
    """Get pass log repository instance."""
    return SyncPassLogRepository(session)
