"""Database models for the file synchronizer."""

from datetime import datetime
from typing import Optional

from sqlalchemy import Column, Integer, String, DateTime, JSON, Boolean, Text, BigInteger
from sqlalchemy.orm import declarative_base
from pydantic import BaseModel, ConfigDict


Base = declarative_base()


# SQLAlchemy Models (Database Tables)

class SyncQueueModel(Base):
    """Database model for a named sync queue snapshot."""

    __tablename__ = "sync_queues"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True, index=True)

    # Full ordered snapshot, stored as camelCase item dictionaries
    items = Column(JSON, nullable=False, default=list)

    item_count = Column(Integer, default=0, nullable=False)
    pending_count = Column(Integer, default=0, nullable=False)
    errored_count = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<SyncQueueModel(id={self.id}, name='{self.name}', items={self.item_count})>"


class RemoteFileModel(Base):
    """Database model mapping a synced item to its destination file."""

    __tablename__ = "remote_files"

    id = Column(Integer, primary_key=True, index=True)

    # File identification
    item_id = Column(String(255), nullable=False, unique=True, index=True)
    remote_id = Column(String(255), nullable=False, index=True)
    name = Column(String(500), nullable=False)
    absolute_path = Column(Text, nullable=False)

    # File metadata
    size_in_bytes = Column(BigInteger, nullable=False, default=0)
    content_hash = Column(String(255), nullable=True)
    parent_id = Column(String(255), nullable=True, index=True)
    should_index = Column(Boolean, default=False, nullable=False)
    source = Column(String(100), nullable=True)

    # Timestamps
    last_modified_date = Column(DateTime, nullable=True)
    synced_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<RemoteFileModel(id={self.id}, item_id='{self.item_id}', remote_id='{self.remote_id}')>"


class SyncPassLogModel(Base):
    """Database model for processing pass logs."""

    __tablename__ = "sync_pass_logs"

    id = Column(Integer, primary_key=True, index=True)
    queue_name = Column(String(100), nullable=False, index=True)

    pass_started_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    finished = Column(String(20), nullable=True)  # "all" / "batch", null when the pass failed

    # Results
    files_attempted = Column(Integer, default=0, nullable=False)
    files_synced = Column(Integer, default=0, nullable=False)
    files_errored = Column(Integer, default=0, nullable=False)
    files_remaining = Column(Integer, default=0, nullable=False)
    bytes_attempted = Column(BigInteger, default=0, nullable=False)

    error_message = Column(Text, nullable=True)
    execution_time_seconds = Column(Integer, nullable=True)

    def __repr__(self):
        return f"<SyncPassLogModel(id={self.id}, queue='{self.queue_name}', finished='{self.finished}')>"


# Pydantic Models (API/Transfer Objects)

class RemoteFileCreate(BaseModel):
    """Pydantic model for recording a transferred file."""
    item_id: str
    remote_id: str
    name: str
    absolute_path: str
    size_in_bytes: int = 0
    content_hash: Optional[str] = None
    parent_id: Optional[str] = None
    should_index: bool = False
    source: Optional[str] = None
    last_modified_date: Optional[datetime] = None


class RemoteFileResponse(BaseModel):
    """Pydantic model for remote file response."""
    id: int
    item_id: str
    remote_id: str
    name: str
    absolute_path: str
    size_in_bytes: int
    content_hash: Optional[str] = None
    parent_id: Optional[str] = None
    should_index: bool
    source: Optional[str] = None
    last_modified_date: Optional[datetime] = None
    synced_at: datetime
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SyncPassLogCreate(BaseModel):
    """Pydantic model for recording a processing pass."""
    queue_name: str
    finished: Optional[str] = None
    files_attempted: int = 0
    files_synced: int = 0
    files_errored: int = 0
    files_remaining: int = 0
    bytes_attempted: int = 0
    error_message: Optional[str] = None
    execution_time_seconds: Optional[int] = None


class SyncPassLogResponse(BaseModel):
    """Pydantic model for pass log response."""
    id: int
    queue_name: str
    pass_started_at: datetime
    finished: Optional[str] = None
    files_attempted: int
    files_synced: int
    files_errored: int
    files_remaining: int
    bytes_attempted: int
    error_message: Optional[str] = None
    execution_time_seconds: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)
