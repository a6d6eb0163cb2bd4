"""Database package for the file synchronizer."""

from .database import (
    DatabaseManager,
    get_db_manager,
    init_database,
    close_database
)

from .models import (
    SyncQueueModel,
    RemoteFileModel,
    SyncPassLogModel,
    RemoteFileCreate,
    RemoteFileResponse,
    SyncPassLogCreate,
    SyncPassLogResponse
)

from .operations import (
    SyncQueueRepository,
    RemoteFileRepository,
    SyncPassLogRepository,
    get_sync_queue_repository,
    get_remote_file_repository,
    get_sync_pass_log_repository
)

from .service import DatabaseService

from .file_repository import DatabaseFileRepository

__all__ = [
    # Database management
    "DatabaseManager",
    "get_db_manager",
    "init_database",
    "close_database",

    # Models
    "SyncQueueModel",
    "RemoteFileModel",
    "SyncPassLogModel",
    "RemoteFileCreate",
    "RemoteFileResponse",
    "SyncPassLogCreate",
    "SyncPassLogResponse",

    # Repositories
    "SyncQueueRepository",
    "RemoteFileRepository",
    "SyncPassLogRepository",
    "get_sync_queue_repository",
    "get_remote_file_repository",
    "get_sync_pass_log_repository",

    # Services
    "DatabaseService",
    "DatabaseFileRepository"
]
