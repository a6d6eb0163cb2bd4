"""Main application entry point."""

import asyncio
import signal
import sys
from typing import Optional

from .config.settings import AppSettings, get_settings
from .utils.logging import setup_logging, get_logger
from .database import init_database, close_database
from .database.service import DatabaseService
from .database.file_repository import DatabaseFileRepository
from .api_clients import BaseTransferClient, TransferClientFactory
from .core import (
    FileSynchronizer,
    QueueFileError,
    QueuePersistenceError,
    SyncRunSummary,
    load_queue_file
)


class FileSynchronizerApp:
    """Runs a stored sync queue to completion."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self.settings = settings or get_settings()
        self.logger = get_logger("FileSynchronizer")
        self.running = False
        self.db_service: DatabaseService | None = None
        self.transfer_client: BaseTransferClient | None = None
        self.synchronizer: FileSynchronizer | None = None
        self._sync_task: asyncio.Task | None = None

    async def startup(self):
        """Application startup."""
        self.logger.info(
            "Starting File Synchronizer",
            version=self.settings.version,
            environment=self.settings.environment
        )

        init_database(self.settings.database.url, create_tables=True)
        self.db_service = DatabaseService()

        self.transfer_client = TransferClientFactory.create_client(settings=self.settings.transfer)
        file_repository = DatabaseFileRepository(self.db_service, source=self.transfer_client.name)

        sync_settings = self.settings.sync
        self.synchronizer = FileSynchronizer(
            database_service=self.db_service,
            transfer_client=self.transfer_client,
            file_repository=file_repository,
            queue_name=sync_settings.queue_name,
            max_batch_size_bytes=sync_settings.max_batch_size_bytes,
            continuation_delay_seconds=sync_settings.continuation_delay_seconds
        )

        if sync_settings.queue_file:
            sync_queue = load_queue_file(sync_settings.queue_file)
            self.synchronizer.replace_queue(sync_queue)
            self.logger.info("Queue file imported", path=sync_settings.queue_file, items=len(sync_queue))

        self.running = True
        self.logger.info("File Synchronizer started successfully")

    async def shutdown(self):
        """Application shutdown."""
        self.logger.info("Shutting down File Synchronizer")
        self.running = False

        if self.transfer_client:
            try:
                await self.transfer_client.close()
            except Exception as e:
                self.logger.warning("Error closing transfer client", error=str(e))

        try:
            close_database()
        except Exception as e:
            self.logger.warning("Error closing database", error=str(e))

        self.logger.info("File Synchronizer stopped")

    async def run(self) -> Optional[SyncRunSummary]:
        """Run passes until the queue is done or a shutdown is requested."""
        try:
            await self.startup()
            self._sync_task = asyncio.create_task(
                self.synchronizer.sync_until_complete(max_passes=self.settings.sync.max_passes)
            )
            return await self._sync_task
        except asyncio.CancelledError:
            self.logger.info("Sync run cancelled")
            return None
        finally:
            self._sync_task = None
            await self.shutdown()

    def request_shutdown(self):
        """Stop after the pass currently running."""
        self.running = False
        if self._sync_task and not self._sync_task.done():
            self._sync_task.cancel()


def setup_signal_handlers(app: FileSynchronizerApp):
    """Set up signal handlers for graceful shutdown."""
    loop = asyncio.get_running_loop()

    def signal_handler(signum, frame):
        app.logger.info(f"Received signal {signum}")
        loop.call_soon_threadsafe(app.request_shutdown)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)


async def main() -> int:
    """Main entry point.

    Returns:
        Process exit code
    """
    setup_logging()

    logger = get_logger("main")
    logger.info("Initializing File Synchronizer application")

    app = FileSynchronizerApp()
    setup_signal_handlers(app)

    try:
        summary = await app.run()
    except QueuePersistenceError as e:
        logger.error("Sync queue could not be persisted", error=str(e), queue_length=e.queue_length)
        return 2
    except QueueFileError as e:
        logger.error("Queue file could not be imported", error=str(e))
        return 1

    if summary is None:
        return 130

    return 0 if summary.is_complete else 3


def run():
    """Console script entry point."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\nShutdown requested by user")
        sys.exit(0)


if __name__ == "__main__":
    run()
