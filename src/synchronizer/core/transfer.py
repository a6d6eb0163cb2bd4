"""Single-item transfer execution."""

from dataclasses import dataclass
from typing import Optional

import structlog

from .interfaces import FileRepository, TransferClient
from .models import SyncQueueItem
from ..utils.logging import get_logger


@dataclass
class TransferOutcome:
    """Result of attempting one item's transfer."""

    item: SyncQueueItem
    success: bool
    remote_id: Optional[str] = None
    error_message: Optional[str] = None
    metadata_error: Optional[str] = None


def describe_error(error: BaseException) -> str:
    """Human readable description of a failure."""
    message = str(error)
    return message if message else error.__class__.__name__


class TransferExecutor:
    """Transfers one item and records the outcome on a copy of it."""

    def __init__(
        self,
        transfer_client: TransferClient,
        file_repository: FileRepository,
        logger: Optional[structlog.stdlib.BoundLogger] = None
    ):
        """Initialize transfer executor.

        Args:
            transfer_client: Destination transfer capability
            file_repository: Repository recording transferred file metadata
            logger: Structured logger, defaults to this class's logger
        """
        self.transfer_client = transfer_client
        self.file_repository = file_repository
        self.logger = logger or get_logger(self.__class__.__name__)

    async def execute(self, item: SyncQueueItem) -> TransferOutcome:
        """Attempt the transfer of a single item.

        Transfer failures are recorded on the returned item and never raised.
        A failure to update the file metadata afterwards is logged but does
        not change the item's outcome.

        Args:
            item: Pending queue item

        Returns:
            TransferOutcome holding the updated item
        """
        self.logger.debug(
            "Transferring file",
            item_id=item.id,
            file_name=item.name,
            size_in_bytes=item.size_in_bytes
        )

        try:
            remote_id = await self.transfer_client.transfer_file(item)
        except Exception as e:
            error_message = describe_error(e)
            self.logger.warning(
                "File transfer failed",
                item_id=item.id,
                file_name=item.name,
                error=error_message
            )
            return TransferOutcome(
                item=item.mark_errored(error_message),
                success=False,
                error_message=error_message
            )

        outcome = TransferOutcome(
            item=item.mark_newly_synced(),
            success=True,
            remote_id=remote_id
        )

        try:
            await self.file_repository.update_file_metadata(item, remote_id)
        except Exception as e:
            outcome.metadata_error = describe_error(e)
            self.logger.error(
                "Failed to update file metadata",
                item_id=item.id,
                remote_id=remote_id,
                error=outcome.metadata_error
            )

        self.logger.info(
            "File transferred",
            item_id=item.id,
            file_name=item.name,
            remote_id=remote_id,
            transfer_client=getattr(self.transfer_client, "name", None)
        )

        return outcome
