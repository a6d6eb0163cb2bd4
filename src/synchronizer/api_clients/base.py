"""Base transfer client interface and common functionality."""

from abc import ABC, abstractmethod
from typing import Optional

from ..core.models import SyncQueueItem
from ..utils.logging import get_logger


class BaseTransferClient(ABC):
    """Abstract base class for destination transfer clients."""

    name: str = "base"

    def __init__(self, **kwargs):
        self.options = kwargs
        self.logger = get_logger(self.__class__.__name__)

    @abstractmethod
    async def transfer_file(self, item: SyncQueueItem) -> str:
        """Transfer one item's content to the destination.

        Args:
            item: Queue item whose source file is transferred

        Returns:
            Identifier assigned to the file by the destination

        Raises:
            TransferError: If the transfer failed
        """
        pass

    async def close(self) -> None:
        """Release any held resources."""
        return None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


class TransferError(Exception):
    """Raised when a file transfer fails."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class RateLimitError(TransferError):
    """Raised when the destination's rate limit is exceeded."""

    def __init__(self, message: str, retry_after: Optional[int] = None):
        super().__init__(message, status=429)
        self.retry_after = retry_after


class AuthenticationError(TransferError):
    """Raised when the destination rejects our credentials."""
    pass


class APIConnectionError(TransferError):
    """Raised when the destination cannot be reached."""
    pass
