"""Transfer clients for destination content stores."""

from .base import (
    BaseTransferClient,
    TransferError,
    RateLimitError,
    AuthenticationError,
    APIConnectionError
)

from .http_client import HttpTransferClient
from .factory import TransferClientFactory

__all__ = [
    # Base classes and exceptions
    "BaseTransferClient",
    "TransferError",
    "RateLimitError",
    "AuthenticationError",
    "APIConnectionError",

    # Client implementations
    "HttpTransferClient",

    # Factory
    "TransferClientFactory"
]
