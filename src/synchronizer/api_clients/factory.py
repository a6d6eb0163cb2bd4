"""Transfer client factory for creating configured client instances."""

from typing import Dict, List, Optional, Type

from ..config.settings import TransferSettings, get_settings
from .base import BaseTransferClient
from .http_client import HttpTransferClient


class TransferClientFactory:
    """Factory for creating transfer client instances."""

    _client_classes: Dict[str, Type[BaseTransferClient]] = {
        HttpTransferClient.name: HttpTransferClient,
    }

    @classmethod
    def create_client(
        cls,
        client_name: Optional[str] = None,
        settings: Optional[TransferSettings] = None,
        **kwargs
    ) -> BaseTransferClient:
        """Create a transfer client instance.

        Args:
            client_name: Registered client name, defaults to the configured one
            settings: Transfer settings, defaults to the application settings
            **kwargs: Additional parameters passed to the client

        Returns:
            Configured transfer client instance

        Raises:
            ValueError: If the client name is not registered
        """
        settings = settings or get_settings().transfer
        client_name = client_name or settings.client

        if client_name not in cls._client_classes:
            raise ValueError(f"Unsupported transfer client: {client_name}")

        client_class = cls._client_classes[client_name]

        if client_class is HttpTransferClient:
            kwargs.setdefault("base_url", settings.base_url)
            kwargs.setdefault("api_token", settings.api_token)
            kwargs.setdefault("timeout_seconds", settings.timeout_seconds)

        return client_class(**kwargs)

    @classmethod
    def get_supported_clients(cls) -> List[str]:
        """Get list of registered client names."""
        return list(cls._client_classes.keys())

    @classmethod
    def register_client(cls, client_name: str, client_class: Type[BaseTransferClient]):
        """Register a new transfer client type.

        Args:
            client_name: Name used to select the client
            client_class: Client class to register
        """
        cls._client_classes[client_name] = client_class
