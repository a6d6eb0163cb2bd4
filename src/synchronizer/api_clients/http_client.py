"""HTTP transfer client that uploads files to a remote content store."""

import asyncio
import mimetypes
from pathlib import Path
from typing import BinaryIO, Dict, Optional

import aiohttp

from .base import BaseTransferClient, TransferError, RateLimitError, AuthenticationError, APIConnectionError
from ..core.models import SyncQueueItem
from ..utils.logging import log_async_execution_time


class HttpTransferClient(BaseTransferClient):
    """Uploads source files with ``PUT {base_url}/files/{item_id}``.

    The store answers with a JSON body whose ``id`` is the remote file id.
    """

    name = "http"

    def __init__(
        self,
        base_url: str,
        api_token: str = "",
        timeout_seconds: float = 300.0,
        session: Optional[aiohttp.ClientSession] = None,
        **kwargs
    ):
        """Initialize HTTP transfer client.

        Args:
            base_url: Base URL of the content store API
            api_token: Bearer token sent with every request
            timeout_seconds: Total timeout for one upload
            session: Optional externally managed client session
            **kwargs: Additional configuration parameters
        """
        super().__init__(**kwargs)

        self.base_url = base_url.rstrip('/')
        self.api_token = api_token
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.session = session
        self._owns_session = session is None

        self.logger.info(
            "HTTP transfer client initialized",
            base_url=self.base_url,
            timeout_seconds=timeout_seconds
        )

    async def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self.session

    async def close(self) -> None:
        """Close the client session if this client created it."""
        if self.session and self._owns_session and not self.session.closed:
            await self.session.close()

    def _build_headers(self, item: SyncQueueItem) -> Dict[str, str]:
        content_type, _ = mimetypes.guess_type(item.name)
        headers = {
            "Accept": "application/json",
            "Content-Type": content_type or "application/octet-stream",
            "X-File-Name": item.name,
            "X-Should-Index": "true" if item.should_index else "false"
        }

        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        if item.content_hash:
            headers["X-Content-Hash"] = item.content_hash
        if item.parent_id:
            headers["X-Parent-Id"] = item.parent_id

        return headers

    async def _open_source(self, item: SyncQueueItem) -> BinaryIO:
        """Open the source file for a chunked upload; the caller closes it."""
        source = Path(item.absolute_path)

        try:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, source.open, "rb")
        except FileNotFoundError as e:
            raise TransferError(f"Source file not found: {item.absolute_path}") from e
        except OSError as e:
            raise TransferError(f"Cannot read source file {item.absolute_path}: {e}") from e

    @log_async_execution_time
    async def transfer_file(self, item: SyncQueueItem) -> str:
        """Upload the item's source file and return the remote id."""
        session = await self._get_session()
        source_file = await self._open_source(item)
        url = f"{self.base_url}/files/{item.id}"

        try:
            async with session.put(
                url,
                data=source_file,
                headers=self._build_headers(item),
                timeout=self.timeout
            ) as response:
                if response.status in (401, 403):
                    raise AuthenticationError("Invalid or expired API token", status=response.status)
                elif response.status == 429:
                    retry_after = int(response.headers.get("Retry-After", 60))
                    raise RateLimitError("Rate limit exceeded", retry_after)
                elif response.status >= 400:
                    error_text = await response.text()
                    raise TransferError(
                        f"Upload failed: {response.status} - {error_text}",
                        status=response.status
                    )

                result = await response.json(content_type=None)

        except aiohttp.ClientError as e:
            raise APIConnectionError(f"Network error: {e}") from e
        finally:
            source_file.close()

        remote_id = result.get("id") if isinstance(result, dict) else None
        if not remote_id:
            raise TransferError(f"Upload response for {item.id} did not include a file id")

        self.logger.debug("File uploaded", item_id=item.id, remote_id=remote_id, url=url)

        return str(remote_id)
