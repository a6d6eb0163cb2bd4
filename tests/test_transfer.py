"""Tests for single-item transfer execution."""

import sys
import os
from unittest.mock import Mock, AsyncMock

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from synchronizer.core import SyncItemStatus, SyncQueueItem, TransferExecutor
from synchronizer.core.transfer import describe_error
from synchronizer.api_clients import TransferError


def create_item(item_id="file_001", size=1024):
    return SyncQueueItem(
        id=item_id,
        name="drawing.dwg",
        absolute_path="/projects/drawing.dwg",
        size_in_bytes=size,
        parent_id="project_1",
        should_index=True
    )


class TestTransferExecutor:
    """Test TransferExecutor outcomes."""

    def setup_method(self):
        self.client = Mock()
        self.client.name = "mock"
        self.client.transfer_file = AsyncMock(return_value="remote_123")
        self.repository = Mock()
        self.repository.update_file_metadata = AsyncMock(return_value=None)
        self.logger = Mock()
        self.executor = TransferExecutor(self.client, self.repository, logger=self.logger)

    @pytest.mark.asyncio
    async def test_success(self):
        item = create_item()

        outcome = await self.executor.execute(item)

        assert outcome.success
        assert outcome.remote_id == "remote_123"
        assert outcome.item.status == SyncItemStatus.NEWLY_SYNCED
        assert outcome.metadata_error is None
        self.client.transfer_file.assert_awaited_once_with(item)
        self.repository.update_file_metadata.assert_awaited_once_with(item, "remote_123")

    @pytest.mark.asyncio
    async def test_transfer_failure(self):
        self.client.transfer_file.side_effect = TransferError("HTTP 500", status=500)

        outcome = await self.executor.execute(create_item())

        assert not outcome.success
        assert outcome.item.status == SyncItemStatus.ERRORED
        assert outcome.item.error_message == "HTTP 500"
        assert outcome.error_message == "HTTP 500"
        self.repository.update_file_metadata.assert_not_awaited()
        self.logger.warning.assert_called_once()

    @pytest.mark.asyncio
    async def test_metadata_failure_is_reported(self):
        self.repository.update_file_metadata.side_effect = RuntimeError("db locked")

        outcome = await self.executor.execute(create_item())

        assert outcome.success
        assert outcome.item.status == SyncItemStatus.NEWLY_SYNCED
        assert outcome.metadata_error == "db locked"
        self.logger.error.assert_called_once()

    @pytest.mark.asyncio
    async def test_original_item_unchanged(self):
        item = create_item()
        self.client.transfer_file.side_effect = RuntimeError("boom")

        await self.executor.execute(item)

        assert item.status == SyncItemStatus.PENDING
        assert item.error_message is None


def test_describe_error():
    assert describe_error(ValueError("bad value")) == "bad value"
    assert describe_error(ConnectionResetError()) == "ConnectionResetError"
