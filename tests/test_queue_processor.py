"""Tests for bounded-batch queue processing."""

import sys
import os
from unittest.mock import Mock, AsyncMock

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from synchronizer.core import (
    DuplicateQueueItemError,
    PassResult,
    QueuePersistenceError,
    QueueProcessor,
    SyncItemStatus,
    SyncQueueItem,
    process_queue
)
from synchronizer.consts import MAX_BATCH_SIZE_BYTES


CEILING = 1000


def create_item(item_id, size, status=SyncItemStatus.PENDING, error_message=None):
    """Create a queue item for tests."""
    return SyncQueueItem(
        id=item_id,
        name=f"{item_id}.pdf",
        absolute_path=f"/documents/{item_id}.pdf",
        size_in_bytes=size,
        status=status,
        error_message=error_message
    )


def create_transfer_client(failures=None):
    """Create a mock transfer client that fails for the given item ids."""
    failures = failures or {}

    async def transfer_file(item):
        if item.id in failures:
            raise failures[item.id]
        return f"remote_{item.id}"

    client = Mock()
    client.name = "mock"
    client.transfer_file = AsyncMock(side_effect=transfer_file)
    return client


def create_file_repository():
    repository = Mock()
    repository.update_file_metadata = AsyncMock(return_value=None)
    repository.list_files = AsyncMock(return_value=[])
    repository.delete_file = AsyncMock(return_value=True)
    return repository


def transferred_ids(client):
    return [call.args[0].id for call in client.transfer_file.await_args_list]


class TestQueueProcessorScenarios:
    """Reference scenarios for a single pass."""

    def setup_method(self):
        self.client = create_transfer_client()
        self.repository = create_file_repository()
        self.update_sync_queue = AsyncMock(return_value=None)

    async def run(self, queue, max_batch_size_bytes=CEILING):
        return await process_queue(
            queue,
            transfer_client=self.client,
            file_repository=self.repository,
            update_sync_queue=self.update_sync_queue,
            max_batch_size_bytes=max_batch_size_bytes
        )

    @pytest.mark.asyncio
    async def test_all_items_fit(self):
        queue = [create_item("A", 100), create_item("B", 200)]

        result = await self.run(queue)

        assert result.finished == PassResult.ALL
        assert [item.status for item in result.sync_queue] == [
            SyncItemStatus.NEWLY_SYNCED,
            SyncItemStatus.NEWLY_SYNCED
        ]
        assert transferred_ids(self.client) == ["A", "B"]
        assert result.stats.attempted == 2
        assert result.stats.bytes_attempted == 300

    @pytest.mark.asyncio
    async def test_stops_before_item_that_would_exceed_ceiling(self):
        queue = [
            create_item("A", 100),
            create_item("L", CEILING - 200),
            create_item("B", 200)
        ]

        result = await self.run(queue)

        assert result.finished == PassResult.BATCH
        assert transferred_ids(self.client) == ["A", "L"]
        statuses = {item.id: item.status for item in result.sync_queue}
        assert statuses == {
            "A": SyncItemStatus.NEWLY_SYNCED,
            "L": SyncItemStatus.NEWLY_SYNCED,
            "B": SyncItemStatus.PENDING
        }
        assert result.sync_queue[2] is queue[2]
        assert result.stats.remaining == 1

    @pytest.mark.asyncio
    async def test_failed_transfer_does_not_stop_pass(self):
        self.client = create_transfer_client(failures={"A": RuntimeError("quota exceeded")})
        queue = [create_item("A", 100), create_item("B", 200)]

        result = await self.run(queue)

        assert result.finished == PassResult.ALL
        errored, synced = result.sync_queue
        assert errored.status == SyncItemStatus.ERRORED
        assert errored.error_message == "quota exceeded"
        assert synced.status == SyncItemStatus.NEWLY_SYNCED
        assert result.stats.errored == 1
        assert result.stats.newly_synced == 1
        self.repository.update_file_metadata.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rerun_after_batch_only_attempts_pending(self):
        queue = [
            create_item("A", 100),
            create_item("L", CEILING - 200),
            create_item("B", 200)
        ]
        first = await self.run(queue)
        self.client.transfer_file.reset_mock()

        second = await self.run(first.sync_queue)

        assert second.finished == PassResult.ALL
        assert transferred_ids(self.client) == ["B"]
        assert all(item.status == SyncItemStatus.NEWLY_SYNCED for item in second.sync_queue)


class TestBatchCeiling:
    """Batch ceiling and first-attempt rule."""

    def setup_method(self):
        self.client = create_transfer_client()
        self.repository = create_file_repository()
        self.update_sync_queue = AsyncMock(return_value=None)

    async def run(self, queue, max_batch_size_bytes=CEILING):
        return await process_queue(
            queue,
            transfer_client=self.client,
            file_repository=self.repository,
            update_sync_queue=self.update_sync_queue,
            max_batch_size_bytes=max_batch_size_bytes
        )

    @pytest.mark.asyncio
    async def test_oversized_first_item_is_attempted_alone(self):
        queue = [create_item("huge", CEILING * 3), create_item("small", 1)]

        result = await self.run(queue)

        assert result.finished == PassResult.BATCH
        assert transferred_ids(self.client) == ["huge"]
        assert result.sync_queue[0].status == SyncItemStatus.NEWLY_SYNCED
        assert result.sync_queue[1].status == SyncItemStatus.PENDING

    @pytest.mark.asyncio
    async def test_oversized_item_after_skipped_items_is_still_first(self):
        queue = [
            create_item("done", 500, status=SyncItemStatus.NEWLY_SYNCED),
            create_item("huge", CEILING + 1)
        ]

        result = await self.run(queue)

        assert result.finished == PassResult.ALL
        assert transferred_ids(self.client) == ["huge"]

    @pytest.mark.asyncio
    async def test_exact_fit_is_allowed(self):
        queue = [create_item("A", 400), create_item("B", 600)]

        result = await self.run(queue)

        assert result.finished == PassResult.ALL
        assert result.stats.bytes_attempted == CEILING

    @pytest.mark.asyncio
    async def test_failed_transfer_counts_toward_ceiling(self):
        self.client = create_transfer_client(failures={"A": RuntimeError("boom")})
        queue = [create_item("A", 900), create_item("B", 200)]

        result = await self.run(queue)

        assert result.finished == PassResult.BATCH
        assert transferred_ids(self.client) == ["A"]
        assert result.sync_queue[0].status == SyncItemStatus.ERRORED
        assert result.sync_queue[1].status == SyncItemStatus.PENDING
        assert result.stats.bytes_attempted == 900

    @pytest.mark.asyncio
    async def test_items_after_stop_point_are_untouched(self):
        errored = create_item("E", 10, status=SyncItemStatus.ERRORED, error_message="old failure")
        queue = [create_item("A", 900), create_item("B", 200), errored, create_item("C", 1)]

        result = await self.run(queue)

        assert result.finished == PassResult.BATCH
        assert result.sync_queue[1:] == queue[1:]

    @pytest.mark.asyncio
    async def test_default_ceiling_is_used(self):
        queue = [create_item("A", MAX_BATCH_SIZE_BYTES), create_item("B", 1)]

        result = await self.run(queue, max_batch_size_bytes=None)

        assert result.finished == PassResult.BATCH
        assert transferred_ids(self.client) == ["A"]

    @pytest.mark.parametrize("ceiling", [0, -1, 1.5, True])
    def test_invalid_ceiling_rejected(self, ceiling):
        with pytest.raises(ValueError):
            QueueProcessor(
                transfer_client=self.client,
                file_repository=self.repository,
                update_sync_queue=self.update_sync_queue,
                max_batch_size_bytes=ceiling
            )

    @pytest.mark.asyncio
    async def test_every_pass_makes_progress(self):
        """Greedy in-order packing can need more than ceil(total / ceiling) passes.

        Seven 400-byte items under a 1000-byte ceiling fit two per pass, so
        four passes are needed where ceil(2800 / 1000) is three. What holds
        is that every pass attempts at least one pending item.
        """
        queue = [create_item(f"item_{i}", 400) for i in range(7)]
        passes = 0

        result = await self.run(queue)
        passes += 1
        while result.finished == PassResult.BATCH:
            result = await self.run(result.sync_queue)
            passes += 1

        assert passes == 4
        assert passes <= len(queue)
        assert all(item.status == SyncItemStatus.NEWLY_SYNCED for item in result.sync_queue)
        assert self.client.transfer_file.await_count == len(queue)


class TestQueueProcessorBehaviour:
    """Skipping, persistence and isolation rules."""

    def setup_method(self):
        self.client = create_transfer_client()
        self.repository = create_file_repository()
        self.update_sync_queue = AsyncMock(return_value=None)
        self.processor = QueueProcessor(
            transfer_client=self.client,
            file_repository=self.repository,
            update_sync_queue=self.update_sync_queue,
            max_batch_size_bytes=CEILING
        )

    @pytest.mark.asyncio
    async def test_non_pending_items_are_skipped(self):
        queue = [
            create_item("synced", 100, status=SyncItemStatus.NEWLY_SYNCED),
            create_item("failed", 100, status=SyncItemStatus.ERRORED, error_message="earlier"),
            create_item("final", 100, status=SyncItemStatus.SYNCED)
        ]

        result = await self.processor.process(queue)

        assert result.finished == PassResult.ALL
        self.client.transfer_file.assert_not_awaited()
        self.repository.update_file_metadata.assert_not_awaited()
        assert result.sync_queue == queue
        assert result.stats.skipped == 3
        assert result.stats.bytes_attempted == 0

    @pytest.mark.asyncio
    async def test_empty_queue_finishes_and_persists(self):
        result = await self.processor.process([])

        assert result.finished == PassResult.ALL
        assert result.sync_queue == []
        self.update_sync_queue.assert_awaited_once_with([])

    @pytest.mark.asyncio
    async def test_persists_full_queue_exactly_once(self):
        queue = [
            create_item("A", 900),
            create_item("B", 200),
            create_item("C", 100, status=SyncItemStatus.NEWLY_SYNCED)
        ]

        result = await self.processor.process(queue)

        self.update_sync_queue.assert_awaited_once()
        persisted = self.update_sync_queue.await_args.args[0]
        assert [item.id for item in persisted] == ["A", "B", "C"]
        assert persisted == result.sync_queue

    @pytest.mark.asyncio
    async def test_input_queue_is_not_modified(self):
        self.client = create_transfer_client(failures={"B": RuntimeError("nope")})
        self.processor = QueueProcessor(
            transfer_client=self.client,
            file_repository=self.repository,
            update_sync_queue=self.update_sync_queue,
            max_batch_size_bytes=CEILING
        )
        queue = [create_item("A", 100), create_item("B", 100)]
        snapshot = [item.model_copy() for item in queue]

        await self.processor.process(queue)

        assert queue == snapshot
        assert all(item.status == SyncItemStatus.PENDING for item in queue)

    @pytest.mark.asyncio
    async def test_metadata_failure_keeps_item_synced(self):
        self.repository.update_file_metadata.side_effect = RuntimeError("metadata store offline")
        queue = [create_item("A", 100), create_item("B", 100)]

        result = await self.processor.process(queue)

        assert [item.status for item in result.sync_queue] == [
            SyncItemStatus.NEWLY_SYNCED,
            SyncItemStatus.NEWLY_SYNCED
        ]
        assert self.repository.update_file_metadata.await_count == 2

    @pytest.mark.asyncio
    async def test_metadata_updated_with_remote_id(self):
        item = create_item("A", 100)

        await self.processor.process([item])

        self.repository.update_file_metadata.assert_awaited_once_with(item, "remote_A")

    @pytest.mark.asyncio
    async def test_reconciliation_operations_not_called(self):
        await self.processor.process([create_item("A", 100)])

        self.repository.list_files.assert_not_called()
        self.repository.delete_file.assert_not_called()

    @pytest.mark.asyncio
    async def test_error_without_message_uses_class_name(self):
        self.client.transfer_file.side_effect = TimeoutError()

        result = await self.processor.process([create_item("A", 100)])

        assert result.sync_queue[0].status == SyncItemStatus.ERRORED
        assert result.sync_queue[0].error_message == "TimeoutError"

    @pytest.mark.asyncio
    async def test_persistence_failure_raises(self):
        self.update_sync_queue.side_effect = IOError("disk full")

        with pytest.raises(QueuePersistenceError) as exc_info:
            await self.processor.process([create_item("A", 100), create_item("B", 100)])

        assert "disk full" in str(exc_info.value)
        assert exc_info.value.queue_length == 2
        assert isinstance(exc_info.value.__cause__, IOError)

    @pytest.mark.asyncio
    async def test_duplicate_ids_rejected_before_transfer(self):
        queue = [create_item("A", 100), create_item("A", 200)]

        with pytest.raises(DuplicateQueueItemError) as exc_info:
            await self.processor.process(queue)

        assert exc_info.value.duplicate_ids == ["A"]
        self.client.transfer_file.assert_not_awaited()
        self.update_sync_queue.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_accepts_custom_logger(self):
        logger = Mock()

        await process_queue(
            [create_item("A", 100)],
            transfer_client=self.client,
            file_repository=self.repository,
            update_sync_queue=self.update_sync_queue,
            logger=logger
        )

        assert logger.info.called
