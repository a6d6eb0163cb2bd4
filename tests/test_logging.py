"""Tests for logging setup."""

import sys
import os
import json
import logging

import pytest
import structlog

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from synchronizer.utils import logging as logging_utils
from synchronizer.utils.logging import (
    get_logger,
    log_async_execution_time,
    log_execution_time,
    setup_logging
)


class TestSetupLogging:
    """Test structured logging configuration."""

    def teardown_method(self):
        root_logger = logging.getLogger()
        for handler in logging_utils._handlers:
            root_logger.removeHandler(handler)
            handler.close()
        logging_utils._handlers.clear()
        structlog.reset_defaults()

    def test_json_lines_written_to_file(self, tmp_path):
        log_file = tmp_path / "logs" / "sync.log"
        setup_logging(log_level="INFO", log_format="json", log_file=str(log_file))

        get_logger("test_logging").info("Pass finished", queue_name="docs", attempted=3)

        lines = log_file.read_text(encoding="utf-8").strip().splitlines()
        event = json.loads(lines[-1])
        assert event["event"] == "Pass finished"
        assert event["queue_name"] == "docs"
        assert event["attempted"] == 3
        assert event["level"] == "info"
        assert event["service"] == "File Synchronizer"

    def test_repeated_setup_replaces_handlers(self, tmp_path):
        setup_logging(log_level="INFO", log_file=str(tmp_path / "a.log"))
        setup_logging(log_level="DEBUG", log_file=str(tmp_path / "b.log"))

        assert len(logging_utils._handlers) == 2
        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("apscheduler").level == logging.WARNING


class TestExecutionTimeDecorators:
    """Test the timing decorators keep call semantics."""

    def test_sync_decorator(self):
        @log_execution_time
        def add(a, b):
            return a + b

        assert add(2, 3) == 5
        assert add.__name__ == "add"

    def test_sync_decorator_reraises(self):
        @log_execution_time
        def fail():
            raise KeyError("missing")

        with pytest.raises(KeyError):
            fail()

    @pytest.mark.asyncio
    async def test_async_decorator(self):
        @log_async_execution_time
        async def double(value):
            return value * 2

        assert await double(21) == 42

    @pytest.mark.asyncio
    async def test_async_decorator_reraises(self):
        @log_async_execution_time
        async def fail():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await fail()
