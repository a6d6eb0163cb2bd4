"""Import and export of queue snapshots as JSON or YAML files."""

import json
from pathlib import Path
from typing import Union

import yaml
from pydantic import ValidationError

from .errors import SyncQueueError
from .models import SyncQueue, dump_sync_queue, parse_sync_queue
from ..utils.logging import get_logger


logger = get_logger("core.queue_file")


class QueueFileError(SyncQueueError):
    """Raised when a queue file cannot be read or validated."""
    pass


def load_queue_file(file_path: Union[str, Path]) -> SyncQueue:
    """Load a queue snapshot from a JSON or YAML file.

    The file holds either a list of items or a mapping with a ``syncQueue``
    list, matching what ``dump_queue_file`` writes.

    Raises:
        QueueFileError: If the file is missing, malformed or invalid
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise QueueFileError(f"Queue file not found: {file_path}")

    suffix = file_path.suffix.lower()

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            if suffix in ['.yaml', '.yml']:
                data = yaml.safe_load(f)
            elif suffix == '.json':
                data = json.load(f)
            else:
                raise QueueFileError(f"Unsupported file format: {file_path.suffix}")
    except yaml.YAMLError as e:
        raise QueueFileError(f"Invalid YAML format: {e}") from e
    except json.JSONDecodeError as e:
        raise QueueFileError(f"Invalid JSON format: {e}") from e

    if isinstance(data, dict):
        data = data.get("syncQueue")

    if not isinstance(data, list):
        raise QueueFileError(f"Queue file must contain a list of items: {file_path}")

    try:
        sync_queue = parse_sync_queue(data)
    except (ValidationError, ValueError) as e:
        raise QueueFileError(f"Invalid queue item in {file_path}: {e}") from e

    logger.info("Loaded queue file", file_path=str(file_path), items=len(sync_queue))

    return sync_queue


def dump_queue_file(sync_queue: SyncQueue, file_path: Union[str, Path]) -> Path:
    """Write a queue snapshot to a JSON or YAML file."""
    file_path = Path(file_path)
    suffix = file_path.suffix.lower()
    if suffix not in ['.yaml', '.yml', '.json']:
        raise QueueFileError(f"Unsupported file format: {file_path.suffix}")

    file_path.parent.mkdir(parents=True, exist_ok=True)
    data = {"syncQueue": dump_sync_queue(sync_queue)}

    with open(file_path, 'w', encoding='utf-8') as f:
        if suffix == '.json':
            json.dump(data, f, indent=2, ensure_ascii=False)
        else:
            yaml.safe_dump(data, f, sort_keys=False, allow_unicode=True)

    logger.info("Wrote queue file", file_path=str(file_path), items=len(sync_queue))

    return file_path
