"""Per-pass byte budget accounting."""

from typing import Optional

from ..consts import MAX_BATCH_SIZE_BYTES


class BatchAccumulator:
    """Tracks the bytes attempted in one pass against a hard ceiling.

    The first-attempt rule: while nothing has been counted yet, any item is
    allowed, even one larger than the whole ceiling. An oversized item would
    otherwise never be transferred. Once the ceiling is passed, no further
    item fits.
    """

    def __init__(self, max_batch_size_bytes: Optional[int] = None):
        max_size = MAX_BATCH_SIZE_BYTES if max_batch_size_bytes is None else max_batch_size_bytes

        if isinstance(max_size, bool) or not isinstance(max_size, int) or max_size <= 0:
            raise ValueError(f"max_batch_size_bytes must be a positive integer, got {max_size!r}")

        self.max_batch_size_bytes = max_size
        self.running_total = 0
        self.attempted_count = 0

    @property
    def is_empty(self) -> bool:
        return self.running_total == 0

    @property
    def is_exhausted(self) -> bool:
        return self.running_total >= self.max_batch_size_bytes

    @property
    def remaining_bytes(self) -> int:
        return max(0, self.max_batch_size_bytes - self.running_total)

    def would_exceed(self, size_in_bytes: int) -> bool:
        """Whether adding this size would go over the ceiling."""
        return self.running_total + size_in_bytes > self.max_batch_size_bytes

    def allows_first_attempt(self) -> bool:
        """First-attempt rule: an empty running total never blocks an item."""
        return self.is_empty

    def can_attempt(self, size_in_bytes: int) -> bool:
        """Decide whether an item of this size may be attempted in this pass."""
        if self.allows_first_attempt():
            return True
        return not self.would_exceed(size_in_bytes)

    def record_attempt(self, size_in_bytes: int) -> None:
        """Count an attempted item, whatever its outcome."""
        if size_in_bytes < 0:
            raise ValueError(f"size_in_bytes must be non-negative, got {size_in_bytes}")
        self.running_total += size_in_bytes
        self.attempted_count += 1
