"""Constants shared by the queue processor and its callers."""

# Hard ceiling on the cumulative size of items attempted in one pass.
MAX_BATCH_SIZE_BYTES = 100 * 1024 * 1024  # 100MB
