"""
blockfetch - Resilient retrieval and verification of content-addressed backup blocks.
"""

from blockfetch.concurrency import ErrorChannel, merge_error_channels
from blockfetch.core import BackoffSchedule, Config, DEFAULT_BACKOFF_SCHEDULE
from blockfetch.storage import (
    BlockReader,
    LocalDirectoryDriver,
    decompress_and_verify_with_fallback,
    read_block_with_retry,
)

__version__ = "0.1.0"

__all__ = [
    "BlockReader",
    "LocalDirectoryDriver",
    "read_block_with_retry",
    "decompress_and_verify_with_fallback",
    "merge_error_channels",
    "ErrorChannel",
    "BackoffSchedule",
    "DEFAULT_BACKOFF_SCHEDULE",
    "Config",
]
