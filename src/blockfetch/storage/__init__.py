"""
Storage layer: backend drivers, retrying reads, codecs and verification.
"""

from blockfetch.storage.block_reader import BlockReader
from blockfetch.storage.checksum import compute_checksum
from blockfetch.storage.compression import compress_data, decompress_data
from blockfetch.storage.driver import BackupStoreDriver, LocalDirectoryDriver
from blockfetch.storage.fallback import (
    alternate_codec,
    decompress_and_verify_with_fallback,
)
from blockfetch.storage.retry import is_retryable_error, read_block_with_retry
from blockfetch.storage.verify import decompress_and_verify

__all__ = [
    "BlockReader",
    "BackupStoreDriver",
    "LocalDirectoryDriver",
    "read_block_with_retry",
    "is_retryable_error",
    "decompress_and_verify",
    "decompress_and_verify_with_fallback",
    "alternate_codec",
    "compress_data",
    "decompress_data",
    "compute_checksum",
]
