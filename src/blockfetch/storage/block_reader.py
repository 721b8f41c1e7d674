"""
Block reader bound to a driver and a Config.
"""

import logging
import threading
import time
from typing import BinaryIO, Callable, Optional

from blockfetch.core.contracts import Config
from blockfetch.core.paths import block_file_path
from blockfetch.storage.driver import BackupStoreDriver
from blockfetch.storage.fallback import decompress_and_verify_with_fallback
from blockfetch.storage.retry import read_block_with_retry

logger = logging.getLogger(__name__)


class BlockReader:
    """
    Reads and verifies blocks from one backup store.

    Holds no per-block state, so a single instance can serve many threads.
    """

    def __init__(
        self,
        driver: BackupStoreDriver,
        config: Optional[Config] = None,
        sleep: Callable[[float], None] = time.sleep,
        cancel: Optional[threading.Event] = None,
    ):
        """
        Initialize block reader.

        Args:
            driver: Backend driver exposing ``read(path)``
            config: Retrieval configuration (defaults to Config())
            sleep: Blocking wait between read retries
            cancel: Optional event abandoning read retries
        """
        self.driver = driver
        self.config = config or Config()
        self.sleep = sleep
        self.cancel = cancel

    def read(self, path: str) -> BinaryIO:
        """Open the raw block at ``path`` with retry. The caller closes it."""
        return read_block_with_retry(
            self.driver,
            path,
            self.config.backoff_schedule,
            sleep=self.sleep,
            cancel=self.cancel,
        )

    def fetch(self, path: str, checksum: str, codec: Optional[str] = None) -> BinaryIO:
        """
        Fetch, decompress and verify the block at ``path``.

        Args:
            path: Backend path of the block
            checksum: Expected hex digest of the decompressed content
            codec: Codec recorded for the block (defaults to Config.compression)

        Returns:
            In-memory reader over the verified content
        """
        return decompress_and_verify_with_fallback(
            self.driver,
            path,
            codec or self.config.compression,
            checksum,
            schedule=self.config.backoff_schedule,
            fallback_codecs=self.config.fallback_codecs,
            checksum_algorithm=self.config.checksum_algorithm,
            sleep=self.sleep,
            cancel=self.cancel,
        )

    def fetch_block(self, volume_name: str, checksum: str, codec: Optional[str] = None) -> BinaryIO:
        """Fetch a volume's block by checksum, resolving its backend path."""
        path = block_file_path(volume_name, checksum)
        logger.debug("Fetching block %s of volume %s from %s", checksum, volume_name, path)
        return self.fetch(path, checksum, codec)
