"""
Decompress-and-verify with codec fallback.

Blocks written by older releases may use a different codec than the one the
backup metadata records. When the requested codec rejects the container
header, the block is re-read and decoded once with the alternate codec.
"""

import logging
import threading
import time
from typing import BinaryIO, Callable, Mapping, Optional

from blockfetch.core.contracts import (
    DEFAULT_BACKOFF_SCHEDULE,
    DEFAULT_CHECKSUM_ALGORITHM,
    DEFAULT_FALLBACK_CODECS,
    BackoffSchedule,
)
from blockfetch.core.errors import (
    BlockVerificationError,
    ChecksumMismatchError,
    DecompressionError,
    FormatMismatchError,
)
from blockfetch.storage.checksum import check_checksum_algorithm
from blockfetch.storage.compression import check_codec
from blockfetch.storage.driver import BackupStoreDriver
from blockfetch.storage.retry import read_block_with_retry
from blockfetch.storage.verify import decompress_and_verify

logger = logging.getLogger(__name__)

# Failures of a single decode attempt (I/O errors while draining the stream included)
VERIFY_ERRORS = (DecompressionError, ChecksumMismatchError, OSError)


def alternate_codec(
    error: BaseException, fallback_codecs: Mapping[str, str] = DEFAULT_FALLBACK_CODECS
) -> Optional[str]:
    """
    Pick the codec to retry with after a failed decode.

    Only a FormatMismatchError (the codec rejected the container header)
    selects an alternate. Corrupt payloads and checksum mismatches do not.

    Args:
        error: Failure raised by decompress_and_verify
        fallback_codecs: Mapping of codec -> alternate codec

    Returns:
        Alternate codec name, or None when there is no viable fallback
    """
    if isinstance(error, FormatMismatchError):
        return fallback_codecs.get(error.codec)
    return None


def decompress_and_verify_with_fallback(
    driver: BackupStoreDriver,
    path: str,
    codec: str,
    checksum: str,
    *,
    schedule: BackoffSchedule = DEFAULT_BACKOFF_SCHEDULE,
    fallback_codecs: Mapping[str, str] = DEFAULT_FALLBACK_CODECS,
    checksum_algorithm: str = DEFAULT_CHECKSUM_ALGORITHM,
    sleep: Callable[[float], None] = time.sleep,
    cancel: Optional[threading.Event] = None,
) -> BinaryIO:
    """
    Read a block, decompress it and verify its checksum.

    If the requested codec rejects the container header and an alternate
    codec is configured for it, a second, fresh stream is read (streams are
    not rewindable) and decoded with the alternate. At most one fallback is
    attempted.

    Args:
        driver: Backend driver exposing ``read(path)``
        path: Backend path of the block
        codec: Codec recorded for the block
        checksum: Expected hex digest of the decompressed content
        schedule: Backoff schedule for each read
        fallback_codecs: Mapping of codec -> alternate codec
        checksum_algorithm: Checksum algorithm
        sleep: Blocking wait between read retries
        cancel: Optional event abandoning read retries

    Returns:
        In-memory reader over the verified content

    Raises:
        UnknownCodecError: If codec (or its alternate) is not supported
        UnknownChecksumAlgorithmError: If checksum_algorithm is not supported
        BlockReadError: If a read failed (retries exhausted, terminal, cancelled)
        BlockVerificationError: If the block could not be decoded and verified
    """
    check_codec(codec)
    check_checksum_algorithm(checksum_algorithm)

    # Read errors are already final; they propagate unchanged
    rc = read_block_with_retry(driver, path, schedule, sleep=sleep, cancel=cancel)
    try:
        return decompress_and_verify(codec, rc, checksum, checksum_algorithm)
    except VERIFY_ERRORS as e:
        error = e
    finally:
        rc.close()

    fallback = alternate_codec(error, fallback_codecs)
    if fallback is None:
        logger.error("Block %s failed verification with %s: %s", path, codec, error)
        raise BlockVerificationError(
            f"decompression verification failed for block {path} with {codec}: {error}",
            path,
            codec,
        ) from error

    check_codec(fallback)
    logger.warning("Block %s is not %s (%s); retrying with %s", path, codec, error, fallback)

    retried_rc = read_block_with_retry(driver, path, schedule, sleep=sleep, cancel=cancel)
    try:
        return decompress_and_verify(fallback, retried_rc, checksum, checksum_algorithm)
    except VERIFY_ERRORS as e:
        logger.error("Fallback %s also failed for block %s: %s", fallback, path, e)
        raise BlockVerificationError(
            f"fallback decompression also failed for block {path} "
            f"with {fallback} after {codec}: {e}",
            path,
            fallback,
            original_codec=codec,
        ) from e
    finally:
        retried_rc.close()
