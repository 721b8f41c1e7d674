"""
Decompress-and-verify primitive.
"""

import io
from typing import BinaryIO

from blockfetch.core.contracts import DEFAULT_CHECKSUM_ALGORITHM
from blockfetch.core.errors import ChecksumMismatchError
from blockfetch.storage.checksum import compute_checksum
from blockfetch.storage.compression import decompress_data


def decompress_and_verify(
    codec: str,
    stream: BinaryIO,
    checksum: str,
    algorithm: str = DEFAULT_CHECKSUM_ALGORITHM,
) -> io.BytesIO:
    """
    Decompress a block stream and verify its content checksum.

    The stream is read to the end but not closed; the caller owns it.

    Args:
        codec: Codec the block was written with
        stream: Raw (compressed) block stream
        checksum: Expected hex digest of the decompressed content
        algorithm: Checksum algorithm

    Returns:
        In-memory reader over the verified content

    Raises:
        FormatMismatchError: If the stream was not written with ``codec``
        DecompressionError: If the payload is corrupt
        ChecksumMismatchError: If the content digest differs from ``checksum``
    """
    block = decompress_data(codec, stream.read())

    actual = compute_checksum(block, algorithm)
    if actual != checksum.lower():
        raise ChecksumMismatchError(checksum, actual)

    return io.BytesIO(block)
