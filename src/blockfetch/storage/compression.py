"""
Compression codecs for blockfetch.

Thin wrappers over gzip, lz4.frame and zstandard. Each codec checks the
container magic header before decoding so a payload written with a different
codec surfaces as FormatMismatchError rather than a generic failure.
"""

import gzip
import zlib
from typing import Dict, List

import lz4.frame
import zstandard as zstd

from blockfetch.core.contracts import CODEC_GZIP, CODEC_LZ4, CODEC_NONE, CODEC_ZSTD
from blockfetch.core.errors import (
    DecompressionError,
    FormatMismatchError,
    UnknownCodecError,
)

# Container magic numbers (leading bytes of a valid payload)
GZIP_MAGIC = b"\x1f\x8b"
LZ4_FRAME_MAGIC = b"\x04\x22\x4d\x18"  # 0x184D2204, little-endian
ZSTD_MAGIC = b"\x28\xb5\x2f\xfd"  # 0xFD2FB528, little-endian

_MAGIC: Dict[str, bytes] = {
    CODEC_GZIP: GZIP_MAGIC,
    CODEC_LZ4: LZ4_FRAME_MAGIC,
    CODEC_ZSTD: ZSTD_MAGIC,
}

# Human-readable header errors, kept close to what the codec libraries report
_HEADER_ERRORS: Dict[str, str] = {
    CODEC_GZIP: "gzip: invalid header",
    CODEC_LZ4: "lz4: bad magic number",
    CODEC_ZSTD: "zstd: unknown frame descriptor",
}


def supported_codecs() -> List[str]:
    """Return the names of all supported codecs."""
    return [CODEC_NONE, CODEC_GZIP, CODEC_LZ4, CODEC_ZSTD]


def check_codec(codec: str):
    """Raise UnknownCodecError unless codec is supported."""
    if codec not in supported_codecs():
        raise UnknownCodecError(
            f"unsupported compression method {codec!r}, expected one of {supported_codecs()}"
        )


def has_magic(codec: str, data: bytes) -> bool:
    """
    Check whether data starts with the codec's container header.

    The "none" codec has no header and accepts any payload.
    """
    check_codec(codec)
    magic = _MAGIC.get(codec)
    if magic is None:
        return True
    return data[: len(magic)] == magic


def compress_data(codec: str, data: bytes, level: int = 3) -> bytes:
    """
    Compress data with the given codec.

    Args:
        codec: Codec name ("none", "gzip", "lz4", "zstd")
        data: Data to compress
        level: Compression level (codec-specific range, default 3)

    Returns:
        Compressed data
    """
    check_codec(codec)

    if codec == CODEC_GZIP:
        return gzip.compress(data, compresslevel=level)
    if codec == CODEC_LZ4:
        return lz4.frame.compress(data, compression_level=level)
    if codec == CODEC_ZSTD:
        cctx = zstd.ZstdCompressor(level=level)
        return cctx.compress(data)
    return bytes(data)


def decompress_data(codec: str, compressed_data: bytes) -> bytes:
    """
    Decompress data with the given codec.

    Args:
        codec: Codec name ("none", "gzip", "lz4", "zstd")
        compressed_data: Compressed data

    Returns:
        Decompressed data

    Raises:
        FormatMismatchError: If the payload lacks the codec's magic header
        DecompressionError: If the payload is corrupt
        UnknownCodecError: If the codec is not supported
    """
    if not has_magic(codec, compressed_data):
        raise FormatMismatchError(codec, _HEADER_ERRORS[codec])

    try:
        if codec == CODEC_GZIP:
            return gzip.decompress(compressed_data)
        if codec == CODEC_LZ4:
            return lz4.frame.decompress(compressed_data)
        if codec == CODEC_ZSTD:
            # decompressobj copes with frames that omit the content size
            dctx = zstd.ZstdDecompressor()
            return dctx.decompressobj().decompress(compressed_data)
    except (OSError, EOFError, zlib.error, RuntimeError, zstd.ZstdError) as e:
        raise DecompressionError(codec, f"{codec}: {e}") from e

    return bytes(compressed_data)
