"""
Core contracts, errors and block addressing for blockfetch.
"""

from blockfetch.core.contracts import (
    CODEC_GZIP,
    CODEC_LZ4,
    CODEC_NONE,
    CODEC_ZSTD,
    DEFAULT_BACKOFF_SCHEDULE,
    DEFAULT_BLOCK_SIZE,
    DEFAULT_FALLBACK_CODECS,
    BackoffSchedule,
    Config,
    load_config,
)
from blockfetch.core.errors import (
    BlockFetchError,
    BlockReadError,
    BlockVerificationError,
    ChannelClosedError,
    ChecksumMismatchError,
    ConfigError,
    DecompressionError,
    FormatMismatchError,
    InvalidBlockSizeError,
    ReadCancelledError,
    RetryExhaustedError,
    TerminalReadError,
    UnknownChecksumAlgorithmError,
    UnknownCodecError,
)
from blockfetch.core.paths import block_file_path, block_path, volume_path
from blockfetch.core.sizes import block_size_from_parameters, parse_quantity

__all__ = [
    "Config",
    "load_config",
    "BackoffSchedule",
    "DEFAULT_BACKOFF_SCHEDULE",
    "DEFAULT_BLOCK_SIZE",
    "DEFAULT_FALLBACK_CODECS",
    "CODEC_NONE",
    "CODEC_GZIP",
    "CODEC_LZ4",
    "CODEC_ZSTD",
    "BlockFetchError",
    "BlockReadError",
    "RetryExhaustedError",
    "TerminalReadError",
    "ReadCancelledError",
    "DecompressionError",
    "FormatMismatchError",
    "ChecksumMismatchError",
    "BlockVerificationError",
    "ChannelClosedError",
    "ConfigError",
    "InvalidBlockSizeError",
    "UnknownCodecError",
    "UnknownChecksumAlgorithmError",
    "volume_path",
    "block_path",
    "block_file_path",
    "parse_quantity",
    "block_size_from_parameters",
]
