"""
Exception hierarchy for blockfetch.

Every error raised by the package derives from BlockFetchError. Underlying
causes are chained (``raise ... from``) so callers can inspect ``__cause__``.
"""

from typing import Optional


class BlockFetchError(Exception):
    """Base class for all blockfetch errors."""


class ConfigError(BlockFetchError):
    """Raised when a configuration file or value is invalid."""


class InvalidBlockSizeError(BlockFetchError, ValueError):
    """Raised when a block size parameter cannot be parsed."""


class UnknownCodecError(BlockFetchError, ValueError):
    """Raised when a compression codec name is not supported."""


class UnknownChecksumAlgorithmError(BlockFetchError, ValueError):
    """Raised when a checksum algorithm name is not supported."""


def _with_cause(message: str, cause: Optional[BaseException]) -> str:
    return f"{message}: {cause}" if cause is not None else message


class BlockReadError(BlockFetchError):
    """
    Raised when a block cannot be read from the backend.

    Attributes:
        path: Backend path of the block
        attempts: Number of read attempts made
    """

    def __init__(self, message: str, path: str, attempts: int):
        super().__init__(message)
        self.path = path
        self.attempts = attempts


class RetryExhaustedError(BlockReadError):
    """Raised when every attempt in the backoff schedule failed."""

    def __init__(self, path: str, attempts: int, cause: Optional[BaseException] = None):
        super().__init__(
            _with_cause(f"failed to read block {path} after {attempts} attempts", cause),
            path,
            attempts,
        )


class TerminalReadError(BlockReadError):
    """Raised when the backend reports an error that is not worth retrying."""

    def __init__(self, path: str, attempts: int, cause: Optional[BaseException] = None):
        super().__init__(
            _with_cause(
                f"failed to read block {path}: non-retryable error on attempt {attempts}",
                cause,
            ),
            path,
            attempts,
        )


class ReadCancelledError(BlockReadError):
    """Raised when a retry loop is abandoned because of cancellation."""

    def __init__(self, path: str, attempts: int, cause: Optional[BaseException] = None):
        super().__init__(
            _with_cause(f"read of block {path} cancelled after {attempts} attempts", cause),
            path,
            attempts,
        )


class DecompressionError(BlockFetchError):
    """
    Raised when a codec fails to decode a payload.

    Attributes:
        codec: Name of the codec that failed
    """

    def __init__(self, codec: str, message: Optional[str] = None):
        super().__init__(message or f"{codec}: failed to decompress data")
        self.codec = codec


class FormatMismatchError(DecompressionError):
    """
    Raised when the payload does not carry the codec's container header.

    This is the tag the fallback logic checks: the data was most likely
    written with a different codec.
    """

    def __init__(self, codec: str, message: Optional[str] = None):
        super().__init__(codec, message or f"{codec}: invalid header")


class ChecksumMismatchError(BlockFetchError):
    """Raised when decompressed content does not match its expected checksum."""

    def __init__(self, expected: str, actual: str):
        super().__init__(
            f"checksum verification failed: expected {expected}, got {actual}"
        )
        self.expected = expected
        self.actual = actual


class BlockVerificationError(BlockFetchError):
    """
    Raised when a block cannot be decompressed and verified.

    Attributes:
        path: Backend path of the block
        codec: Codec of the last attempt
        original_codec: Codec of the first attempt when a fallback was tried
    """

    def __init__(
        self,
        message: str,
        path: str,
        codec: str,
        original_codec: Optional[str] = None,
    ):
        super().__init__(message)
        self.path = path
        self.codec = codec
        self.original_codec = original_codec

    @property
    def fallback_attempted(self) -> bool:
        return self.original_codec is not None


class ChannelClosedError(BlockFetchError):
    """Raised when sending to a closed error channel."""
