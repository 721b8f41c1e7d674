"""
Content checksums for blocks.

Blocks are named by the sha512 hex digest of their decompressed content.
The xxhash variants are faster and are used by stores that trade collision
resistance for speed.
"""

import hashlib
from typing import Callable, Dict

import xxhash

from blockfetch.core.errors import UnknownChecksumAlgorithmError

_ALGORITHMS: Dict[str, Callable[[bytes], str]] = {
    "sha512": lambda data: hashlib.sha512(data).hexdigest(),
    "sha256": lambda data: hashlib.sha256(data).hexdigest(),
    "xxh64": lambda data: xxhash.xxh64(data).hexdigest(),
    "xxh3_128": lambda data: xxhash.xxh3_128(data).hexdigest(),
}


def check_checksum_algorithm(algorithm: str):
    """Raise UnknownChecksumAlgorithmError unless algorithm is supported."""
    if algorithm not in _ALGORITHMS:
        raise UnknownChecksumAlgorithmError(
            f"unsupported checksum algorithm {algorithm!r}, "
            f"expected one of {sorted(_ALGORITHMS)}"
        )


def compute_checksum(data: bytes, algorithm: str = "sha512") -> str:
    """
    Compute the hex digest of data.

    Args:
        data: Decompressed block content
        algorithm: One of "sha512", "sha256", "xxh64", "xxh3_128"

    Returns:
        Lowercase hex digest
    """
    check_checksum_algorithm(algorithm)
    return _ALGORITHMS[algorithm](data)
