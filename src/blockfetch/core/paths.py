"""
Deterministic backup store paths for blockfetch.

Path Policy (Deterministic Hashes):
- volume_path: backupstore/volumes/<h[0:2]>/<h[2:4]>/<volume>/ where
  h = sha512(volume name). The two hash layers spread volumes across
  directories on stores that slow down with large listings.
- block_path: <volume_path>blocks/
- block_file_path: <block_path><c[0:2]>/<c[2:4]>/<checksum>.blk where c is
  the block checksum (the block is content-addressed).

All paths use forward slashes regardless of platform; they are backend keys,
not local filesystem paths.
"""

import hashlib
import posixpath

BACKUPSTORE_BASE = "backupstore"
VOLUME_DIRECTORY = "volumes"
BLOCKS_DIRECTORY = "blocks"
BLK_SUFFIX = ".blk"

VOLUME_SEPARATE_LAYER1 = 2
VOLUME_SEPARATE_LAYER2 = 4
BLOCK_SEPARATE_LAYER1 = 2
BLOCK_SEPARATE_LAYER2 = 4


def volume_path(volume_name: str) -> str:
    """
    Generate the directory path of a volume.

    Args:
        volume_name: Volume name

    Returns:
        Backend path with a trailing slash
    """
    checksum = hashlib.sha512(volume_name.encode("utf-8")).hexdigest()
    layer1 = checksum[0:VOLUME_SEPARATE_LAYER1]
    layer2 = checksum[VOLUME_SEPARATE_LAYER1:VOLUME_SEPARATE_LAYER2]
    return posixpath.join(BACKUPSTORE_BASE, VOLUME_DIRECTORY, layer1, layer2, volume_name) + "/"


def block_path(volume_name: str) -> str:
    """Directory holding all blocks of a volume (trailing slash)."""
    return posixpath.join(volume_path(volume_name), BLOCKS_DIRECTORY) + "/"


def block_file_path(volume_name: str, checksum: str) -> str:
    """
    Generate the backend path of a block file.

    Args:
        volume_name: Volume name
        checksum: Block checksum (hex digest of the decompressed content)

    Returns:
        Backend path of the .blk file
    """
    if len(checksum) < BLOCK_SEPARATE_LAYER2:
        raise ValueError(
            f"checksum {checksum!r} is too short, need at least "
            f"{BLOCK_SEPARATE_LAYER2} characters"
        )

    layer1 = checksum[0:BLOCK_SEPARATE_LAYER1]
    layer2 = checksum[BLOCK_SEPARATE_LAYER1:BLOCK_SEPARATE_LAYER2]
    return posixpath.join(block_path(volume_name), layer1, layer2, checksum + BLK_SUFFIX)
