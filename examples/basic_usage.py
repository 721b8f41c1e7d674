"""
Basic usage example for blockfetch.
"""

import asyncio
import hashlib
import threading

from blockfetch import BlockReader, Config, LocalDirectoryDriver
from blockfetch.concurrency import error_channel_for, merge_error_channels
from blockfetch.core import BackoffSchedule

# Reader over a local backup store, with a short schedule for the demo.
# Setting `stop` wakes any fetch waiting between retries.
print("Opening backup store...")
stop = threading.Event()
config = Config(backoff_schedule=BackoffSchedule.of(1, 5, 30))
reader = BlockReader(LocalDirectoryDriver("backup-store/"), config, cancel=stop)

# Fetch and verify a single block
content = b"example block"
checksum = hashlib.sha512(content).hexdigest()
print(f"\nFetching block {checksum[:16]}...")
block = reader.fetch_block("my-volume", checksum)
print(f"Verified {len(block.read())} bytes")


# Fetch several blocks in parallel and stop everything on the first failure
async def fetch_all(checksums):
    cancel = asyncio.Event()
    channels = [
        error_channel_for(asyncio.to_thread(reader.fetch_block, "my-volume", c))
        for c in checksums
    ]
    errors = []
    async for error in merge_error_channels(cancel, *channels):
        errors.append(error)
        cancel.set()  # stop relaying
        stop.set()  # stop retrying in the worker threads
    return errors


print("\nFetching blocks concurrently...")
errors = asyncio.run(fetch_all([checksum]))
for error in errors:
    print(f"Failed: {error}")
