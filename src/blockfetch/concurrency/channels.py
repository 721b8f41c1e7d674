"""
Error channels and fan-in merge.

Concurrent block operations each report failure on their own one-shot
ErrorChannel: at most one exception, then the channel closes. An
orchestrator watching many operations merges those channels into one with
merge_error_channels and reads a single stream of failures.

Setting the merge's asyncio.Event only stops relaying. Work running in threads
stops when the threading.Event its BlockReader was built with is set too.

Usage:
    >>> stop = threading.Event()
    >>> reader = BlockReader(driver, config, cancel=stop)
    >>> cancel = asyncio.Event()
    >>> channels = [error_channel_for(asyncio.to_thread(reader.fetch, p, c))
    ...             for p, c in blocks]
    >>> merged = merge_error_channels(cancel, *channels)
    >>> async for error in merged:
    ...     cancel.set()  # stop relaying
    ...     stop.set()  # wake fetches waiting to retry
"""

import asyncio
import logging
from typing import Awaitable, List, Optional, Set

from blockfetch.core.errors import ChannelClosedError

logger = logging.getLogger(__name__)

_CLOSED = object()  # close marker, never handed to receivers

# Strong references to running tasks (the event loop only keeps weak ones)
_background_tasks: Set[asyncio.Task] = set()


def _spawn(coro) -> asyncio.Task:
    task = asyncio.get_running_loop().create_task(coro)
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return task


class ErrorChannel:
    """
    Buffered, closable channel of exceptions.

    Holds at most ``capacity`` undelivered errors. ``receive`` returns None
    once the channel is closed and drained. Closing is idempotent and never
    blocks; sending after close raises ChannelClosedError.
    """

    def __init__(self, capacity: int = 1):
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}")
        self.capacity = capacity
        self._queue: asyncio.Queue = asyncio.Queue()
        self._buffered = 0
        self._closed = False
        self._space = asyncio.Event()

    @property
    def closed(self) -> bool:
        return self._closed

    def send_nowait(self, error: BaseException):
        """Buffer an error without waiting; raises asyncio.QueueFull when full."""
        if self._closed:
            raise ChannelClosedError("send on closed error channel")
        if self._buffered >= self.capacity:
            raise asyncio.QueueFull()
        self._buffered += 1
        self._queue.put_nowait(error)

    async def send(self, error: BaseException):
        """Send an error, waiting for buffer space if needed."""
        while True:
            if not self._closed and self._buffered >= self.capacity:
                self._space.clear()
                await self._space.wait()
                continue
            self.send_nowait(error)
            return

    def close(self):
        """Close the channel; buffered errors stay readable."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)
        # Wake blocked senders so they observe the close
        self._space.set()

    async def receive(self) -> Optional[BaseException]:
        """
        Receive the next error.

        Returns:
            The next buffered error, or None once the channel is closed and
            every buffered error has been received
        """
        item = await self._queue.get()
        if item is _CLOSED:
            # Leave the marker for any other receiver
            self._queue.put_nowait(_CLOSED)
            return None
        self._buffered -= 1
        self._space.set()
        return item

    async def __aiter__(self):
        while True:
            error = await self.receive()
            if error is None:
                return
            yield error


async def _forward(source: ErrorChannel, out: ErrorChannel, cancel: asyncio.Event):
    if cancel.is_set():
        return

    receiving = asyncio.create_task(source.receive())
    cancelled = asyncio.create_task(cancel.wait())
    try:
        await asyncio.wait({receiving, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        # Cancellation wins a tie: nothing is forwarded once cancel is set
        if cancel.is_set():
            return
        error = receiving.result()
        if error is not None:
            out.send_nowait(error)
    finally:
        for task in (receiving, cancelled):
            if not task.done():
                task.cancel()


async def _close_when_done(forwarders: List[asyncio.Task], out: ErrorChannel):
    try:
        if forwarders:
            await asyncio.gather(*forwarders)
    finally:
        out.close()


def merge_error_channels(cancel: asyncio.Event, *channels: ErrorChannel) -> ErrorChannel:
    """
    Merge error channels into a single channel.

    Every error sent on an input channel is relayed to the output. The output
    is closed once every input has delivered, closed, or been abandoned
    because ``cancel`` was set. Its capacity equals the number of inputs, so
    relaying never blocks even if every input fails at once. Ordering across
    inputs is unspecified.

    Must be called from a running event loop.

    Args:
        cancel: Event that abandons inputs not yet relayed
        *channels: Input error channels

    Returns:
        The merged error channel
    """
    out = ErrorChannel(capacity=len(channels))
    forwarders = [_spawn(_forward(c, out, cancel)) for c in channels]
    _spawn(_close_when_done(forwarders, out))
    return out


def error_channel_for(operation: Awaitable) -> ErrorChannel:
    """
    Run an awaitable in the background and report its failure on a channel.

    The returned one-shot channel receives the exception raised by
    ``operation`` (if any) and is then closed.

    Must be called from a running event loop.
    """
    channel = ErrorChannel(capacity=1)

    async def _run():
        try:
            await operation
        except Exception as e:
            logger.debug("Operation failed: %s", e)
            channel.send_nowait(e)
        finally:
            channel.close()

    _spawn(_run())
    return channel


async def collect_errors(channel: ErrorChannel) -> List[BaseException]:
    """Drain a channel until it closes and return every error received."""
    return [error async for error in channel]
