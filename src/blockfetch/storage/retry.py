"""
Retrying block reader.

Reads a block from a backend driver, retrying failed reads on a fixed
backoff schedule. The schedule is a lookup table (aggressive at first, very
patient later) so both short network blips and long backend outages are
tolerated without a formula to tune.
"""

import logging
import threading
import time
from typing import BinaryIO, Callable, Optional

from tenacity import RetryCallState, RetryError, Retrying, retry_if_exception, stop_after_attempt
from tenacity.wait import wait_base

from blockfetch.core.contracts import DEFAULT_BACKOFF_SCHEDULE, BackoffSchedule
from blockfetch.core.errors import (
    ReadCancelledError,
    RetryExhaustedError,
    TerminalReadError,
)
from blockfetch.storage.driver import BackupStoreDriver

logger = logging.getLogger(__name__)


def is_retryable_error(exc: BaseException) -> bool:
    """
    Default classification of backend read errors.

    Every failure is retried, "not found" included, unless the exception
    carries ``retryable = False``. Drivers that know better expose their own
    ``is_retryable``.
    """
    return getattr(exc, "retryable", True) is not False


def _classifier(driver: BackupStoreDriver) -> Callable[[BaseException], bool]:
    classify = getattr(driver, "is_retryable", None)
    if not callable(classify):
        classify = is_retryable_error
    # KeyboardInterrupt and SystemExit end the loop at once
    return lambda exc: isinstance(exc, Exception) and classify(exc)


class _ScheduleWait(wait_base):
    """Wait ``schedule[i]`` after failed attempt ``i + 1``."""

    def __init__(self, schedule: BackoffSchedule):
        self.schedule = schedule

    def __call__(self, retry_state: RetryCallState) -> float:
        index = retry_state.attempt_number - 1
        # Tenacity asks for the wait before checking stop on the last attempt
        if index >= len(self.schedule):
            return 0.0
        return self.schedule[index]


class _Cancelled(Exception):
    """Raised out of the backoff wait when the cancel event is set."""


def _cancellable_sleep(cancel: threading.Event) -> Callable[[float], None]:
    def wait(delay: float):
        # Event.wait returns True as soon as the event is set
        if cancel.wait(delay):
            raise _Cancelled()

    return wait


class _ReadAttempt:
    """One ``driver.read(path)`` per call, counting attempts and keeping the last error."""

    def __init__(self, driver: BackupStoreDriver, path: str):
        self.driver = driver
        self.path = path
        self.count = 0
        self.error: Optional[BaseException] = None

    def __call__(self) -> BinaryIO:
        self.count += 1
        try:
            return self.driver.read(self.path)
        except Exception as e:
            self.error = e
            raise


def read_block_with_retry(
    driver: BackupStoreDriver,
    path: str,
    schedule: BackoffSchedule = DEFAULT_BACKOFF_SCHEDULE,
    *,
    sleep: Callable[[float], None] = time.sleep,
    cancel: Optional[threading.Event] = None,
) -> BinaryIO:
    """
    Read a block from the backend with retry.

    A schedule of length N allows N + 1 attempts; ``schedule[i]`` is the wait
    after failed attempt ``i + 1``. Attempts are strictly sequential.

    Args:
        driver: Backend driver exposing ``read(path)``
        path: Backend path of the block
        schedule: Backoff schedule to wait on between attempts
        sleep: Blocking wait used when ``cancel`` is not given
        cancel: Optional event; when set, the retry loop is abandoned

    Returns:
        Open stream over the raw block; the caller must close it

    Raises:
        RetryExhaustedError: If every attempt failed
        TerminalReadError: If the backend reported a non-retryable error
        ReadCancelledError: If ``cancel`` was set while waiting to retry
    """
    attempt = _ReadAttempt(driver, path)

    def _before_sleep(retry_state: RetryCallState):
        logger.warning(
            "Failed to read block %s (attempt %d/%d): %s; retrying in %ss",
            path,
            retry_state.attempt_number,
            len(schedule) + 1,
            retry_state.outcome.exception(),
            retry_state.next_action.sleep,
        )

    retrying = Retrying(
        stop=stop_after_attempt(len(schedule) + 1),
        wait=_ScheduleWait(schedule),
        retry=retry_if_exception(_classifier(driver)),
        sleep=sleep if cancel is None else _cancellable_sleep(cancel),
        before_sleep=_before_sleep,
    )

    try:
        return retrying(attempt)
    except RetryError as e:
        last_error = e.last_attempt.exception()
        logger.error("Giving up on block %s after %d attempts: %s", path, attempt.count, last_error)
        raise RetryExhaustedError(path, attempt.count, last_error) from last_error
    except _Cancelled:
        raise ReadCancelledError(path, attempt.count, attempt.error) from attempt.error
    except Exception as e:
        logger.error("Non-retryable error reading block %s: %s", path, e)
        raise TerminalReadError(path, attempt.count, e) from e
