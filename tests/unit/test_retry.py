"""
Tests for read_block_with_retry.
"""

import threading

import pytest

from blockfetch.core.contracts import DEFAULT_BACKOFF_SCHEDULE, BackoffSchedule
from blockfetch.core.errors import (
    ReadCancelledError,
    RetryExhaustedError,
    TerminalReadError,
)
from blockfetch.storage.retry import is_retryable_error, read_block_with_retry

PATH = "backupstore/volumes/aa/bb/vol/blocks/ab/cd/abcd.blk"


@pytest.mark.parametrize("failures", [0, 1, 3, 10])
def test_succeeds_after_k_failures(flaky_driver, sleeps, failures):
    """k failures -> k sleeps taken from the head of the schedule, k + 1 reads."""
    driver = flaky_driver(failures, {PATH: b"payload"})

    stream = read_block_with_retry(driver, PATH, sleep=sleeps)

    assert stream.read() == b"payload"
    assert sleeps.delays == list(DEFAULT_BACKOFF_SCHEDULE)[:failures]
    assert len(driver.reads) == failures + 1


def test_always_failing_exhausts_schedule(flaky_driver, sleeps):
    driver = flaky_driver(failures=1000)

    with pytest.raises(RetryExhaustedError) as exc_info:
        read_block_with_retry(driver, PATH, sleep=sleeps)

    assert sleeps.delays == list(DEFAULT_BACKOFF_SCHEDULE)
    assert len(driver.reads) == 11
    assert exc_info.value.attempts == 11
    assert exc_info.value.path == PATH
    assert "after 11 attempts" in str(exc_info.value)
    assert str(exc_info.value).endswith(": transient failure #11")
    # The last underlying error is chained
    assert exc_info.value.__cause__ is driver.errors[-1]


def test_injected_schedule_is_used(flaky_driver, sleeps):
    driver = flaky_driver(failures=1000)

    with pytest.raises(RetryExhaustedError) as exc_info:
        read_block_with_retry(driver, PATH, BackoffSchedule.of(0.1, 0.2), sleep=sleeps)

    assert sleeps.delays == [0.1, 0.2]
    assert exc_info.value.attempts == 3


def test_empty_schedule_means_single_attempt(flaky_driver, sleeps):
    driver = flaky_driver(failures=1)

    with pytest.raises(RetryExhaustedError) as exc_info:
        read_block_with_retry(driver, PATH, BackoffSchedule(), sleep=sleeps)

    assert sleeps.delays == []
    assert exc_info.value.attempts == 1


def test_missing_block_is_retried_through_schedule(memory_driver, sleeps):
    """A block that never appears gets the full schedule: 10 sleeps, 11 reads."""
    with pytest.raises(RetryExhaustedError) as exc_info:
        read_block_with_retry(memory_driver, PATH, sleep=sleeps)

    assert sleeps.delays == list(DEFAULT_BACKOFF_SCHEDULE)
    assert len(memory_driver.reads) == 11
    assert exc_info.value.attempts == 11
    assert isinstance(exc_info.value.__cause__, FileNotFoundError)


def test_late_arriving_block_is_read(memory_driver, sleeps):
    first_read = memory_driver.read

    def read(path):
        # The block lands after the second attempt
        if len(memory_driver.reads) == 2:
            memory_driver.blocks[PATH] = b"arrived"
        return first_read(path)

    memory_driver.read = read

    assert read_block_with_retry(memory_driver, PATH, sleep=sleeps).read() == b"arrived"
    assert sleeps.delays == [1, 5]


def test_error_marked_not_retryable_is_terminal(memory_driver, sleeps):
    error = RuntimeError("quota exceeded")
    error.retryable = False

    def read(path):
        memory_driver.reads.append(path)
        raise error

    memory_driver.read = read

    with pytest.raises(TerminalReadError) as exc_info:
        read_block_with_retry(memory_driver, PATH, sleep=sleeps)

    assert sleeps.delays == []
    assert len(memory_driver.reads) == 1
    assert exc_info.value.attempts == 1
    assert exc_info.value.__cause__ is error
    assert str(exc_info.value).endswith(": quota exceeded")


def test_driver_classification_overrides_default(flaky_driver, sleeps):
    driver = flaky_driver(failures=5, blocks={PATH: b"x"})
    driver.is_retryable = lambda exc: not isinstance(exc, ConnectionError)

    with pytest.raises(TerminalReadError):
        read_block_with_retry(driver, PATH, sleep=sleeps)

    assert len(driver.reads) == 1
    assert sleeps.delays == []


def test_driver_classification_can_stop_on_not_found(memory_driver, sleeps):
    memory_driver.is_retryable = lambda exc: not isinstance(exc, FileNotFoundError)

    with pytest.raises(TerminalReadError) as exc_info:
        read_block_with_retry(memory_driver, PATH, sleep=sleeps)

    assert len(memory_driver.reads) == 1
    assert sleeps.delays == []
    assert isinstance(exc_info.value.__cause__, FileNotFoundError)


def test_is_retryable_error():
    assert is_retryable_error(ConnectionError("reset"))
    assert is_retryable_error(TimeoutError())
    assert is_retryable_error(FileNotFoundError("gone"))
    assert is_retryable_error(PermissionError("denied"))

    error = RuntimeError("quota exceeded")
    error.retryable = False
    assert not is_retryable_error(error)


def test_cancelled_before_retry(flaky_driver, sleeps):
    cancel = threading.Event()
    cancel.set()
    driver = flaky_driver(failures=1000)

    with pytest.raises(ReadCancelledError) as exc_info:
        read_block_with_retry(driver, PATH, sleep=sleeps, cancel=cancel)

    assert len(driver.reads) == 1
    assert exc_info.value.attempts == 1
    assert isinstance(exc_info.value.__cause__, ConnectionError)


def test_cancel_interrupts_long_wait(flaky_driver):
    cancel = threading.Event()
    driver = flaky_driver(failures=1000)
    # An hour-long wait must end as soon as the event is set
    timer = threading.Timer(0.05, cancel.set)
    timer.start()
    try:
        with pytest.raises(ReadCancelledError):
            read_block_with_retry(driver, PATH, BackoffSchedule.of(3600), cancel=cancel)
    finally:
        timer.cancel()

    assert len(driver.reads) == 1


def test_unset_cancel_does_not_interfere(flaky_driver):
    cancel = threading.Event()
    driver = flaky_driver(failures=2, blocks={PATH: b"ok"})

    stream = read_block_with_retry(driver, PATH, BackoffSchedule.of(0, 0), cancel=cancel)

    assert stream.read() == b"ok"
    assert len(driver.reads) == 3


def test_interrupt_is_not_retried(memory_driver, sleeps):
    def read(path):
        memory_driver.reads.append(path)
        raise KeyboardInterrupt()

    memory_driver.read = read

    with pytest.raises(KeyboardInterrupt):
        read_block_with_retry(memory_driver, PATH, sleep=sleeps)

    assert len(memory_driver.reads) == 1
    assert sleeps.delays == []


def test_each_retry_is_logged(flaky_driver, sleeps, caplog):
    driver = flaky_driver(failures=1000)

    with caplog.at_level("WARNING", logger="blockfetch.storage.retry"):
        with pytest.raises(RetryExhaustedError):
            read_block_with_retry(driver, PATH, BackoffSchedule.of(0.5, 2), sleep=sleeps)

    warnings = [r for r in caplog.records if r.levelname == "WARNING"]
    errors = [r for r in caplog.records if r.levelname == "ERROR"]
    assert len(warnings) == 2
    assert "attempt 1/3" in warnings[0].getMessage()
    assert "retrying in 0.5s" in warnings[0].getMessage()
    assert "retrying in 2.0s" in warnings[1].getMessage()
    assert len(errors) == 1
    assert "after 3 attempts" in errors[0].getMessage()
