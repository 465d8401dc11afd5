"""Unit tests for retry mechanism with exponential backoff and jitter."""

from __future__ import annotations

import pytest

from proposal_scores.infra.retry import exponential_backoff_with_jitter, simple_retry


class RetryableError(Exception):
    """Error that should trigger retry."""


class NonRetryableError(Exception):
    """Error that should not trigger retry."""


@pytest.mark.unit
def test_exponential_backoff_with_jitter_retries_on_matching_exception() -> None:
    call_count = [0]

    @exponential_backoff_with_jitter(
        max_attempts=3, initial_wait=0.01, max_wait=0.02, jitter=0.0, retry_on=RetryableError
    )
    def failing_function() -> int:
        call_count[0] += 1
        if call_count[0] < 3:
            raise RetryableError("Temporary failure")
        return 42

    assert failing_function() == 42
    assert call_count[0] == 3


@pytest.mark.unit
def test_exponential_backoff_with_jitter_does_not_retry_on_non_matching_exception() -> None:
    call_count = [0]

    @exponential_backoff_with_jitter(max_attempts=3, initial_wait=0.01, retry_on=RetryableError)
    def failing_function() -> int:
        call_count[0] += 1
        raise NonRetryableError("Permanent failure")

    with pytest.raises(NonRetryableError):
        failing_function()
    assert call_count[0] == 1


@pytest.mark.unit
def test_exponential_backoff_with_jitter_reraises_after_max_attempts() -> None:
    call_count = [0]

    @exponential_backoff_with_jitter(
        max_attempts=2, initial_wait=0.01, max_wait=0.02, jitter=0.0, retry_on=RetryableError
    )
    def always_failing_function() -> int:
        call_count[0] += 1
        raise RetryableError("Always fails")

    with pytest.raises(RetryableError):
        always_failing_function()
    assert call_count[0] == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_exponential_backoff_with_jitter_wraps_coroutines() -> None:
    call_count = [0]

    @exponential_backoff_with_jitter(
        max_attempts=3, initial_wait=0.01, max_wait=0.02, jitter=0.0, retry_on=OSError
    )
    async def connect() -> str:
        call_count[0] += 1
        if call_count[0] == 1:
            raise ConnectionRefusedError("db not ready")
        return "pool"

    assert await connect() == "pool"
    assert call_count[0] == 2


@pytest.mark.unit
def test_simple_retry_retries_on_matching_exception() -> None:
    call_count = [0]

    @simple_retry(max_attempts=3, wait_seconds=0.01, retry_on=RetryableError)
    def failing_function() -> int:
        call_count[0] += 1
        if call_count[0] < 2:
            raise RetryableError("Temporary failure")
        return 42

    assert failing_function() == 42
    assert call_count[0] == 2


@pytest.mark.unit
def test_simple_retry_accepts_exception_tuple() -> None:
    call_count = [0]

    @simple_retry(max_attempts=2, wait_seconds=0.01, retry_on=(RetryableError, TimeoutError))
    def failing_function() -> int:
        call_count[0] += 1
        raise TimeoutError("still timing out")

    with pytest.raises(TimeoutError):
        failing_function()
    assert call_count[0] == 2
