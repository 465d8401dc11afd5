from __future__ import annotations

from typing import Any, Callable, TypeVar, cast

import structlog
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_fixed,
    wait_random,
)

T = TypeVar("T")

LOGGER = structlog.get_logger(__name__)


def _log_before_sleep(retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    error = outcome.exception() if outcome is not None else None
    LOGGER.warning(
        "retry.attempt_failed",
        function=getattr(retry_state.fn, "__name__", "<unknown>"),
        attempt=retry_state.attempt_number,
        error=str(error) if error is not None else None,
    )


def exponential_backoff_with_jitter(
    *,
    max_attempts: int = 5,
    initial_wait: float = 1.0,
    max_wait: float = 60.0,
    jitter: float = 0.5,
    retry_on: type[Exception] | tuple[type[Exception], ...] = Exception,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Create a retry decorator with exponential backoff and additive jitter.

    Works for plain and ``async def`` callables alike. The last exception is
    re-raised once ``max_attempts`` is exhausted.
    """
    return cast(
        Callable[[Callable[..., T]], Callable[..., T]],
        retry(
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(multiplier=initial_wait, max=max_wait) + wait_random(0, jitter),
            retry=retry_if_exception_type(retry_on),
            before_sleep=_log_before_sleep,
            reraise=True,
        ),
    )


def simple_retry(
    *,
    max_attempts: int = 3,
    wait_seconds: float = 1.0,
    retry_on: type[Exception] | tuple[type[Exception], ...] = Exception,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Create a simple retry decorator with fixed wait time.

    Args:
        max_attempts: Maximum number of attempts
        wait_seconds: Wait time between attempts in seconds
        retry_on: Exception types to retry on

    Returns:
        A retry decorator function
    """
    decorator: Any = retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_fixed(wait_seconds),
        retry=retry_if_exception_type(retry_on),
        before_sleep=_log_before_sleep,
        reraise=True,
    )
    return cast(Callable[[Callable[..., T]], Callable[..., T]], decorator)
