"""Retry utilities using tenacity for the task persistence gateway."""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Default retry configuration
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_INITIAL_WAIT = 0.5  # seconds
DEFAULT_MAX_WAIT = 5.0  # seconds
DEFAULT_JITTER = 0.25  # seconds


class RetryableError(Exception):
    """Base class for errors that should trigger retries."""

    pass


class TransientError(RetryableError):
    """Network failures, timeouts, 5xx responses."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class PermanentError(Exception):
    """Errors that should NOT be retried (auth failures, invalid data)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def is_transient_status(status_code: int) -> bool:
    """5xx and 429 responses are worth retrying, other 4xx are not."""
    return status_code >= 500 or status_code == 429


async def retry_operation(
    operation: Callable[..., Awaitable[T]],
    *args,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    initial_wait: float = DEFAULT_INITIAL_WAIT,
    max_wait: float = DEFAULT_MAX_WAIT,
    retryable_exceptions: tuple = (RetryableError, ConnectionError, TimeoutError),
    **kwargs,
) -> T:
    """Execute an async operation with exponential backoff retry.

    Wait formula: min(initial * 2^n + random(0, jitter), max)

    Args:
        operation: Async function to execute
        *args: Positional arguments for operation
        max_attempts: Maximum number of attempts
        initial_wait: Initial wait time in seconds
        max_wait: Maximum wait time in seconds
        retryable_exceptions: Exception types to retry on
        **kwargs: Keyword arguments for operation

    Returns:
        Result of the operation

    Raises:
        Exception: The last exception once attempts are exhausted, or the
            first non-retryable one
    """
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential_jitter(
            initial=initial_wait,
            max=max_wait,
            jitter=min(DEFAULT_JITTER, initial_wait),
        ),
        retry=retry_if_exception_type(retryable_exceptions),
        reraise=True,
    ):
        with attempt:
            attempt_num = attempt.retry_state.attempt_number
            if attempt_num > 1:
                logger.warning(
                    f"Retry attempt {attempt_num}/{max_attempts} for {operation.__name__}"
                )
            return await operation(*args, **kwargs)

    raise RuntimeError("No attempts made")
