"""Retry helpers for calls to external inference services.

Two policies are provided:

- ``retry_with_backoff``: unconditional retry with exponential backoff. A
  generic utility; it is not used on the model invocation path.
- ``retry_on_condition``: retries immediately while a predicate over the last
  error allows it. This is the policy the model cascade wraps inside the
  circuit breaker, so that spacing between attempts is left to the breaker
  and to the upstream service itself.

Both are explicit loops over an awaitable factory. The sleep function is
injected so tests never wait on the wall clock.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Set, TypeVar

from docintel.exceptions import UpstreamError

# Configure logging
logger = logging.getLogger(__name__)

T = TypeVar("T")

# HTTP status codes that should trigger retry
RETRYABLE_STATUS_CODES: Set[int] = {
    408,  # Request timeout
    429,  # Rate limit
    503,  # Service unavailable / model loading
}

# HTTP status codes that should NOT trigger retry
NON_RETRYABLE_STATUS_CODES: Set[int] = {
    400,  # Bad request
    401,  # Unauthorized
    403,  # Forbidden
    404,  # Not found
    410,  # Gone (deprecated endpoint)
    422,  # Unprocessable entity
}

# Retry configuration
MAX_RETRIES = 3
BASE_DELAY = 1.0  # seconds

_NETWORK_ERROR_MARKERS = (
    "timeout",
    "timed out",
    "connection reset",
    "connection refused",
    "network",
)


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = MAX_RETRIES,
    base_delay: float = BASE_DELAY,
    *,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """Await ``operation`` until it succeeds, backing off exponentially.

    The operation runs once, then up to ``max_retries`` more times. Before
    retry number ``attempt + 1`` the helper awaits
    ``sleep(base_delay * 2 ** attempt)``, i.e. 1s, 2s, 4s with the defaults.

    Args:
        operation: Zero-argument callable returning an awaitable
        max_retries: Maximum number of retries after the first attempt
        base_delay: Base delay in seconds for exponential backoff
        sleep: Awaitable delay function (``asyncio.sleep`` by default)

    Returns:
        Whatever the first successful attempt returned

    Raises:
        Exception: The last error, unchanged, once all attempts have failed
    """
    name = getattr(operation, "__name__", "operation")
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as e:
            if attempt >= max_retries:
                logger.error(f"{name} failed after {max_retries} retries: {e}")
                raise

            delay = base_delay * (2**attempt)
            logger.warning(
                f"{name} attempt {attempt + 1}/{max_retries} failed: {e}. "
                f"Retrying in {delay:.2f}s..."
            )
            await sleep(delay)
            attempt += 1


async def retry_on_condition(
    operation: Callable[[], Awaitable[T]],
    should_retry: Callable[[Exception], bool],
    max_retries: int = MAX_RETRIES,
) -> T:
    """Await ``operation``, retrying at once while ``should_retry`` allows it.

    An error is re-raised immediately when the predicate rejects it or when
    ``max_retries`` retries have already been spent. With a predicate that
    accepts exactly one error, an always-failing operation runs twice.

    Args:
        operation: Zero-argument callable returning an awaitable
        should_retry: Predicate over the last error
        max_retries: Maximum number of retries after the first attempt

    Returns:
        Whatever the first successful attempt returned

    Raises:
        Exception: The last error, unchanged
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as e:
            if attempt >= max_retries or not should_retry(e):
                raise
            attempt += 1
            logger.warning(f"Retryable failure ({type(e).__name__}: {e}); retry {attempt}/{max_retries}")


def is_retryable(exception: Exception) -> bool:
    """Decide whether an invocation error is worth repeating.

    Pipeline errors carry their own classification. Foreign exceptions are
    judged by HTTP status code, then by common network error wording.

    Args:
        exception: The exception that was raised

    Returns:
        True if the exception should trigger retry, False otherwise
    """
    if isinstance(exception, UpstreamError):
        return exception.retryable

    status_code = extract_status_code(exception)
    if status_code:
        if status_code in NON_RETRYABLE_STATUS_CODES:
            return False
        if status_code in RETRYABLE_STATUS_CODES:
            return True
        return False

    exception_str = str(exception).lower()
    return any(marker in exception_str for marker in _NETWORK_ERROR_MARKERS)


def extract_status_code(exception: Exception) -> Optional[int]:
    """Extract HTTP status code from exception.

    Args:
        exception: Exception that may contain status code

    Returns:
        HTTP status code if found, None otherwise
    """
    # Check for status_code attribute (common in HTTP client libraries)
    status_code = getattr(exception, "status_code", None)
    if isinstance(status_code, int):
        return status_code

    # Check for code attribute (google-genai APIError)
    code = getattr(exception, "code", None)
    if isinstance(code, int):
        return code

    # Check for response.status_code (httpx pattern)
    response = getattr(exception, "response", None)
    if response is not None:
        response_status = getattr(response, "status_code", None)
        if isinstance(response_status, int):
            return response_status

    return None
