"""Retry logic with exponential backoff for Notion API rate limits.

This module provides retry functionality specifically for handling 429 rate
limit responses from the Notion API. It implements exponential backoff
(1s, 2s, 4s) and fails fast for non-rate-limit errors. The destination
client never retries on its own; callers wrap their writes with this.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

from .errors import APIAccessError

logger = logging.getLogger(__name__)

T = TypeVar('T')

DEFAULT_MAX_RETRIES = 3


async def retry_on_rate_limit(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    max_retries: int = DEFAULT_MAX_RETRIES,
    **kwargs: Any,
) -> T:
    """Await a coroutine function, retrying on 429 with exponential backoff.

    Executes the given coroutine function with the provided arguments,
    retrying up to ``max_retries`` times with exponential backoff
    (1s, 2s, 4s, ...) when a rate limit error is encountered. Fails fast for
    all other errors.

    Args:
        func: The coroutine function to execute with retry logic
        *args: Positional arguments to pass to the function
        max_retries: Number of retries after the first attempt
        **kwargs: Keyword arguments to pass to the function

    Returns:
        The return value of the function

    Raises:
        APIAccessError: If rate limit persists after all retries
        Other exceptions: Passed through immediately without retry

    Example:
        >>> ids = await retry_on_rate_limit(client.append_blocks, page_id, batch)
    """
    for retry_num in range(max_retries + 1):
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            if not _is_rate_limit_error(e):
                raise

            if retry_num >= max_retries:
                logger.error(
                    f"Rate limit persisted after {max_retries} retries, giving up"
                )
                raise APIAccessError(
                    f"Notion API failure (after {max_retries} retries)"
                ) from e

            wait_time = 2 ** retry_num
            logger.info(
                f"Rate limit hit, retrying in {wait_time}s "
                f"(retry {retry_num + 1}/{max_retries})"
            )
            await asyncio.sleep(wait_time)

    # Unreachable, keeps type checkers satisfied
    raise APIAccessError(f"Notion API failure (after {max_retries} retries)")


def _is_rate_limit_error(exception: Exception) -> bool:
    """Check if an exception represents a rate limit (429) error.

    Recognises notion-client's ``APIResponseError`` (``code == "rate_limited"``
    or ``status == 429``) as well as the generic httpx/requests shapes.

    Args:
        exception: The exception to check

    Returns:
        True if this appears to be a rate limit error, False otherwise
    """
    code = getattr(exception, 'code', None)
    if code is not None and str(getattr(code, 'value', code)) == 'rate_limited':
        return True

    if getattr(exception, 'status', None) == 429:
        return True

    if getattr(exception, 'status_code', None) == 429:
        return True

    response = getattr(exception, 'response', None)
    if response is not None and getattr(response, 'status_code', None) == 429:
        return True

    # Only specific phrases, a bare "rate limit" appears in unrelated messages
    error_msg = str(exception).lower()
    rate_limit_patterns = [
        '429',
        'too many requests',
        'rate limit exceeded',
        'rate limited',
    ]
    return any(pattern in error_msg for pattern in rate_limit_patterns)
