"""Retry logic for content store calls.

Two policies are provided:

- ``retry_on_rate_limit`` retries any call rejected with a rate limit, using
  exponential backoff (1s, 2s, 4s). A rate-limited request was never applied
  by the remote, so this is safe for writes as well as reads.
- ``retry_once_on_transient`` retries an idempotent read exactly once on any
  other transient failure (timeout, connection error, 5xx). Writes and
  deletes must never go through it: a prior attempt's success cannot be
  distinguished from failure without re-reading the hash.
"""

import time
import logging
from typing import Callable, TypeVar

from .errors import RateLimitError, TransientError

logger = logging.getLogger(__name__)

T = TypeVar('T')

MAX_RATE_LIMIT_RETRIES = 3


def retry_on_rate_limit(func: Callable[..., T], *args, **kwargs) -> T:
    """Retry function on rate limit errors with exponential backoff.

    Executes the given function with the provided arguments, retrying up to 3
    times with exponential backoff (1s, 2s, 4s) when a RateLimitError is
    raised. When the remote supplied a retry-after hint that is longer than
    the backoff step, the hint is honoured instead. All other errors pass
    through immediately.

    Args:
        func: The function to execute with retry logic
        *args: Positional arguments to pass to the function
        **kwargs: Keyword arguments to pass to the function

    Returns:
        The return value of the function

    Raises:
        RateLimitError: If the rate limit persists after 3 retries
        Other exceptions: Passed through immediately without retry

    Example:
        >>> blob = retry_on_rate_limit(session_get, "posts/hello.md")
    """
    for retry_num in range(MAX_RATE_LIMIT_RETRIES + 1):  # 4 attempts total
        try:
            return func(*args, **kwargs)
        except RateLimitError as e:
            if retry_num >= MAX_RATE_LIMIT_RETRIES:
                logger.error(
                    f"Rate limit persisted after {MAX_RATE_LIMIT_RETRIES} retries, giving up"
                )
                raise

            wait_time = 2 ** retry_num
            if e.retry_after is not None and e.retry_after > wait_time:
                wait_time = e.retry_after
            logger.info(
                f"Rate limit hit, retrying in {wait_time}s "
                f"(retry {retry_num + 1}/{MAX_RATE_LIMIT_RETRIES})"
            )
            time.sleep(wait_time)

    # Unreachable: the loop either returns or raises
    raise AssertionError("retry loop exited without result")


def retry_once_on_transient(func: Callable[..., T], *args, **kwargs) -> T:
    """Run an idempotent read, retrying it once on a transient failure.

    Rate limit errors are not handled here; wrap the call with
    ``retry_on_rate_limit`` for those.

    Raises:
        TransientError: If the retry fails as well
    """
    try:
        return func(*args, **kwargs)
    except RateLimitError:
        raise
    except TransientError as e:
        logger.warning(f"Transient failure ({e}), retrying once")
        return func(*args, **kwargs)
