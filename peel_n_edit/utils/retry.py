"""Retry and timeout helpers for async provider calls."""

import asyncio
import functools
from typing import Awaitable, Callable, TypeVar

from .logger import get_logger
from .errors import TimeoutError

logger = get_logger(__name__)

T = TypeVar('T')


def retry_async(
    max_attempts: int = 1,
    backoff_factor: float = 2.0,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    exceptions: tuple = (Exception,)
):
    """
    Bound the number of attempts made for one remote call.

    Provider calls run exactly once unless ``MAX_ATTEMPTS_PER_CALL`` is
    raised; with a single attempt the first error propagates unchanged and
    nothing is logged here. Extra attempts wait ``initial_delay`` seconds,
    multiplied by ``backoff_factor`` each time and capped at ``max_delay``.

    Raises:
        ValueError: If max_attempts is below 1
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            delay = initial_delay

            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)

                except exceptions as e:
                    if attempt == max_attempts:
                        if max_attempts > 1:
                            logger.error(
                                f"{func.__name__} failed after {max_attempts} attempts",
                                extra={
                                    "function": func.__name__,
                                    "attempts": max_attempts,
                                    "error": str(e),
                                }
                            )
                        raise

                    logger.warning(
                        f"{func.__name__} attempt {attempt}/{max_attempts} failed, retrying...",
                        extra={
                            "function": func.__name__,
                            "attempt": attempt,
                            "max_attempts": max_attempts,
                            "delay_seconds": delay,
                            "error": str(e),
                        }
                    )

                    await asyncio.sleep(delay)
                    delay = min(delay * backoff_factor, max_delay)

        return wrapper
    return decorator


async def timeout_async(coro, seconds: float):
    """Await ``coro`` for at most ``seconds``, raising the package TimeoutError."""
    try:
        return await asyncio.wait_for(coro, timeout=seconds)
    except asyncio.TimeoutError:
        raise TimeoutError(f"Operation timed out after {seconds} seconds")
