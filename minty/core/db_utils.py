"""
Database utilities for connection management and error handling
"""
import asyncio
import functools
import logging
from typing import Callable, Any, TypeVar, cast, Awaitable

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Exception class names that indicate a dropped/unavailable connection rather than a bad statement
RETRYABLE_ERRORS = (
    "ConnectionError",
    "OperationalError",
    "ConnectionDoesNotExistError",
    "ConnectionRefusedError",
    "InterfaceError",
)


def is_connection_error(exc: BaseException) -> bool:
    error_name = type(exc).__name__
    return any(err in error_name for err in RETRYABLE_ERRORS)


def with_db_retry(
    max_retries: int = 3,
    retry_delay: float = 0.5
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Decorator that retries database operations on connection errors.

    Args:
        max_retries: Maximum number of retries before giving up
        retry_delay: Base delay between retries in seconds (doubled each attempt)
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    if not is_connection_error(e) or attempt >= max_retries:
                        if attempt:
                            logger.error(f"{func.__name__} failed after {attempt} retries: {e}")
                        raise
                    attempt += 1
                    delay = retry_delay * (2 ** (attempt - 1))
                    logger.warning(
                        f"Database connection error in {func.__name__}: {str(e)}. "
                        f"Retrying in {delay:.2f}s... (Attempt {attempt}/{max_retries})"
                    )
                    await asyncio.sleep(delay)

        return cast(Callable[..., Awaitable[T]], wrapper)

    return decorator
