"""
Database decorators for conflict retries and deadlines.

Provides decorators that retry service methods on serialization failures
and translate storage exceptions into domain errors.
"""

import asyncio
import random
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from affiliate.config.settings import settings
from affiliate.utils.exceptions import (
    AffiliateError,
    Conflict,
    StorageError,
    Timeout,
    is_retryable_conflict,
)

T = TypeVar("T")


def backoff_delay(attempt: int, delay_base: float) -> float:
    """
    Exponential backoff with jitter.

    Args:
        attempt: Zero-based attempt number that just failed
        delay_base: Base delay in seconds

    Returns:
        Seconds to sleep before the next attempt
    """
    return delay_base * (2 ** attempt) + random.uniform(0, delay_base)


def retry_on_conflict(
    func: Callable[..., Awaitable[T]],
) -> Callable[..., Awaitable[T]]:
    """
    Decorator that reruns a service method on serialization failures.

    The wrapped method must run its whole effect in one transaction and
    roll back on failure (see services.base_service.transaction), so each
    attempt starts clean.

    Behaviour:
    1. Domain errors (AffiliateError) propagate unchanged
    2. Retryable conflicts are retried up to settings.conflict_max_retries
       times with exponential backoff, then surface as Conflict
    3. Any other SQLAlchemy error surfaces as StorageError

    Usage:
        @retry_on_conflict
        @transaction
        async def attribute_volume(self, trader, usd):
            ...
    """
    @wraps(func)
    async def wrapper(self: Any, *args: Any, **kwargs: Any) -> T:
        max_retries = settings.conflict_max_retries
        delay_base = settings.conflict_retry_delay_base

        for attempt in range(max_retries + 1):
            try:
                return await func(self, *args, **kwargs)
            except AffiliateError:
                raise
            except SQLAlchemyError as e:
                if not is_retryable_conflict(e):
                    logger.error(
                        f"Storage error in {func.__name__}: {type(e).__name__}",
                        extra={"function": func.__name__, "args": [str(a) for a in args]},
                    )
                    raise StorageError() from e

                if attempt >= max_retries:
                    logger.warning(
                        f"Conflict retries exhausted in {func.__name__}",
                        extra={"function": func.__name__, "attempts": attempt + 1},
                    )
                    raise Conflict() from e

                delay = backoff_delay(attempt, delay_base)
                logger.debug(
                    f"Conflict in {func.__name__}, retrying in {delay:.3f}s",
                    extra={"function": func.__name__, "attempt": attempt + 1},
                )
                await asyncio.sleep(delay)

        # Unreachable: the loop either returns or raises
        raise Conflict()

    return wrapper


async def run_with_deadline(
    awaitable: Awaitable[T],
    seconds: float,
    session: AsyncSession | None = None,
) -> T:
    """
    Await with a deadline; roll back and raise Timeout on expiry.

    Args:
        awaitable: Service call to run
        seconds: Deadline in seconds
        session: Session to roll back if the deadline expires

    Returns:
        Result of the awaitable

    Raises:
        Timeout: If the deadline expired (nothing was committed by this call
            unless the commit itself had already completed)
    """
    try:
        async with asyncio.timeout(seconds):
            return await awaitable
    except TimeoutError as e:
        if session is not None:
            try:
                await session.rollback()
            except SQLAlchemyError as rollback_error:
                logger.error(
                    "Failed to rollback after timeout",
                    extra={"error": str(rollback_error)},
                )
        logger.warning(f"Deadline of {seconds}s expired")
        raise Timeout() from e
