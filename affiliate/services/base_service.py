"""
Base service class.

Provides common functionality for all service classes including session management,
logging, and helper decorators.
"""

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from affiliate.utils.exceptions import AffiliateError


# Type variable for generic decorator return types
T = TypeVar("T")


class BaseService:
    """
    Base service class.

    Provides common functionality for all service classes:
    - Session management
    - Logging with bound service context
    - Transaction helpers
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize base service.

        Args:
            session: Async database session
        """
        self.session = session
        self.logger = logger.bind(service=self.__class__.__name__)

    async def commit(self) -> None:
        """Commit current transaction."""
        await self.session.commit()

    async def rollback(self) -> None:
        """Rollback current transaction."""
        await self.session.rollback()


def transaction(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator to wrap method in transaction with automatic commit/rollback.

    Commits on success, rolls back on exception. Domain errors are logged
    at WARNING (they are expected outcomes); anything else at ERROR.

    Usage:
        @transaction
        async def my_service_method(self, ...):
            # Your code here
            pass

    Args:
        func: Async method to wrap

    Returns:
        Wrapped async method
    """
    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> Any:
        try:
            result = await func(self, *args, **kwargs)
            await self.commit()
            return result
        except AffiliateError as e:
            await self.rollback()
            self.logger.warning(
                f"Rejected {func.__name__}: {e.code}",
                extra={
                    "function": func.__name__,
                    "error_code": e.code,
                },
            )
            raise
        except Exception as e:
            await self.rollback()
            self.logger.error(
                f"Transaction failed in {func.__name__}",
                extra={
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "function": func.__name__,
                    "args": [str(a) for a in args],
                },
            )
            raise

    return wrapper


def log_operation(func: Callable[..., T]) -> Callable[..., T]:
    """Debug-log one record per facade call: outcome and elapsed milliseconds."""
    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> Any:
        started = time.perf_counter()
        outcome = "ok"
        try:
            return await func(self, *args, **kwargs)
        except AffiliateError as e:
            outcome = e.code
            raise
        except Exception as e:
            outcome = type(e).__name__
            raise
        finally:
            elapsed_ms = round((time.perf_counter() - started) * 1000, 1)
            self.logger.debug(
                f"{func.__name__} -> {outcome} in {elapsed_ms}ms",
                extra={
                    "operation": func.__name__,
                    "outcome": outcome,
                    "elapsed_ms": elapsed_ms,
                },
            )

    return wrapper
