"""
Database decorators for error translation.

Ledger coroutines open their own sessions, so rollback happens when the
session context exits; these decorators only turn driver failures into
the application's StoreUnavailableError.
"""

from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from app.utils.exceptions import StoreUnavailableError


T = TypeVar("T")


def translate_store_errors(
    func: Callable[..., Awaitable[T]],
) -> Callable[..., Awaitable[T]]:
    """
    Decorator that converts SQLAlchemy errors into StoreUnavailableError.

    Usage:
        class PaymentLedger:
            @translate_store_errors
            async def get_by_transaction_id(self, tx_id: str) -> Payment | None:
                ...

    The original exception stays attached as ``__cause__``.

    Args:
        func: Async function to wrap

    Returns:
        Wrapped function raising StoreUnavailableError on database errors
    """
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return await func(*args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(
                f"[Ledger] {func.__name__} failed: {type(e).__name__}: {e}"
            )
            raise StoreUnavailableError(
                f"Payment store unavailable during {func.__name__}"
            ) from e

    return wrapper
