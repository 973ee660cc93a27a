"""
Optimistic-concurrency helpers.

Aggregates carry a ``version`` column (SQLAlchemy ``version_id_col``), so a
write against a row that changed since it was read fails with
``StaleDataError``. ``run_in_transaction`` re-runs the whole read-validate-write
unit in a fresh session when that happens, which makes the losing writer
re-check its preconditions against the winner's state.
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from core.config import settings
from core.exceptions import ConcurrentModificationError
from database.engine import AsyncSessionLocal

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Lost version checks, unique-key races and lock/serialization failures
RETRYABLE_ERRORS = (StaleDataError, IntegrityError, OperationalError)


async def run_in_transaction(
    operation: Callable[[AsyncSession], Awaitable[T]],
    *,
    attempts: int | None = None,
    label: str = "write",
) -> T:
    """Run ``operation`` in its own session and commit, retrying lost races.

    Domain errors raised by ``operation`` propagate immediately and roll the
    session back. Only the errors in ``RETRYABLE_ERRORS`` are retried.
    """
    max_attempts = attempts or settings.write_retry_attempts
    last_error: Exception | None = None

    for attempt in range(1, max_attempts + 1):
        async with AsyncSessionLocal() as session:
            try:
                result = await operation(session)
                await session.commit()
                return result
            except RETRYABLE_ERRORS as exc:
                await session.rollback()
                last_error = exc
                logger.warning(
                    f"Concurrent write detected for {label} "
                    f"(attempt {attempt}/{max_attempts}): {type(exc).__name__}"
                )
        await asyncio.sleep(random.uniform(0.01, 0.05) * attempt)

    raise ConcurrentModificationError(
        f"Could not complete {label} after {max_attempts} attempts"
    ) from last_error
