"""Unit of work: one atomic transaction per mutating operation.

run_in_transaction() runs `work` against the session, commits on success and
rolls back on every exception path, so no caller can persist a partial trade
or a half-applied settlement. Serialization failures and deadlocks are
retried with exponential backoff; the work callable must therefore re-read
everything it mutates (it does: every mutation path starts with SELECT ... FOR UPDATE).

Transaction ownership: services that mutate state call this; repositories never
commit.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_common.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# serialization_failure, deadlock_detected
_RETRYABLE_SQLSTATES = frozenset({"40001", "40P01"})


def is_retryable(exc: DBAPIError) -> bool:
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return sqlstate in _RETRYABLE_SQLSTATES


async def run_in_transaction(
    db: AsyncSession,
    work: Callable[[], Awaitable[T]],
    *,
    max_attempts: int | None = None,
    backoff_seconds: float | None = None,
) -> T:
    attempts = max_attempts if max_attempts is not None else settings.TX_MAX_ATTEMPTS
    backoff = backoff_seconds if backoff_seconds is not None else settings.TX_RETRY_BACKOFF_SECONDS

    attempt = 0
    while True:
        attempt += 1
        try:
            result = await work()
            await db.commit()
            return result
        except DBAPIError as exc:
            await db.rollback()
            if is_retryable(exc) and attempt < attempts:
                delay = backoff * (2 ** (attempt - 1))
                logger.warning(
                    "Transaction conflict (attempt %d/%d), retrying in %.3fs",
                    attempt,
                    attempts,
                    delay,
                )
                await asyncio.sleep(delay)
                continue
            logger.error("Transaction failed after %d attempt(s): %s", attempt, exc)
            raise StoreUnavailableError() from exc
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.error("Transaction failed: %s", exc)
            raise StoreUnavailableError() from exc
        except BaseException:
            await db.rollback()
            raise
