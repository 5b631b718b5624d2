"""
Generic retry wrapper for the data-access layer.

Retries an operation on transient database failures (dropped
connections, operational errors) with exponential backoff and a
bounded number of attempts. Anything else propagates immediately.

The bookkeeping services never retry on their own; only the ledger
store wraps its reads with this.
"""

import logging
import time
from typing import Callable, TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_transient(exc: BaseException) -> bool:
    """Network and serialization-level failures worth another attempt."""
    if isinstance(exc, OperationalError):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


def with_retry(
    operation: Callable[[], T],
    *,
    attempts: int = 3,
    base_delay: float = 0.2,
    name: str = "Database operation",
    retry_on: Callable[[BaseException], bool] = is_transient,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Run operation, retrying transient failures.

    The delay before retry n (1-based) is base_delay * 2 ** (n - 1).
    The last exception is re-raised once attempts are exhausted.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except Exception as e:
            if not retry_on(e) or attempt == attempts:
                if attempt > 1:
                    logger.error(
                        "%s failed after %d attempt(s): %s", name, attempt, e
                    )
                raise
            delay = base_delay * 2 ** (attempt - 1)
            logger.warning(
                "%s failed (attempt %d/%d), retrying in %.2fs: %s",
                name, attempt, attempts, delay, e,
            )
            sleep(delay)

    # Unreachable: the loop either returns or raises
    raise RuntimeError(f"{name}: retry loop exited without a result")
