"""Transaction helper: run a unit of work atomically, retrying on write conflicts.

The body receives the session and must re-read everything it depends on.
A retried attempt starts from scratch, so values read before the call are
never reused.
"""

import logging
import random
import time
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError
from sqlmodel import Session

from fest_registry.config import config
from fest_registry.errors import StoreUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = config["transaction_max_attempts"]
BASE_BACKOFF_SECONDS = 0.05

# SQLSTATE codes PostgreSQL uses for conflicts that are safe to retry
RETRYABLE_SQLSTATES = {"40001", "40P01", "55P03"}


def _is_retryable(error: DBAPIError) -> bool:
    if isinstance(error, OperationalError):
        return True
    sqlstate = getattr(error.orig, "pgcode", None) or getattr(
        error.orig, "sqlstate", None
    )
    return sqlstate in RETRYABLE_SQLSTATES


def run_in_transaction(
    session: Session,
    fn: Callable[[Session], T],
    max_attempts: Optional[int] = None,
) -> T:
    """Run ``fn(session)`` inside one transaction and commit it.

    Domain errors raised by ``fn`` roll the transaction back and propagate
    unchanged. Conflicts (serialization failures, deadlocks, locked database)
    roll back and re-run ``fn`` with exponential backoff; once attempts are
    exhausted a StoreUnavailable is raised.
    """
    attempts = max_attempts or DEFAULT_MAX_ATTEMPTS

    for attempt in range(1, attempts + 1):
        # End any implicit transaction left open by earlier reads
        if session.in_transaction():
            session.commit()

        try:
            with session.begin():
                return fn(session)
        except DBAPIError as e:
            if not _is_retryable(e):
                raise
            if attempt == attempts:
                logger.error(f"Transaction failed after {attempts} attempts: {e}")
                raise StoreUnavailable() from e

            delay = BASE_BACKOFF_SECONDS * (2 ** (attempt - 1))
            delay += random.uniform(0, BASE_BACKOFF_SECONDS)
            logger.warning(
                f"Transaction conflict on attempt {attempt}/{attempts}, "
                f"retrying in {delay:.2f}s: {e.__class__.__name__}"
            )
            time.sleep(delay)

    raise StoreUnavailable()
