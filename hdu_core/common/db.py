# backend/hdu_core/common/db.py
from __future__ import annotations

import functools
import logging
import time

from django.conf import settings
from django.db import OperationalError, transaction

logger = logging.getLogger(__name__)

# serialization_failure, deadlock_detected
RETRYABLE_SQLSTATES = frozenset({"40001", "40P01"})
RETRYABLE_MESSAGES = ("deadlock", "could not serialize", "database is locked")


def is_retryable(exc: OperationalError) -> bool:
    cause = exc.__cause__
    sqlstate = getattr(cause, "sqlstate", None) or getattr(cause, "pgcode", None)
    if sqlstate in RETRYABLE_SQLSTATES:
        return True
    message = str(exc).lower()
    return any(marker in message for marker in RETRYABLE_MESSAGES)


def retry_on_db_conflict(attempts: int | None = None, *, backoff: float = 0.05):
    """
    Re-run a transactional unit of work when the database aborts it with a
    deadlock or serialization failure.

    Only the outermost transaction can be retried; inside an open atomic block
    the error is re-raised so the caller's transaction rolls back.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            max_attempts = attempts or getattr(settings, "HDU_DB_RETRY_ATTEMPTS", 5)
            attempt = 1
            while True:
                try:
                    return func(*args, **kwargs)
                except OperationalError as exc:
                    nested = transaction.get_connection().in_atomic_block
                    if nested or attempt >= max_attempts or not is_retryable(exc):
                        raise
                    logger.warning(
                        "Retrying %s after database conflict (attempt %s/%s): %s",
                        func.__qualname__,
                        attempt,
                        max_attempts,
                        exc,
                    )
                    time.sleep(backoff * attempt)
                    attempt += 1

        return wrapper

    return decorator
