# Overview: Service-layer helpers for concurrency; optimistic-lock retry around read-modify-write.

from __future__ import annotations

import logging
import time

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError


logger = logging.getLogger(__name__)

# Conflicts that mean "someone else wrote first": reload and try again.
# IntegrityError covers two writers inserting the same record key.
RETRYABLE_ERRORS = (OperationalError, StaleDataError, IntegrityError)


def run_with_retry(func, *, rollback=None, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a read-modify-write operation with retry on concurrency failures.

    func must redo its reads on every call: a retry is only safe because the
    whole collection is reloaded after rollback. Conflicts arrive either raw
    or wrapped by the record store as RetryableStorageError; any other
    StorageError is fatal and propagates at once. When attempts are exhausted
    the conflict surfaces as StorageError.
    """
    from ..persistence import RetryableStorageError, StorageError

    for attempt in range(attempts):
        try:
            return func()
        except RETRYABLE_ERRORS + (RetryableStorageError,) as exc:
            if rollback is not None:
                rollback()
            if attempt >= attempts - 1:
                raise StorageError(
                    f"gave up after {attempts} attempts: {exc.__class__.__name__}"
                ) from exc
            logger.warning(
                "Concurrent write detected (%s), retrying (%d/%d)",
                exc.__class__.__name__, attempt + 1, attempts,
            )
            time.sleep(backoff_base * (2 ** attempt))
