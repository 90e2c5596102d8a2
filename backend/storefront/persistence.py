# Overview: Keyed record store backends used by the order repository and settings.

"""
Record store backends.

A record store maps stable string keys to serialized string values. It
knows nothing about orders: the repository serializes and normalizes, the
store only keeps bytes durable.

Two backends:
- SqlRecordStore: rows of StoredRecord in the application database. Writes
  are flushed into the current SQLAlchemy session and become durable on
  commit(), so several stores sharing a session commit atomically.
- MemoryRecordStore: a dict with the same commit/rollback contract, for
  tests and scripts.

Fault model:
- Every database failure surfaces as StorageError. It is fatal and is never
  absorbed the way unparsable data is.
- Optimistic-concurrency conflicts (StaleDataError, lock timeouts, insert
  races) raise the RetryableStorageError subclass. Only
  services.concurrency.run_with_retry treats it as retryable and re-runs the
  whole read-modify-write; anywhere else it is an ordinary StorageError.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError

from .extensions import db
from .models import StoredRecord


class StorageError(RuntimeError):
    """Raised when the backing store itself fails (I/O, schema, connectivity)."""


class RetryableStorageError(StorageError):
    """A failure that may succeed on a fresh read-modify-write (conflict or lock timeout)."""


@contextmanager
def translate_storage_errors(action: str) -> Iterator[None]:
    """Wrap SQLAlchemy failures in StorageError, marking conflicts as retryable."""
    from .services.concurrency import RETRYABLE_ERRORS

    try:
        yield
    except RETRYABLE_ERRORS as exc:
        raise RetryableStorageError(f"{action} failed: {exc.__class__.__name__}") from exc
    except SQLAlchemyError as exc:
        raise StorageError(f"{action} failed: {exc.__class__.__name__}") from exc


class RecordStore:
    """Interface for keyed string storage."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def put(self, key: str, value: str) -> None:
        raise NotImplementedError

    def commit(self) -> None:
        raise NotImplementedError

    def rollback(self) -> None:
        raise NotImplementedError


class SqlRecordStore(RecordStore):
    def __init__(self, session=None):
        # Bound lazily so a store built at import time still follows the app context
        self._session = session

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    def get(self, key: str) -> Optional[str]:
        with translate_storage_errors(f"read of record {key!r}"):
            row = self.session.get(StoredRecord, key)
        return row.value if row is not None else None

    def put(self, key: str, value: str) -> None:
        with translate_storage_errors(f"write of record {key!r}"):
            row = self.session.get(StoredRecord, key)
            if row is None:
                self.session.add(StoredRecord(key=key, value=value))
            else:
                row.value = value
            # Version check happens here, not at commit
            self.session.flush()

    def commit(self) -> None:
        with translate_storage_errors("commit"):
            self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class MemoryRecordStore(RecordStore):
    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._committed: dict[str, str] = dict(initial or {})
        self._pending: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        if key in self._pending:
            return self._pending[key]
        return self._committed.get(key)

    def put(self, key: str, value: str) -> None:
        self._pending[key] = value

    def commit(self) -> None:
        self._committed.update(self._pending)
        self._pending.clear()

    def rollback(self) -> None:
        self._pending.clear()

    def raw(self, key: str) -> Optional[str]:
        """Committed value, bypassing pending writes."""
        return self._committed.get(key)
