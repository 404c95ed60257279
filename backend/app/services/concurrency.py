# Overview: Retry and locking helpers shared by every write sequence on day documents.

from __future__ import annotations

import time

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for read-then-write sequences.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1, retry_on: tuple = ()):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts), plus any extra exception types in
    retry_on. The session is rolled back before each retry, so func must
    re-read whatever it depends on.
    """
    retryable = (OperationalError, StaleDataError) + tuple(retry_on)
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except retryable as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc


def run_keyed_write(func, *, attempts: int = 3, backoff_base: float = 0.05):
    """
    Run a create-or-edit write on a unique day key.

    Two actors can both observe ABSENT and both try to insert; the loser
    hits the unique constraint, rolls back, and on retry observes the
    winner's row and proceeds as an edit. Last write wins on the row, and
    every write still leaves its own revision.
    """
    return run_with_retry(
        func,
        attempts=attempts,
        backoff_base=backoff_base,
        retry_on=(IntegrityError,),
    )
