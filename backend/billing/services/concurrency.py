# Overview: Locking and retry helpers shared by the settlement services.

from __future__ import annotations

import time

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def begin_write_transaction() -> None:
    """
    Take the database write lock up front on SQLite.

    SQLite has no row locks; BEGIN IMMEDIATE serializes writers so two
    settlements cannot interleave reads and writes of the same balances.
    Other dialects rely on lock_for_update.
    """
    if db.engine.dialect.name != "sqlite":
        return
    conn = db.session.connection()
    if not getattr(conn.connection.driver_connection, "in_transaction", False):
        conn.execute(text("BEGIN IMMEDIATE"))


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts).
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc
