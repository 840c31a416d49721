"""psycopg2 connection and transaction helpers.

Every engine operation runs inside one ``txn()``; the approval path adds
row locks through ``for_update()``.
"""

import os
from contextlib import contextmanager
from typing import Any, Iterator, Sequence
from urllib.parse import urlparse

import psycopg2
from psycopg2.extensions import connection as PgConnection, cursor as PgCursor


def _has_password(dsn: str) -> bool:
    if "://" in dsn:
        return bool(urlparse(dsn).password)
    return any(part.startswith("password=") for part in dsn.split())


def get_conn() -> PgConnection:
    """Open a connection to DATABASE_URL (URL or libpq key=value DSN).

    DB_PASSWORD is passed separately when the DSN carries no password.

    Raises:
        RuntimeError: If DATABASE_URL is not set.
        psycopg2.Error: On connection failure.
    """
    dsn = os.environ.get("DATABASE_URL")
    if not dsn:
        raise RuntimeError("DATABASE_URL environment variable not set")

    kwargs: dict[str, str] = {}
    db_password = os.environ.get("DB_PASSWORD")
    if db_password and not _has_password(dsn):
        kwargs["password"] = db_password
    return psycopg2.connect(dsn, **kwargs)


@contextmanager
def txn(conn: PgConnection | None = None) -> Iterator[PgCursor]:
    """Yield a cursor; commit on clean exit, roll back and re-raise otherwise.

    A connection opened here (``conn`` is None) is closed on exit.
    """
    owned = conn is None
    if owned:
        conn = get_conn()

    try:
        with conn.cursor() as cur:
            yield cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        if owned:
            conn.close()


def fetchone(
    cur: PgCursor,
    query: str,
    params: Sequence[Any] | None = None,
) -> tuple[Any, ...] | None:
    cur.execute(query, params)
    return cur.fetchone()


def for_update(
    cur: PgCursor,
    query: str,
    params: Sequence[Any] | None = None,
    *,
    nowait: bool = False,
) -> tuple[Any, ...] | None:
    """Run ``query`` with FOR UPDATE appended and fetch one row.

    The lock lasts until the surrounding transaction ends.

    Raises:
        psycopg2.errors.LockNotAvailable: With nowait, if the row is locked.
    """
    suffix = " FOR UPDATE NOWAIT" if nowait else " FOR UPDATE"
    cur.execute(query.rstrip().rstrip(";") + suffix, params)
    return cur.fetchone()
