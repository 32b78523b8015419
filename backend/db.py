"""
Connection handling for the PostgreSQL document store.

Every store call opens its own connection from `settings.db_url`;
`transaction()` wraps one unit of work. psycopg's connection context
commits when the block succeeds and rolls back when it raises, so a batch
written inside one `transaction()` is all-or-nothing.

Usage:
    from db import transaction
    with transaction("ping") as cur:
        cur.execute("SELECT 1;")

Driver errors never leave this module: they are re-raised as `StoreError`
so the service and migration layers do not import psycopg.
"""

from contextlib import contextmanager

import psycopg
from errors import StoreError
from settings import settings


def get_conn():
    """Return a new psycopg connection using `settings.db_url`.

    A short `connect_timeout` keeps requests and the migration from hanging
    when the database is unreachable.
    """

    return psycopg.connect(settings.db_url, connect_timeout=5)


@contextmanager
def transaction(action: str):
    """Yield a cursor inside one transaction; psycopg failures become `StoreError`."""

    try:
        with get_conn() as conn:
            with conn.cursor() as cur:
                yield cur
    except psycopg.Error as e:
        raise StoreError(f"{action} failed: {e}") from e
