"""
Pooled PostgreSQL connections for the record repositories.

One ``ThreadedConnectionPool`` per process, created on first use. Each
``get_connection()`` block is one transaction.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Generator
from contextlib import contextmanager

import psycopg2
import psycopg2.pool

from passvault.config import DatabaseConfig, get_config
from passvault.errors import StorageUnavailable

logger = logging.getLogger(__name__)

POOL_MIN = 1
POOL_MAX = 10

_pool: psycopg2.pool.ThreadedConnectionPool | None = None
_pool_lock = threading.Lock()


def _open_pool(
    db: DatabaseConfig, minconn: int, maxconn: int
) -> psycopg2.pool.ThreadedConnectionPool:
    logger.info(
        "Opening PostgreSQL pool to %s:%s/%s (max %d)", db.host or "socket", db.port, db.name, maxconn
    )
    try:
        return psycopg2.pool.ThreadedConnectionPool(minconn, maxconn, **db.dict)
    except psycopg2.OperationalError as e:
        raise StorageUnavailable(
            f"Cannot connect to PostgreSQL at {db.host or 'socket'}:{db.port}/{db.name}. "
            "Check PASSVAULT_DB_* environment variables."
        ) from e


def get_pool(
    minconn: int = POOL_MIN, maxconn: int = POOL_MAX
) -> psycopg2.pool.ThreadedConnectionPool:
    global _pool
    pool = _pool
    if pool is None or pool.closed:
        with _pool_lock:
            if _pool is None or _pool.closed:
                _pool = _open_pool(get_config().db, minconn, maxconn)
            pool = _pool
    return pool


@contextmanager
def get_connection() -> Generator[psycopg2.extensions.connection, None, None]:
    """Borrow a pooled connection for one transaction.

    Commits when the block exits cleanly, rolls back otherwise. Connections
    the server has dropped are discarded instead of going back to the pool.
    """
    pool = get_pool()
    try:
        conn = pool.getconn()
    except psycopg2.pool.PoolError as e:
        raise StorageUnavailable("connection pool exhausted") from e
    try:
        yield conn
        conn.commit()
    except Exception:
        if not conn.closed:
            conn.rollback()
        raise
    finally:
        pool.putconn(conn, close=bool(conn.closed))


def close_pool() -> None:
    global _pool
    with _pool_lock:
        if _pool is not None:
            _pool.closeall()
            _pool = None
