"""Database connection management."""

from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

import psycopg
from psycopg.conninfo import make_conninfo
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool


def build_conninfo(config: Dict[str, Any]) -> str:
    """
    Build a libpq connection string from a resolved database config.

    Args:
        config: Dict from ``Config.get_db_config()``; ``password`` must already
            be resolved, ``password_env`` is not consulted here

    Returns:
        Connection string with every value quoted as libpq requires
    """
    return make_conninfo(
        host=config.get("host", "localhost"),
        port=config.get("port", 5432),
        dbname=config.get("database", "formletter"),
        user=config.get("user", "formletter_user"),
        password=config.get("password") or None,
    )


_connection_pool: Optional[ConnectionPool] = None


def get_connection_pool(config: Dict[str, Any]) -> ConnectionPool:
    """Get or create the process-wide pool for a comment database."""
    global _connection_pool
    if _connection_pool is None:
        _connection_pool = ConnectionPool(
            build_conninfo(config),
            min_size=1,
            max_size=4,
            kwargs={"row_factory": dict_row},
            open=True,
        )
    return _connection_pool


@contextmanager
def get_connection(config: Dict[str, Any]) -> Generator[psycopg.Connection, None, None]:
    """Borrow a dict-row connection from the pool."""
    pool = get_connection_pool(config)
    with pool.connection() as conn:
        yield conn
