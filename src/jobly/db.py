"""
PostgreSQL access: connection pool plus query helpers.

Queries are written with positional ``$1, $2, ...`` placeholders so fragments
from ``jobly.sql``/``jobly.query`` can be spliced in directly. They are
rewritten to psycopg2's ``%s`` format right before execution.
"""
import logging
import re
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Sequence, Tuple

import psycopg2
import psycopg2.extras
from psycopg2.pool import ThreadedConnectionPool

from jobly import config

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\$(\d+)")

_POOL: Optional[ThreadedConnectionPool] = None


# PUBLIC_INTERFACE
def to_pyformat(query: str, params: Optional[Sequence[Any]] = None) -> Tuple[str, List[Any]]:
    """
    Rewrite ``$n`` placeholders as ``%s`` and order ``params`` to match.

    A placeholder may appear more than once; its value is repeated. Literal
    ``%`` in the query text is doubled so psycopg2 leaves it alone.
    """
    params = list(params or [])
    ordered: List[Any] = []

    def _sub(match: "re.Match[str]") -> str:
        idx = int(match.group(1))
        if idx < 1 or idx > len(params):
            raise IndexError(f"Placeholder ${idx} has no parameter ({len(params)} given)")
        ordered.append(params[idx - 1])
        return "%s"

    converted = _PLACEHOLDER.sub(_sub, query.replace("%", "%%"))
    return converted, ordered


# PUBLIC_INTERFACE
def init_db_pool() -> None:
    """Initialize the global PostgreSQL connection pool."""
    global _POOL
    if _POOL is not None:
        return

    minconn, maxconn = config.db_pool_bounds()
    _POOL = ThreadedConnectionPool(minconn=minconn, maxconn=maxconn, dsn=config.database_dsn())
    logger.info("Database pool ready", extra={"minconn": minconn, "maxconn": maxconn})


# PUBLIC_INTERFACE
def close_db_pool() -> None:
    """Close every pooled connection."""
    global _POOL
    if _POOL is None:
        return
    _POOL.closeall()
    _POOL = None


@contextmanager
def _get_conn():
    if _POOL is None:
        init_db_pool()
    assert _POOL is not None
    conn = _POOL.getconn()
    try:
        yield conn
    except Exception:
        # never hand an aborted transaction back to the pool
        conn.rollback()
        raise
    finally:
        _POOL.putconn(conn)


def _dict_cursor(conn):
    return conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor)


def _execute(cur, query: str, params: Optional[Sequence[Any]]) -> None:
    sql, args = to_pyformat(query, params)
    logger.debug("SQL: %s | params: %r", " ".join(sql.split()), args)
    cur.execute(sql, args)


# PUBLIC_INTERFACE
def fetch_one(query: str, params: Optional[Sequence[Any]] = None) -> Optional[Dict[str, Any]]:
    """Fetch a single row as a dict, or None."""
    with _get_conn() as conn:
        with _dict_cursor(conn) as cur:
            _execute(cur, query, params)
            row = cur.fetchone()
            conn.commit()
            return dict(row) if row else None


# PUBLIC_INTERFACE
def fetch_all(query: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
    """Fetch all rows as dicts."""
    with _get_conn() as conn:
        with _dict_cursor(conn) as cur:
            _execute(cur, query, params)
            rows = cur.fetchall()
            conn.commit()
            return [dict(r) for r in rows]


# PUBLIC_INTERFACE
def execute(query: str, params: Optional[Sequence[Any]] = None) -> int:
    """Execute a statement (INSERT/UPDATE/DELETE). Returns affected rowcount."""
    with _get_conn() as conn:
        with conn.cursor() as cur:
            _execute(cur, query, params)
            affected = cur.rowcount
        conn.commit()
        return affected


# PUBLIC_INTERFACE
def execute_returning(query: str, params: Optional[Sequence[Any]] = None) -> Optional[Dict[str, Any]]:
    """Execute a statement with RETURNING; commit and return the first row or None."""
    with _get_conn() as conn:
        with _dict_cursor(conn) as cur:
            _execute(cur, query, params)
            row = cur.fetchone()
        conn.commit()
        return dict(row) if row else None


# PUBLIC_INTERFACE
def execute_returning_one(query: str, params: Optional[Sequence[Any]] = None) -> Dict[str, Any]:
    """Execute a statement with RETURNING and return the first row as dict."""
    row = execute_returning(query, params)
    if row is None:
        raise RuntimeError("Expected one row returned, got none.")
    return row
