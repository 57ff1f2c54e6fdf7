"""Open and close aiosqlite connections for the bundled SQLite driver.

Connections run in autocommit mode: statements outside an explicit
``BEGIN`` are committed immediately, and transactions are driven by the
``BEGIN``/``COMMIT``/``ROLLBACK`` statements the driver issues.
"""

from __future__ import annotations

import time
import logging

import aiosqlite
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from ..config import get_settings

MEMORY_DATABASE = ":memory:"
logger = logging.getLogger(__name__)


def database_path(connection_string: str) -> str:
    """Return the SQLite database path a connection string points to.

    Accepts ``sqlite:///relative.db``, ``sqlite:////absolute.db``,
    ``sqlite://`` (in-memory) or a bare file path.
    """
    if "://" not in connection_string:
        return connection_string or MEMORY_DATABASE
    try:
        url = make_url(connection_string)
    except ArgumentError as e:
        raise ValueError(f"Invalid connection string: {connection_string!r}") from e
    if url.get_backend_name() != "sqlite":
        raise ValueError(f"Not a SQLite connection string: {connection_string!r}")
    return url.database or MEMORY_DATABASE


async def open_connection(connection_string: str) -> aiosqlite.Connection:
    """Open a new connection with dict-friendly rows and foreign keys on."""
    path = database_path(connection_string)
    timeout = get_settings().db.connect_timeout
    try:
        conn = await aiosqlite.connect(path, timeout=timeout, isolation_level=None)
    except Exception as e:
        logger.exception("Error opening database connection to %s: %s", path, e)
        raise
    try:
        conn.row_factory = aiosqlite.Row
        await conn.execute("PRAGMA foreign_keys = ON;")
    except BaseException as e:
        logger.exception("Error preparing database connection to %s: %s", path, e)
        await conn.close()
        raise
    logger.debug("Opened connection to %s", path)
    return conn


async def close_connection(conn: aiosqlite.Connection, opened_at: float | None = None) -> None:
    await conn.close()
    if opened_at is not None:
        logger.debug("Database connection held for %.3f seconds", time.monotonic() - opened_at)
