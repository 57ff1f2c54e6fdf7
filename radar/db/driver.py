"""Driver for SQLite: SQLAlchemy Core compiles, aiosqlite runs."""

from __future__ import annotations

import logging
import time
from typing import List, Optional

import aiosqlite

from ..config import get_settings
from ..driver import Row
from ..models import CompiledStatement, Lease, QueryDescriptor
from .compiler import compile_descriptor
from .connection import close_connection, open_connection

logger = logging.getLogger(__name__)


class SqliteDriver:
    """Implements the driver capability set on top of aiosqlite.

    The compile dialect defaults to the configured one, so the same driver can
    render SQL for another SQLAlchemy dialect while still running on SQLite
    (useful for previewing statements).
    """

    def __init__(self, dialect: Optional[str] = None):
        self.dialect = dialect or get_settings().db.dialect

    async def compile_query(self, descriptor: QueryDescriptor) -> CompiledStatement:
        statement = compile_descriptor(descriptor, self.dialect)
        logger.debug("Compiled statement: %s", statement.sql.replace("\n", " "))
        return statement

    async def acquire_connection(self, connection_string: str) -> Lease:
        conn = await open_connection(connection_string)
        return Lease(connection=conn, release_token=time.monotonic())

    async def release_connection(self, lease: Lease) -> None:
        await close_connection(lease.connection, opened_at=lease.release_token)

    async def run_statement(self, connection: aiosqlite.Connection, statement: CompiledStatement) -> List[Row]:
        async with connection.execute(statement.sql, statement.params) as cursor:
            rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def begin_transaction(self, connection: aiosqlite.Connection) -> None:
        await connection.execute("BEGIN")

    async def commit_transaction(self, connection: aiosqlite.Connection) -> None:
        await connection.execute("COMMIT")

    async def rollback_transaction(self, connection: aiosqlite.Connection) -> None:
        await connection.execute("ROLLBACK")

    def __repr__(self) -> str:
        return f"SqliteDriver(dialect={self.dialect!r})"
