"""
This file contains shared fixtures for the test suite.
"""

import asyncio
import os

import pytest
import pytest_asyncio

# Set env vars before any application modules are imported
os.environ.setdefault("TEST_MODE", "1")
os.environ.setdefault("PYTHONIOENCODING", "utf-8")

from radar.config import get_settings  # noqa: E402
from radar.models import CompiledStatement, Lease  # noqa: E402

STUB_ROWS = [{"id": 1, "name": "ada"}, {"id": 2, "name": "grace"}]


class RecordingDriver:
    """Driver double that records every call in order.

    Any operation can be made to fail by putting an exception under its name
    in ``fail`` (compile, acquire, release, run, begin, commit, rollback), or
    slowed down by putting seconds under its name in ``delays``.
    """

    dialect = "stub"

    def __init__(self, rows=None, fail=None):
        self.rows = list(rows if rows is not None else STUB_ROWS)
        self.fail = dict(fail or {})
        self.delays = {}
        self.calls = []
        self.compiled = []
        self.statements = []
        self.handle = object()

    async def _record(self, name, *args):
        self.calls.append((name,) + args)
        if name in self.delays:
            await asyncio.sleep(self.delays[name])
        if name in self.fail:
            raise self.fail[name]

    @property
    def call_names(self):
        return [call[0] for call in self.calls]

    async def compile_query(self, descriptor):
        self.compiled.append(descriptor)
        await self._record("compile")
        return CompiledStatement(sql="SELECT stub", params={}, dialect=self.dialect)

    async def acquire_connection(self, connection_string):
        await self._record("acquire", connection_string)
        return Lease(connection=self.handle, release_token="lease-token")

    async def release_connection(self, lease):
        await self._record("release", lease.release_token)

    async def run_statement(self, connection, statement):
        self.statements.append(statement)
        await self._record("run", connection)
        return list(self.rows)

    async def begin_transaction(self, connection):
        await self._record("begin", connection)

    async def commit_transaction(self, connection):
        await self._record("commit", connection)

    async def rollback_transaction(self, connection):
        await self._record("rollback", connection)


@pytest.fixture
def driver():
    return RecordingDriver()


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Make every test see settings built from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sqlite_url(tmp_path):
    return f"sqlite:///{tmp_path / 'radar.db'}"


@pytest_asyncio.fixture
async def users_table(sqlite_url):
    """Create a small users table in a fresh database file."""
    import aiosqlite

    from radar.db.connection import database_path

    async with aiosqlite.connect(database_path(sqlite_url)) as conn:
        await conn.executescript(
            """
            CREATE TABLE users (
                id INTEGER PRIMARY KEY,
                name TEXT NOT NULL,
                age INTEGER,
                active INTEGER NOT NULL DEFAULT 1
            );
            INSERT INTO users (id, name, age, active) VALUES
                (1, 'ada', 36, 1),
                (2, 'grace', 45, 1),
                (3, 'linus', 28, 0);
            """
        )
        await conn.commit()
    return sqlite_url
