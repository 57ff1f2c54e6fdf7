"""Bundled SQLite driver.

SQL generation is delegated to SQLAlchemy Core and I/O to aiosqlite, so the
builder itself stays storage-agnostic.
"""

from .compiler import compile_descriptor
from .driver import SqliteDriver

__all__ = ["SqliteDriver", "compile_descriptor"]
