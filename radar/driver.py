"""The capability set a datastore driver must provide to Radar."""

from __future__ import annotations

from typing import Any, Dict, List, Protocol, runtime_checkable

from .models import CompiledStatement, Lease, QueryDescriptor

Row = Dict[str, Any]


@runtime_checkable
class Driver(Protocol):
    """Compiles descriptors and performs connection/statement operations.

    Every operation except ``dialect`` is a coroutine. Errors are raised as-is;
    Radar never wraps or retries them.
    """

    dialect: str

    async def compile_query(self, descriptor: QueryDescriptor) -> CompiledStatement: ...

    async def acquire_connection(self, connection_string: str) -> Lease: ...

    async def release_connection(self, lease: Lease) -> None: ...

    async def run_statement(self, connection: Any, statement: CompiledStatement) -> List[Row]: ...

    async def begin_transaction(self, connection: Any) -> None: ...

    async def commit_transaction(self, connection: Any) -> None: ...

    async def rollback_transaction(self, connection: Any) -> None: ...
