"""Explicit transactions spanning several builder invocations."""

from __future__ import annotations

import enum
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from ..driver import Driver
from ..errors import ConfigurationError, TransactionClosedError
from ..models import Lease
from ..utils.log_context import fmt_ctx, get_logger, new_operation_id, operation_id_ctx
from .builder import Radar

logger = get_logger(__name__)


class TransactionState(str, enum.Enum):
    BEGUN = "begun"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class Transaction:
    """Handle returned by a successful begin.

    Bundles ``commit``, ``rollback`` and a factory of builders pinned to the
    transaction's connection. Both terminal transitions release the
    connection exactly once.
    """

    def __init__(self, driver: Driver, lease: Lease, operation_id: str = ""):
        self.driver = driver
        self.lease = lease
        self.operation_id = operation_id
        self.state = TransactionState.BEGUN

    @property
    def connection(self):
        return self.lease.connection

    @property
    def is_active(self) -> bool:
        return self.state is TransactionState.BEGUN

    def radar(self) -> Radar:
        """Return a new builder running on this transaction's connection."""
        return Radar(self.driver, connection=self.lease.connection)

    async def commit(self) -> None:
        await self._finish(self.driver.commit_transaction, TransactionState.COMMITTED)

    async def rollback(self) -> None:
        await self._finish(self.driver.rollback_transaction, TransactionState.ROLLED_BACK)

    async def _finish(self, statement, target: TransactionState) -> None:
        if self.state is not TransactionState.BEGUN:
            raise TransactionClosedError(f"Transaction already {self.state.value}.")
        self.state = target
        operation_id_ctx.set(self.operation_id)

        ctx = {"operation_id": self.operation_id, "outcome": target.value}
        try:
            await statement(self.lease.connection)
        except Exception as e:
            logger.exception("Failed to finish transaction %s: %s", fmt_ctx(ctx), e)
            raise
        finally:
            await _release_quietly(self.driver, self.lease, ctx)
        logger.info("Transaction finished %s", fmt_ctx(ctx))

    def __repr__(self) -> str:
        return f"Transaction(state={self.state.value!r}, operation_id={self.operation_id!r})"


async def _release_quietly(driver: Driver, lease: Lease, ctx: dict) -> None:
    try:
        await driver.release_connection(lease)
    except Exception as e:
        logger.error("Failed to release transaction connection %s: %s", fmt_ctx(ctx), e)


async def begin_transaction(
    driver: Optional[Driver], connection_string: Optional[str]
) -> Transaction:
    """Acquire a connection, begin a transaction on it and return its handle.

    If the begin statement fails the transaction is rolled back and the
    connection released before the begin error is re-raised; errors from that
    cleanup are logged, never raised.
    """
    if driver is None:
        raise ConfigurationError("Missing Driver for Radar Transaction.")
    if not connection_string:
        raise ConfigurationError("Missing Connection String for Radar Transaction.")

    ctx = {"operation_id": new_operation_id(), "dialect": getattr(driver, "dialect", None)}
    lease = await driver.acquire_connection(connection_string)

    try:
        await driver.begin_transaction(lease.connection)
    except BaseException as e:
        logger.exception("Failed to begin transaction %s: %s", fmt_ctx(ctx), e)
        try:
            await driver.rollback_transaction(lease.connection)
        except Exception as rollback_error:
            logger.error("Rollback after failed begin also failed %s: %s", fmt_ctx(ctx), rollback_error)
        await _release_quietly(driver, lease, ctx)
        raise

    logger.info("Transaction begun %s", fmt_ctx(ctx))
    return Transaction(driver, lease, operation_id=ctx["operation_id"])


@asynccontextmanager
async def transaction(
    driver: Optional[Driver], connection_string: Optional[str]
) -> AsyncIterator[Transaction]:
    """
    Run a block inside a transaction.

    Usage:
        async with transaction(driver, "sqlite:///app.db") as txn:
            await txn.radar().insert({"name": "ada"}).into("users").execute()

    Commits when the block exits normally and rolls back when it raises.
    A block that already committed or rolled back is left as it is.
    """
    txn = await begin_transaction(driver, connection_string)
    try:
        yield txn
    except BaseException:
        if txn.is_active:
            try:
                await txn.rollback()
            except Exception as rollback_error:
                logger.error("Rollback after failed block also failed: %s", rollback_error)
        raise
    if txn.is_active:
        await txn.commit()
