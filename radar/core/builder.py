"""Chainable query builder bound to a driver."""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional, Union

from ..config import get_settings
from ..driver import Driver, Row
from ..errors import ConfigurationError
from ..models import WILDCARD, QueryDescriptor, TableRef
from ..utils.log_context import fmt_ctx, get_logger, new_operation_id
from ..utils.merge import deep_merge

logger = get_logger(__name__)


def _as_list(values: Any) -> List[Any]:
    if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
        return [values]
    return list(values)


def _unique(values: List[Any]) -> List[Any]:
    """De-duplicate *values* keeping the first occurrence of each."""
    return list(dict.fromkeys(values))


class Radar:
    """Accumulates a query descriptor and executes it through a driver.

    A builder either owns a ``connection_string`` (each ``execute`` acquires
    and releases its own connection) or is pinned to an existing
    ``connection`` whose lifecycle belongs to the caller, typically a
    transaction.

    Usage:
        rows = await (
            Radar(driver, connection_string="sqlite:///app.db")
            .select(["id", "name"])
            .from_("users")
            .where({"active": True})
            .limit(10)
            .execute()
        )
    """

    def __init__(
        self,
        driver: Optional[Driver],
        *,
        connection_string: Optional[str] = None,
        connection: Any = None,
    ):
        if driver is None:
            raise ConfigurationError("Missing a driver for Radar to use.")

        self.driver = driver
        self.connection_string = connection_string
        self.connection = connection
        self.query = QueryDescriptor()

    @classmethod
    def from_settings(cls, driver: Driver) -> "Radar":
        """Build an ad-hoc builder using the configured connection string."""
        return cls(driver, connection_string=get_settings().db.connection_string)

    # Descriptor mutators

    def select(self, values: Union[str, Iterable[Any]]) -> "Radar":
        current = self.query.select
        if current is None:
            if isinstance(values, str):
                self.query.select = values
            else:
                self.query.select = _unique(_as_list(values))
            return self

        # A wildcard overrides everything selected so far
        if values == WILDCARD:
            self.query.select = WILDCARD
            return self

        previous = [] if current == WILDCARD else _as_list(current)
        self.query.select = _unique(previous + _as_list(values))
        return self

    def from_(self, table: str) -> "Radar":
        if isinstance(self.query.from_, TableRef):
            self.query.from_.table = table
        else:
            self.query.from_ = table
        return self

    def where(self, criteria: Mapping[str, Any]) -> "Radar":
        self.query.where = deep_merge(self.query.where, criteria)
        return self

    def schema(self, schema: str) -> "Radar":
        current = self.query.from_
        if isinstance(current, TableRef):
            current.schema_ = schema
        else:
            # Unset from yields a reference with no table yet
            self.query.from_ = TableRef(table=current, schema=schema)
        return self

    def insert(self, values: Mapping[str, Any]) -> "Radar":
        self.query.insert = deep_merge(self.query.insert, values)
        return self

    def into(self, table: str) -> "Radar":
        self.query.into = table
        return self

    def limit(self, value: int) -> "Radar":
        self.query.limit = value
        return self

    def reset(self) -> "Radar":
        """Discard everything accumulated so far."""
        self.query = QueryDescriptor()
        return self

    # Execution

    async def execute(self) -> List[Row]:
        """Compile the descriptor and run it, returning the resulting rows.

        The descriptor is left untouched so it can be inspected or run again.
        """
        if self.connection_string is None and self.connection is None:
            raise ConfigurationError(
                "Radar needs either a connection string or a connection to execute."
            )

        ctx = {
            "operation_id": new_operation_id(),
            "dialect": getattr(self.driver, "dialect", None),
            "mode": "ad-hoc" if self.connection_string is not None else "pinned",
        }
        logger.debug("Compiling query %s", fmt_ctx(ctx))
        try:
            statement = await self.driver.compile_query(self.query.model_copy(deep=True))
        except Exception as e:
            logger.exception("Failed to compile query %s: %s", fmt_ctx(ctx), e)
            raise

        if self.connection_string is not None:
            return await self._execute_ad_hoc(statement, ctx)

        try:
            rows = await self.driver.run_statement(self.connection, statement)
        except Exception as e:
            logger.exception("Failed to run statement %s: %s", fmt_ctx(ctx), e)
            raise
        logger.debug("Statement returned %d rows %s", len(rows), fmt_ctx(ctx))
        return rows

    async def _execute_ad_hoc(self, statement, ctx) -> List[Row]:
        lease = await self.driver.acquire_connection(self.connection_string)
        logger.debug("Acquired connection %s", fmt_ctx(ctx))
        succeeded = False
        try:
            rows = await self.driver.run_statement(lease.connection, statement)
            succeeded = True
        except Exception as e:
            logger.exception("Failed to run statement %s: %s", fmt_ctx(ctx), e)
            raise
        finally:
            # Failed or cancelled runs still hand the connection back
            if not succeeded:
                try:
                    await self.driver.release_connection(lease)
                except Exception as release_error:
                    logger.error(
                        "Failed to release connection after statement error %s: %s",
                        fmt_ctx(ctx),
                        release_error,
                    )

        try:
            await self.driver.release_connection(lease)
        except Exception as e:
            logger.exception("Failed to release connection %s: %s", fmt_ctx(ctx), e)
            raise
        logger.debug("Released connection, %d rows %s", len(rows), fmt_ctx(ctx))
        return rows

    def __repr__(self) -> str:
        return f"Radar(dialect={getattr(self.driver, 'dialect', None)!r}, query={self.query.to_dict()!r})"
