"""Radar: a fluent query builder that delegates compilation and I/O to a driver."""

from .core import Radar, Transaction, TransactionState, begin_transaction, transaction
from .driver import Driver
from .errors import ConfigurationError, QueryCompileError, RadarError, TransactionClosedError
from .models import CompiledStatement, Lease, QueryDescriptor, TableRef

__all__ = [
    "CompiledStatement",
    "ConfigurationError",
    "Driver",
    "Lease",
    "QueryCompileError",
    "QueryDescriptor",
    "Radar",
    "RadarError",
    "TableRef",
    "Transaction",
    "TransactionClosedError",
    "TransactionState",
    "begin_transaction",
    "transaction",
]
