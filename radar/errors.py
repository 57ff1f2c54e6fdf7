"""Exceptions raised by the builder and the transaction coordinator."""


class RadarError(Exception):
    """Base class for every error raised by Radar itself."""


class ConfigurationError(RadarError):
    """Raised before any I/O when a builder or transaction is misconfigured."""


class TransactionClosedError(RadarError):
    """Raised when commit/rollback is requested on a finished transaction."""


class QueryCompileError(RadarError):
    """Raised when a descriptor cannot be translated into a statement."""
