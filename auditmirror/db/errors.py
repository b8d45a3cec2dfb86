"""Error hierarchy for the audit write path.

Every backend-specific failure is wrapped in one of these so the worker
boundary can log and discard it uniformly.
"""


class StoreError(Exception):
    """Base exception for all audit store errors.

    Wraps the backend-specific exception in ``cause`` when there is one.
    """

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ConnectionError(StoreError):
    """Raised when a database connection or pool operation fails.

    Examples:
        - Database connection timeout
        - Server unavailable
        - Network errors
    """

    pass


class ConstructionError(StoreError):
    """Raised when a component cannot be built from its configuration."""

    pass


class UnsupportedDialectError(ConstructionError):
    """Raised when a driver is requested for an unknown SQL dialect."""

    pass


class SchemaError(StoreError):
    """Base exception for audit-table reconciliation failures."""

    pass


class SchemaIntrospectionError(SchemaError):
    """Raised when the catalog lookup for a table fails.

    Examples:
        - information_schema query error
        - Source table has no readable columns
    """

    pass


class DDLExecutionError(SchemaError):
    """Raised when the CREATE TABLE statement for an audit table fails."""

    pass


class RecordProjectionError(StoreError):
    """Raised when a payload is not a record the projector understands."""

    pass


class SourceRowNotFoundError(StoreError):
    """Raised when the live row for a snapshot task no longer exists."""

    pass


class InsertExecutionError(StoreError):
    """Raised when writing the audit row fails."""

    pass
