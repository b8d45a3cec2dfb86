"""Database connections and the audit error hierarchy."""

from auditmirror.db.base import Database
from auditmirror.db.errors import (
    ConnectionError,
    ConstructionError,
    DDLExecutionError,
    InsertExecutionError,
    RecordProjectionError,
    SchemaError,
    SchemaIntrospectionError,
    SourceRowNotFoundError,
    StoreError,
    UnsupportedDialectError,
)

__all__ = [
    "Database",
    "StoreError",
    "ConnectionError",
    "ConstructionError",
    "UnsupportedDialectError",
    "SchemaError",
    "SchemaIntrospectionError",
    "DDLExecutionError",
    "RecordProjectionError",
    "SourceRowNotFoundError",
    "InsertExecutionError",
]
