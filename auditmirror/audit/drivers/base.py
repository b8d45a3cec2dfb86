"""AuditDriver abstract interface.

A driver owns everything that differs between SQL dialects: identifier
quoting, placeholder syntax, catalog queries and type names. Statement
builders are pure; only ``table_exists``, ``source_columns``,
``ensure_table`` and ``select_row`` touch a database.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any

from auditmirror.audit.models import ColumnKind, ColumnSpec
from auditmirror.db.base import Database
from auditmirror.db.errors import (
    DDLExecutionError,
    SchemaIntrospectionError,
    SourceRowNotFoundError,
)
from auditmirror.observability.logging import get_logger

logger = get_logger(__name__)

ColumnLoader = Callable[[], Awaitable[list[ColumnSpec]]]


@dataclass(frozen=True)
class InsertStatement:
    """A complete INSERT statement and its ordered parameters."""

    sql: str
    params: list[Any]

    @property
    def placeholder_count(self) -> int:
        return len(self.params)


@dataclass(frozen=True)
class MetadataColumns:
    """Names of the fixed columns appended to every audit row, in order."""

    action: str = "audit_action"
    actor: str = "audit_actor"
    timestamp: str = "audit_created_at"

    def __post_init__(self) -> None:
        if len(set(self.names)) != len(self.names):
            raise ValueError(f"Metadata column names must be distinct, got {self.names}")

    @property
    def names(self) -> list[str]:
        return [self.action, self.actor, self.timestamp]


class AuditDriver(ABC):
    """Dialect-specific behaviour for schema introspection and statements."""

    name: str = ""
    quote_char: str = '"'
    type_names: dict[ColumnKind, str] = {}
    fallback_type: str = "TEXT"

    # Identifiers and placeholders
    def quote_identifier(self, identifier: str) -> str:
        """Quote an identifier, doubling any embedded quote characters."""
        q = self.quote_char
        return f"{q}{identifier.replace(q, q + q)}{q}"

    def qualified_name(self, table: str) -> str:
        """Quoted table reference used in every generated statement."""
        return self.quote_identifier(table)

    @abstractmethod
    def placeholder(self, position: int) -> str:
        """Parameter marker for the 1-based ``position``."""
        pass

    def adapt_value(self, value: Any) -> Any:
        """Convert a bound value into something the client library accepts."""
        return value

    # Pure statement builders
    def build_insert(
        self,
        table: str,
        columns: Sequence[str],
        values: Sequence[Any],
    ) -> InsertStatement:
        """Build a parameterized INSERT.

        Raises:
            ValueError: If columns and values differ in length or are empty
        """
        if len(columns) != len(values):
            raise ValueError(
                f"Column/value mismatch for {table}: {len(columns)} != {len(values)}"
            )
        if not columns:
            raise ValueError(f"No columns to insert into {table}")

        column_sql = ", ".join(self.quote_identifier(c) for c in columns)
        placeholder_sql = ", ".join(
            self.placeholder(i) for i in range(1, len(values) + 1)
        )
        sql = (
            f"INSERT INTO {self.qualified_name(table)} ({column_sql}) "
            f"VALUES ({placeholder_sql})"
        )
        return InsertStatement(sql=sql, params=[self.adapt_value(v) for v in values])

    def build_select_row(self, table: str) -> str:
        """SELECT of a single source row by its ``id`` column."""
        return (
            f"SELECT * FROM {self.qualified_name(table)} "
            f"WHERE {self.quote_identifier('id')} = {self.placeholder(1)}"
        )

    def column_type(self, spec: ColumnSpec) -> str:
        """SQL type for a column: explicit type, then kind, then TEXT."""
        if spec.sql_type:
            return spec.sql_type
        if spec.kind is not None:
            return self.type_names.get(spec.kind, self.fallback_type)
        return self.fallback_type

    @abstractmethod
    def metadata_definitions(self, metadata: MetadataColumns) -> list[str]:
        """Column definitions for the action, actor and timestamp columns."""
        pass

    def table_options(self) -> str:
        """Trailing CREATE TABLE options."""
        return ""

    def build_create_table(
        self,
        table: str,
        columns: Sequence[ColumnSpec],
        metadata: MetadataColumns,
    ) -> str:
        """CREATE TABLE IF NOT EXISTS with the metadata columns last."""
        reserved = set(metadata.names)
        definitions = [
            f"{self.quote_identifier(spec.name)} {self.column_type(spec)}"
            for spec in columns
            if spec.name not in reserved
        ]
        definitions.extend(self.metadata_definitions(metadata))
        body = ",\n  ".join(definitions)
        sql = f"CREATE TABLE IF NOT EXISTS {self.qualified_name(table)} (\n  {body}\n)"
        options = self.table_options()
        return f"{sql} {options}" if options else sql

    # Catalog access
    @abstractmethod
    async def table_exists(self, db: Database, table: str) -> bool:
        """Check the catalog of ``db`` for ``table``."""
        pass

    @abstractmethod
    async def source_columns(self, db: Database, table: str) -> list[ColumnSpec]:
        """Read the column names and types of ``table`` from ``db``."""
        pass

    async def ensure_table(
        self,
        audit_db: Database,
        table: str,
        load_columns: ColumnLoader,
        metadata: MetadataColumns,
    ) -> bool:
        """Create ``table`` in the audit store unless it already exists.

        Columns are only loaded when the table is missing.

        Returns:
            True if a CREATE statement was executed

        Raises:
            SchemaIntrospectionError: If the catalog lookup fails
            DDLExecutionError: If the CREATE statement fails
        """
        try:
            exists = await self.table_exists(audit_db, table)
        except Exception as e:
            raise SchemaIntrospectionError(
                f"Failed to check audit table {table}: {e}", cause=e
            ) from e

        if exists:
            return False

        columns = await load_columns()
        sql = self.build_create_table(table, columns, metadata)
        try:
            await audit_db.execute(sql)
        except Exception as e:
            raise DDLExecutionError(
                f"Failed to create audit table {table}: {e}", cause=e
            ) from e

        logger.info("audit_table_created", table=table, dialect=self.name)
        return True

    async def select_row(
        self, db: Database, table: str, record_id: Any
    ) -> dict[str, Any]:
        """Fetch the current source row with ``id = record_id``.

        Raises:
            SourceRowNotFoundError: If no row matches
        """
        row = await db.fetchrow(self.build_select_row(table), self.adapt_value(record_id))
        if row is None:
            raise SourceRowNotFoundError(f"No row in {table} with id={record_id!r}")
        return row
