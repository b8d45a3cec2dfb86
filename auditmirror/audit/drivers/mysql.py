"""MySQL dialect driver."""

from datetime import UTC, datetime
from typing import Any

from auditmirror.audit.drivers.base import AuditDriver, MetadataColumns
from auditmirror.audit.models import ColumnKind, ColumnSpec
from auditmirror.db.base import Database
from auditmirror.db.errors import SchemaIntrospectionError


class MySQLDriver(AuditDriver):
    """Backtick-quoted identifiers and positional ``%s`` parameters.

    Tables live in the connection's current database.
    """

    name = "mysql"
    quote_char = "`"
    type_names = {
        ColumnKind.TEXT: "TEXT",
        ColumnKind.INTEGER: "BIGINT",
        ColumnKind.BOOLEAN: "BOOLEAN",
        ColumnKind.FLOAT: "DOUBLE PRECISION",
        ColumnKind.TIMESTAMP: "DATETIME",
    }

    def placeholder(self, position: int) -> str:  # noqa: ARG002
        return "%s"

    def adapt_value(self, value: Any) -> Any:
        # DATETIME has no zone; store UTC wall time
        if isinstance(value, datetime) and value.tzinfo is not None:
            return value.astimezone(UTC).replace(tzinfo=None)
        return value

    def metadata_definitions(self, metadata: MetadataColumns) -> list[str]:
        return [
            f"{self.quote_identifier(metadata.action)} VARCHAR(64) NOT NULL",
            f"{self.quote_identifier(metadata.actor)} VARCHAR(255) NULL",
            f"{self.quote_identifier(metadata.timestamp)} DATETIME(6) NOT NULL "
            "DEFAULT CURRENT_TIMESTAMP(6)",
        ]

    def table_options(self) -> str:
        return "ENGINE=InnoDB DEFAULT CHARSET=utf8mb4"

    async def table_exists(self, db: Database, table: str) -> bool:
        count = await db.fetchval(
            """
            SELECT COUNT(*) FROM information_schema.tables
            WHERE table_schema = DATABASE() AND table_name = %s
            """,
            table,
        )
        return bool(count)

    async def source_columns(self, db: Database, table: str) -> list[ColumnSpec]:
        rows = await db.fetch(
            """
            SELECT column_name AS column_name, column_type AS column_type
            FROM information_schema.columns
            WHERE table_schema = DATABASE() AND table_name = %s
            ORDER BY ordinal_position
            """,
            table,
        )
        if not rows:
            raise SchemaIntrospectionError(f"Source table {table} has no columns")
        return [
            ColumnSpec(name=row["column_name"], sql_type=row["column_type"])
            for row in rows
        ]
