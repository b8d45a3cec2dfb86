"""PostgreSQL dialect driver."""

from auditmirror.audit.drivers.base import AuditDriver, MetadataColumns
from auditmirror.audit.models import ColumnKind, ColumnSpec
from auditmirror.db.base import Database
from auditmirror.db.errors import SchemaIntrospectionError

# information_schema reports these without a usable type name
_OPAQUE_TYPES = frozenset({"USER-DEFINED", "ARRAY"})
_LENGTH_TYPES = {"character varying": "varchar", "character": "char"}


class PostgresDriver(AuditDriver):
    """Double-quoted identifiers and numbered ``$n`` parameters.

    Args:
        schema: Schema holding both source and audit tables
    """

    name = "postgres"
    quote_char = '"'
    type_names = {
        ColumnKind.TEXT: "TEXT",
        ColumnKind.INTEGER: "BIGINT",
        ColumnKind.BOOLEAN: "BOOLEAN",
        ColumnKind.FLOAT: "DOUBLE PRECISION",
        ColumnKind.TIMESTAMP: "TIMESTAMP",
    }

    def __init__(self, schema: str = "public") -> None:
        self.schema = schema

    def qualified_name(self, table: str) -> str:
        return f"{self.quote_identifier(self.schema)}.{self.quote_identifier(table)}"

    def placeholder(self, position: int) -> str:
        return f"${position}"

    def metadata_definitions(self, metadata: MetadataColumns) -> list[str]:
        return [
            f"{self.quote_identifier(metadata.action)} VARCHAR(64) NOT NULL",
            f"{self.quote_identifier(metadata.actor)} VARCHAR(255)",
            f"{self.quote_identifier(metadata.timestamp)} TIMESTAMPTZ NOT NULL "
            "DEFAULT CURRENT_TIMESTAMP",
        ]

    async def table_exists(self, db: Database, table: str) -> bool:
        exists = await db.fetchval(
            """
            SELECT EXISTS (
                SELECT 1 FROM information_schema.tables
                WHERE table_schema = $1 AND table_name = $2
            )
            """,
            self.schema,
            table,
        )
        return bool(exists)

    async def source_columns(self, db: Database, table: str) -> list[ColumnSpec]:
        rows = await db.fetch(
            """
            SELECT column_name, data_type, character_maximum_length
            FROM information_schema.columns
            WHERE table_schema = $1 AND table_name = $2
            ORDER BY ordinal_position
            """,
            self.schema,
            table,
        )
        if not rows:
            raise SchemaIntrospectionError(f"Source table {table} has no columns")
        return [
            ColumnSpec(name=row["column_name"], sql_type=self._source_type(row))
            for row in rows
        ]

    @staticmethod
    def _source_type(row: dict) -> str:
        data_type = row["data_type"]
        if data_type in _OPAQUE_TYPES:
            return "text"
        length = row.get("character_maximum_length")
        if data_type in _LENGTH_TYPES and length:
            return f"{_LENGTH_TYPES[data_type]}({length})"
        return data_type
