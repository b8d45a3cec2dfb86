"""Audit-table reconciliation.

Each audit table is checked against the audit store's catalog, and
created if missing, at most once per process. Concurrent first use of a
table is serialized by a per-table lock and re-checked after the lock is
acquired, so only one CREATE is ever issued; the DDL itself is
``IF NOT EXISTS`` so a second process racing on the same table is
harmless.
"""

import asyncio
from collections.abc import Sequence

from auditmirror.audit.drivers import AuditDriver, MetadataColumns
from auditmirror.audit.models import ColumnSpec
from auditmirror.db.base import Database
from auditmirror.db.errors import SchemaIntrospectionError
from auditmirror.observability.logging import get_logger
from auditmirror.observability.metrics import TABLES_CREATED

logger = get_logger(__name__)


class SchemaRegistry:
    """Process-scoped set of audit tables known to exist.

    Created with the service and cleared only by :meth:`reset`. A table
    moves from unknown to known once and is never invalidated on its
    own; tables dropped behind the process's back are not detected.
    """

    def __init__(self) -> None:
        self._known: set[str] = set()
        self._locks: dict[str, asyncio.Lock] = {}

    def is_known(self, table: str) -> bool:
        return table in self._known

    def mark_known(self, table: str) -> None:
        self._known.add(table)

    def lock_for(self, table: str) -> asyncio.Lock:
        """Get the lock that serializes reconciliation of ``table``."""
        lock = self._locks.get(table)
        if lock is None:
            lock = self._locks[table] = asyncio.Lock()
        return lock

    def reset(self, table: str | None = None) -> None:
        """Forget one table, or every table when ``table`` is None.

        Locks are kept so a reconciliation still in flight keeps
        serializing later callers for the same table.
        """
        if table is None:
            self._known.clear()
        else:
            self._known.discard(table)

    def __contains__(self, table: object) -> bool:
        return table in self._known

    def __len__(self) -> int:
        return len(self._known)


class SchemaReconciler:
    """Ensures the audit table for a source table exists.

    Args:
        driver: Dialect driver
        audit_db: Store that receives audit tables
        primary_db: Store holding source tables (read for snapshot schemas)
        registry: Existence cache shared by all workers
        metadata: Names of the fixed metadata columns
        table_suffix: Appended to the source table name
    """

    def __init__(
        self,
        driver: AuditDriver,
        audit_db: Database,
        primary_db: Database,
        registry: SchemaRegistry | None = None,
        metadata: MetadataColumns | None = None,
        table_suffix: str = "",
    ) -> None:
        self._driver = driver
        self._audit_db = audit_db
        self._primary_db = primary_db
        self._registry = registry or SchemaRegistry()
        self._metadata = metadata or MetadataColumns()
        self._table_suffix = table_suffix

    @property
    def registry(self) -> SchemaRegistry:
        return self._registry

    def audit_table_name(self, source_table: str) -> str:
        return f"{source_table}{self._table_suffix}"

    async def ensure(
        self,
        source_table: str,
        columns: Sequence[ColumnSpec] | None = None,
    ) -> str:
        """Make sure the audit table for ``source_table`` exists.

        Args:
            source_table: Table whose mutations are being audited
            columns: Columns derived from a record layout. When None the
                source table's columns are read from the primary store.

        Returns:
            The audit table name

        Raises:
            SchemaIntrospectionError: If a catalog lookup fails
            DDLExecutionError: If the CREATE statement fails
        """
        table = self.audit_table_name(source_table)
        if self._registry.is_known(table):
            return table

        async with self._registry.lock_for(table):
            if self._registry.is_known(table):
                return table

            async def load_columns() -> list[ColumnSpec]:
                if columns is not None:
                    return list(columns)
                try:
                    return await self._driver.source_columns(
                        self._primary_db, source_table
                    )
                except SchemaIntrospectionError:
                    raise
                except Exception as e:
                    raise SchemaIntrospectionError(
                        f"Failed to read columns of {source_table}: {e}", cause=e
                    ) from e

            created = await self._driver.ensure_table(
                self._audit_db, table, load_columns, self._metadata
            )
            self._registry.mark_known(table)

        if created:
            TABLES_CREATED.labels(dialect=self._driver.name).inc()
        logger.debug("audit_table_reconciled", table=table, created=created)
        return table
