"""Tests for SchemaRegistry and SchemaReconciler."""

import asyncio

import pytest

from auditmirror.audit.drivers import MetadataColumns, MySQLDriver, PostgresDriver
from auditmirror.audit.models import ColumnKind, ColumnSpec
from auditmirror.audit.schema import SchemaReconciler, SchemaRegistry
from auditmirror.db.errors import DDLExecutionError, SchemaIntrospectionError
from tests.factories import FakeDatabase

ORDER_COLUMNS = [ColumnSpec("status", ColumnKind.TEXT)]


class TestSchemaRegistry:
    """Tests for SchemaRegistry."""

    def test_mark_known(self) -> None:
        registry = SchemaRegistry()
        assert registry.is_known("orders") is False
        registry.mark_known("orders")
        assert "orders" in registry
        assert len(registry) == 1

    def test_lock_per_table(self) -> None:
        registry = SchemaRegistry()
        assert registry.lock_for("a") is registry.lock_for("a")
        assert registry.lock_for("a") is not registry.lock_for("b")

    def test_reset_one_table(self) -> None:
        registry = SchemaRegistry()
        registry.mark_known("a")
        registry.mark_known("b")
        registry.reset("a")
        assert "a" not in registry
        assert "b" in registry

    def test_reset_all(self) -> None:
        registry = SchemaRegistry()
        registry.mark_known("a")
        registry.reset()
        assert len(registry) == 0

    def test_reset_keeps_locks(self) -> None:
        registry = SchemaRegistry()
        lock = registry.lock_for("a")
        registry.reset()
        assert registry.lock_for("a") is lock


class TestSchemaReconciler:
    """Tests for SchemaReconciler.ensure."""

    @pytest.mark.asyncio
    async def test_creates_missing_table(
        self, postgres_driver: PostgresDriver, audit_db: FakeDatabase, primary_db: FakeDatabase
    ) -> None:
        reconciler = SchemaReconciler(postgres_driver, audit_db, primary_db)
        table = await reconciler.ensure("orders", ORDER_COLUMNS)
        assert table == "orders"
        assert audit_db.tables["orders"] == [
            "status",
            "audit_action",
            "audit_actor",
            "audit_created_at",
        ]
        assert "orders" in reconciler.registry

    @pytest.mark.asyncio
    async def test_existing_table_not_recreated(
        self, postgres_driver: PostgresDriver, primary_db: FakeDatabase
    ) -> None:
        audit_db = FakeDatabase(tables={"orders": ["status"]})
        reconciler = SchemaReconciler(postgres_driver, audit_db, primary_db)
        await reconciler.ensure("orders", ORDER_COLUMNS)
        assert audit_db.create_statements == []
        assert "orders" in reconciler.registry

    @pytest.mark.asyncio
    async def test_known_table_skips_catalog(
        self, postgres_driver: PostgresDriver, audit_db: FakeDatabase, primary_db: FakeDatabase
    ) -> None:
        """Should not touch the database once a table is known."""
        reconciler = SchemaReconciler(postgres_driver, audit_db, primary_db)
        await reconciler.ensure("orders", ORDER_COLUMNS)
        calls = len(audit_db.statements)
        await reconciler.ensure("orders", ORDER_COLUMNS)
        await reconciler.ensure("orders")
        assert len(audit_db.statements) == calls

    @pytest.mark.asyncio
    async def test_concurrent_first_use_creates_once(
        self, postgres_driver: PostgresDriver, primary_db: FakeDatabase
    ) -> None:
        """Should issue exactly one CREATE when many workers race on a new table."""
        audit_db = FakeDatabase(latency=0.001)
        reconciler = SchemaReconciler(postgres_driver, audit_db, primary_db)

        tables = await asyncio.gather(
            *(reconciler.ensure("orders", ORDER_COLUMNS) for _ in range(20))
        )

        assert set(tables) == {"orders"}
        assert len(audit_db.create_statements) == 1

    @pytest.mark.asyncio
    async def test_reset_during_reconciliation_creates_once(
        self, postgres_driver: PostgresDriver, primary_db: FakeDatabase
    ) -> None:
        """Should not issue a second CREATE when the registry is reset mid-flight."""
        audit_db = FakeDatabase(latency=0.01)
        reconciler = SchemaReconciler(postgres_driver, audit_db, primary_db)

        first = asyncio.create_task(reconciler.ensure("orders", ORDER_COLUMNS))
        await asyncio.sleep(0)
        reconciler.registry.reset()
        await asyncio.gather(first, reconciler.ensure("orders", ORDER_COLUMNS))

        assert len(audit_db.create_statements) == 1

    @pytest.mark.asyncio
    async def test_table_suffix(
        self, mysql_driver: MySQLDriver, audit_db: FakeDatabase, primary_db: FakeDatabase
    ) -> None:
        reconciler = SchemaReconciler(mysql_driver, audit_db, primary_db, table_suffix="_audit")
        assert await reconciler.ensure("orders", ORDER_COLUMNS) == "orders_audit"
        assert "orders_audit" in audit_db.tables

    @pytest.mark.asyncio
    async def test_columns_from_primary_catalog(
        self, mysql_driver: MySQLDriver, audit_db: FakeDatabase
    ) -> None:
        """Should copy source column names and types when no layout is given."""
        primary_db = FakeDatabase(
            catalog_columns={
                "orders": [
                    {"column_name": "id", "column_type": "int"},
                    {"column_name": "status", "column_type": "varchar(20)"},
                ]
            }
        )
        reconciler = SchemaReconciler(mysql_driver, audit_db, primary_db)
        await reconciler.ensure("orders")

        create = audit_db.create_statements[0]
        assert "`id` int" in create
        assert "`status` varchar(20)" in create
        assert "PRIMARY KEY" not in create

    @pytest.mark.asyncio
    async def test_catalog_failure_not_cached(
        self, mysql_driver: MySQLDriver, primary_db: FakeDatabase
    ) -> None:
        audit_db = FakeDatabase()
        audit_db.fail_on("information_schema.tables", RuntimeError("gone away"))
        reconciler = SchemaReconciler(mysql_driver, audit_db, primary_db)

        with pytest.raises(SchemaIntrospectionError):
            await reconciler.ensure("orders", ORDER_COLUMNS)
        assert "orders" not in reconciler.registry

        audit_db.failures.clear()
        await reconciler.ensure("orders", ORDER_COLUMNS)
        assert "orders" in reconciler.registry

    @pytest.mark.asyncio
    async def test_source_column_failure_wrapped(
        self, mysql_driver: MySQLDriver, audit_db: FakeDatabase
    ) -> None:
        primary_db = FakeDatabase()
        primary_db.fail_on("information_schema.columns", RuntimeError("no access"))
        reconciler = SchemaReconciler(mysql_driver, audit_db, primary_db)

        with pytest.raises(SchemaIntrospectionError) as exc_info:
            await reconciler.ensure("orders")
        assert isinstance(exc_info.value.cause, RuntimeError)

    @pytest.mark.asyncio
    async def test_ddl_failure(
        self, postgres_driver: PostgresDriver, primary_db: FakeDatabase
    ) -> None:
        audit_db = FakeDatabase()
        audit_db.fail_on("CREATE TABLE", RuntimeError("permission denied"))
        reconciler = SchemaReconciler(postgres_driver, audit_db, primary_db)

        with pytest.raises(DDLExecutionError):
            await reconciler.ensure("orders", ORDER_COLUMNS)
        assert "orders" not in reconciler.registry

    @pytest.mark.asyncio
    async def test_shared_registry(
        self, postgres_driver: PostgresDriver, audit_db: FakeDatabase, primary_db: FakeDatabase
    ) -> None:
        registry = SchemaRegistry()
        registry.mark_known("orders")
        reconciler = SchemaReconciler(
            postgres_driver,
            audit_db,
            primary_db,
            registry=registry,
            metadata=MetadataColumns(action="op"),
        )
        await reconciler.ensure("orders", ORDER_COLUMNS)
        assert audit_db.statements == []
