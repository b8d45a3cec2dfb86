"""Audit service: the write pipeline behind a fire-and-forget API.

Callers hand over a mutation with :meth:`AuditService.log` and return
immediately. A worker later reconciles the audit table, projects the
record (or snapshots the live source row) and inserts the audit row.
Failures are logged by the dispatcher and never reach the caller.
"""

import copy
from typing import Any

from pydantic import ValidationError

from auditmirror.audit.dispatch import AuditDispatcher
from auditmirror.audit.drivers import AuditDriver, MetadataColumns, create_driver
from auditmirror.audit.fields import copy_record, is_record, layout_for
from auditmirror.audit.models import AuditTask, ProjectedRow
from auditmirror.audit.projector import RecordProjector
from auditmirror.audit.schema import SchemaReconciler, SchemaRegistry
from auditmirror.config.settings import Settings
from auditmirror.db.base import Database
from auditmirror.db.errors import (
    InsertExecutionError,
    RecordProjectionError,
    StoreError,
)
from auditmirror.observability.logging import get_logger

logger = get_logger(__name__)


class AuditService:
    """Mirrors record mutations into audit tables.

    Usage:
        async with AuditService(primary, audit, create_driver("postgres")) as audit_log:
            audit_log.log("orders", order.id, AuditAction.UPDATE, "svc-a", order)
    """

    def __init__(
        self,
        primary_db: Database,
        audit_db: Database,
        driver: AuditDriver,
        *,
        projector: RecordProjector | None = None,
        registry: SchemaRegistry | None = None,
        metadata: MetadataColumns | None = None,
        table_suffix: str = "",
        workers: int = 4,
        queue_size: int = 1000,
        drain_timeout: float | None = None,
    ) -> None:
        self._primary_db = primary_db
        self._audit_db = audit_db
        self._driver = driver
        self._projector = projector or RecordProjector()
        self._metadata = metadata or MetadataColumns()
        self._drain_timeout = drain_timeout
        self.reconciler = SchemaReconciler(
            driver,
            audit_db,
            primary_db,
            registry=registry,
            metadata=self._metadata,
            table_suffix=table_suffix,
        )
        self.dispatcher = AuditDispatcher(
            self.process, workers=workers, queue_size=queue_size
        )

    @property
    def driver(self) -> AuditDriver:
        return self._driver

    @property
    def primary_db(self) -> Database:
        return self._primary_db

    @property
    def audit_db(self) -> Database:
        return self._audit_db

    async def start(self) -> None:
        await self.dispatcher.start()

    async def close(self) -> None:
        """Drain queued tasks and stop the workers.

        Database pools are owned by the caller and left open.
        """
        await self.dispatcher.close(timeout=self._drain_timeout)

    async def __aenter__(self) -> "AuditService":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def log(
        self,
        table_name: str,
        record_id: Any,
        action: str,
        actor: str | None = None,
        payload: Any = None,
    ) -> bool:
        """Queue an audit entry without waiting for it to be written.

        Args:
            table_name: Source table of the mutated record
            record_id: Identifier of the record
            action: Mutation label, e.g. ``AuditAction.UPDATE``
            actor: Who made the change
            payload: Record with auditable fields, deep-copied here; None
                snapshots the live row from the primary store instead

        Returns:
            True if queued, False if dropped
        """
        if is_record(payload):
            # Later changes by the caller must not reach the queued entry
            try:
                payload = copy_record(payload)
            except (TypeError, copy.Error) as e:
                logger.warning("audit_payload_not_copyable", table=table_name, error=str(e))
                return False

        try:
            task = AuditTask(
                table_name=table_name,
                record_id=record_id,
                action=str(action),
                actor=actor,
                payload=payload,
            )
        except ValidationError as e:
            logger.warning("audit_task_invalid", table=table_name, error=str(e))
            return False
        return self.dispatcher.submit(task)

    def log_snapshot(
        self,
        table_name: str,
        record_id: Any,
        action: str,
        actor: str | None = None,
    ) -> bool:
        """Queue an audit entry built from the live source row."""
        return self.log(table_name, record_id, action, actor)

    async def process(self, task: AuditTask) -> None:
        """Run the full pipeline for one task.

        Raises:
            StoreError: Any failure; the task is abandoned
        """
        if task.is_snapshot:
            table, row = await self._snapshot(task)
        else:
            table, row = await self._project(task)

        self._append_metadata(row, task)
        statement = self._driver.build_insert(table, row.columns, row.values)
        try:
            await self._audit_db.execute(statement.sql, *statement.params)
        except Exception as e:
            raise InsertExecutionError(
                f"Failed to insert audit row into {table}: {e}", cause=e
            ) from e

        logger.debug(
            "audit_row_written",
            table=table,
            record_id=str(task.record_id),
            action=task.action,
            columns=len(row),
        )

    async def _project(self, task: AuditTask) -> tuple[str, ProjectedRow]:
        if not is_record(task.payload):
            raise RecordProjectionError(
                f"Payload for {task.table_name} is {type(task.payload).__name__}, "
                "not a record"
            )
        layout = layout_for(type(task.payload))
        table = await self.reconciler.ensure(
            task.table_name, self._projector.column_specs(layout)
        )
        return table, self._projector.project(task.payload)

    async def _snapshot(self, task: AuditTask) -> tuple[str, ProjectedRow]:
        table = await self.reconciler.ensure(task.table_name)
        try:
            source = await self._driver.select_row(
                self._primary_db, task.table_name, task.record_id
            )
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(
                f"Failed to read {task.table_name} id={task.record_id!r}: {e}", cause=e
            ) from e
        return table, self._projector.project_mapping(source)

    def _append_metadata(self, row: ProjectedRow, task: AuditTask) -> None:
        # Metadata columns always come last, even if the source has same-named columns
        reserved = set(self._metadata.names)
        if reserved.intersection(row.columns):
            kept = [(c, v) for c, v in zip(row.columns, row.values) if c not in reserved]
            row.columns = [c for c, _ in kept]
            row.values = [v for _, v in kept]

        row.append(self._metadata.action, task.action)
        row.append(self._metadata.actor, task.actor)
        row.append(self._metadata.timestamp, task.submitted_at)


def create_audit_service(
    settings: Settings,
    primary_db: Database | None = None,
    audit_db: Database | None = None,
) -> AuditService:
    """Build an AuditService from configuration.

    Pools are created from ``settings.primary`` / ``settings.audit`` unless
    passed in.

    Raises:
        UnsupportedDialectError: If the configured dialect is unknown
    """
    from auditmirror.db.factory import create_database

    driver = create_driver(settings.dialect, schema=settings.tables.postgres_schema)
    if primary_db is None:
        primary_db = create_database(
            settings.dialect, settings.primary, env_var="AUDITMIRROR_PRIMARY_URL"
        )
    if audit_db is None:
        audit_db = create_database(
            settings.dialect, settings.audit, env_var="AUDITMIRROR_AUDIT_URL"
        )

    columns = settings.tables.metadata_columns
    logger.info(
        "creating_audit_service",
        dialect=driver.name,
        workers=settings.dispatch.workers,
        queue_size=settings.dispatch.queue_size,
    )
    return AuditService(
        primary_db,
        audit_db,
        driver,
        projector=RecordProjector(
            empty_string_as_null=settings.projection.empty_string_as_null,
            nested_records=settings.projection.nested_records,
        ),
        metadata=MetadataColumns(
            action=columns.action,
            actor=columns.actor,
            timestamp=columns.timestamp,
        ),
        table_suffix=settings.tables.table_suffix,
        workers=settings.dispatch.workers,
        queue_size=settings.dispatch.queue_size,
        drain_timeout=settings.dispatch.drain_timeout,
    )
