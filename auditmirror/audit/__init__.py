"""Audit write path: projection, schema reconciliation, dispatch.

Usage:
    from auditmirror.audit import AuditAction, AuditService, auditable

    class Order(BaseModel):
        id: int
        status: str = auditable()

    service = AuditService(primary, audit, create_driver("postgres"))
    await service.start()
    service.log("orders", order.id, AuditAction.UPDATE, "svc-a", order)
"""

from auditmirror.audit.dispatch import AuditDispatcher, DispatchStats
from auditmirror.audit.drivers import (
    AuditDriver,
    InsertStatement,
    MetadataColumns,
    MySQLDriver,
    PostgresDriver,
    create_driver,
)
from auditmirror.audit.fields import RecordLayout, audit_field, auditable, layout_for
from auditmirror.audit.models import (
    AuditAction,
    AuditTask,
    ColumnKind,
    ColumnSpec,
    ProjectedRow,
)
from auditmirror.audit.projector import RecordProjector
from auditmirror.audit.schema import SchemaReconciler, SchemaRegistry
from auditmirror.audit.service import AuditService, create_audit_service

__all__ = [
    "AuditAction",
    "AuditDispatcher",
    "AuditDriver",
    "AuditService",
    "AuditTask",
    "ColumnKind",
    "ColumnSpec",
    "DispatchStats",
    "InsertStatement",
    "MetadataColumns",
    "MySQLDriver",
    "PostgresDriver",
    "ProjectedRow",
    "RecordLayout",
    "RecordProjector",
    "SchemaReconciler",
    "SchemaRegistry",
    "audit_field",
    "auditable",
    "create_audit_service",
    "create_driver",
    "layout_for",
]
