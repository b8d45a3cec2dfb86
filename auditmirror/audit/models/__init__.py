"""Audit domain models.

Contains:
- AuditTask / AuditAction for queued work
- ColumnSpec / ColumnKind / ProjectedRow for schema and row shapes
"""

from auditmirror.audit.models.row import ColumnKind, ColumnSpec, ProjectedRow
from auditmirror.audit.models.task import AuditAction, AuditTask

__all__ = [
    "AuditAction",
    "AuditTask",
    "ColumnKind",
    "ColumnSpec",
    "ProjectedRow",
]
