"""SQL dialect drivers for audit tables."""

from auditmirror.audit.drivers.base import AuditDriver, InsertStatement, MetadataColumns
from auditmirror.audit.drivers.factory import create_driver
from auditmirror.audit.drivers.mysql import MySQLDriver
from auditmirror.audit.drivers.postgres import PostgresDriver

__all__ = [
    "AuditDriver",
    "InsertStatement",
    "MetadataColumns",
    "MySQLDriver",
    "PostgresDriver",
    "create_driver",
]
