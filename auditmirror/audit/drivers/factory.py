"""AuditDriver factory.

The dialect is chosen once, when the service is built.
"""

from auditmirror.audit.drivers.base import AuditDriver
from auditmirror.audit.drivers.mysql import MySQLDriver
from auditmirror.audit.drivers.postgres import PostgresDriver
from auditmirror.db.errors import UnsupportedDialectError
from auditmirror.observability.logging import get_logger

logger = get_logger(__name__)


def create_driver(dialect: str, *, schema: str = "public") -> AuditDriver:
    """Create the driver for a dialect name.

    Args:
        dialect: "mysql", "postgres" or "postgresql" (case-insensitive)
        schema: PostgreSQL schema for source and audit tables

    Raises:
        UnsupportedDialectError: If the dialect is not supported
    """
    name = dialect.strip().lower()

    if name == "mysql":
        driver: AuditDriver = MySQLDriver()
    elif name in ("postgres", "postgresql"):
        driver = PostgresDriver(schema=schema)
    else:
        raise UnsupportedDialectError(f"Unsupported driver: {dialect}")

    logger.debug("audit_driver_created", dialect=driver.name)
    return driver
