"""Database factory for creating connection pools.

Connection strings are read from configuration, falling back to
environment variables:
- AUDITMIRROR_PRIMARY_URL: store holding the audited source tables
- AUDITMIRROR_AUDIT_URL: store receiving audit tables
"""

from auditmirror.config.models.storage import DatabaseConfig
from auditmirror.db.base import Database
from auditmirror.db.errors import UnsupportedDialectError
from auditmirror.observability.logging import get_logger

logger = get_logger(__name__)


def create_database(
    dialect: str,
    config: DatabaseConfig,
    *,
    env_var: str = "DATABASE_URL",
) -> Database:
    """Create a (not yet connected) pool for the given dialect.

    Pools connect lazily on first use.

    Raises:
        UnsupportedDialectError: If the dialect is not supported
    """
    name = dialect.strip().lower()

    if name == "mysql":
        from auditmirror.db.mysql import MySQLPool

        logger.info("creating_database", dialect="mysql", max_pool_size=config.max_pool_size)
        return MySQLPool(
            dsn=config.connection_url,
            min_size=config.min_pool_size,
            max_size=config.max_pool_size,
            pool_recycle=config.idle_lifetime,
            env_var=env_var,
        )

    elif name in ("postgres", "postgresql"):
        from auditmirror.db.postgres import PostgresPool

        logger.info(
            "creating_database", dialect="postgres", max_pool_size=config.max_pool_size
        )
        return PostgresPool(
            dsn=config.connection_url,
            min_size=config.min_pool_size,
            max_size=config.max_pool_size,
            idle_lifetime=config.idle_lifetime,
            command_timeout=config.command_timeout,
            env_var=env_var,
        )

    else:
        raise UnsupportedDialectError(f"Unsupported database dialect: {dialect}")
