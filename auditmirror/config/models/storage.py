"""Connection settings for the primary and audit stores."""

from typing import Literal

from pydantic import BaseModel, Field

DialectType = Literal["mysql", "postgres", "postgresql"]


class DatabaseConfig(BaseModel):
    """Pool settings for one store.

    ``connection_url`` is usually left unset in TOML and supplied through
    AUDITMIRROR_PRIMARY_URL / AUDITMIRROR_AUDIT_URL instead.
    """

    connection_url: str | None = Field(
        default=None,
        description="mysql:// or postgresql:// URL",
    )
    min_pool_size: int = Field(default=1, gt=0, description="Connections kept open")
    max_pool_size: int = Field(default=10, gt=0, description="Upper bound on connections")
    idle_lifetime: float = Field(
        default=300.0,
        gt=0,
        description="Seconds before an idle connection is recycled",
    )
    command_timeout: float = Field(
        default=60.0,
        gt=0,
        description="Per-statement timeout in seconds (PostgreSQL only)",
    )
