"""Logging configuration."""

from typing import Literal

from pydantic import BaseModel, Field


class LoggingConfig(BaseModel):
    """Arguments for :func:`auditmirror.observability.logging.setup_logging`."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "console"] = Field(
        default="json",
        description="JSON lines for shipping, console for local runs",
    )
    redact_secrets: bool = Field(
        default=True,
        description="Mask DSN passwords and e-mail addresses in log events",
    )


class ObservabilityConfig(BaseModel):
    """Observability section of the settings."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
