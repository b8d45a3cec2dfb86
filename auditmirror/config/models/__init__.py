"""Configuration model exports.

    from auditmirror.config.models import DatabaseConfig, DispatchConfig
"""

from auditmirror.config.models.dispatch import DispatchConfig
from auditmirror.config.models.observability import (
    LoggingConfig,
    ObservabilityConfig,
)
from auditmirror.config.models.projection import ProjectionConfig
from auditmirror.config.models.storage import DatabaseConfig, DialectType
from auditmirror.config.models.tables import MetadataColumnsConfig, TablesConfig

__all__ = [
    "DatabaseConfig",
    "DialectType",
    "DispatchConfig",
    "LoggingConfig",
    "MetadataColumnsConfig",
    "ObservabilityConfig",
    "ProjectionConfig",
    "TablesConfig",
]
