"""Root settings model for auditmirror configuration."""

from typing import Any, ClassVar

from pydantic import Field
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from auditmirror.config.models.dispatch import DispatchConfig
from auditmirror.config.models.observability import ObservabilityConfig
from auditmirror.config.models.projection import ProjectionConfig
from auditmirror.config.models.storage import DatabaseConfig, DialectType
from auditmirror.config.models.tables import TablesConfig


class TomlValuesSource(PydanticBaseSettingsSource):
    """Feeds the merged TOML files into the settings model.

    The values are read once by :func:`auditmirror.config.loader.load_config`
    and installed with :func:`set_toml_config` before ``Settings()`` is built.
    """

    values: ClassVar[dict[str, Any]] = {}

    def get_field_value(
        self, field: FieldInfo, field_name: str  # noqa: ARG002
    ) -> tuple[Any, str, bool]:
        return self.values.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        known = self.settings_cls.model_fields
        return {key: value for key, value in self.values.items() if key in known}


def set_toml_config(config: dict[str, Any]) -> None:
    """Install TOML values for the next ``Settings()`` construction."""
    TomlValuesSource.values = dict(config)


class Settings(BaseSettings):
    """Root configuration object.

    Later sources override earlier ones:
    model defaults, then config/default.toml, then
    config/{AUDITMIRROR_ENV}.toml, then AUDITMIRROR_* environment
    variables (``__`` separates nested keys), then constructor arguments.
    """

    model_config = SettingsConfigDict(
        env_prefix="AUDITMIRROR_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="auditmirror", description="Application name for logging")
    dialect: DialectType = Field(
        default="postgres",
        description="SQL dialect shared by the primary and audit stores",
    )

    primary: DatabaseConfig = Field(
        default_factory=DatabaseConfig,
        description="Store holding the audited source tables",
    )
    audit: DatabaseConfig = Field(
        default_factory=DatabaseConfig,
        description="Store receiving audit tables",
    )
    dispatch: DispatchConfig = Field(
        default_factory=DispatchConfig,
        description="Worker pool and queue configuration",
    )
    tables: TablesConfig = Field(
        default_factory=TablesConfig,
        description="Audit table naming",
    )
    projection: ProjectionConfig = Field(
        default_factory=ProjectionConfig,
        description="Record projection policy",
    )
    observability: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig,
        description="Logging settings",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # First source wins; .env files and secret directories are not used
        return init_settings, env_settings, TomlValuesSource(settings_cls)
