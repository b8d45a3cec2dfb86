"""Audit table naming and layout configuration."""

from pydantic import BaseModel, Field, model_validator


class MetadataColumnsConfig(BaseModel):
    """Names of the fixed columns appended to every audit row."""

    action: str = Field(default="audit_action", min_length=1)
    actor: str = Field(default="audit_actor", min_length=1)
    timestamp: str = Field(default="audit_created_at", min_length=1)

    @model_validator(mode="after")
    def check_distinct(self) -> "MetadataColumnsConfig":
        """Each metadata column needs its own name."""
        names = [self.action, self.actor, self.timestamp]
        if len(set(names)) != len(names):
            raise ValueError(f"Metadata column names must be distinct, got {names}")
        return self


class TablesConfig(BaseModel):
    """Where audit tables live and what they are called."""

    table_suffix: str = Field(
        default="",
        description="Appended to the source table name, e.g. '_audit'",
    )
    postgres_schema: str = Field(
        default="public",
        description="PostgreSQL schema for source and audit tables",
    )
    metadata_columns: MetadataColumnsConfig = Field(
        default_factory=MetadataColumnsConfig,
        description="Metadata column names",
    )
