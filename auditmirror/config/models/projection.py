"""Record projection policy configuration."""

from typing import Literal

from pydantic import BaseModel, Field


class ProjectionConfig(BaseModel):
    """How record values are normalized before insert."""

    empty_string_as_null: bool = Field(
        default=True,
        description="Store empty strings as NULL",
    )
    nested_records: Literal["drop", "json"] = Field(
        default="drop",
        description="Drop nested record fields or store them as JSON text",
    )
