"""Column and row models produced by projection and schema derivation."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class ColumnKind(StrEnum):
    """Dialect-neutral column type family."""

    TEXT = "text"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    FLOAT = "float"
    TIMESTAMP = "timestamp"


@dataclass(frozen=True)
class ColumnSpec:
    """A column of an audit table to be created.

    ``sql_type`` is used verbatim when set; otherwise the driver maps
    ``kind`` to its own type name.
    """

    name: str
    kind: ColumnKind | None = None
    sql_type: str | None = None


@dataclass
class ProjectedRow:
    """Positionally aligned column names and values for one audit row."""

    columns: list[str] = field(default_factory=list)
    values: list[Any] = field(default_factory=list)

    def append(self, column: str, value: Any) -> None:
        self.columns.append(column)
        self.values.append(value)

    def as_dict(self) -> dict[str, Any]:
        return dict(zip(self.columns, self.values, strict=True))

    def __len__(self) -> int:
        return len(self.columns)
