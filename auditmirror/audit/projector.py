"""Record projection: auditable fields to an ordered audit row.

Projection normalizes values to what every supported dialect can bind:
timestamps become ``YYYY-MM-DD HH:MM:SS`` text and collections become JSON
text. Nested records are dropped or serialized depending on policy.
Fields declared with an explicit date or time SQL type keep native
``date``/``datetime`` values, which the drivers bind directly.
"""

import dataclasses
import json
from collections.abc import Mapping
from datetime import date, datetime
from enum import Enum
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel

from auditmirror.audit.fields import AuditField, RecordLayout, is_record, layout_for
from auditmirror.audit.models import ColumnKind, ColumnSpec, ProjectedRow
from auditmirror.db.errors import RecordProjectionError

NestedRecordPolicy = Literal["drop", "json"]

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
TEMPORAL_SQL_TYPES = ("DATE", "TIME")


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    if isinstance(value, Enum):
        return value.value
    return str(value)


def to_json(value: Any) -> str:
    """Serialize a composite value to JSON text."""
    if isinstance(value, (set, frozenset)):
        value = sorted(value, key=str)
    return json.dumps(value, default=_json_default, ensure_ascii=False)


def is_zero_timestamp(value: date) -> bool:
    """True for ``datetime.min``, the zero timestamp."""
    return isinstance(value, datetime) and value.replace(tzinfo=None) == datetime.min


def format_timestamp(value: datetime) -> str | None:
    """Render a timestamp, or None for the zero value (``datetime.min``)."""
    if is_zero_timestamp(value):
        return None
    return value.strftime(TIMESTAMP_FORMAT)


class RecordProjector:
    """Projects tagged records into :class:`ProjectedRow` instances.

    Args:
        empty_string_as_null: Store "" as NULL
        nested_records: "drop" silently omits nested record values,
            "json" stores them as JSON text
    """

    def __init__(
        self,
        *,
        empty_string_as_null: bool = True,
        nested_records: NestedRecordPolicy = "drop",
    ) -> None:
        self._empty_string_as_null = empty_string_as_null
        self._nested_records = nested_records

    @property
    def drops_nested_records(self) -> bool:
        return self._nested_records == "drop"

    def project(self, record: Any) -> ProjectedRow:
        """Project the auditable fields of ``record`` in declaration order.

        Raises:
            RecordProjectionError: If ``record`` is not a pydantic model
                or dataclass instance
        """
        if not is_record(record):
            raise RecordProjectionError(
                f"Cannot project {type(record).__name__}: not a record"
            )

        layout = layout_for(type(record))
        row = ProjectedRow()
        for field in layout.fields:
            if field.nested and self.drops_nested_records:
                continue
            value = getattr(record, field.attribute)
            if is_record(value):
                if self.drops_nested_records:
                    continue
                row.append(field.column, to_json(value))
                continue
            if isinstance(value, date) and self._is_temporal_column(field):
                value = None if is_zero_timestamp(value) else value
            else:
                value = self.normalize(value)
            if value is not None and self._is_text_column(field):
                value = value if isinstance(value, str) else str(value)
            row.append(field.column, value)
        return row

    @staticmethod
    def _is_temporal_column(field: AuditField) -> bool:
        # Explicit date/time SQL types bind native values; asyncpg rejects text for them
        if field.sql_type is None:
            return False
        return field.sql_type.strip().upper().startswith(TEMPORAL_SQL_TYPES)

    @staticmethod
    def _is_text_column(field: AuditField) -> bool:
        # Derived TEXT columns only; explicit SQL types bind values as-is
        return field.sql_type is None and field.kind in (ColumnKind.TEXT, None)

    def project_mapping(self, row: Mapping[str, Any]) -> ProjectedRow:
        """Project a live row read from the primary store.

        Every column is kept in row order. Values come straight from the
        database driver, so only composite values are re-encoded.
        """
        projected = ProjectedRow()
        for column, value in row.items():
            if isinstance(value, (list, tuple, dict)):
                value = to_json(value)
            projected.append(column, value)
        return projected

    def normalize(self, value: Any) -> Any:
        """Normalize one field value for binding."""
        if value is None:
            return None
        if isinstance(value, Enum):
            value = value.value
        if isinstance(value, bool):
            return value
        if isinstance(value, datetime):
            return format_timestamp(value)
        if isinstance(value, date):
            return value.isoformat()
        if isinstance(value, str):
            if value == "" and self._empty_string_as_null:
                return None
            return value
        if isinstance(value, UUID):
            return str(value)
        if isinstance(value, (list, tuple, set, frozenset, dict)):
            return to_json(value)
        return value

    def column_specs(self, layout: RecordLayout) -> list[ColumnSpec]:
        """Derive CREATE TABLE columns for a record layout."""
        specs: list[ColumnSpec] = []
        for field in layout.fields:
            if field.nested:
                if self.drops_nested_records:
                    continue
                specs.append(ColumnSpec(field.column, ColumnKind.TEXT, field.sql_type))
                continue
            specs.append(ColumnSpec(field.column, field.kind, field.sql_type))
        return specs
