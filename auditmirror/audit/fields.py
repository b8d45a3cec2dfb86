"""Auditable field declarations and per-type record layouts.

A record type opts fields into the audit trail explicitly:

    class Order(BaseModel):
        id: int
        status: str = auditable()
        total: int = auditable(column="total_cents", sql_type="BIGINT")
        internal_note: str = ""

    @dataclass
    class Invoice:
        number: str = audit_field(json="invoice_number")
        paid_at: datetime | None = audit_field(default=None)

The layout of each type is derived once and cached for the life of the
process, so projection never re-inspects a class.
"""

import copy
import dataclasses
import types
from dataclasses import MISSING, dataclass
from datetime import date, datetime
from enum import Enum
from functools import lru_cache
from typing import Annotated, Any, Union, get_args, get_origin, get_type_hints

from pydantic import BaseModel, Field
from pydantic_core import PydanticUndefined

from auditmirror.audit.models import ColumnKind
from auditmirror.db.errors import RecordProjectionError

AUDIT_KEY = "audit"
JSON_KEY = "json"
SKIP_ALIAS = "-"


def auditable(
    default: Any = PydanticUndefined,
    *,
    column: str | None = None,
    sql_type: str | None = None,
    **kwargs: Any,
) -> Any:
    """Declare an auditable pydantic field.

    Args:
        default: Field default, as for ``pydantic.Field``
        column: Persisted column name (wins over any alias)
        sql_type: Explicit SQL type used when the audit table is created
        **kwargs: Passed through to ``pydantic.Field``
    """
    extra = dict(kwargs.pop("json_schema_extra", None) or {})
    extra[AUDIT_KEY] = {"column": column, "sql_type": sql_type}
    return Field(default, json_schema_extra=extra, **kwargs)


def audit_field(
    default: Any = MISSING,
    *,
    column: str | None = None,
    sql_type: str | None = None,
    json: str | None = None,
    **kwargs: Any,
) -> Any:
    """Declare an auditable dataclass field.

    ``json`` plays the role of a serialization alias for naming purposes.
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[AUDIT_KEY] = {"column": column, "sql_type": sql_type}
    if json is not None:
        metadata[JSON_KEY] = json
    return dataclasses.field(default=default, metadata=metadata, **kwargs)


@dataclass(frozen=True)
class AuditField:
    """One auditable field of a record type."""

    attribute: str
    column: str
    kind: ColumnKind | None
    sql_type: str | None = None
    nested: bool = False


@dataclass(frozen=True)
class RecordLayout:
    """The ordered auditable fields of a record type."""

    record_type: type
    fields: tuple[AuditField, ...]

    @property
    def columns(self) -> list[str]:
        return [f.column for f in self.fields]


def is_record(value: Any) -> bool:
    """True for pydantic model and dataclass instances."""
    if isinstance(value, BaseModel):
        return True
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def copy_record(record: Any) -> Any:
    """Deep copy of a record, detached from later changes to the original."""
    if isinstance(record, BaseModel):
        return record.model_copy(deep=True)
    return copy.deepcopy(record)


def _is_record_type(annotation: Any) -> bool:
    if get_origin(annotation) is not None or not isinstance(annotation, type):
        return False
    if issubclass(annotation, BaseModel):
        return True
    return dataclasses.is_dataclass(annotation)


def _unwrap(annotation: Any) -> Any:
    """Strip ``Annotated`` and ``Optional`` wrappers from an annotation."""
    origin = get_origin(annotation)
    if origin is Annotated:
        return _unwrap(get_args(annotation)[0])
    if origin is Union or origin is types.UnionType:
        members = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(members) == 1:
            return _unwrap(members[0])
    return annotation


def infer_kind(annotation: Any) -> ColumnKind | None:
    """Map a field annotation to a column kind, or None when unresolvable."""
    annotation = _unwrap(annotation)
    if get_origin(annotation) is not None or not isinstance(annotation, type):
        return None

    # bool before int, datetime before date: both are subclasses
    if issubclass(annotation, bool):
        return ColumnKind.BOOLEAN
    if issubclass(annotation, datetime):
        return ColumnKind.TIMESTAMP
    if issubclass(annotation, date):
        return ColumnKind.TEXT
    if issubclass(annotation, str):
        return ColumnKind.TEXT
    if issubclass(annotation, Enum):
        return ColumnKind.TEXT
    if issubclass(annotation, int):
        return ColumnKind.INTEGER
    if issubclass(annotation, float):
        return ColumnKind.FLOAT
    return None


def _build_field(
    attribute: str,
    annotation: Any,
    audit: dict[str, Any],
    alias: str | None,
) -> AuditField | None:
    if alias == SKIP_ALIAS:
        return None

    column = audit.get("column") or alias or attribute.lower()
    return AuditField(
        attribute=attribute,
        column=column,
        kind=infer_kind(annotation),
        sql_type=audit.get("sql_type"),
        nested=_is_record_type(_unwrap(annotation)),
    )


def _pydantic_fields(record_type: type[BaseModel]) -> list[AuditField]:
    result: list[AuditField] = []
    for name, info in record_type.model_fields.items():
        extra = info.json_schema_extra
        if not isinstance(extra, dict) or AUDIT_KEY not in extra:
            continue
        alias = info.serialization_alias or info.alias
        audit_field = _build_field(name, info.annotation, extra[AUDIT_KEY] or {}, alias)
        if audit_field is not None:
            result.append(audit_field)
    return result


def _dataclass_fields(record_type: type) -> list[AuditField]:
    try:
        hints = get_type_hints(record_type, include_extras=True)
    except (NameError, TypeError):
        # Unresolvable forward references; kinds fall back to TEXT
        hints = {}

    result: list[AuditField] = []
    for f in dataclasses.fields(record_type):
        if AUDIT_KEY not in f.metadata:
            continue
        annotation = hints.get(f.name, f.type)
        audit_field = _build_field(
            f.name, annotation, f.metadata[AUDIT_KEY] or {}, f.metadata.get(JSON_KEY)
        )
        if audit_field is not None:
            result.append(audit_field)
    return result


@lru_cache(maxsize=None)
def layout_for(record_type: type) -> RecordLayout:
    """Get the cached layout of a record type.

    Raises:
        RecordProjectionError: If the type is not a pydantic model or
            dataclass, or two fields map to the same column
    """
    if isinstance(record_type, type) and issubclass(record_type, BaseModel):
        fields = _pydantic_fields(record_type)
    elif dataclasses.is_dataclass(record_type):
        fields = _dataclass_fields(record_type)
    else:
        raise RecordProjectionError(
            f"{record_type!r} is not a pydantic model or dataclass"
        )

    seen: set[str] = set()
    for f in fields:
        if f.column in seen:
            raise RecordProjectionError(
                f"Duplicate audit column {f.column!r} on {record_type.__name__}"
            )
        seen.add(f.column)

    return RecordLayout(record_type=record_type, fields=tuple(fields))
