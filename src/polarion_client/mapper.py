"""
Map custom fields onto typed pydantic models and back.

A mapping model declares one optional field per custom field; the field's
alias (or its name) is the custom field id:

    class Requirement(BaseModel):
        risk: Optional[str] = None
        due: Optional[date] = Field(default=None, alias="targetDate")
        owner: Optional[RelationshipRef] = None

    req = load_custom_fields(work_item, Requirement)
    save_custom_fields(work_item, req)
"""

from __future__ import annotations

import types
from datetime import date, datetime, time, timedelta
from typing import Any, Optional, Type, TypeVar, Union, get_args, get_origin

from pydantic import BaseModel

from .fields import CustomFields
from .field_types import FieldKind, TableField, TextContent
from .models import WorkItem
from .relationships import RelationshipRef

M = TypeVar("M", bound=BaseModel)

# datetime before date: datetime is a date subclass
_KINDS = (
    (bool, FieldKind.BOOLEAN),
    (int, FieldKind.INTEGER),
    (float, FieldKind.FLOAT),
    (str, FieldKind.STRING),
    (datetime, FieldKind.DATE_TIME),
    (date, FieldKind.DATE),
    (time, FieldKind.TIME),
    (timedelta, FieldKind.DURATION),
    (TextContent, FieldKind.TEXT),
    (TableField, FieldKind.TABLE),
    (RelationshipRef, FieldKind.RELATIONSHIP),
)

_GETTERS = {
    FieldKind.STRING: CustomFields.get_string,
    FieldKind.INTEGER: CustomFields.get_int,
    FieldKind.FLOAT: CustomFields.get_float,
    FieldKind.BOOLEAN: CustomFields.get_bool,
    FieldKind.DATE_TIME: CustomFields.get_date_time,
    FieldKind.DATE: CustomFields.get_date_only,
    FieldKind.TIME: CustomFields.get_time_only,
    FieldKind.DURATION: CustomFields.get_duration,
    FieldKind.TEXT: CustomFields.get_text,
    FieldKind.TABLE: CustomFields.get_table,
    FieldKind.RELATIONSHIP: CustomFields.get_relationship,
}

_SETTERS = {
    FieldKind.STRING: CustomFields.set,
    FieldKind.INTEGER: CustomFields.set,
    FieldKind.FLOAT: CustomFields.set,
    FieldKind.BOOLEAN: CustomFields.set,
    FieldKind.DATE_TIME: CustomFields.set_date_time,
    FieldKind.DATE: CustomFields.set_date_only,
    FieldKind.TIME: CustomFields.set_time_only,
    FieldKind.DURATION: CustomFields.set_duration,
    FieldKind.TEXT: CustomFields.set_text,
    FieldKind.TABLE: CustomFields.set_table,
    FieldKind.RELATIONSHIP: CustomFields.set_relationship,
}


def field_kind_for(annotation: Any) -> FieldKind:
    """Resolve a (possibly Optional) annotation to the custom field kind it reads."""
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [a for a in get_args(annotation) if a is not type(None)]
        if len(args) != 1:
            raise TypeError(f"unsupported union annotation: {annotation!r}")
        annotation = args[0]

    if isinstance(annotation, type):
        for py_type, kind in _KINDS:
            if issubclass(annotation, py_type):
                return kind
    raise TypeError(f"unsupported custom field type: {annotation!r}")


def _field_items(model_cls: Type[BaseModel]):
    for name, info in model_cls.model_fields.items():
        yield name, info.alias or name, field_kind_for(info.annotation)


def load_custom_fields(work_item: WorkItem, model_cls: Type[M]) -> M:
    """Build ``model_cls`` from the work item's custom fields; missing ones keep defaults."""
    if work_item is None:
        raise ValueError("work item is None")

    cf = work_item.custom_fields
    values = {}
    for name, key, kind in _field_items(model_cls):
        value, found = _GETTERS[kind](cf, key)
        if found:
            values[key] = value
    return model_cls.model_validate(values)


def save_custom_fields(work_item: WorkItem, source: BaseModel) -> None:
    """Write every mapped field; fields set to None are removed from the item."""
    if work_item is None:
        raise ValueError("work item is None")

    cf = work_item.custom_fields
    for name, key, kind in _field_items(type(source)):
        value: Optional[Any] = getattr(source, name)
        if value is None:
            cf.delete(key)
            continue
        _SETTERS[kind](cf, key, value)


__all__ = ["field_kind_for", "load_custom_fields", "save_custom_fields"]
