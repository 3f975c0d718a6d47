"""
Typed access to work item custom fields.

Polarion returns custom fields flat inside ``attributes`` and their JSON shape
depends on the field kind and, in practice, on the server version. Every
getter here returns ``(value, found)``; ``found`` is False when the key is
missing, the value is null, or the value cannot be read as the requested
kind. Getters never raise for a shape mismatch.
"""

from __future__ import annotations

import math
from collections.abc import MutableMapping
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from .field_types import TableField, TableRow, TextContent
from .relationships import (
    RelationshipRef,
    encode_ref,
    encode_refs,
    extract_ref,
    extract_refs,
)
from .utils.time_parser import (
    FieldParseError,
    format_date_only,
    format_date_time,
    format_duration,
    format_time_only,
    parse_date_only,
    parse_date_time,
    parse_duration,
    parse_time_only,
)


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a numeric field value
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _text_from_mapping(raw: Dict[str, Any]) -> TextContent:
    kind = raw.get("type")
    value = raw.get("value")
    return TextContent(
        type=kind if isinstance(kind, str) else "",
        value=value if isinstance(value, str) else "",
    )


def _table_from_mapping(raw: Dict[str, Any]) -> TableField:
    table = TableField()

    keys = raw.get("keys")
    if isinstance(keys, list):
        table.keys = [k if isinstance(k, str) else "" for k in keys]

    rows = raw.get("rows")
    if isinstance(rows, list):
        for row_raw in rows:
            row = TableRow()
            values = row_raw.get("values") if isinstance(row_raw, dict) else None
            if isinstance(values, list):
                row.values = [
                    _text_from_mapping(cell) if isinstance(cell, dict) else TextContent()
                    for cell in values
                ]
            table.rows.append(row)
    return table


class CustomFields(MutableMapping):
    """
    View over a custom-field dict; writes go straight to the wrapped dict.
    Not safe for concurrent mutation.
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = data if data is not None else {}

    # --- Mapping protocol ---

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        del self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"CustomFields({self._data!r})"

    @property
    def raw(self) -> Dict[str, Any]:
        return self._data

    # --- Scalars ---

    def get_string(self, key: str) -> Tuple[str, bool]:
        val = self._data.get(key)
        if isinstance(val, str):
            return val, True
        return "", False

    def get_enum(self, key: str) -> Tuple[str, bool]:
        return self.get_string(key)

    def get_int(self, key: str) -> Tuple[int, bool]:
        val = self._data.get(key)
        if not _is_number(val):
            return 0, False
        if isinstance(val, float):
            if not math.isfinite(val):
                return 0, False
            return int(val), True  # truncates toward zero
        return val, True

    def get_float(self, key: str) -> Tuple[float, bool]:
        val = self._data.get(key)
        if _is_number(val):
            result = float(val)
        elif isinstance(val, str):
            # currency fields arrive as strings
            try:
                result = float(val)
            except ValueError:
                return 0.0, False
        else:
            return 0.0, False
        if not math.isfinite(result):
            return 0.0, False
        return result, True

    def get_bool(self, key: str) -> Tuple[bool, bool]:
        val = self._data.get(key)
        if isinstance(val, bool):
            return val, True
        return False, False

    # --- Structured values ---

    def get_text(self, key: str) -> Tuple[Optional[TextContent], bool]:
        val = self._data.get(key)
        if isinstance(val, TextContent):
            return val, True
        if isinstance(val, dict):
            return _text_from_mapping(val), True
        return None, False

    def get_table(self, key: str) -> Tuple[Optional[TableField], bool]:
        val = self._data.get(key)
        if isinstance(val, TableField):
            return val, True
        if isinstance(val, dict):
            return _table_from_mapping(val), True
        return None, False

    # --- Temporal values (string encoded) ---

    def _parse_string(self, key: str, parser) -> Tuple[Any, bool]:
        text, ok = self.get_string(key)
        if not ok:
            return None, False
        try:
            return parser(text), True
        except FieldParseError:
            return None, False

    def get_time_only(self, key: str) -> Tuple[Optional[time], bool]:
        return self._parse_string(key, parse_time_only)

    def get_date_only(self, key: str) -> Tuple[Optional[date], bool]:
        return self._parse_string(key, parse_date_only)

    def get_date_time(self, key: str) -> Tuple[Optional[datetime], bool]:
        return self._parse_string(key, parse_date_time)

    def get_duration(self, key: str) -> Tuple[Optional[timedelta], bool]:
        return self._parse_string(key, parse_duration)

    # --- Relationships ---

    def get_relationship(self, key: str) -> Tuple[Optional[RelationshipRef], bool]:
        return extract_ref(self._data, key)

    def get_relationships(self, key: str) -> List[RelationshipRef]:
        return extract_refs(self._data, key)

    # --- Mutators (no validation; the server decides) ---

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def has(self, key: str) -> bool:
        return key in self._data

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def set_text(self, key: str, value: TextContent) -> None:
        self._data[key] = value

    def set_table(self, key: str, value: TableField) -> None:
        self._data[key] = value

    def set_time_only(self, key: str, value: time) -> None:
        self._data[key] = format_time_only(value)

    def set_date_only(self, key: str, value: date) -> None:
        self._data[key] = format_date_only(value)

    def set_date_time(self, key: str, value: datetime) -> None:
        self._data[key] = format_date_time(value)

    def set_duration(self, key: str, value: timedelta) -> None:
        self._data[key] = format_duration(value)

    def set_relationship(self, key: str, ref: Optional[RelationshipRef]) -> None:
        encode_ref(self._data, key, ref)

    def set_relationships(self, key: str, refs: Iterable[RelationshipRef]) -> None:
        encode_refs(self._data, key, refs)


__all__ = ["CustomFields"]
