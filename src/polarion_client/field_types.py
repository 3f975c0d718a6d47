from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Union

from pydantic import BaseModel, ConfigDict, Field

# Shape of custom-field data after generic JSON decoding.
JSONValue = Union[None, bool, int, float, str, List[Any], Dict[str, Any]]


class FieldKind(str, Enum):
    """Custom field kinds reported by the field metadata endpoints."""

    STRING = "string"
    TEXT = "text"
    TEXT_HTML = "text/html"
    INTEGER = "integer"
    FLOAT = "float"
    TIME = "time"
    DATE = "date"
    DATE_TIME = "date-time"
    DURATION = "duration"
    BOOLEAN = "boolean"
    ENUMERATION = "enumeration"
    RELATIONSHIP = "relationship"
    CODE = "code"
    STRUCTURE = "structure"
    CURRENCY = "currency"
    TABLE = "table"


class TextContent(BaseModel):
    """Rich text: a content type ("text/html", "text/plain") and its value."""

    type: str = ""
    value: str = ""

    model_config = ConfigDict(extra="ignore")

    @classmethod
    def html(cls, value: str) -> "TextContent":
        return cls(type="text/html", value=value)

    @classmethod
    def plain(cls, value: str) -> "TextContent":
        return cls(type="text/plain", value=value)


class TableRow(BaseModel):
    values: List[TextContent] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class TableField(BaseModel):
    """
    Table custom field: column keys plus rows of rich-text cells.
    Row/column lookups raise IndexError when out of range and KeyError
    for unknown column keys.
    """

    keys: List[str] = Field(default_factory=list)
    rows: List[TableRow] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.keys)

    def _row(self, row: int) -> TableRow:
        if row < 0 or row >= len(self.rows):
            raise IndexError(
                f"row index {row} out of bounds (table has {len(self.rows)} rows)"
            )
        return self.rows[row]

    def _column_index(self, key: str) -> int:
        try:
            return self.keys.index(key)
        except ValueError:
            raise KeyError(f"column key {key!r} not found in table") from None

    def get_cell(self, row: int, col: int) -> TextContent:
        values = self._row(row).values
        if col < 0 or col >= len(values):
            raise IndexError(
                f"column index {col} out of bounds "
                f"(row {row} has {len(values)} columns)"
            )
        return values[col]

    def get_cell_by_key(self, row: int, key: str) -> TextContent:
        self._row(row)
        return self.get_cell(row, self._column_index(key))

    def get_row(self, row: int) -> List[TextContent]:
        return self._row(row).values

    def get_row_as_map(self, row: int) -> Dict[str, TextContent]:
        values = self._row(row).values
        return {k: values[i] for i, k in enumerate(self.keys) if i < len(values)}

    def get_all_rows_as_map(self) -> List[Dict[str, TextContent]]:
        return [self.get_row_as_map(i) for i in range(len(self.rows))]

    def get_column(self, col: int) -> List[TextContent]:
        if col < 0 or col >= len(self.keys):
            raise IndexError(
                f"column index {col} out of bounds "
                f"(table has {len(self.keys)} columns)"
            )
        # Short rows yield empty cells
        return [
            r.values[col] if col < len(r.values) else TextContent() for r in self.rows
        ]

    def get_column_by_key(self, key: str) -> List[TextContent]:
        return self.get_column(self._column_index(key))

    def add_row(self, values: List[TextContent]) -> None:
        if len(values) != len(self.keys):
            raise ValueError(
                f"row has {len(values)} values but table has {len(self.keys)} columns"
            )
        self.rows.append(TableRow(values=list(values)))

    def set_cell(self, row: int, col: int, value: TextContent) -> None:
        self.get_cell(row, col)
        self.rows[row].values[col] = value


__all__ = ["JSONValue", "FieldKind", "TextContent", "TableRow", "TableField"]
