"""Shared table schemas.

Column types follow fixed-width shared-memory tables: integers, floats and
strings with a maximum byte length. Values longer than a string column's
size are truncated rather than rejected.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator

from devsocial.core.exceptions import SharedTableError


class ColumnType(str, Enum):
    """Storage type of a shared table column."""

    INT = "int"
    FLOAT = "float"
    STRING = "string"


class Column(BaseModel):
    """A single typed column."""

    name: str
    type: ColumnType
    size: int = Field(8, gt=0, description="Byte width; the max length for strings")


class TableSchema(BaseModel):
    """Name, row capacity and columns of a shared table."""

    name: str
    size: int = Field(..., gt=0, description="Maximum number of rows")
    columns: list[Column]

    @model_validator(mode="after")
    def _unique_columns(self):
        names = [column.name for column in self.columns]
        if len(names) != len(set(names)):
            raise ValueError(f"duplicate column names in table {self.name}")
        return self

    def column(self, name: str) -> Column:
        for column in self.columns:
            if column.name == name:
                return column
        raise SharedTableError(self.name, f"unknown column '{name}'")

    def coerce_row(self, row: dict[str, Any]) -> dict[str, Any]:
        """Validate *row* against the columns and normalise its values.

        Missing columns default to zero / empty string.
        """
        unknown = set(row) - {column.name for column in self.columns}
        if unknown:
            raise SharedTableError(self.name, f"unknown columns {sorted(unknown)}")

        coerced: dict[str, Any] = {}
        for column in self.columns:
            value = row.get(column.name)
            coerced[column.name] = _coerce_value(self.name, column, value)
        return coerced

    def decode_row(self, raw: dict[str, Any]) -> dict[str, Any]:
        """Turn stored (possibly stringified) values back into column types."""
        return {
            column.name: _coerce_value(self.name, column, raw.get(column.name))
            for column in self.columns
        }


def _coerce_value(table: str, column: Column, value: Any) -> Any:
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    try:
        if column.type == ColumnType.INT:
            return int(value) if value not in (None, "") else 0
        if column.type == ColumnType.FLOAT:
            return float(value) if value not in (None, "") else 0.0
    except (TypeError, ValueError) as e:
        raise SharedTableError(
            table, f"column '{column.name}' expects {column.type.value}, got {value!r}"
        ) from e

    text = "" if value is None else str(value)
    encoded = text.encode("utf-8")
    if len(encoded) > column.size:
        text = encoded[: column.size].decode("utf-8", errors="ignore")
    return text
