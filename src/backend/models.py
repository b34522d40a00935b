"""Typed records exchanged between the query layer and the grid."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


@dataclass(frozen=True)
class Column:
    """Schema column as reported by introspection."""

    name: str
    type: str = "VARCHAR"
    not_null: bool = False
    is_primary_key: bool = False


@dataclass(frozen=True)
class TableDescriptor:
    """One table of the loaded database."""

    name: str
    columns: tuple[Column, ...] = ()
    row_count: int = 0

    @property
    def column_names(self) -> list[str]:
        return [col.name for col in self.columns]

    def get_column(self, name: str) -> Optional[Column]:
        """Return the column with this exact name, if any."""
        return next((col for col in self.columns if col.name == name), None)


class SortDirection(str, Enum):
    """Sort order of the active sort target."""

    ASCENDING = "asc"
    DESCENDING = "desc"

    @property
    def sql(self) -> str:
        return "ASC" if self is SortDirection.ASCENDING else "DESC"


@dataclass(frozen=True)
class SortSpec:
    """Single active sort target."""

    column: str
    direction: SortDirection = SortDirection.ASCENDING


@dataclass(frozen=True)
class ResultSet:
    """Column names plus a row matrix, values aligned with the names."""

    column_names: tuple[str, ...] = ()
    rows: tuple[tuple[Any, ...], ...] = field(default_factory=tuple)

    @classmethod
    def from_rows(cls, column_names: Any, rows: Any) -> "ResultSet":
        """Build a ResultSet from any sequences, validating the shape."""
        names = tuple(str(name) for name in column_names)
        matrix = tuple(tuple(row) for row in rows)
        for index, row in enumerate(matrix):
            if len(row) != len(names):
                raise ValueError(
                    f"Row {index} has {len(row)} values but {len(names)} columns were returned"
                )
        return cls(column_names=names, rows=matrix)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        return not self.rows


EMPTY_RESULT = ResultSet()
