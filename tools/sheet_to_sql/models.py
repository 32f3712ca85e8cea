"""Data model shared by the parser and the SQL renderer."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, FrozenSet, Iterable, Optional, Sequence, Tuple, Union

Number = Union[int, float]


class CellKind(str, Enum):
    """Kinds of normalized spreadsheet values."""

    NULL = "null"
    NUMBER = "number"
    TEXT = "text"
    DATE = "date"


@dataclass(frozen=True)
class Cell:
    """
    One normalized spreadsheet value.

    Build cells through the named constructors so ``value`` always matches
    ``kind``: None for NULL, int/float for NUMBER, str for TEXT and
    ``datetime.date`` for DATE.
    """

    kind: CellKind
    value: Any = None

    @classmethod
    def null(cls) -> "Cell":
        return _NULL

    @classmethod
    def number(cls, value: Number) -> "Cell":
        return cls(CellKind.NUMBER, value)

    @classmethod
    def text(cls, value: str) -> "Cell":
        return cls(CellKind.TEXT, value)

    @classmethod
    def date(cls, value: date) -> "Cell":
        return cls(CellKind.DATE, value)

    @property
    def is_null(self) -> bool:
        return self.kind == CellKind.NULL

    def to_json(self) -> Any:
        """JSON-friendly value (dates as yyyy-mm-dd)."""
        if self.kind == CellKind.DATE:
            return format_date(self.value)
        return self.value

    def display(self) -> str:
        """Text shown in previews."""
        if self.kind == CellKind.NULL:
            return "NULL"
        if self.kind == CellKind.NUMBER:
            return format_number(self.value)
        if self.kind == CellKind.DATE:
            return format_date(self.value)
        return self.value


_NULL = Cell(CellKind.NULL)


def format_number(value: Number) -> str:
    """Render a number the way a spreadsheet shows it (2.0 -> "2")."""
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value) if isinstance(value, float) else str(value)


def format_date(value: date) -> str:
    """Render a date as yyyy-mm-dd."""
    return f"{value.year}-{value.month:02d}-{value.day:02d}"


@dataclass(frozen=True)
class ColumnSelection:
    """
    Subset of columns to keep when rendering.

    Attributes:
        indices: Zero-based indices of the kept columns
        width: Number of columns the selection was made against
    """

    indices: FrozenSet[int]
    width: int

    @classmethod
    def from_flags(cls, flags: Sequence[bool]) -> "ColumnSelection":
        """Build a selection from one checkbox flag per column."""
        return cls(frozenset(i for i, keep in enumerate(flags) if keep), len(flags))

    @classmethod
    def of(cls, indices: Iterable[int], width: int) -> "ColumnSelection":
        return cls(frozenset(indices), width)

    def flags(self) -> Tuple[bool, ...]:
        return tuple(i in self.indices for i in range(self.width))


@dataclass(frozen=True)
class ParsedGrid:
    """
    Normalized header row plus typed data rows of one sheet.

    Every row holds exactly ``len(headers)`` cells.
    """

    headers: Tuple[str, ...]
    rows: Tuple[Tuple[Cell, ...], ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "headers", tuple(self.headers))
        object.__setattr__(self, "rows", tuple(tuple(row) for row in self.rows))

        width = len(self.headers)
        for index, row in enumerate(self.rows):
            if len(row) != width:
                raise ValueError(
                    f"Row {index} has {len(row)} cells, expected {width}"
                )

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.headers)

    def preview(self, max_rows: int = 50) -> "ParsedGrid":
        """First ``max_rows`` rows of the grid."""
        return ParsedGrid(self.headers, self.rows[:max_rows])

    def project(self, selection: ColumnSelection) -> "ParsedGrid":
        """Keep only the selected columns, in their original order."""
        keep = [i for i in range(len(self.headers)) if i in selection.indices]
        return ParsedGrid(
            headers=tuple(self.headers[i] for i in keep),
            rows=tuple(tuple(row[i] for i in keep) for row in self.rows),
        )


@dataclass(frozen=True)
class RenderOptions:
    """Options for one SQL rendering request."""

    table_name: str
    include_create_table: bool = False
    batch_size: int = 100

    def __post_init__(self):
        if self.batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")


class ColumnType(str, Enum):
    """SQL column types produced by inference."""

    DATE = "DATE"
    NUMERIC = "NUMERIC"
    VARCHAR = "VARCHAR"
    TEXT = "TEXT"


@dataclass(frozen=True)
class InferredColumnType:
    """Inferred SQL type of one column."""

    type: ColumnType
    length: Optional[int] = None

    def __str__(self) -> str:
        if self.type == ColumnType.VARCHAR:
            return f"VARCHAR({self.length})"
        return self.type.value


@dataclass(frozen=True)
class ColumnDefinition:
    """Sanitized column name with its inferred type."""

    name: str
    type: InferredColumnType
