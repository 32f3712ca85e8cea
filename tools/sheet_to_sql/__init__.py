"""Sheet to SQL - Generate SQL from spreadsheets."""

from .models import Cell, CellKind, ColumnSelection, ColumnType, ParsedGrid, RenderOptions
from .parser import ParseError, TabularParser
from .renderer import SqlRenderer, format_sql_value, infer_column_type, sanitize_identifier

__all__ = [
    "Cell",
    "CellKind",
    "ColumnSelection",
    "ColumnType",
    "ParseError",
    "ParsedGrid",
    "RenderOptions",
    "SqlRenderer",
    "TabularParser",
    "format_sql_value",
    "infer_column_type",
    "sanitize_identifier",
]
