"""Render a parsed grid as CREATE TABLE / INSERT statements."""

import re
from typing import Iterator, List, Optional, Sequence

from shared.logger import get_logger

from .models import (
    Cell,
    CellKind,
    ColumnDefinition,
    ColumnSelection,
    ColumnType,
    InferredColumnType,
    ParsedGrid,
    RenderOptions,
    format_date,
    format_number,
)

logger = get_logger(__name__)

DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)
IDENTIFIER_PATTERN = re.compile(r"[^a-zA-Z0-9_]")

MIN_VARCHAR_LENGTH = 50
MAX_VARCHAR_LENGTH = 255

NO_TABLE_NAME = "-- Please specify a table name"
NO_DATA = "-- No data to generate"
NO_COLUMNS = "-- No columns selected"

Row = Sequence[Cell]


def sanitize_identifier(name: str) -> str:
    """Replace every character outside [A-Za-z0-9_] with an underscore."""
    return IDENTIFIER_PATTERN.sub("_", name)


def is_date_like(cell: Cell) -> bool:
    """DATE cells and yyyy-mm-dd text."""
    if cell.kind == CellKind.DATE:
        return True
    return cell.kind == CellKind.TEXT and bool(DATE_PATTERN.fullmatch(cell.value))


def infer_column_type(rows: Sequence[Row], col_index: int) -> InferredColumnType:
    """
    Infer the SQL type of one column from all of its values.

    Numeric and date-like values do not count toward the VARCHAR length, so
    a column mixing both kinds is sized by its plain text alone.

    Args:
        rows: Grid rows
        col_index: Index of the column to inspect

    Returns:
        InferredColumnType (DATE, NUMERIC, VARCHAR(n) or TEXT)
    """
    has_number = False
    has_date = False
    has_text = False
    max_length = 0

    for row in rows:
        cell = row[col_index]
        if cell.kind == CellKind.NULL:
            continue
        if cell.kind == CellKind.NUMBER:
            has_number = True
        elif is_date_like(cell):
            has_date = True
        else:
            has_text = True
            max_length = max(max_length, len(cell.value))

    if has_date and not has_number and not has_text:
        return InferredColumnType(ColumnType.DATE)
    if has_number and not has_date and not has_text:
        return InferredColumnType(ColumnType.NUMERIC)
    if max_length <= MAX_VARCHAR_LENGTH:
        return InferredColumnType(ColumnType.VARCHAR, max(max_length, MIN_VARCHAR_LENGTH))
    return InferredColumnType(ColumnType.TEXT)


def format_sql_value(cell: Cell) -> str:
    """Format one cell as a SQL literal."""
    if cell.kind == CellKind.NULL:
        return "NULL"
    if cell.kind == CellKind.NUMBER:
        return format_number(cell.value)
    if cell.kind == CellKind.DATE:
        return f"'{format_date(cell.value)}'"
    if cell.kind == CellKind.TEXT:
        if DATE_PATTERN.fullmatch(cell.value):
            return f"'{cell.value}'"
        escaped = cell.value.replace("'", "''")
        return f"'{escaped}'"
    raise ValueError(f"Unknown cell kind: {cell.kind}")


def chunk_rows(rows: Sequence[Row], batch_size: int) -> Iterator[Sequence[Row]]:
    """Yield consecutive slices of at most batch_size rows."""
    for start in range(0, len(rows), batch_size):
        yield rows[start : start + batch_size]


class SqlRenderer:
    """
    Turn a ParsedGrid into SQL text.

    Invalid input (no table name, no data, no columns) never raises; it
    renders as a one-line SQL comment instead.
    """

    def render(
        self,
        grid: ParsedGrid,
        options: RenderOptions,
        selection: Optional[ColumnSelection] = None,
    ) -> str:
        """
        Render CREATE TABLE (optional) and batched INSERT statements.

        Args:
            grid: Parsed spreadsheet
            options: Table name, CREATE TABLE flag and batch size
            selection: Columns to keep (ignored unless made against the
                grid's full width)

        Returns:
            SQL text, or a SQL comment describing why nothing was generated
        """
        if not options.table_name.strip():
            return NO_TABLE_NAME
        if not grid.headers or not grid.rows:
            return NO_DATA

        if selection is not None and selection.width == len(grid.headers):
            grid = grid.project(selection)
            if not grid.headers:
                return NO_COLUMNS

        table_name = sanitize_identifier(options.table_name.strip())
        sql_parts = []

        if options.include_create_table:
            columns = self.infer_schema(grid)
            sql_parts.append(self.generate_create_table(table_name, columns))

        sql_parts.extend(
            self.generate_insert_statements(table_name, grid, options.batch_size)
        )

        return "\n\n".join(sql_parts)

    def infer_schema(self, grid: ParsedGrid) -> List[ColumnDefinition]:
        """Sanitized column names with their inferred types."""
        columns = [
            ColumnDefinition(
                name=sanitize_identifier(header),
                type=infer_column_type(grid.rows, index),
            )
            for index, header in enumerate(grid.headers)
        ]
        logger.debug(f"Inferred {len(columns)} column type(s)")
        return columns

    def generate_create_table(self, table_name: str, columns: Sequence[ColumnDefinition]) -> str:
        """
        Generate CREATE TABLE statement.

        Args:
            table_name: Sanitized table name
            columns: Column definitions

        Returns:
            SQL CREATE TABLE statement
        """
        col_defs = ",\n".join(f"  {col.name} {col.type}" for col in columns)
        return f"CREATE TABLE {table_name} (\n{col_defs}\n);"

    def generate_insert_statements(
        self,
        table_name: str,
        grid: ParsedGrid,
        batch_size: int = 100,
    ) -> List[str]:
        """
        Generate one INSERT statement per batch of rows.

        Args:
            table_name: Sanitized table name
            grid: Grid whose headers name the columns
            batch_size: Rows per INSERT

        Returns:
            List of INSERT statements in row order
        """
        column_names = ", ".join(sanitize_identifier(h) for h in grid.headers)

        statements = []
        for batch in chunk_rows(grid.rows, batch_size):
            values = ",\n".join(
                f"({','.join(format_sql_value(cell) for cell in row)})" for row in batch
            )
            statements.append(f"INSERT INTO {table_name} ({column_names})\nVALUES\n{values};")

        logger.info(f"Generated {len(statements)} INSERT statement(s) for {table_name}")
        return statements
