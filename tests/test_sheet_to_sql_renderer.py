"""Tests for SQL rendering."""

from datetime import date

import pytest

from tools.sheet_to_sql.models import (
    Cell,
    ColumnSelection,
    ColumnType,
    InferredColumnType,
    ParsedGrid,
    RenderOptions,
)
from tools.sheet_to_sql.renderer import (
    NO_COLUMNS,
    NO_DATA,
    NO_TABLE_NAME,
    SqlRenderer,
    chunk_rows,
    format_sql_value,
    infer_column_type,
    is_date_like,
    sanitize_identifier,
)


def column(*cells):
    """Rows holding one cell each."""
    return [(cell,) for cell in cells]


def numbered_grid(count):
    return ParsedGrid(
        headers=("n",),
        rows=tuple((Cell.number(i),) for i in range(1, count + 1)),
    )


@pytest.fixture
def renderer():
    return SqlRenderer()


@pytest.fixture
def people():
    return ParsedGrid(
        headers=("id", "full name", "joined"),
        rows=(
            (Cell.number(1), Cell.text("Ada"), Cell.text("2024-01-05")),
            (Cell.number(2), Cell.text("O'Brien"), Cell.null()),
        ),
    )


class TestFormatSqlValue:
    """Test SQL literal formatting."""

    def test_null(self):
        assert format_sql_value(Cell.null()) == "NULL"

    def test_numbers(self):
        """Test numbers are unquoted."""
        assert format_sql_value(Cell.number(42)) == "42"
        assert format_sql_value(Cell.number(-7)) == "-7"
        assert format_sql_value(Cell.number(2.5)) == "2.5"
        assert format_sql_value(Cell.number(3.0)) == "3"

    def test_text_quotes_are_doubled(self):
        assert format_sql_value(Cell.text("O'Brien")) == "'O''Brien'"
        assert format_sql_value(Cell.text("it''s")) == "'it''''s'"

    def test_date_text(self):
        assert format_sql_value(Cell.text("2024-01-05")) == "'2024-01-05'"

    def test_native_date(self):
        """Test zero-padded month and day."""
        assert format_sql_value(Cell.date(date(2024, 3, 9))) == "'2024-03-09'"


class TestInferColumnType:
    """Test per-column type inference."""

    def test_numeric(self):
        rows = column(Cell.number(1), Cell.number(2), Cell.number(3))
        assert infer_column_type(rows, 0) == InferredColumnType(ColumnType.NUMERIC)

    def test_date_text(self):
        rows = column(Cell.text("2024-01-01"), Cell.text("2024-02-01"))
        assert str(infer_column_type(rows, 0)) == "DATE"

    def test_native_dates(self):
        rows = column(Cell.date(date(2024, 1, 1)), Cell.null())
        assert str(infer_column_type(rows, 0)) == "DATE"

    def test_date_with_trailing_newline_is_text(self):
        assert not is_date_like(Cell.text("2024-01-05\n"))
        rows = column(Cell.text("2024-01-05\n"))
        assert str(infer_column_type(rows, 0)) == "VARCHAR(50)"

    def test_all_null(self):
        """Test that an all-null column is VARCHAR(50)."""
        rows = column(Cell.null(), Cell.null())
        assert str(infer_column_type(rows, 0)) == "VARCHAR(50)"

    def test_short_text_gets_minimum_length(self):
        rows = column(Cell.text("hello world this is thirty chars!!"))
        assert str(infer_column_type(rows, 0)) == "VARCHAR(50)"

    def test_varchar_sized_by_longest_value(self):
        rows = column(Cell.text("a" * 60), Cell.text("b" * 10))
        assert str(infer_column_type(rows, 0)) == "VARCHAR(60)"

    def test_varchar_upper_bound(self):
        rows = column(Cell.text("x" * 255))
        assert str(infer_column_type(rows, 0)) == "VARCHAR(255)"

    def test_long_text(self):
        rows = column(Cell.text("x" * 300))
        assert infer_column_type(rows, 0).type == ColumnType.TEXT

    def test_numbers_with_text(self):
        """Test that numbers do not count toward the VARCHAR length."""
        rows = column(Cell.number(123456789), Cell.text("a" * 80))
        assert str(infer_column_type(rows, 0)) == "VARCHAR(80)"

    def test_numbers_with_dates(self):
        """Test that a numeric and date mix is sized by plain text only."""
        rows = column(Cell.number(1), Cell.text("2024-01-01"))
        assert str(infer_column_type(rows, 0)) == "VARCHAR(50)"

    def test_inspects_requested_column(self):
        rows = [(Cell.text("x"), Cell.number(1)), (Cell.text("y"), Cell.number(2))]
        assert str(infer_column_type(rows, 1)) == "NUMERIC"


class TestSanitizeIdentifier:
    """Test identifier sanitization."""

    def test_replaces_special_characters(self):
        assert sanitize_identifier("first name") == "first_name"
        assert sanitize_identifier("a-b.c") == "a_b_c"
        assert sanitize_identifier("prix (€)") == "prix____"

    def test_keeps_valid_identifiers(self):
        assert sanitize_identifier("Order_2024") == "Order_2024"

    def test_empty_name(self):
        assert sanitize_identifier("") == ""


class TestChunkRows:
    """Test batching."""

    def test_last_batch_smaller(self):
        batches = list(chunk_rows(list(range(5)), 2))
        assert batches == [[0, 1], [2, 3], [4]]

    def test_no_rows(self):
        assert list(chunk_rows([], 3)) == []


class TestRenderGuards:
    """Test the comment strings returned instead of SQL."""

    def test_empty_table_name(self, renderer, people):
        assert renderer.render(people, RenderOptions(table_name="")) == NO_TABLE_NAME

    def test_whitespace_table_name(self, renderer):
        grid = ParsedGrid(headers=(), rows=())
        assert renderer.render(grid, RenderOptions(table_name="   ")) == NO_TABLE_NAME

    def test_no_rows(self, renderer):
        grid = ParsedGrid(headers=("a",), rows=())
        assert renderer.render(grid, RenderOptions(table_name="t")) == NO_DATA

    def test_no_headers(self, renderer):
        grid = ParsedGrid(headers=(), rows=((),))
        assert renderer.render(grid, RenderOptions(table_name="t")) == NO_DATA

    def test_no_columns_selected(self, renderer, people):
        selection = ColumnSelection.from_flags([False, False, False])
        result = renderer.render(people, RenderOptions(table_name="t"), selection)
        assert result == NO_COLUMNS

    def test_no_data_checked_before_selection(self, renderer):
        grid = ParsedGrid(headers=("a",), rows=())
        selection = ColumnSelection.from_flags([False])
        assert renderer.render(grid, RenderOptions(table_name="t"), selection) == NO_DATA


class TestRender:
    """Test CREATE TABLE and INSERT rendering."""

    def test_full_output(self, renderer, people):
        """Test exact text with CREATE TABLE."""
        options = RenderOptions(table_name=" my table ", include_create_table=True)

        sql = renderer.render(people, options)

        assert sql == (
            "CREATE TABLE my_table (\n"
            "  id NUMERIC,\n"
            "  full_name VARCHAR(50),\n"
            "  joined DATE\n"
            ");\n"
            "\n"
            "INSERT INTO my_table (id, full_name, joined)\n"
            "VALUES\n"
            "(1,'Ada','2024-01-05'),\n"
            "(2,'O''Brien',NULL);"
        )

    def test_inserts_only_by_default(self, renderer, people):
        sql = renderer.render(people, RenderOptions(table_name="people"))

        assert not sql.startswith("CREATE TABLE")
        assert sql.startswith("INSERT INTO people (id, full_name, joined)\nVALUES\n")

    def test_batches(self, renderer):
        """Test 5 rows in batches of 2."""
        sql = renderer.render(numbered_grid(5), RenderOptions(table_name="t", batch_size=2))
        statements = sql.split("\n\n")

        assert len(statements) == 3
        assert [s.count("(") - 1 for s in statements] == [2, 2, 1]
        assert statements[2] == "INSERT INTO t (n)\nVALUES\n(5);"

    def test_default_batch_size(self, renderer):
        sql = renderer.render(numbered_grid(250), RenderOptions(table_name="t"))
        assert sql.count("INSERT INTO") == 3

    def test_rendering_is_idempotent(self, renderer, people):
        options = RenderOptions(table_name="people", include_create_table=True, batch_size=1)
        assert renderer.render(people, options) == renderer.render(people, options)

    def test_projection_keeps_order(self, renderer):
        """Test selecting columns 0 and 2 of 3."""
        grid = ParsedGrid(
            headers=("a", "b", "c"),
            rows=((Cell.number(1), Cell.text("skip"), Cell.text("z")),),
        )
        selection = ColumnSelection.of({2, 0}, width=3)

        sql = renderer.render(grid, RenderOptions(table_name="t"), selection)

        assert sql == "INSERT INTO t (a, c)\nVALUES\n(1,'z');"

    def test_projection_applies_to_create_table(self, renderer, people):
        selection = ColumnSelection.from_flags([False, True, False])
        options = RenderOptions(table_name="t", include_create_table=True)

        sql = renderer.render(people, options, selection)

        assert sql.startswith("CREATE TABLE t (\n  full_name VARCHAR(50)\n);")
        assert "joined" not in sql

    def test_selection_of_other_width_is_ignored(self, renderer, people):
        selection = ColumnSelection.from_flags([True])

        sql = renderer.render(people, RenderOptions(table_name="t"), selection)

        assert "INSERT INTO t (id, full_name, joined)" in sql

    def test_duplicate_headers_are_kept(self, renderer):
        grid = ParsedGrid(headers=("a b", "a-b"), rows=((Cell.number(1), Cell.number(2)),))

        sql = renderer.render(grid, RenderOptions(table_name="t"))

        assert sql.startswith("INSERT INTO t (a_b, a_b)")

    def test_infer_schema(self, renderer, people):
        columns = renderer.infer_schema(people)

        assert [c.name for c in columns] == ["id", "full_name", "joined"]
        assert [str(c.type) for c in columns] == ["NUMERIC", "VARCHAR(50)", "DATE"]
