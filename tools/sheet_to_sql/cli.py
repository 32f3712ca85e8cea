"""CLI interface for Sheet to SQL."""

import sys
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Set

import click
from rich.markup import escape

from shared.cli import create_table, error, handle_errors, info, print_table, success, warning
from shared.logger import setup_logger

from .config import CONFIG_ENVVAR, ConfigError, load_config
from .models import ColumnSelection, ParsedGrid, RenderOptions
from .parser import ParseError, TabularParser
from .renderer import SqlRenderer
from .upload import UnsupportedFileError, output_filename, validate_upload


def split_columns(values: Iterable[str]) -> List[str]:
    """Flatten repeated and comma separated column options."""
    tokens = []
    for value in values:
        tokens.extend(t.strip() for t in value.split(",") if t.strip())
    return tokens


def resolve_columns(headers: Sequence[str], tokens: Iterable[str]) -> Set[int]:
    """
    Map column names or zero-based indices to header positions.

    A name matches every header with that name.

    Raises:
        click.BadParameter: If a token matches no column
    """
    indices: Set[int] = set()
    for token in tokens:
        matches = [i for i, header in enumerate(headers) if header == token]
        if not matches and token.isdigit() and int(token) < len(headers):
            matches = [int(token)]
        if not matches:
            raise click.BadParameter(f"Unknown column: {token}")
        indices.update(matches)
    return indices


def build_selection(
    headers: Sequence[str],
    columns: Sequence[str],
    exclude: Sequence[str],
) -> Optional[ColumnSelection]:
    """Selection for --columns/--exclude, or None to keep everything."""
    if columns and exclude:
        raise click.UsageError("--columns and --exclude cannot be combined")

    if columns:
        return ColumnSelection.of(resolve_columns(headers, columns), len(headers))
    if exclude:
        dropped = resolve_columns(headers, exclude)
        return ColumnSelection.of(
            (i for i in range(len(headers)) if i not in dropped), len(headers)
        )
    return None


def display_preview(grid: ParsedGrid, max_rows: int) -> None:
    """
    Display the first rows of a parsed file.

    Args:
        grid: Parsed file
        max_rows: Number of rows to show
    """
    table = create_table(
        title=f"{grid.row_count} row{'s' if grid.row_count != 1 else ''} × "
        f"{grid.column_count} column{'s' if grid.column_count != 1 else ''}"
    )
    for header in grid.headers:
        table.add_column(escape(header), no_wrap=True)

    for row in grid.preview(max_rows).rows:
        table.add_row(
            *(
                "[dim italic]NULL[/dim italic]" if cell.is_null else escape(cell.display())
                for cell in row
            )
        )

    print_table(table)

    if grid.row_count > max_rows:
        info(f"Showing first {max_rows} of {grid.row_count} rows")


@click.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--table", "-t", help="Table name")
@click.option(
    "--create-table",
    "include_create_table",
    is_flag=True,
    help="Emit CREATE TABLE before the INSERT statements",
)
@click.option(
    "--batch-size",
    "-b",
    type=click.IntRange(min=1),
    help="Rows per INSERT statement [default: 100]",
)
@click.option(
    "--columns",
    "-c",
    multiple=True,
    help="Columns to include (names or zero-based indices, comma separated)",
)
@click.option(
    "--exclude",
    "-x",
    multiple=True,
    help="Columns to leave out (names or zero-based indices, comma separated)",
)
@click.option("--preview", is_flag=True, help="Show a preview of the parsed rows")
@click.option(
    "--preview-rows",
    type=click.IntRange(min=1),
    help="Rows shown by --preview [default: 50]",
)
@click.option(
    "--preserve-dates",
    is_flag=True,
    help="Keep spreadsheet dates as DATE values",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    help="Output SQL file or directory (print to stdout if not specified)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    envvar=CONFIG_ENVVAR,
    help=f"YAML file with default settings (env: {CONFIG_ENVVAR})",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@handle_errors
def main(
    input_file: Path,
    table: Optional[str],
    include_create_table: bool,
    batch_size: Optional[int],
    columns: Sequence[str],
    exclude: Sequence[str],
    preview: bool,
    preview_rows: Optional[int],
    preserve_dates: bool,
    output: Optional[Path],
    config_path: Optional[Path],
    verbose: bool,
):
    """
    Sheet to SQL - Generate INSERT statements from spreadsheets.

    Reads the first sheet of an .xlsx, .xls or .csv file, uses its first
    row as column names and emits batched INSERT statements, optionally
    preceded by a CREATE TABLE with inferred column types.

    Examples:

        \b
        # Print INSERTs for a spreadsheet
        sheet2sql students.xlsx --table students

        \b
        # Add CREATE TABLE and save next to the input
        sheet2sql students.xlsx -t students --create-table -o .

        \b
        # Only some columns
        sheet2sql data.csv -t people --columns name,email

        \b
        # Preview the parsed rows
        sheet2sql data.csv -t people --preview --preview-rows 10
    """
    # Setup logging
    log_level = "DEBUG" if verbose else "INFO"
    setup_logger(__name__, level=log_level)

    try:
        settings = load_config(config_path).merge(
            table_name=table,
            include_create_table=include_create_table or None,
            batch_size=batch_size,
            preview_rows=preview_rows,
            preserve_dates=preserve_dates or None,
        )

        validate_upload(input_file.name)

        info(f"Parsing {input_file}")
        grid = TabularParser(preserve_dates=settings.preserve_dates).parse(
            input_file.read_bytes(), input_file.name
        )

        if preview:
            display_preview(grid, settings.preview_rows)

        selection = build_selection(grid.headers, split_columns(columns), split_columns(exclude))

        options = RenderOptions(
            table_name=settings.table_name,
            include_create_table=settings.include_create_table,
            batch_size=settings.batch_size,
        )
        sql = SqlRenderer().render(grid, options, selection)

        if sql.startswith("-- "):
            warning(sql[3:])

        if output:
            target = output / output_filename(settings.table_name) if output.is_dir() else output
            target.write_text(sql, encoding="utf-8")
            success(f"SQL written to: {target}")
        else:
            click.echo(sql)

        sys.exit(0)

    except (ConfigError, UnsupportedFileError, ParseError) as e:
        error(str(e))
        sys.exit(1)

    except click.ClickException:
        raise

    except Exception as e:
        error(f"Conversion failed: {e}")
        if verbose:
            raise
        sys.exit(1)


if __name__ == "__main__":
    main()
