"""HTTP upload service for Sheet to SQL."""

import sys
from pathlib import Path
from typing import Optional
from urllib.parse import quote

import click
import uvicorn
from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response

from shared.cli import error, info
from shared.logger import get_logger, setup_logger

from .config import CONFIG_ENVVAR, ConfigError, Settings, load_config
from .models import ColumnSelection, ParsedGrid, RenderOptions
from .parser import ParseError, TabularParser
from .renderer import SqlRenderer
from .upload import ALLOWED_EXTENSIONS, UnsupportedFileError, output_filename, validate_upload

logger = get_logger(__name__)

TRUE_FLAGS = ("true", "1", "yes", "on")
FALSE_FLAGS = ("false", "0", "no", "off")


def parse_column_flags(value: str) -> ColumnSelection:
    """
    Build a selection from comma separated per-column flags.

    "true,false,true" keeps the first and third column. The selection is
    ignored by the renderer unless it has one flag per column.

    Raises:
        ValueError: If a flag is not a boolean
    """
    flags = []
    for token in value.split(","):
        token = token.strip().lower()
        if token in TRUE_FLAGS:
            flags.append(True)
        elif token in FALSE_FLAGS:
            flags.append(False)
        else:
            raise ValueError(f"Invalid column flag: {token!r}")
    return ColumnSelection.from_flags(flags)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create the upload service.

    Args:
        settings: Defaults for rendering and upload limits

    Returns:
        FastAPI application
    """
    settings = settings or Settings()
    parser = TabularParser(preserve_dates=settings.preserve_dates)
    renderer = SqlRenderer()

    app = FastAPI(
        title="Sheet to SQL",
        description="Convert spreadsheets to INSERT statements",
        version="0.1.0",
    )

    async def read_grid(file: UploadFile) -> ParsedGrid:
        filename = file.filename or ""
        try:
            validate_upload(filename, file.content_type)
        except UnsupportedFileError as e:
            raise HTTPException(status_code=400, detail=str(e))

        data = await file.read(settings.max_upload_bytes + 1)
        if len(data) > settings.max_upload_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"File is larger than {settings.max_upload_bytes} bytes",
            )

        try:
            return await run_in_threadpool(parser.parse, data, filename)
        except ParseError as e:
            logger.warning(f"Failed to parse {filename}: {e}")
            raise HTTPException(status_code=422, detail=str(e))

    async def render(
        grid: ParsedGrid,
        table_name: str,
        include_create_table: bool,
        batch_size: int,
        selected_columns: Optional[str],
    ) -> str:
        try:
            options = RenderOptions(
                table_name=table_name,
                include_create_table=include_create_table,
                batch_size=batch_size,
            )
            selection = None
            if selected_columns is not None:
                selection = parse_column_flags(selected_columns)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))

        return await run_in_threadpool(renderer.render, grid, options, selection)

    @app.get("/")
    async def root():
        """Service status."""
        return JSONResponse(
            content={
                "status": "running",
                "allowed_extensions": list(ALLOWED_EXTENSIONS),
                "max_upload_bytes": settings.max_upload_bytes,
            }
        )

    @app.post("/api/preview")
    async def preview(
        file: UploadFile = File(...),
        max_rows: int = Form(settings.preview_rows, ge=1),
    ):
        """Parse an upload and return its first rows."""
        grid = await read_grid(file)
        shown = grid.preview(max_rows)

        return JSONResponse(
            content={
                "filename": file.filename,
                "headers": list(grid.headers),
                "rows": [[cell.to_json() for cell in row] for row in shown.rows],
                "total_rows": grid.row_count,
                "total_columns": grid.column_count,
                "truncated": grid.row_count > max_rows,
            }
        )

    @app.post("/api/generate")
    async def generate(
        file: UploadFile = File(...),
        table_name: str = Form(settings.table_name),
        include_create_table: bool = Form(settings.include_create_table),
        batch_size: int = Form(settings.batch_size),
        selected_columns: Optional[str] = Form(None),
    ):
        """Parse an upload and return the generated SQL."""
        grid = await read_grid(file)
        sql = await render(grid, table_name, include_create_table, batch_size, selected_columns)

        return JSONResponse(content={"sql": sql, "filename": output_filename(table_name)})

    @app.post("/api/download")
    async def download(
        file: UploadFile = File(...),
        table_name: str = Form(settings.table_name),
        include_create_table: bool = Form(settings.include_create_table),
        batch_size: int = Form(settings.batch_size),
        selected_columns: Optional[str] = Form(None),
    ):
        """Parse an upload and return the generated SQL as a file."""
        grid = await read_grid(file)
        sql = await render(grid, table_name, include_create_table, batch_size, selected_columns)
        filename = output_filename(table_name)

        return Response(
            content=sql,
            media_type="text/sql",
            headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
        )

    return app


@click.command()
@click.option(
    "--port",
    "-p",
    type=int,
    default=8000,
    show_default=True,
    help="Port to run server on",
)
@click.option(
    "--host",
    default="127.0.0.1",
    show_default=True,
    help="Host to bind to",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    envvar=CONFIG_ENVVAR,
    help=f"YAML file with default settings (env: {CONFIG_ENVVAR})",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
def main(port: int, host: str, config_path: Optional[Path], verbose: bool):
    """
    Sheet to SQL server - upload spreadsheets over HTTP.

    Endpoints:
        GET  /              - Status
        POST /api/preview   - Parse an upload and preview its rows
        POST /api/generate  - Generate SQL as JSON
        POST /api/download  - Generate SQL as a .sql attachment
    """
    # Setup logging
    log_level = "DEBUG" if verbose else "INFO"
    setup_logger(__name__, level=log_level)

    try:
        settings = load_config(config_path)
    except ConfigError as e:
        error(str(e))
        sys.exit(1)

    info(f"Starting Sheet to SQL on http://{host}:{port}")
    info("Press CTRL+C to stop")

    uvicorn.run(
        create_app(settings),
        host=host,
        port=port,
        log_level="error" if not verbose else "info",
    )


if __name__ == "__main__":
    main()
