"""Upload validation and output naming."""

from pathlib import PurePath
from typing import Optional

from shared.logger import get_logger

logger = get_logger(__name__)

ALLOWED_EXTENSIONS = (".xlsx", ".csv", ".xls")
ALLOWED_MIME_TYPES = (
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/csv",
    "application/vnd.ms-excel",
)

INVALID_FORMAT = "Invalid file format. Please upload a .xlsx or .csv file."


class UnsupportedFileError(ValueError):
    """Raised when an upload is neither an allowed type nor extension."""


def file_extension(filename: str) -> str:
    """Lower-cased extension including the dot ("" if none)."""
    return PurePath(filename).suffix.lower()


def validate_upload(filename: str, content_type: Optional[str] = None) -> None:
    """
    Check an upload against the extension and MIME allow-lists.

    A file passes when either its MIME type or its extension is allowed.

    Args:
        filename: Original file name
        content_type: MIME type reported by the client, if any

    Raises:
        UnsupportedFileError: If neither matches
    """
    mime = (content_type or "").split(";")[0].strip().lower()
    if mime in ALLOWED_MIME_TYPES or file_extension(filename) in ALLOWED_EXTENSIONS:
        return

    logger.warning(f"Rejected upload {filename!r} ({mime or 'no content type'})")
    raise UnsupportedFileError(INVALID_FORMAT)


def output_filename(table_name: str) -> str:
    """Download name for generated SQL: <table>.sql or output.sql."""
    return f"{table_name.strip() or 'output'}.sql"
