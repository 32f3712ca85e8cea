"""Decode spreadsheet bytes into a normalized grid."""

import csv
import io
import math
import re
from datetime import date, datetime
from typing import Any, List, Optional, Sequence

import openpyxl
import xlrd

from shared.logger import get_logger

from .models import Cell, Number, ParsedGrid, format_date, format_number

logger = get_logger(__name__)

NUMBER_PATTERN = re.compile(r"-?\d+(\.\d+)?", re.ASCII)

ZIP_MAGIC = b"PK\x03\x04"
OLE_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"

CSV_DELIMITERS = ",;\t|"
SNIFF_SAMPLE_SIZE = 64 * 1024

NO_SHEETS = "No sheets found in the file."
TOO_FEW_ROWS = "File must have at least a header row and one data row."
UNDECODABLE = "Failed to parse file. Ensure it is a valid .xlsx or .csv file."


class ParseError(ValueError):
    """Raised when bytes cannot be turned into a grid."""


class TabularParser:
    """
    Parse .xlsx, .xls and delimited text into a ParsedGrid.

    Only the first sheet is read. The format is detected from the content,
    the filename is used for log messages only.
    """

    def __init__(self, preserve_dates: bool = False):
        """
        Initialize parser.

        Args:
            preserve_dates: Keep native spreadsheet dates as DATE cells
                instead of formatting them to yyyy-mm-dd text
        """
        self.preserve_dates = preserve_dates
        logger.debug(f"Initialized TabularParser (preserve_dates={preserve_dates})")

    def parse(self, data: bytes, filename: str = "") -> ParsedGrid:
        """
        Parse raw file bytes.

        Args:
            data: Complete file content
            filename: Original file name

        Returns:
            ParsedGrid with the header row and non-blank data rows

        Raises:
            ParseError: If the content has no sheet, too few rows or
                cannot be decoded
        """
        logger.info(f"Parsing {filename or 'upload'} ({len(data)} bytes)")

        raw_rows = self._decode(data)

        if len(raw_rows) < 2:
            raise ParseError(TOO_FEW_ROWS)

        headers = tuple("" if h is None else str(h).strip() for h in raw_rows[0])

        rows = []
        for raw in raw_rows[1:]:
            if _is_blank(raw):
                continue
            rows.append(
                tuple(
                    self._normalize(raw[i] if i < len(raw) else None)
                    for i in range(len(headers))
                )
            )

        if not rows:
            raise ParseError(TOO_FEW_ROWS)

        logger.info(f"Parsed {len(rows)} row(s) x {len(headers)} column(s)")
        return ParsedGrid(headers=headers, rows=tuple(rows))

    def _decode(self, data: bytes) -> List[List[Any]]:
        """Decode the first sheet into raw rows of Python values."""
        if data.startswith(ZIP_MAGIC):
            logger.debug("Detected XLSX content")
            return self._read_xlsx(data)
        if data.startswith(OLE_MAGIC):
            logger.debug("Detected legacy XLS content")
            return self._read_xls(data)
        logger.debug("Reading as delimited text")
        return self._read_csv(data)

    def _read_xlsx(self, data: bytes) -> List[List[Any]]:
        try:
            workbook = openpyxl.load_workbook(io.BytesIO(data), data_only=True)
        except Exception as e:
            logger.error(f"openpyxl failed to load workbook: {e}")
            raise ParseError(UNDECODABLE) from e

        if not workbook.worksheets:
            raise ParseError(NO_SHEETS)

        sheet = workbook.worksheets[0]
        return [
            [self._decode_value(value) for value in row]
            for row in sheet.iter_rows(
                min_row=sheet.min_row, min_col=sheet.min_column, values_only=True
            )
        ]

    def _read_xls(self, data: bytes) -> List[List[Any]]:
        try:
            book = xlrd.open_workbook(file_contents=data)
        except Exception as e:
            logger.error(f"xlrd failed to open workbook: {e}")
            raise ParseError(UNDECODABLE) from e

        if book.nsheets == 0:
            raise ParseError(NO_SHEETS)

        sheet = book.sheet_by_index(0)
        rows = []
        for row_index in range(sheet.nrows):
            rows.append([_xls_value(cell, book.datemode) for cell in sheet.row(row_index)])
        return [[self._decode_value(value) for value in row] for row in _used_range(rows)]

    def _read_csv(self, data: bytes) -> List[List[Any]]:
        if b"\x00" in data:
            raise ParseError(UNDECODABLE)

        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError:
            logger.debug("Content is not UTF-8, falling back to latin-1")
            text = data.decode("latin-1")

        try:
            dialect = csv.Sniffer().sniff(text[:SNIFF_SAMPLE_SIZE], delimiters=CSV_DELIMITERS)
            delimiter = dialect.delimiter
        except csv.Error:
            delimiter = ","

        try:
            reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)
            return [list(row) for row in reader]
        except csv.Error as e:
            logger.error(f"CSV decoding failed: {e}")
            raise ParseError(UNDECODABLE) from e

    def _decode_value(self, value: Any) -> Any:
        """Turn a decoder value into text, keeping dates when asked to."""
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "TRUE" if value else "FALSE"
        if isinstance(value, (int, float)):
            return format_number(value)
        if isinstance(value, datetime):
            return value.date() if self.preserve_dates else format_date(value)
        if isinstance(value, date):
            return value if self.preserve_dates else format_date(value)
        if hasattr(value, "isoformat"):
            return value.isoformat()
        return str(value)

    def _normalize(self, value: Any) -> Cell:
        """Classify one raw value into a Cell."""
        if isinstance(value, date):
            return Cell.date(value)
        if value is None:
            return Cell.null()

        text = str(value).strip()
        if not text:
            return Cell.null()
        if NUMBER_PATTERN.fullmatch(text):
            number = _to_number(text)
            if number is not None:
                return Cell.number(number)
        return Cell.text(text)


def _to_number(text: str) -> Optional[Number]:
    """Numeric value of text, or None when it is too long or out of range."""
    if "." not in text:
        try:
            return int(text)
        except ValueError:
            # longer than the interpreter's int string conversion limit
            return None
    value = float(text)
    return value if math.isfinite(value) else None


def _used_range(rows: List[List[Any]]) -> List[List[Any]]:
    """Drop leading rows and columns that hold no cells."""
    filled = [row for row in rows if any(value is not None for value in row)]
    if not filled:
        return rows
    top = rows.index(filled[0])
    left = min(next(i for i, value in enumerate(row) if value is not None) for row in filled)
    return [row[left:] for row in rows[top:]]


def _is_blank(row: Sequence[Any]) -> bool:
    return all(value is None or not str(value).strip() for value in row)


def _xls_value(cell: Any, datemode: int) -> Optional[Any]:
    """Convert an xlrd cell to a plain Python value."""
    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
        return None
    if cell.ctype == xlrd.XL_CELL_DATE:
        return xlrd.xldate_as_datetime(cell.value, datemode)
    if cell.ctype == xlrd.XL_CELL_BOOLEAN:
        return bool(cell.value)
    if cell.ctype == xlrd.XL_CELL_ERROR:
        return xlrd.error_text_from_code.get(cell.value, "#ERR")
    return cell.value

