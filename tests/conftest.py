"""Shared fixtures for spreadsheet tests."""

import io
from typing import Any, List, Sequence

import openpyxl
import pytest


def build_xlsx(rows: Sequence[Sequence[Any]], extra_sheets: Sequence[List[List[Any]]] = ()) -> bytes:
    """Write rows to the first sheet of an in-memory workbook."""
    workbook = openpyxl.Workbook()
    sheet = workbook.active
    sheet.title = "Data"
    for row in rows:
        sheet.append(list(row))

    for index, sheet_rows in enumerate(extra_sheets):
        extra = workbook.create_sheet(f"Extra{index}")
        for row in sheet_rows:
            extra.append(row)

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def make_xlsx():
    """Factory fixture returning xlsx bytes for the given rows."""
    return build_xlsx


@pytest.fixture
def students_csv() -> bytes:
    return (
        "id,name,enrolled,notes\n"
        "1,Ada,2024-01-05,\n"
        "2,O'Brien,2024-02-10,likes SQL\n"
        ",,,\n"
        "3,Grace,2024-03-15,\n"
    ).encode("utf-8")
