from __future__ import annotations

import zipfile
from pathlib import Path
from typing import Any

import openpyxl
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from webvisionsheet.models.cell_value import CellValue

"""Tabular store adapter over openpyxl.

The whole workbook is loaded into memory and mutated in place; only the first
worksheet is read and enriched, other sheets are carried through unchanged on
save. Row and column indices are 1-based worksheet coordinates, row 1 being
the header.
"""

__all__ = [
    "WorkbookError",
    "TabularDocument",
]


class WorkbookError(Exception):
    """Raised when a workbook cannot be read."""


class TabularDocument:
    """In-memory workbook with the first worksheet exposed as a table."""

    def __init__(self, workbook: Workbook) -> None:
        self._workbook = workbook
        self._sheet: Worksheet = workbook.worksheets[0]

    @classmethod
    def load(cls, path: Path) -> TabularDocument:
        try:
            workbook = openpyxl.load_workbook(path, rich_text=True)
        except (OSError, InvalidFileException, zipfile.BadZipFile, KeyError, ValueError) as e:
            raise WorkbookError(f"cannot read workbook {path}: {e}") from e
        if not workbook.worksheets:
            raise WorkbookError(f"workbook has no worksheets: {path}")
        return cls(workbook)

    @property
    def sheet_name(self) -> str:
        return self._sheet.title

    @property
    def row_count(self) -> int:
        """Rows including the header."""
        return self._sheet.max_row

    @property
    def column_count(self) -> int:
        return self._sheet.max_column

    def header_columns(self) -> list[str]:
        """Header names in column order, empty header cells skipped."""
        names = []
        for col in range(1, self.column_count + 1):
            value = self.get_cell(1, col)
            if not value.is_empty:
                names.append(value.to_display_string())
        return names

    def find_column(self, name: str) -> int | None:
        """Return the column index whose header equals ``name`` exactly.

        When the header repeats a name, the right-most column wins.
        """
        found = None
        for col in range(1, self.column_count + 1):
            if self.get_cell(1, col).to_display_string() == name:
                found = col
        return found

    def get_cell(self, row: int, col: int) -> CellValue:
        # ws.cell() materializes missing cells and grows the sheet dimensions
        if row > self._sheet.max_row or col > self._sheet.max_column:
            return CellValue.empty()
        cell = self._sheet.cell(row=row, column=col)
        # formula source is not a value; cached results are not loaded
        if cell.data_type == "f":
            return CellValue.empty()
        return CellValue.from_raw(cell.value)

    def set_cell(self, row: int, col: int, value: Any) -> None:
        if isinstance(value, str):
            value = ILLEGAL_CHARACTERS_RE.sub("", value)
        self._sheet.cell(row=row, column=col, value=value)

    def append_header_column(self, name: str) -> int:
        """Write ``name`` into the header after the last used column."""
        col = self.column_count + 1
        self.set_cell(1, col, name)
        return col

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        self._workbook.save(path)

    def close(self) -> None:
        self._workbook.close()
