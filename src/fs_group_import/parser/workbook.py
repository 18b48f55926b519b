"""Reading spreadsheet files into plain cell grids."""

from __future__ import annotations

import csv
import logging
import zipfile
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any

from openpyxl import load_workbook
from openpyxl.utils.cell import coordinate_to_tuple
from openpyxl.utils.exceptions import InvalidFileException

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = {".xlsx", ".xlsm"}
CSV_SUFFIXES = {".csv"}


class ParseError(Exception):
    """Raised when the input file cannot be read or does not match the layout."""

    def __init__(self, message: str, sheet: str | None = None, row: int | None = None):
        location = ""
        if sheet is not None:
            location = f"sheet '{sheet}'"
            if row is not None:
                location += f" row {row}"
            location += ": "
        super().__init__(f"{location}{message}")
        self.sheet = sheet
        self.row = row


@dataclass(frozen=True)
class SheetGrid:
    """A worksheet as trimmed strings. Rows and columns are 1-based."""

    name: str
    rows: list[tuple[str, ...]] = field(default_factory=list)

    def row(self, number: int) -> tuple[str, ...]:
        if number < 1 or number > len(self.rows):
            return ()
        return self.rows[number - 1]

    def cell(self, row: int, column: int) -> str:
        values = self.row(row)
        if column < 1 or column > len(values):
            return ""
        return values[column - 1]

    def cell_at(self, coordinate: str) -> str:
        """Look up a cell by A1-style coordinate."""
        row, column = coordinate_to_tuple(coordinate)
        return self.cell(row, column)

    @property
    def is_empty(self) -> bool:
        return not any(any(values) for values in self.rows)


def cell_text(value: Any) -> str:
    """Render a raw cell value as trimmed text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value).strip()


def load_workbook_grids(path: Path) -> list[SheetGrid]:
    """Read every sheet of *path* into a :class:`SheetGrid`.

    ``.xlsx``/``.xlsm`` files are read with openpyxl; a ``.csv`` file becomes
    a single sheet named after the file stem.
    """
    path = Path(path)
    if not path.is_file():
        raise ParseError(f"Input file not found: {path}")

    suffix = path.suffix.lower()
    if suffix in EXCEL_SUFFIXES:
        return _load_excel(path)
    if suffix in CSV_SUFFIXES:
        return [_load_csv(path)]
    raise ParseError(
        f"Unsupported input file extension {suffix!r}: {path}. Use .xlsx, .xlsm, or .csv"
    )


def _load_excel(path: Path) -> list[SheetGrid]:
    try:
        wb = load_workbook(path, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
        raise ParseError(f"Unable to read workbook {path}: {e}") from e

    grids: list[SheetGrid] = []
    try:
        for ws in wb.worksheets:
            rows = [
                tuple(cell_text(value) for value in values)
                for values in ws.iter_rows(min_row=1, min_col=1, values_only=True)
            ]
            grids.append(SheetGrid(name=ws.title, rows=rows))
            logger.debug("Read sheet '%s' (%d rows)", ws.title, len(rows))
    finally:
        wb.close()

    return grids


def _load_csv(path: Path) -> SheetGrid:
    try:
        with open(path, newline="", encoding="utf-8-sig") as f:
            rows = [tuple(cell_text(value) for value in row) for row in csv.reader(f)]
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise ParseError(f"Unable to read CSV file {path}: {e}") from e

    logger.debug("Read CSV '%s' (%d rows)", path.name, len(rows))
    return SheetGrid(name=path.stem, rows=rows)
