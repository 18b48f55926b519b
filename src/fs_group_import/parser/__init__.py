"""Spreadsheet template parsing."""

from __future__ import annotations

import logging
from pathlib import Path

from ..models import GroupSpec
from .layouts import (
    ROW_PER_GROUP,
    SHEET_PER_GROUP,
    Layout,
    RowPerGroupLayout,
    SheetPerGroupLayout,
    default_layout,
)
from .row_layout import parse_rows
from .sheet_layout import parse_sheet, parse_sheets
from .workbook import ParseError, SheetGrid, load_workbook_grids

logger = logging.getLogger(__name__)

__all__ = [
    "Layout",
    "ParseError",
    "ROW_PER_GROUP",
    "RowPerGroupLayout",
    "SHEET_PER_GROUP",
    "SheetGrid",
    "SheetPerGroupLayout",
    "default_layout",
    "load_workbook_grids",
    "parse_file",
    "parse_groups",
    "parse_rows",
    "parse_sheet",
    "parse_sheets",
]


def parse_groups(
    grids: list[SheetGrid], layout: SheetPerGroupLayout | RowPerGroupLayout
) -> list[GroupSpec]:
    """Turn cell grids into group specs according to *layout*."""
    if isinstance(layout, SheetPerGroupLayout):
        return parse_sheets(grids, layout)
    return parse_rows(grids, layout)


def parse_file(path: Path, layout: SheetPerGroupLayout | RowPerGroupLayout) -> list[GroupSpec]:
    """Read *path* and parse it with *layout*."""
    logger.info("Reading %s (layout: %s)", path, layout.kind)
    specs = parse_groups(load_workbook_grids(path), layout)
    logger.info("Parsed %d group(s)", len(specs))
    return specs
