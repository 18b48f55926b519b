"""Fixtures and helpers for building template workbooks."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from openpyxl import Workbook

from fs_group_import.config import ApiConfig, AppConfig, RunConfig

BASE_URL = "https://acl.test/api"
GROUPS_URL = f"{BASE_URL}/groups"
TOKEN = "secret-token-1234"

SHEET_HEADER = ("Resource Type", "Resource IDs", "Principal", "Roles", "Value")
ROW_HEADER = (
    "Name",
    "Description",
    "ResourceTypes",
    "ResourceIds",
    "ResourceValues",
    "Principals",
    "Roles",
)

OPERATOR_ROWS = [
    ("machine", "M1,M2", "alice@example.com", "role-operator"),
    ("machine", "M3", "bob@example.com", "role-maint"),
    ("line", "L1,L2", "alice@example.com", "role-supervisor"),
]


def build_sheet_workbook(
    path: Path,
    sheets: list[tuple[str, Any, Any, list[tuple[Any, ...]]]],
    header: tuple[str, ...] = SHEET_HEADER,
) -> Path:
    """Write a sheet-per-group workbook.

    Each entry is ``(sheet_title, name_cell, description_cell, table_rows)``.
    """
    wb = Workbook()
    wb.remove(wb.active)
    for title, name, description, rows in sheets:
        ws = wb.create_sheet(title)
        ws["A1"] = "Group name"
        ws["B1"] = name
        ws["A2"] = "Description"
        ws["B2"] = description
        for column, value in enumerate(header, start=1):
            ws.cell(row=4, column=column, value=value)
        for offset, row in enumerate(rows):
            for column, value in enumerate(row, start=1):
                ws.cell(row=5 + offset, column=column, value=value)
    wb.save(path)
    return path


def build_row_workbook(
    path: Path,
    rows: list[tuple[Any, ...]],
    sheet: str = "Groups",
    header: tuple[str, ...] = ROW_HEADER,
) -> Path:
    """Write a row-per-group workbook with a header on row 1."""
    wb = Workbook()
    ws = wb.active
    ws.title = sheet
    ws.append(list(header))
    for row in rows:
        ws.append(list(row))
    wb.save(path)
    return path


def make_config(api: ApiConfig, **run: Any) -> AppConfig:
    return AppConfig(api=api, run=RunConfig(**run))
