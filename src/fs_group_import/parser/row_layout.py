"""Row-per-group template parsing."""

from __future__ import annotations

import logging

from ..models import GroupSpec, SourceRef
from .accumulator import GroupAccumulator, split_list, split_positional
from .layouts import RowPerGroupLayout
from .workbook import ParseError, SheetGrid

logger = logging.getLogger(__name__)

ROLE_SEPARATOR = "|"


def select_sheet(grids: list[SheetGrid], layout: RowPerGroupLayout) -> SheetGrid:
    if not grids:
        raise ParseError("Workbook contains no sheets")
    if layout.sheet is None:
        return grids[0]
    for grid in grids:
        if grid.name == layout.sheet:
            return grid
    raise ParseError(
        f"Sheet '{layout.sheet}' not found. Available: {', '.join(g.name for g in grids)}"
    )


def header_index(grid: SheetGrid, layout: RowPerGroupLayout) -> dict[str, int]:
    """Map lower-cased header names to 1-based column numbers."""
    header = grid.row(layout.header_row)
    columns: dict[str, int] = {}
    for position, title in enumerate(header, start=1):
        key = title.strip().lower()
        if key and key not in columns:
            columns[key] = position

    missing = [name for name in layout.required_columns if name.lower() not in columns]
    if missing:
        raise ParseError(
            f"missing required column(s): {', '.join(missing)}",
            sheet=grid.name,
            row=layout.header_row,
        )
    return columns


def parse_rows(grids: list[SheetGrid], layout: RowPerGroupLayout) -> list[GroupSpec]:
    """Parse each non-blank data row into an independent group."""
    grid = select_sheet(grids, layout)
    columns = header_index(grid, layout)

    def cell(row_number: int, column_name: str) -> str:
        position = columns.get(column_name.lower())
        return grid.cell(row_number, position) if position else ""

    specs: list[GroupSpec] = []
    for row_number in range(layout.header_row + 1, len(grid.rows) + 1):
        if not any(grid.row(row_number)):
            continue

        acc = GroupAccumulator()
        _zip_resources(
            acc,
            split_positional(cell(row_number, layout.types_column)),
            split_positional(cell(row_number, layout.ids_column)),
            split_positional(cell(row_number, layout.values_column)),
        )
        _zip_principals(
            acc,
            split_positional(cell(row_number, layout.principals_column)),
            split_positional(cell(row_number, layout.roles_column)),
        )

        specs.append(
            acc.build(
                cell(row_number, layout.name_column),
                SourceRef(sheet=grid.name, row=row_number),
                cell(row_number, layout.description_column),
            )
        )

    logger.debug("Parsed %d group row(s) from sheet '%s'", len(specs), grid.name)
    return specs


def _zip_resources(
    acc: GroupAccumulator, types: list[str], ids: list[str], values: list[str]
) -> None:
    if len(types) != len(ids):
        acc.error(
            f"ResourceTypes has {len(types)} item(s) but ResourceIds has {len(ids)}"
        )
        return
    if values and len(values) != len(types):
        acc.error(
            f"ResourceValues has {len(values)} item(s) but ResourceTypes has {len(types)}"
        )
        return

    for position, (rtype, resource_id) in enumerate(zip(types, ids)):
        value = values[position] if values else None
        acc.add_resource(rtype, [resource_id], value or None)


def _zip_principals(acc: GroupAccumulator, principals: list[str], roles: list[str]) -> None:
    if not principals:
        if roles:
            acc.error("Roles listed without any Principals")
        return

    if len(roles) == 1:
        # One roles entry applies to every principal
        roles = roles * len(principals)
    elif roles and len(roles) != len(principals):
        acc.error(f"Principals has {len(principals)} item(s) but Roles has {len(roles)}")
        return

    for position, principal in enumerate(principals):
        granted = split_list(roles[position], ROLE_SEPARATOR) if roles else []
        acc.add_principal(principal, granted)
