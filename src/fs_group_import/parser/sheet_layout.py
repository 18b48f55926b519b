"""Sheet-per-group template parsing.

Expected sheet shape (defaults)::

    A1: Group name     B1: <name, falls back to the sheet name>
    A2: Description    B2: <description>
    A4: Resource Type | Resource IDs | Principal | Roles | Value
    A5...: one grant per row
"""

from __future__ import annotations

import logging

from ..models import GroupSpec, SourceRef
from .accumulator import GroupAccumulator, split_list
from .layouts import SheetPerGroupLayout
from .workbook import ParseError, SheetGrid

logger = logging.getLogger(__name__)

TYPE_COL, IDS_COL, PRINCIPAL_COL, ROLES_COL, VALUE_COL = 1, 2, 3, 4, 5


def parse_sheets(grids: list[SheetGrid], layout: SheetPerGroupLayout) -> list[GroupSpec]:
    """Parse every non-skipped, non-empty sheet into one group."""
    skip = {name.strip().lower() for name in layout.skip_sheets}
    specs: list[GroupSpec] = []

    for grid in grids:
        if grid.name.strip().lower() in skip:
            logger.debug("Skipping sheet '%s' (configured)", grid.name)
            continue
        if grid.is_empty:
            logger.info("Skipping empty sheet '%s'", grid.name)
            continue
        specs.append(parse_sheet(grid, layout))

    return specs


def parse_sheet(grid: SheetGrid, layout: SheetPerGroupLayout) -> GroupSpec:
    """Parse a single worksheet into a :class:`GroupSpec`."""
    marker = grid.cell(layout.header_row, TYPE_COL)
    if marker.lower() != layout.header_marker.strip().lower():
        raise ParseError(
            f"expected header '{layout.header_marker}' in column A, found {marker!r}",
            sheet=grid.name,
            row=layout.header_row,
        )

    acc = GroupAccumulator()
    for row_number in range(layout.header_row + 1, len(grid.rows) + 1):
        rtype = grid.cell(row_number, TYPE_COL)
        ids = grid.cell(row_number, IDS_COL)
        principal = grid.cell(row_number, PRINCIPAL_COL)
        roles = grid.cell(row_number, ROLES_COL)
        value = grid.cell(row_number, VALUE_COL)

        if not any((rtype, ids, principal, roles, value)):
            continue

        if rtype or ids:
            acc.add_resource(rtype, split_list(ids), value or None)
        elif value:
            acc.error(f"row {row_number}: resource value listed without a resource")
        if principal:
            acc.add_principal(principal, split_list(roles))
        elif roles:
            acc.error(f"row {row_number}: roles listed without a principal")

    name = grid.cell_at(layout.name_cell) or grid.name.strip()
    description = grid.cell_at(layout.description_cell)
    return acc.build(name, SourceRef(sheet=grid.name), description)
