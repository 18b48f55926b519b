"""Template layout options.

A workbook is either one sheet per group or one row per group. The layout is
selected by its ``kind`` tag, e.g. in ``group-import.yaml``::

    run:
      layout:
        kind: row-per-group
        sheet: Groups
"""

from typing import Annotated, Literal

from openpyxl.utils.cell import coordinate_to_tuple
from openpyxl.utils.exceptions import CellCoordinatesException
from pydantic import BaseModel, Field, field_validator

SHEET_PER_GROUP = "sheet-per-group"
ROW_PER_GROUP = "row-per-group"


class SheetPerGroupLayout(BaseModel):
    """Each worksheet describes one group."""

    kind: Literal["sheet-per-group"] = SHEET_PER_GROUP
    name_cell: str = Field(default="B1", description="Cell holding the group name")
    description_cell: str = Field(default="B2", description="Cell holding the description")
    header_row: int = Field(default=4, ge=1, description="Row of the resource table header")
    header_marker: str = Field(
        default="resource type",
        description="Expected text of the first header cell (case-insensitive)",
    )
    skip_sheets: list[str] = Field(default_factory=list, description="Sheets to ignore")

    @field_validator("name_cell", "description_cell")
    @classmethod
    def validate_coordinate(cls, v: str) -> str:
        v = v.strip().upper()
        try:
            coordinate_to_tuple(v)
        except (CellCoordinatesException, ValueError, TypeError) as e:
            raise ValueError(f"Invalid cell reference: {v!r}") from e
        return v


class RowPerGroupLayout(BaseModel):
    """Each data row of a single worksheet describes one group."""

    kind: Literal["row-per-group"] = ROW_PER_GROUP
    sheet: str | None = Field(default=None, description="Worksheet name (default: first)")
    header_row: int = Field(default=1, ge=1)
    name_column: str = "Name"
    description_column: str = "Description"
    types_column: str = "ResourceTypes"
    ids_column: str = "ResourceIds"
    values_column: str = "ResourceValues"
    principals_column: str = "Principals"
    roles_column: str = "Roles"

    @property
    def required_columns(self) -> list[str]:
        return [
            self.name_column,
            self.types_column,
            self.ids_column,
            self.principals_column,
            self.roles_column,
        ]


Layout = Annotated[SheetPerGroupLayout | RowPerGroupLayout, Field(discriminator="kind")]

LAYOUT_KINDS: dict[str, type[SheetPerGroupLayout] | type[RowPerGroupLayout]] = {
    SHEET_PER_GROUP: SheetPerGroupLayout,
    ROW_PER_GROUP: RowPerGroupLayout,
}


def default_layout(kind: str) -> SheetPerGroupLayout | RowPerGroupLayout:
    """Return the default options for a layout kind."""
    try:
        return LAYOUT_KINDS[kind]()
    except KeyError:
        raise ValueError(
            f"Unknown layout {kind!r}. Choose one of: {', '.join(LAYOUT_KINDS)}"
        ) from None
