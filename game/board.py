"""
Board geometry for the Black Box grid.

Rows run 1..GRID_SIZE top to bottom, columns 1..GRID_SIZE left to right.
North/south edge positions index columns; east/west edge positions index rows.
Directions are (d_row, d_col) steps in that frame.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, NamedTuple

from config import GRID_SIZE
from game.errors import InvalidInput

Direction = tuple[int, int]

NORTH_STEP: Direction = (-1, 0)
SOUTH_STEP: Direction = (1, 0)
EAST_STEP: Direction = (0, 1)
WEST_STEP: Direction = (0, -1)


class Side(str, Enum):
    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"

    @classmethod
    def parse(cls, value: Any) -> "Side":
        """Accept a Side or a case-insensitive side name."""
        if isinstance(value, Side):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidInput(f"Invalid side {value!r}. Use north, south, east or west.")

    @property
    def inward(self) -> Direction:
        """Direction of travel for a ray fired from this side."""
        return _INWARD[self]

    @property
    def label(self) -> str:
        return self.value.upper()


_INWARD = {
    Side.NORTH: SOUTH_STEP,
    Side.SOUTH: NORTH_STEP,
    Side.EAST: WEST_STEP,
    Side.WEST: EAST_STEP,
}


class Cell(NamedTuple):
    row: int
    col: int

    def __str__(self) -> str:
        return f"({self.row},{self.col})"


@dataclass(frozen=True, slots=True)
class EdgePoint:
    """An addressable boundary crossing: which side, and the row/column index along it."""

    side: Side
    position: int

    def __str__(self) -> str:
        return f"{self.side.label}-{self.position}"

    def to_dict(self) -> dict[str, Any]:
        return {"side": self.side.value, "position": int(self.position)}

    @classmethod
    def of(cls, side: Any, position: Any) -> "EdgePoint":
        """Validated constructor; raises InvalidInput for bad side or position."""
        return cls(Side.parse(side), validate_index(position, what="position"))


def validate_index(value: Any, *, what: str = "index") -> int:
    # bool is an int subclass; "true" is never a board coordinate.
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInput(f"Invalid {what} {value!r}. Must be an integer 1-{GRID_SIZE}.")
    if value < 1 or value > GRID_SIZE:
        raise InvalidInput(f"Invalid {what} {value}. Must be 1-{GRID_SIZE}.")
    return int(value)


def validate_cell(value: Any) -> Cell:
    """Coerce a (row, col) pair into a Cell, raising InvalidInput when out of range."""
    try:
        row, col = value
    except (TypeError, ValueError):
        raise InvalidInput(f"Invalid cell {value!r}. Expected [row, col].") from None
    return Cell(validate_index(row, what="row"), validate_index(col, what="column"))


def in_grid(row: int, col: int) -> bool:
    return 1 <= row <= GRID_SIZE and 1 <= col <= GRID_SIZE


def entry_cell(edge: EdgePoint) -> Cell:
    """The first cell just inside the grid at an edge point."""
    if edge.side is Side.NORTH:
        return Cell(1, edge.position)
    if edge.side is Side.SOUTH:
        return Cell(GRID_SIZE, edge.position)
    if edge.side is Side.WEST:
        return Cell(edge.position, 1)
    return Cell(edge.position, GRID_SIZE)


def exit_edge(row: int, col: int) -> EdgePoint:
    """Edge point crossed by a ray that has stepped to (row, col), just outside the grid."""
    if row < 1:
        return EdgePoint(Side.NORTH, col)
    if row > GRID_SIZE:
        return EdgePoint(Side.SOUTH, col)
    if col < 1:
        return EdgePoint(Side.WEST, row)
    if col > GRID_SIZE:
        return EdgePoint(Side.EAST, row)
    raise ValueError(f"({row},{col}) is inside the grid")


def flanking_cells(row: int, col: int, direction: Direction) -> tuple[Cell, Cell]:
    """
    The two cells perpendicular to `direction` beside (row, col).

    Returned in a fixed order: (east, west) flanks for north/south travel,
    (north, south) flanks for east/west travel.
    """
    d_row, _ = direction
    if d_row != 0:
        return Cell(row, col + 1), Cell(row, col - 1)
    return Cell(row - 1, col), Cell(row + 1, col)


def all_edge_points() -> list[EdgePoint]:
    """Every edge point: north 1-8, south 1-8, east 1-8, west 1-8."""
    return [
        EdgePoint(side, pos)
        for side in (Side.NORTH, Side.SOUTH, Side.EAST, Side.WEST)
        for pos in range(1, GRID_SIZE + 1)
    ]
