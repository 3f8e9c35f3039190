"""
Ray tracer - the Black Box physics.

`trace()` is a pure function of (atoms, side, position). It never touches
session state, so it is safe to call repeatedly (e.g. to verify a hypothesis
against every fired ray, or to grade a prediction).

Rule priority, highest first:
    absorption > reflection > deflection > straight travel

An absorbed ray's path always ends on the absorbing atom's cell, both for
entry absorption and for absorption mid-grid.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional

from config import TRACE_STEP_LIMIT
from game.board import (
    EAST_STEP,
    NORTH_STEP,
    SOUTH_STEP,
    WEST_STEP,
    Cell,
    Direction,
    EdgePoint,
    entry_cell,
    exit_edge,
    flanking_cells,
    in_grid,
    validate_cell,
)
from game.errors import InvalidInput

logger = logging.getLogger(__name__)


class OutcomeKind(str, Enum):
    EXITED = "exited"
    REFLECTED = "reflected"
    ABSORBED = "absorbed"
    # Step limit hit; never produced by a correct rule set.
    INTERNAL_ERROR = "internal_error"


@dataclass(frozen=True, slots=True)
class RayOutcome:
    """
    Result of tracing one ray.

    `exit` is the exit edge for EXITED, the entry edge for REFLECTED, and None
    for ABSORBED / INTERNAL_ERROR.
    """

    kind: OutcomeKind
    entry: EdgePoint
    exit: Optional[EdgePoint]
    path: tuple[Cell, ...]

    @property
    def is_detour(self) -> bool:
        return self.kind is OutcomeKind.EXITED


def as_atom_set(atoms: Iterable[Any]) -> frozenset[Cell]:
    """Validate any iterable of (row, col) pairs into a frozenset of Cells. Raises InvalidInput."""
    try:
        return frozenset(validate_cell(a) for a in atoms)
    except TypeError:
        raise InvalidInput(f"Invalid atoms {atoms!r}. Expected a collection of [row, col] pairs.") from None


def _deflect(atoms: frozenset[Cell], ahead: Cell, direction: Direction) -> Direction:
    """New direction after inspecting the cells flanking `ahead`."""
    first, second = flanking_cells(ahead.row, ahead.col, direction)
    first_hit = first in atoms
    second_hit = second in atoms
    if first_hit and second_hit:
        return (-direction[0], -direction[1])
    if direction[0] != 0:
        # Traveling north/south: flanks are (east, west).
        if first_hit:
            return WEST_STEP
        if second_hit:
            return EAST_STEP
    else:
        # Traveling east/west: flanks are (north, south).
        if first_hit:
            return SOUTH_STEP
        if second_hit:
            return NORTH_STEP
    return direction


def trace(atoms: Iterable[Any], side: Any, position: Any, *, step_limit: int = TRACE_STEP_LIMIT) -> RayOutcome:
    """
    Fire a ray from (side, position) into a grid holding `atoms`.

    Args:
        atoms: Any finite collection of in-grid (row, col) pairs, possibly empty
        side: A Side or side name
        position: Row (east/west) or column (north/south), 1-8
        step_limit: Safety valve for the stepping phase

    Returns:
        RayOutcome with the outcome kind, exit edge (if any) and traversed path.

    Raises:
        InvalidInput: side, position or an atom out of range.
    """
    entry = EdgePoint.of(side, position)
    occupied = as_atom_set(atoms)
    direction = entry.side.inward

    first = entry_cell(entry)
    if first in occupied:
        return RayOutcome(OutcomeKind.ABSORBED, entry, None, (first,))

    if any(cell in occupied for cell in flanking_cells(first.row, first.col, direction)):
        return RayOutcome(OutcomeKind.REFLECTED, entry, entry, ())

    path = [first]
    row, col = first
    for _ in range(int(step_limit)):
        ahead = Cell(row + direction[0], col + direction[1])
        if ahead in occupied:
            path.append(ahead)
            return RayOutcome(OutcomeKind.ABSORBED, entry, None, tuple(path))

        direction = _deflect(occupied, ahead, direction)
        row, col = row + direction[0], col + direction[1]

        if not in_grid(row, col):
            exit_point = exit_edge(row, col)
            kind = OutcomeKind.REFLECTED if exit_point == entry else OutcomeKind.EXITED
            return RayOutcome(kind, entry, exit_point, tuple(path))

        cell = Cell(row, col)
        path.append(cell)
        # Every entered cell is checked, not only the straight-ahead one.
        if cell in occupied:
            return RayOutcome(OutcomeKind.ABSORBED, entry, None, tuple(path))

    logger.error("trace step limit (%d) exceeded from %s with atoms %s", step_limit, entry, sorted(occupied))
    return RayOutcome(OutcomeKind.INTERNAL_ERROR, entry, None, tuple(path))
