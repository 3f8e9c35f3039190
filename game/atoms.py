"""
Atom placement: fixed experiment layouts and seeded random draws.

Goals:
- Reproducible rounds: the same config index or seed always yields the same atoms
- Stable sub-streams derived from a base seed (one per trial/tag), so adding a
  trial never shifts the atoms of another

Non-goals:
- Cryptographic security
- Cross-language reproducibility (this is Python's Mersenne Twister)
"""

from __future__ import annotations

import random
import zlib
from typing import Optional

from config import GRID_SIZE, NUM_ATOMS, SIM_SEED
from game.board import Cell
from game.errors import InvalidInput

# Ten reproducible 4-atom layouts, (row, col), 1-based.
EXPERIMENT_CONFIGS: tuple[tuple[tuple[int, int], ...], ...] = (
    ((2, 3), (3, 6), (6, 2), (7, 7)),  # spread
    ((1, 1), (1, 3), (2, 2), (5, 6)),  # cluster in corner
    ((2, 2), (4, 4), (6, 6), (8, 8)),  # diagonal
    ((1, 4), (4, 8), (8, 5), (5, 1)),  # edge-heavy
    ((3, 4), (4, 3), (4, 5), (5, 4)),  # central cluster
    ((2, 2), (2, 3), (2, 4), (4, 2)),  # L-shape
    ((1, 1), (1, 8), (8, 1), (8, 8)),  # corners
    ((2, 7), (3, 2), (6, 5), (7, 3)),  # asymmetric
    ((4, 2), (4, 4), (4, 6), (4, 8)),  # row cluster
    ((1, 5), (3, 3), (5, 7), (8, 2)),  # mixed
)

CONFIG_NAMES = (
    "spread",
    "corner_cluster",
    "diagonal",
    "edge_heavy",
    "central_cluster",
    "l_shape",
    "corners",
    "asymmetric",
    "row_cluster",
    "mixed",
)


def config_atoms(index: int) -> frozenset[Cell]:
    """Atoms for a 1-based experiment config index."""
    if isinstance(index, bool) or not isinstance(index, int) or not 1 <= index <= len(EXPERIMENT_CONFIGS):
        raise InvalidInput(f"Unknown config {index!r}. Use 1-{len(EXPERIMENT_CONFIGS)}.")
    return frozenset(Cell(r, c) for r, c in EXPERIMENT_CONFIGS[index - 1])


def derive_rng(seed: int, tag: Optional[str] = None) -> random.Random:
    """
    A seeded RNG, optionally a sub-stream for `tag` (e.g. "trial-3").

    Uses crc32 for the tag, never Python's hash(), which is randomized per process.
    """
    base = int(seed) & 0xFFFFFFFF
    if tag is None:
        return random.Random(base)
    crc = zlib.crc32(str(tag).encode("utf-8")) & 0xFFFFFFFF
    return random.Random((base ^ crc) & 0xFFFFFFFF)


def generate_atoms(count: int = NUM_ATOMS, rng: Optional[random.Random] = None) -> frozenset[Cell]:
    """Draw `count` distinct cells uniformly from the grid."""
    if count < 0 or count > GRID_SIZE * GRID_SIZE:
        raise InvalidInput(f"Cannot place {count} atoms on a {GRID_SIZE}x{GRID_SIZE} grid.")
    rng = rng if rng is not None else derive_rng(0)
    atoms: set[Cell] = set()
    while len(atoms) < count:
        atoms.add(Cell(rng.randint(1, GRID_SIZE), rng.randint(1, GRID_SIZE)))
    return frozenset(atoms)


def pick_atoms(
    config_index: Optional[int] = None,
    seed: Optional[int] = None,
    trial: Optional[str] = None,
    num_atoms: int = NUM_ATOMS,
) -> frozenset[Cell]:
    """Atoms for a config index if given, otherwise a draw from `seed` (SIM_SEED when None)."""
    if config_index is not None:
        return config_atoms(config_index)
    return generate_atoms(num_atoms, derive_rng(SIM_SEED if seed is None else seed, trial))
