"""
Round scoring. Lower is better.

- Each ray entry point costs 1
- A detour (exit distinct from entry) costs 1 more for its exit point
- Reflections and absorptions charge only the entry
- Each atom not covered by the guess costs MISS_PENALTY
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Iterable

from config import MISS_PENALTY, NUM_ATOMS


@dataclass(frozen=True, slots=True)
class ScoreBreakdown:
    ray_points: int
    missed_penalty: int
    total: int
    atoms_missed: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def ray_points(rays: Iterable[Any]) -> int:
    """Entry/exit charges for a ray history. Each item needs an `is_detour` flag."""
    return sum(2 if ray.is_detour else 1 for ray in rays)


def calculate_score(rays: Iterable[Any], atoms_correct: int, total_atoms: int = NUM_ATOMS) -> ScoreBreakdown:
    points = ray_points(rays)
    atoms_missed = max(0, int(total_atoms) - int(atoms_correct))
    penalty = atoms_missed * MISS_PENALTY
    return ScoreBreakdown(
        ray_points=points,
        missed_penalty=penalty,
        total=points + penalty,
        atoms_missed=atoms_missed,
    )
