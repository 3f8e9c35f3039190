"""
Session engine - one round of Black Box.

A Session owns the hidden atoms, the fired-ray history, the consumed edge
points and (in hypothesis mode) the player's marked cells. It is mutated only
through the command methods below; every failed command raises a
`BlackBoxError` subclass and leaves the session untouched.

State machine:
    ACTIVE --guess()/check()--> FINISHED (terminal)

Running out of rays is a policy check on fire(), not a state change: the
caller is expected to answer once `rays_remaining` hits zero.

A Session is single-writer; callers serialize commands.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional

from config import MAX_RAYS, NUM_ATOMS, TRACE_STEP_LIMIT
from game.atoms import pick_atoms
from game.board import Cell, EdgePoint, all_edge_points, validate_cell
from game.errors import (
    BudgetExceeded,
    HypothesisCountMismatch,
    InternalTraceLimitExceeded,
    InvalidInput,
    ModeUnavailable,
    PositionUnavailable,
    SessionFinished,
)
from game.scoring import ScoreBreakdown, calculate_score, ray_points as score_ray_points
from game.tracer import OutcomeKind, RayOutcome, as_atom_set, trace

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    ACTIVE = "active"
    FINISHED = "finished"


@dataclass(frozen=True, slots=True)
class Ray:
    """A fired ray, as recorded in session history."""

    id: int
    entry: EdgePoint
    kind: OutcomeKind
    exit: Optional[EdgePoint]
    path: tuple[Cell, ...]

    @classmethod
    def from_outcome(cls, ray_id: int, outcome: RayOutcome) -> "Ray":
        return cls(id=ray_id, entry=outcome.entry, kind=outcome.kind, exit=outcome.exit, path=outcome.path)

    @property
    def is_detour(self) -> bool:
        return self.kind is OutcomeKind.EXITED

    def describe(self) -> str:
        if self.kind is OutcomeKind.ABSORBED:
            return f"Ray from {self.entry}: ABSORBED"
        if self.kind is OutcomeKind.REFLECTED:
            return f"Ray from {self.entry}: REFLECTED"
        return f"Ray from {self.entry}: Exited at {self.exit}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "entry": self.entry.to_dict(),
            "outcome": self.kind.value,
            "exit": None if self.exit is None else self.exit.to_dict(),
            "path": [list(cell) for cell in self.path],
        }


@dataclass(frozen=True, slots=True)
class GameResult:
    """Final breakdown of a finished round."""

    guess: tuple[Cell, ...]
    atoms: tuple[Cell, ...]
    atoms_correct: int
    score: ScoreBreakdown
    rays_used: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "guess": [list(c) for c in self.guess],
            "atoms": [list(c) for c in self.atoms],
            "atoms_correct": self.atoms_correct,
            "rays_used": self.rays_used,
            "score": self.score.to_dict(),
        }


class Session:
    """
    One round of play.

    Args:
        atoms: The hidden atoms (any iterable of (row, col) pairs)
        hypothesis_mode: If True, answers go through mark()/unmark()/check();
            otherwise through guess()
        max_rays: Ray budget for fire()
        guess_count: Cells required in an answer (defaults to the atom count)
        step_limit: Tracer step cap for fire()
    """

    def __init__(
        self,
        atoms: Iterable[Any],
        *,
        hypothesis_mode: bool = False,
        max_rays: int = MAX_RAYS,
        guess_count: Optional[int] = None,
        step_limit: int = TRACE_STEP_LIMIT,
    ):
        atom_set = as_atom_set(atoms)
        self._atoms: frozenset[Cell] = atom_set
        self.hypothesis_mode = bool(hypothesis_mode)
        self.max_rays = int(max_rays)
        self.guess_count = len(atom_set) if guess_count is None else int(guess_count)
        self.step_limit = int(step_limit)

        self._rays: list[Ray] = []
        self._used: set[EdgePoint] = set()
        self._hypotheses: set[Cell] = set()
        self._turn = 0
        self._state = SessionState.ACTIVE
        self._result: Optional[GameResult] = None

    @classmethod
    def new(
        cls,
        *,
        atoms: Optional[Iterable[Any]] = None,
        config_index: Optional[int] = None,
        seed: Optional[int] = None,
        trial: Optional[str] = None,
        num_atoms: int = NUM_ATOMS,
        **kwargs: Any,
    ) -> "Session":
        """
        Build a session from explicit atoms, an experiment config, or a seeded draw.

        Precedence: atoms > config_index > seed. With none given, draws from SIM_SEED.
        """
        if atoms is not None:
            return cls(atoms, **kwargs)
        return cls(pick_atoms(config_index, seed, trial, num_atoms), **kwargs)

    # ------------------------------------------------------------------
    # Observations
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_finished(self) -> bool:
        return self._state is SessionState.FINISHED

    @property
    def atom_count(self) -> int:
        return len(self._atoms)

    def has_atom(self, cell: Any) -> bool:
        return validate_cell(cell) in self._atoms

    @property
    def revealed_atoms(self) -> Optional[frozenset[Cell]]:
        """The hidden atoms, once the round is over; None while it is active."""
        return self._atoms if self.is_finished else None

    @property
    def rays(self) -> tuple[Ray, ...]:
        return tuple(self._rays)

    @property
    def used_positions(self) -> frozenset[EdgePoint]:
        return frozenset(self._used)

    def is_used(self, side: Any, position: Any) -> bool:
        return EdgePoint.of(side, position) in self._used

    def available_positions(self) -> list[EdgePoint]:
        return [edge for edge in all_edge_points() if edge not in self._used]

    @property
    def hypotheses(self) -> frozenset[Cell]:
        return frozenset(self._hypotheses)

    @property
    def turn(self) -> int:
        """Rays fired so far; mark/unmark do not consume a turn."""
        return self._turn

    @property
    def rays_remaining(self) -> int:
        return max(0, self.max_rays - len(self._rays))

    @property
    def ray_points(self) -> int:
        return score_ray_points(self._rays)

    @property
    def result(self) -> Optional[GameResult]:
        return self._result

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def _require_active(self) -> None:
        if self.is_finished:
            raise SessionFinished()

    def fire(self, side: Any, position: Any) -> Ray:
        """Fire a ray from an edge point and record it."""
        self._require_active()
        entry = EdgePoint.of(side, position)
        if len(self._rays) >= self.max_rays:
            raise BudgetExceeded(self.max_rays)
        if entry in self._used:
            raise PositionUnavailable(entry)

        outcome = trace(self._atoms, entry.side, entry.position, step_limit=self.step_limit)
        if outcome.kind is OutcomeKind.INTERNAL_ERROR:
            raise InternalTraceLimitExceeded(f"Ray from {entry} did not terminate within the step limit")

        ray = Ray.from_outcome(len(self._rays) + 1, outcome)
        self._rays.append(ray)
        self._used.add(ray.entry)
        if ray.exit is not None:
            self._used.add(ray.exit)
        self._turn += 1
        logger.debug("fired #%d: %s", ray.id, ray.describe())
        return ray

    def _require_hypothesis_mode(self, action: str) -> None:
        if not self.hypothesis_mode:
            raise ModeUnavailable(f'The "{action}" action is not available. Use fire or guess.')

    def mark(self, cell: Any) -> bool:
        """
        Mark a hypothesized atom position.

        Returns True if the cell was newly marked, False if it was already marked.
        """
        self._require_active()
        self._require_hypothesis_mode("mark")
        target = validate_cell(cell)
        if target in self._hypotheses:
            return False
        if len(self._hypotheses) >= self.guess_count:
            raise HypothesisCountMismatch(
                f'Already have {len(self._hypotheses)} positions marked. Unmark one first, or use "check" to submit your answer.',
                marked=len(self._hypotheses),
                required=self.guess_count,
            )
        self._hypotheses.add(target)
        logger.debug("marked %s (%d/%d)", target, len(self._hypotheses), self.guess_count)
        return True

    def unmark(self, cell: Any) -> bool:
        """Remove a mark. Returns True if the cell was marked, False otherwise."""
        self._require_active()
        self._require_hypothesis_mode("unmark")
        target = validate_cell(cell)
        if target not in self._hypotheses:
            return False
        self._hypotheses.discard(target)
        logger.debug("unmarked %s (%d/%d)", target, len(self._hypotheses), self.guess_count)
        return True

    def guess(self, cells: Iterable[Any]) -> GameResult:
        """Commit a final answer of exactly `guess_count` distinct cells."""
        self._require_active()
        if self.hypothesis_mode:
            raise ModeUnavailable(
                'The "guess" action is not available. Use "mark" to mark atom positions, '
                'then use "check" when you have exactly the required positions marked.'
            )
        if cells is None or isinstance(cells, (str, bytes)):
            raise InvalidInput(f"Invalid guess {cells!r}. Expected a list of [row, col] pairs.")
        try:
            guessed = [validate_cell(c) for c in cells]
        except TypeError:
            raise InvalidInput(f"Invalid guess {cells!r}. Expected a list of [row, col] pairs.") from None
        if len(set(guessed)) != len(guessed):
            raise InvalidInput("Guess contains duplicate cells.")
        if len(guessed) != self.guess_count:
            raise InvalidInput(f"Guess must contain exactly {self.guess_count} cells, got {len(guessed)}.")
        return self._finish(guessed)

    def check(self) -> GameResult:
        """Submit the marked hypotheses as the final answer."""
        self._require_active()
        self._require_hypothesis_mode("check")
        marked = len(self._hypotheses)
        if marked != self.guess_count:
            diff = self.guess_count - marked
            if diff > 0:
                message = (
                    f"You have only {marked} positions marked. "
                    f"You need to mark {diff} more position{'s' if diff > 1 else ''} before checking."
                )
            else:
                message = (
                    f"You have {marked} positions marked. "
                    f"You need to unmark {-diff} position{'s' if -diff > 1 else ''} to have exactly {self.guess_count}."
                )
            raise HypothesisCountMismatch(message, marked=marked, required=self.guess_count)
        return self._finish(sorted(self._hypotheses))

    def _finish(self, guessed: list[Cell]) -> GameResult:
        correct = len(set(guessed) & self._atoms)
        score = calculate_score(self._rays, correct, self.atom_count)
        self._result = GameResult(
            guess=tuple(guessed),
            atoms=tuple(sorted(self._atoms)),
            atoms_correct=correct,
            score=score,
            rays_used=len(self._rays),
        )
        self._state = SessionState.FINISHED
        logger.info(
            "round finished: %d/%d atoms correct, %d rays, score %d",
            correct,
            self.atom_count,
            len(self._rays),
            score.total,
        )
        return self._result
