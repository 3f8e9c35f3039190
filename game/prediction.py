"""
Prediction grading ("predict mode").

An agent is shown the atoms and an entry point and predicts the outcome; the
prediction is graded against the tracer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional

from game.board import EdgePoint
from game.errors import InvalidInput
from game.tracer import OutcomeKind, RayOutcome, trace


@dataclass(frozen=True, slots=True)
class Prediction:
    kind: OutcomeKind
    exit: Optional[EdgePoint] = None

    @classmethod
    def from_dict(cls, data: Any) -> "Prediction":
        """
        Parse the agent's JSON answer.

        Accepted shapes:
            {"absorbed": true}
            {"reflected": true}
            {"exit_side": "south", "exit_position": 5}
        """
        if not isinstance(data, dict):
            raise InvalidInput(f"Invalid prediction {data!r}.")
        if data.get("absorbed") is True:
            return cls(OutcomeKind.ABSORBED)
        if data.get("reflected") is True:
            return cls(OutcomeKind.REFLECTED)
        if "exit_side" in data and "exit_position" in data:
            return cls(OutcomeKind.EXITED, EdgePoint.of(data["exit_side"], data["exit_position"]))
        raise InvalidInput(f"Prediction {data!r} names no outcome.")

    def describe(self) -> str:
        if self.kind is OutcomeKind.EXITED:
            return f"Exited at {self.exit}"
        return self.kind.value.upper()


@dataclass(frozen=True, slots=True)
class PredictionResult:
    entry: EdgePoint
    predicted: Prediction
    actual: RayOutcome
    correct: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "entry": self.entry.to_dict(),
            "predicted": self.predicted.describe(),
            "actual": self.actual.kind.value,
            "actual_exit": None if self.actual.exit is None else self.actual.exit.to_dict(),
            "correct": self.correct,
        }


def matches(prediction: Prediction, outcome: RayOutcome) -> bool:
    if prediction.kind is OutcomeKind.EXITED and outcome.exit is not None:
        # An exit named at the entry point is a reflection.
        return prediction.exit == outcome.exit
    return prediction.kind is outcome.kind


def grade_prediction(atoms: Iterable[Any], side: Any, position: Any, prediction: Prediction) -> PredictionResult:
    """Trace the ray and compare against `prediction`."""
    actual = trace(atoms, side, position)
    return PredictionResult(
        entry=actual.entry,
        predicted=prediction,
        actual=actual,
        correct=matches(prediction, actual),
    )
